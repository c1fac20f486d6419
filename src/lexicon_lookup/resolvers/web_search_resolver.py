"""
Web-search resolver: low-trust candidates scraped from a web dictionary.
"""
import asyncio
import json
import logging
from typing import List

from langchain_core.tools import BaseTool

from ..exceptions import ResolverError, ResolverTimeoutError
from ..models import RankedEntry
from ..schemas import SOURCE_WEB_SEARCH
from .base import ExternalResolver, make_candidate

logger = logging.getLogger(__name__)

# Scraped terms never outrank the lexicon or the AI endpoint
WEB_CONFIDENCE_CAP = 0.6
RANK_DECAY = 0.1


class WebSearchResolver(ExternalResolver):
    """
    Wraps a search tool that returns {"success", "results": [{"target_term", ...}]}.

    :param tool: LangChain tool, e.g. GlosbeSearchTool
    :param base_confidence: Confidence of the first result before the cap
    """

    name = "web-search"
    source_tag = SOURCE_WEB_SEARCH

    def __init__(self, tool: BaseTool, timeout: float = 8.0, base_confidence: float = 0.8):
        super().__init__(timeout=timeout)
        self.tool = tool
        self.base_confidence = base_confidence

    async def resolve(self, query: str) -> List[RankedEntry]:
        try:
            raw = await asyncio.wait_for(
                self.tool.ainvoke({"query": query.strip()}), timeout=self.timeout
            )
        except asyncio.TimeoutError as e:
            raise ResolverTimeoutError(self.name, f"no answer within {self.timeout}s") from e

        try:
            body = json.loads(raw) if isinstance(raw, str) else raw
        except ValueError as e:
            raise ResolverError(self.name, f"tool returned invalid JSON: {e}") from e
        if not isinstance(body, dict):
            raise ResolverError(self.name, "tool returned an unexpected shape")
        if body.get("error"):
            raise ResolverError(self.name, str(body["error"]))

        candidates = []
        for index, item in enumerate(body.get("results") or []):
            term = str(item.get("target_term") or item.get("ibibio") or "").strip()
            if not term:
                continue
            confidence = min(WEB_CONFIDENCE_CAP, self.base_confidence - RANK_DECAY * index)
            candidates.append(make_candidate(
                query,
                term,
                confidence,
                self.source_tag,
                gloss=item.get("meaning"),
            ))
        logger.debug(f"Web search produced {len(candidates)} candidate(s) for '{query}'")
        return candidates
