"""
Sentence decomposition for multi-token queries.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, Sequence

from ..models import RankedEntry, WordBreakdownItem
from ..resolvers.base import make_candidate
from ..schemas import SOURCE_NONE, SOURCE_SENTENCE_COMPOSITION, ResolutionResult

logger = logging.getLogger(__name__)

# Short words that still carry meaning and must be translated
IMPORTANT_SHORT_WORDS = frozenset({
    "i", "is", "am", "be", "to", "of", "in", "on", "at", "it", "he", "we", "my", "me",
    "us", "go", "no", "do", "up",
})
PASSTHROUGH_CONFIDENCE = 0.5
PASSTHROUGH_SOURCE = "passthrough"


@dataclass(frozen=True)
class Composition:
    """
    Token-by-token translation of a phrase.

    Attributes:
        breakdown: One item per token, in query order
        confidence: Minimum per-token confidence (0 if any token is missing)
    """
    query: str
    breakdown: List[WordBreakdownItem]
    confidence: float

    @property
    def target_text(self) -> str:
        return " ".join(item.target_token for item in self.breakdown)

    @property
    def found_count(self) -> int:
        return sum(1 for item in self.breakdown if item.found)

    def to_candidate(self) -> Optional[RankedEntry]:
        """Composed translation as a ranked candidate, None if it is incomplete."""
        if self.confidence <= 0.0 or not self.breakdown:
            return None
        return make_candidate(
            self.query,
            self.target_text,
            self.confidence,
            SOURCE_SENTENCE_COMPOSITION,
            gloss=f"Word-by-word translation of '{self.query}'",
        )


class SentenceDecomposer:
    """
    Resolves every token of a phrase through the single-token cascade.

    :param resolve_token: Coroutine resolving one token (no cache involved)
    """

    def __init__(self, resolve_token: Callable[[str], Awaitable[ResolutionResult]]):
        self._resolve_token = resolve_token

    async def decompose(self, query: str, tokens: Sequence[str]) -> Composition:
        items = await asyncio.gather(*(self._resolve_item(token) for token in tokens))
        confidence = min((item.confidence for item in items), default=0.0)

        logger.debug(
            f"Decomposed '{query}': {sum(1 for i in items if i.found)}/{len(items)} tokens found"
        )
        return Composition(query=query, breakdown=list(items), confidence=confidence)

    async def _resolve_item(self, token: str) -> WordBreakdownItem:
        if len(token) <= 2 and token not in IMPORTANT_SHORT_WORDS:
            return WordBreakdownItem(
                source_token=token,
                target_token=token,
                found=False,
                confidence=PASSTHROUGH_CONFIDENCE,
                source=PASSTHROUGH_SOURCE,
            )

        result = await self._resolve_token(token)
        if result.primary_entry is None or result.confidence <= 0.0:
            return WordBreakdownItem(
                source_token=token,
                target_token=f"[{token}]",
                found=False,
                confidence=0.0,
                source=SOURCE_NONE,
            )

        return WordBreakdownItem(
            source_token=token,
            target_token=result.primary_entry.target_term,
            found=True,
            confidence=result.confidence,
            source=result.source_tag,
        )
