"""
Web dictionary search tool (glosbe.com), usable by the web-search resolver
or directly by a LangChain agent.
"""
import asyncio
import json
import logging
from typing import Callable, List, Optional
from urllib.parse import quote

import httpx
from bs4 import BeautifulSoup
from langchain_core.tools import BaseTool
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

GLOSBE_URL = "https://glosbe.com/{source}/{target}/{query}"
USER_AGENT = "Mozilla/5.0 (compatible; lexicon-lookup-service/0.1)"

# Most specific selectors first
_TRANSLATION_SELECTORS = (
    "h3.translation__item__pharse",
    "[data-element='translation'] h3",
    "div[class*='translation']",
)


class GlosbeSearchArgs(BaseModel):
    query: str = Field(description="Word or phrase to translate")


def fetch_page(url: str, timeout: float = 8.0) -> str:
    """Fetch a page body; raises httpx.HTTPError on failure."""
    response = httpx.get(
        url,
        timeout=timeout,
        headers={"User-Agent": USER_AGENT},
        follow_redirects=True,
    )
    response.raise_for_status()
    return response.text


def parse_translations(html: str, limit: int = 3) -> List[str]:
    """Translated terms listed on a glosbe result page, in page order."""
    soup = BeautifulSoup(html, "html.parser")
    for selector in _TRANSLATION_SELECTORS:
        terms: List[str] = []
        for node in soup.select(selector):
            text = " ".join(node.get_text(" ", strip=True).split())
            if text and len(text) <= 100 and text not in terms:
                terms.append(text)
            if len(terms) >= limit:
                break
        if terms:
            return terms
    return []


class GlosbeSearchTool(BaseTool):
    """Search glosbe.com for translations; answers with a JSON string."""

    name: str = "glosbe_search"
    description: str = (
        "Search for translations on Glosbe.com. "
        "Input should be a single word or short phrase."
    )
    args_schema: type[BaseModel] = GlosbeSearchArgs

    fetcher: Optional[Callable[[str], str]] = Field(default=None)
    source_code: str = Field(default="en")
    target_code: str = Field(default="ibb")
    max_results: int = Field(default=3)
    timeout: float = Field(default=8.0)

    def __init__(self, fetcher: Optional[Callable[[str], str]] = None, **kwargs):
        super().__init__(**kwargs)
        self.fetcher = fetcher

    def _fetch(self, url: str) -> str:
        if self.fetcher is not None:
            return self.fetcher(url)
        return fetch_page(url, timeout=self.timeout)

    def _run(self, query: str) -> str:
        url = GLOSBE_URL.format(
            source=self.source_code,
            target=self.target_code,
            query=quote(query.strip()),
        )
        try:
            html = self._fetch(url)
        except httpx.HTTPError as e:
            logger.warning(f"Glosbe search failed for '{query}': {e}")
            return json.dumps({
                "success": False,
                "message": "Failed to search Glosbe",
                "error": str(e),
                "results": [],
            })

        terms = parse_translations(html, limit=self.max_results)
        if not terms:
            return json.dumps({
                "success": False,
                "message": "No translations found on Glosbe",
                "results": [],
            })

        return json.dumps({
            "success": True,
            "message": f"Found {len(terms)} translation(s) on Glosbe",
            "results": [
                {"target_term": term, "meaning": f"Translation of '{query}' found on glosbe.com", "rank": i}
                for i, term in enumerate(terms)
            ],
        }, ensure_ascii=False)

    async def _arun(self, query: str) -> str:
        return await asyncio.to_thread(self._run, query)
