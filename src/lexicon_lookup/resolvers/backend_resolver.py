"""
Structured dictionary backend resolver.

The backend is a Gradio-style prediction endpoint: POST {base_url}/api/predict
with {"data": [query], "fn_index": 0}. The first element of the returned
"data" list holds free-text answers from the backend's own sources:
local_dictionary, ai_response and web_search.
"""
import asyncio
import logging
import re
from typing import Any, Dict, List, Optional

import httpx

from ..exceptions import ResolverError, ResolverTimeoutError
from ..models import RankedEntry
from ..schemas import SOURCE_STRUCTURED_BACKEND
from .base import ExternalResolver, make_candidate

logger = logging.getLogger(__name__)

# Backend field -> confidence of a translation extracted from it, in priority order
FIELD_CONFIDENCE = (
    ("local_dictionary", 0.9),
    ("ai_response", 0.85),
    ("web_search", 0.8),
)

_TRANSLATION_PATTERNS = [
    re.compile(r"Translation:\s*([^.\n]+)", re.IGNORECASE),
    re.compile(r"Ibibio:\s*([^.\n]+)", re.IGNORECASE),
    re.compile(r"means?\s*\"([^\"]+)\"", re.IGNORECASE),
    re.compile(r"is\s+\"([^\"]+)\"", re.IGNORECASE),
    re.compile(r"\"([^\"]+)\""),
]
_NO_RESULT_RE = re.compile(r"\b(no|not)\s+(results?|translation|found)\b|^error\b", re.IGNORECASE)
_DECORATION_RE = re.compile(r"^[\s*_`#>\-•]+|[\s*_`]+$")


def extract_translation(text: Optional[str]) -> Optional[str]:
    """
    Pull the translated term out of one backend text field.

    Tries labelled and quoted patterns first, then falls back to the first
    non-empty line.
    """
    if not text or not text.strip() or _NO_RESULT_RE.search(text.strip()):
        return None

    for pattern in _TRANSLATION_PATTERNS:
        match = pattern.search(text)
        if match:
            term = _DECORATION_RE.sub("", match.group(1)).strip()
            if term:
                return term

    for line in text.splitlines():
        line = _DECORATION_RE.sub("", line).strip()
        if line:
            return line[:100]
    return None


class StructuredBackendResolver(ExternalResolver):
    """
    Resolver for the structured dictionary backend.

    :param base_url: Backend root URL
    :param timeout: Seconds allowed for the whole call, retries included
    :param retry_attempts: Attempts on transport errors and 5xx responses
    :param client: Optional shared httpx.AsyncClient (tests inject a mock transport)
    """

    name = "structured-backend"
    source_tag = SOURCE_STRUCTURED_BACKEND

    def __init__(
        self,
        base_url: str,
        timeout: float = 8.0,
        retry_attempts: int = 2,
        retry_delay: float = 0.5,
        client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__(timeout=timeout)
        self.base_url = base_url.rstrip("/")
        self.retry_attempts = max(1, retry_attempts)
        self.retry_delay = retry_delay
        self._client = client

    async def resolve(self, query: str) -> List[RankedEntry]:
        try:
            data = await asyncio.wait_for(self._predict(query.strip()), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise ResolverTimeoutError(self.name, f"no answer within {self.timeout}s") from e

        status = str(data.get("status", "success")).lower()
        if status not in ("success", "ok", ""):
            raise ResolverError(self.name, f"backend status {status}: {data.get('error')}")

        candidates: List[RankedEntry] = []
        seen = set()
        for field_name, confidence in FIELD_CONFIDENCE:
            term = extract_translation(data.get(field_name))
            if not term or term.lower() in seen or term.lower() == query.strip().lower():
                continue
            seen.add(term.lower())
            candidates.append(make_candidate(
                query,
                term,
                confidence,
                self.source_tag,
                gloss=self._gloss(data.get(field_name)),
            ))
        return candidates

    async def _predict(self, query: str) -> Dict[str, Any]:
        url = f"{self.base_url}/api/predict"
        payload = {"data": [query], "fn_index": 0}
        last_error: Optional[Exception] = None

        for attempt in range(1, self.retry_attempts + 1):
            try:
                if self._client is not None:
                    response = await self._client.post(url, json=payload)
                else:
                    async with httpx.AsyncClient(timeout=self.timeout) as client:
                        response = await client.post(url, json=payload)
                response.raise_for_status()
                return self._first_result(response.json())
            except httpx.HTTPStatusError as e:
                last_error = e
                if e.response.status_code < 500:
                    break
            except (httpx.TransportError, ValueError) as e:
                last_error = e

            logger.info(f"Backend attempt {attempt}/{self.retry_attempts} failed for '{query}': {last_error}")
            if attempt < self.retry_attempts:
                await asyncio.sleep(self.retry_delay * attempt)

        raise ResolverError(self.name, f"request failed: {last_error}")

    @staticmethod
    def _first_result(body: Any) -> Dict[str, Any]:
        if not isinstance(body, dict) or not isinstance(body.get("data"), list) or not body["data"]:
            raise ValueError("invalid response format from backend")
        result = body["data"][0]
        if not isinstance(result, dict):
            raise ValueError("invalid response format from backend")
        return result

    @staticmethod
    def _gloss(text: Optional[str]) -> Optional[str]:
        if not text:
            return None
        first_line = next((line.strip() for line in text.splitlines() if line.strip()), "")
        return first_line[:200] or None
