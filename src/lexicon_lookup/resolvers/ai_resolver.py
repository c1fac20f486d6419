"""
AI translation resolver backed by a LangChain chat model.
"""
import asyncio
import logging
from typing import Any, List

from langchain_core.messages import HumanMessage, SystemMessage

from ..exceptions import ResolverError, ResolverTimeoutError
from ..models import RankedEntry
from ..schemas import SOURCE_AI_TRANSLATION
from .base import ExternalResolver, make_candidate
from .payload_decoder import decode_translation_payload

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are an expert {target_language} language translator. "
    "Always respond with valid JSON only, no additional text."
)

TRANSLATION_PROMPT = """Translate the following {source_language} word or phrase to {target_language} and provide detailed information.

{source_language}: "{query}"

Respond with a JSON object with this structure:
{{
  "targetTerm": "the {target_language} translation",
  "meaning": "detailed meaning in {source_language}",
  "confidence": 0.95,
  "examples": [
    {{"source": "example sentence in {source_language}", "target": "example sentence in {target_language}"}}
  ],
  "culturalNote": "cultural context or notes, or null",
  "alternatives": ["other valid translations, if any"]
}}

Focus on accuracy and cultural appropriateness. If you are not confident about the translation, say so in the confidence score."""

# Alternatives are less certain than the model's main answer
ALTERNATIVE_DISCOUNT = 0.8


def _message_text(message: Any) -> str:
    content = getattr(message, "content", message)
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, dict):
                parts.append(str(part.get("text", "")))
            else:
                parts.append(str(part))
        return "".join(parts)
    return "" if content is None else str(content)


class AITranslationResolver(ExternalResolver):
    """
    Asks a chat model for a structured translation and decodes its answer.

    An answer with no decodable payload is discarded (empty result), not
    treated as a resolver failure.
    """

    name = "ai-translation"
    source_tag = SOURCE_AI_TRANSLATION

    def __init__(
        self,
        llm: Any,
        timeout: float = 8.0,
        source_language: str = "English",
        target_language: str = "Ibibio",
    ):
        """
        :param llm: LangChain chat model (anything with ``ainvoke(messages)``)
        :param timeout: Seconds allowed for one model call
        """
        super().__init__(timeout=timeout)
        self.llm = llm
        self.source_language = source_language
        self.target_language = target_language

    def build_messages(self, query: str) -> List[Any]:
        return [
            SystemMessage(content=SYSTEM_PROMPT.format(target_language=self.target_language)),
            HumanMessage(content=TRANSLATION_PROMPT.format(
                query=query.strip(),
                source_language=self.source_language,
                target_language=self.target_language,
            )),
        ]

    async def resolve(self, query: str) -> List[RankedEntry]:
        try:
            response = await asyncio.wait_for(
                self.llm.ainvoke(self.build_messages(query)), timeout=self.timeout
            )
        except asyncio.TimeoutError as e:
            raise ResolverTimeoutError(self.name, f"no answer within {self.timeout}s") from e
        except Exception as e:
            # Provider SDKs raise their own exception types
            raise ResolverError(self.name, f"model call failed: {e}") from e

        decoded = decode_translation_payload(_message_text(response))
        if not decoded.ok:
            logger.warning(f"Discarding unparseable AI answer for '{query}': {decoded.error}")
            return []

        payload = decoded.payload
        logger.debug(f"AI answer for '{query}' decoded with {decoded.strategy} strategy")

        candidates = [
            make_candidate(
                query,
                payload.target_term,
                payload.confidence,
                self.source_tag,
                gloss=payload.meaning or None,
                examples=[(ex.source, ex.target) for ex in payload.examples],
                cultural_note=payload.cultural_note,
            )
        ]
        seen = {payload.target_term.lower()}
        for alternative in payload.alternatives:
            if alternative.lower() in seen:
                continue
            seen.add(alternative.lower())
            candidates.append(make_candidate(
                query,
                alternative,
                payload.confidence * ALTERNATIVE_DISCOUNT,
                self.source_tag,
                gloss=payload.meaning or None,
            ))
        return candidates
