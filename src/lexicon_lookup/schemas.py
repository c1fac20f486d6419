"""
Result and payload schemas.

ResolutionResult is what every lookup returns, cached by value through
to_dict()/from_dict(). TranslationPayload is the validated shape of the
structured answer embedded in external free-text responses.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from .exceptions import CacheCorruptionError
from .models import Entry, RankedEntry, WordBreakdownItem


# Source tags
SOURCE_LEXICON_EXACT = "lexicon-exact"
SOURCE_LEXICON_FUZZY = "lexicon-fuzzy"
SOURCE_STRUCTURED_BACKEND = "structured-backend"
SOURCE_WEB_SEARCH = "web-search"
SOURCE_AI_TRANSLATION = "ai-translation"
SOURCE_SENTENCE_COMPOSITION = "sentence-composition"
SOURCE_NONE = "none"


@dataclass(frozen=True)
class ResolutionResult:
    """
    Immutable outcome of resolving one query.

    Attributes:
        query: The query as the caller passed it
        primary_entry: Best entry, or None when nothing matched
        confidence: Confidence of the primary entry between 0.0 and 1.0
        source_tag: Where the primary entry came from (e.g. "lexicon-exact")
        alternatives: Other candidates, confidence non-increasing
        needs_disambiguation: True when the top candidates are too close to call
        disambiguation_questions: Clarifying questions for the caller
        word_breakdown: Per-token results for multi-token queries
        message: Explanation for empty results
    """
    query: str
    primary_entry: Optional[Entry]
    confidence: float
    source_tag: str
    alternatives: List[RankedEntry] = field(default_factory=list)
    needs_disambiguation: bool = False
    disambiguation_questions: List[str] = field(default_factory=list)
    word_breakdown: Optional[List[WordBreakdownItem]] = None
    message: Optional[str] = None

    def __post_init__(self):
        """Validate confidence score."""
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"Confidence must be between 0.0 and 1.0, got {self.confidence}")

    @property
    def target_term(self) -> Optional[str]:
        return self.primary_entry.target_term if self.primary_entry else None

    def is_confident(self, threshold: float = 0.7) -> bool:
        """Check if resolution confidence meets threshold."""
        return self.confidence >= threshold

    @classmethod
    def empty(cls, query: str, message: Optional[str] = None) -> "ResolutionResult":
        """Explicit "no answer" result."""
        return cls(
            query=query,
            primary_entry=None,
            confidence=0.0,
            source_tag=SOURCE_NONE,
            message=message or f"No translation found for '{query}'",
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "query": self.query,
            "primary_entry": self.primary_entry.to_dict() if self.primary_entry else None,
            "confidence": self.confidence,
            "source_tag": self.source_tag,
            "alternatives": [alt.to_dict() for alt in self.alternatives],
            "needs_disambiguation": self.needs_disambiguation,
            "disambiguation_questions": list(self.disambiguation_questions),
            "word_breakdown": (
                [item.to_dict() for item in self.word_breakdown]
                if self.word_breakdown is not None else None
            ),
            "message": self.message,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ResolutionResult":
        """
        Rebuild a result from its dict form.

        :raises: CacheCorruptionError if the dict is not a valid result
        """
        try:
            primary = data.get("primary_entry")
            breakdown = data.get("word_breakdown")
            return cls(
                query=data["query"],
                primary_entry=Entry.from_dict(primary) if primary else None,
                confidence=float(data["confidence"]),
                source_tag=data["source_tag"],
                alternatives=[RankedEntry.from_dict(a) for a in data.get("alternatives", [])],
                needs_disambiguation=bool(data.get("needs_disambiguation", False)),
                disambiguation_questions=list(data.get("disambiguation_questions", [])),
                word_breakdown=(
                    [WordBreakdownItem.from_dict(w) for w in breakdown]
                    if breakdown is not None else None
                ),
                message=data.get("message"),
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise CacheCorruptionError(f"Invalid cached result: {e}") from e


class PayloadExample(BaseModel):
    model_config = ConfigDict(extra="ignore")

    source: str = Field(default="", validation_alias=AliasChoices("source", "english"))
    target: str = Field(default="", validation_alias=AliasChoices("target", "ibibio", "translation"))


class TranslationPayload(BaseModel):
    """
    Structured answer returned by the AI translation endpoint.

    Missing optional fields get explicit defaults: confidence 0.5, no
    examples, no cultural note, no alternatives.
    """
    model_config = ConfigDict(extra="ignore")

    target_term: str = Field(
        validation_alias=AliasChoices("target_term", "targetTerm", "ibibio", "translation")
    )
    meaning: str = Field(default="", validation_alias=AliasChoices("meaning", "gloss", "definition"))
    confidence: float = 0.5
    examples: List[PayloadExample] = Field(default_factory=list)
    cultural_note: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("cultural_note", "culturalNote", "cultural")
    )
    alternatives: List[str] = Field(default_factory=list)

    @field_validator("target_term", mode="before")
    @classmethod
    def _require_target(cls, value: Any) -> str:
        if value is None or not str(value).strip():
            raise ValueError("target term must be non-empty")
        return str(value).strip()

    @field_validator("meaning", mode="before")
    @classmethod
    def _clean_meaning(cls, value: Any) -> str:
        return "" if value is None else str(value).strip()

    @field_validator("confidence", mode="before")
    @classmethod
    def _normalize_confidence(cls, value: Any) -> float:
        if value is None or value == "":
            return 0.5
        score = float(value)
        # Some models answer on a 0-100 scale
        if 1.0 < score <= 100.0:
            score = score / 100.0
        return max(0.0, min(1.0, score))

    @field_validator("examples", mode="before")
    @classmethod
    def _keep_mapping_examples(cls, value: Any) -> List[Any]:
        if not isinstance(value, list):
            return []
        return [item for item in value if isinstance(item, dict)]

    @field_validator("cultural_note", mode="before")
    @classmethod
    def _clean_cultural_note(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        text = str(value).strip()
        return text if text and text.lower() not in ("null", "none") else None

    @field_validator("alternatives", mode="before")
    @classmethod
    def _flatten_alternatives(cls, value: Any) -> List[str]:
        if not isinstance(value, list):
            return []
        terms = []
        for item in value:
            if isinstance(item, dict):
                item = (
                    item.get("targetTerm") or item.get("target_term")
                    or item.get("ibibio") or item.get("translation")
                )
            if item is not None and str(item).strip():
                terms.append(str(item).strip())
        return terms
