from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple


@dataclass(frozen=True)
class Example:
    source: str
    target: str

    def to_dict(self) -> Dict[str, str]:
        return {"source": self.source, "target": self.target}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Example":
        return cls(source=str(data.get("source", "")), target=str(data.get("target", "")))


@dataclass(frozen=True)
class Entry:
    """
    One canonical lexicon entry.

    ``source_term`` is the lookup key and is not unique: several entries may
    share it to describe alternative senses.
    """
    id: str
    source_term: str
    target_term: str
    gloss: str
    part_of_speech: str = "unknown"
    examples: Tuple[Example, ...] = ()
    pronunciation: Optional[str] = None
    cultural_note: Optional[str] = None
    category: Optional[str] = None

    def __post_init__(self):
        if not self.source_term or not self.source_term.strip():
            raise ValueError("Entry source_term must be non-empty")
        if not self.target_term or not self.target_term.strip():
            raise ValueError("Entry target_term must be non-empty")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "source_term": self.source_term,
            "target_term": self.target_term,
            "gloss": self.gloss,
            "part_of_speech": self.part_of_speech,
            "examples": [example.to_dict() for example in self.examples],
            "pronunciation": self.pronunciation,
            "cultural_note": self.cultural_note,
            "category": self.category,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Entry":
        return cls(
            id=str(data["id"]),
            source_term=data["source_term"],
            target_term=data["target_term"],
            gloss=data.get("gloss", ""),
            part_of_speech=data.get("part_of_speech", "unknown"),
            examples=tuple(Example.from_dict(e) for e in data.get("examples", [])),
            pronunciation=data.get("pronunciation"),
            cultural_note=data.get("cultural_note"),
            category=data.get("category"),
        )


@dataclass(frozen=True)
class RankedEntry:
    entry: Entry
    confidence: float
    source_tag: str

    def __post_init__(self):
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"Confidence must be between 0.0 and 1.0, got {self.confidence}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entry": self.entry.to_dict(),
            "confidence": self.confidence,
            "source_tag": self.source_tag,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RankedEntry":
        return cls(
            entry=Entry.from_dict(data["entry"]),
            confidence=float(data["confidence"]),
            source_tag=data["source_tag"],
        )


@dataclass(frozen=True)
class WordBreakdownItem:
    source_token: str
    target_token: str
    found: bool
    confidence: float
    source: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source_token": self.source_token,
            "target_token": self.target_token,
            "found": self.found,
            "confidence": self.confidence,
            "source": self.source,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WordBreakdownItem":
        return cls(
            source_token=data["source_token"],
            target_token=data["target_token"],
            found=bool(data["found"]),
            confidence=float(data["confidence"]),
            source=data["source"],
        )


@dataclass
class LexiconStats:
    total_entries: int
    loaded: bool
    skipped_items: int = 0
    categories: Dict[str, int] = field(default_factory=dict)


@dataclass
class CacheStats:
    total_entries: int
    frequent_searches: List[Tuple[str, int]] = field(default_factory=list)
    hits: int = 0
    misses: int = 0

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total else 0.0
