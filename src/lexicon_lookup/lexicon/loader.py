"""
Lexicon file loader.

Reads a JSON array of entry objects, tolerating the field names used by the
various dictionary exports (english/ibibio, source_term/target_term, ...),
skipping invalid rows and inferring part of speech and category when the
source leaves them out.
"""
import json
import logging
import re
from collections import defaultdict
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..exceptions import LexiconLoadError
from ..models import Entry, Example
from ..normalization import normalize_query, normalize_text, tokenize
from ..scoring.categories import infer_category, infer_part_of_speech

logger = logging.getLogger(__name__)

SOURCE_FIELDS = ("source_term", "sourceTerm", "english", "English", "english_word", "word", "term")
TARGET_FIELDS = ("target_term", "targetTerm", "ibibio", "Ibibio", "translation", "target")
GLOSS_FIELDS = ("gloss", "meaning", "Meaning", "definition", "description")
POS_FIELDS = ("part_of_speech", "partOfSpeech", "pos", "type")
PRONUNCIATION_FIELDS = ("pronunciation", "phonetic", "ipa")
CULTURAL_FIELDS = ("cultural_note", "culturalNote", "cultural", "notes")
CATEGORY_FIELDS = ("category", "domain")
EXAMPLE_FIELDS = ("examples", "example", "usage")

_DIGITS_RE = re.compile(r"^\d+$")
_SLUG_RE = re.compile(r"[^\w]+")


class LexiconLoader:
    """
    Loads and normalizes lexicon entries from a JSON file.

    :param path: Path to a JSON file holding a list of entries (or an
        object with an "entries" list)
    :param max_field_length: Longer source/target values are treated as corrupt
    """

    def __init__(self, path: str, max_field_length: int = 200):
        self.path = path
        self.max_field_length = max_field_length
        self.skipped = 0

    def load_entries(self) -> List[Entry]:
        """
        Read and validate every entry.

        :return: Valid entries in file order
        :raises: LexiconLoadError if the file is missing or not a list of objects
        """
        try:
            with open(self.path, encoding="utf-8") as f:
                raw = json.load(f)
        except FileNotFoundError as e:
            raise LexiconLoadError(f"Lexicon file not found: {self.path}") from e
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise LexiconLoadError(f"Lexicon file unreadable: {self.path}: {e}") from e

        if isinstance(raw, dict) and isinstance(raw.get("entries"), list):
            raw = raw["entries"]
        if not isinstance(raw, list):
            raise LexiconLoadError(
                f"Lexicon file must contain a list of entries, got {type(raw).__name__}"
            )

        return self.parse_items(raw)

    def parse_items(self, items: Sequence[Any]) -> List[Entry]:
        """Turn raw mappings into entries, counting the ones skipped."""
        self.skipped = 0
        entries: List[Entry] = []
        sense_counter: Dict[str, int] = defaultdict(int)

        for index, item in enumerate(items):
            if not isinstance(item, dict):
                self.skipped += 1
                logger.debug(f"Skipping lexicon item {index}: not an object")
                continue

            entry, reason = self._parse_item(item, sense_counter)
            if entry is None:
                self.skipped += 1
                logger.debug(f"Skipping lexicon item {index}: {reason}")
                continue
            entries.append(entry)

        if self.skipped:
            logger.info(f"Lexicon loaded with {self.skipped} invalid item(s) skipped")
        return entries

    def _parse_item(
        self, item: Dict[str, Any], sense_counter: Dict[str, int]
    ) -> Tuple[Optional[Entry], str]:
        source = normalize_text(self._extract_field(item, SOURCE_FIELDS) or "")
        target = normalize_text(self._extract_field(item, TARGET_FIELDS) or "")

        reason = self._validate(source, target)
        if reason:
            return None, reason

        gloss = normalize_text(self._extract_field(item, GLOSS_FIELDS) or "") or source
        key = normalize_query(source)

        sense_counter[key] += 1
        entry_id = self._clean_text(item.get("id")) or (
            f"{_SLUG_RE.sub('-', key).strip('-')}-{sense_counter[key]}"
        )

        part_of_speech = self._clean_text(self._extract_field(item, POS_FIELDS))
        category = self._clean_text(self._extract_field(item, CATEGORY_FIELDS))

        entry = Entry(
            id=entry_id,
            source_term=source,
            target_term=target,
            gloss=gloss,
            part_of_speech=(part_of_speech or infer_part_of_speech(source)).lower(),
            examples=self._parse_examples(self._extract_field(item, EXAMPLE_FIELDS, allow_any=True)),
            pronunciation=self._clean_text(self._extract_field(item, PRONUNCIATION_FIELDS)),
            cultural_note=self._clean_text(self._extract_field(item, CULTURAL_FIELDS)),
            category=(category or infer_category(tokenize(f"{source} {gloss}"))).lower(),
        )
        return entry, ""

    def _validate(self, source: str, target: str) -> str:
        """Return the reason an item is invalid, or an empty string."""
        if not source or not target:
            return "missing source or target term"
        if len(source) > self.max_field_length or len(target) > self.max_field_length:
            return "text too long (possible data corruption)"
        if normalize_query(source) == normalize_query(target):
            return "source and target are identical"
        if _DIGITS_RE.match(source) or _DIGITS_RE.match(target):
            return "contains only numbers"
        return ""

    def _parse_examples(self, value: Any) -> Tuple[Example, ...]:
        if not value:
            return ()
        if not isinstance(value, list):
            value = [value]

        examples = []
        for raw in value:
            if isinstance(raw, dict):
                source = self._extract_field(raw, ("source", "english", "English", "example"))
                target = self._extract_field(raw, ("target", "ibibio", "Ibibio", "translation"))
            else:
                source, target = str(raw), ""
            source = normalize_text(source or "")
            if source:
                examples.append(Example(source=source, target=normalize_text(target or "")))
        return tuple(examples)

    @staticmethod
    def _extract_field(item: Dict[str, Any], names: Sequence[str], allow_any: bool = False) -> Any:
        for name in names:
            value = item.get(name)
            if value is None:
                continue
            if allow_any:
                return value
            if isinstance(value, (str, int, float)) and str(value).strip():
                return str(value)
        return None

    @staticmethod
    def _clean_text(value: Optional[Any]) -> Optional[str]:
        if value is None:
            return None
        value = normalize_text(str(value))
        return value if value else None
