"""
Disambiguation policy.

Flags results whose top two candidates are both confident and too close to
call, and writes clarifying questions contrasting their glosses and parts
of speech. Also carries curated preferences for well-known ambiguous words
whose most common sense should lead.
"""
import re
from typing import Dict, List, Optional, Sequence, Tuple

from ..models import Entry, RankedEntry
from ..normalization import normalize_query

# Source term -> target term of the sense that should lead
PREFERRED_SENSES: Dict[str, str] = {
    "stop": "tịre",
    "big": "akpa",
    "good": "afiak",
}

_FIRST_SEGMENT_RE = re.compile(r"[.;!?]")
_UNKNOWN_POS = ("", "unknown")


def _short_gloss(entry: Entry, max_length: int = 60) -> str:
    gloss = _FIRST_SEGMENT_RE.split(entry.gloss or "", maxsplit=1)[0].strip()
    if len(gloss) > max_length:
        gloss = gloss[: max_length - 3].rstrip() + "..."
    return gloss


class DisambiguationPolicy:
    """
    :param min_confidence: Both top candidates must exceed this
    :param max_gap: Their confidence gap must be below this
    :param preferred_senses: Curated primary senses for ambiguous keys
    """

    def __init__(
        self,
        min_confidence: float = 0.7,
        max_gap: float = 0.2,
        preferred_senses: Optional[Dict[str, str]] = None,
    ):
        self.min_confidence = min_confidence
        self.max_gap = max_gap
        self.preferred_senses = {
            normalize_query(k): normalize_query(v)
            for k, v in (PREFERRED_SENSES if preferred_senses is None else preferred_senses).items()
        }

    def needs_disambiguation(self, ranked: Sequence[RankedEntry]) -> bool:
        top = self._top_two(ranked)
        if top is None:
            return False
        first, second = top
        return (
            first.confidence > self.min_confidence
            and second.confidence > self.min_confidence
            and first.confidence - second.confidence < self.max_gap
        )

    def evaluate(self, query: str, ranked: Sequence[RankedEntry]) -> Tuple[bool, List[str]]:
        """
        :return: (needs_disambiguation, clarifying questions)
        """
        if not self.needs_disambiguation(ranked):
            return False, []
        first, second = self._top_two(ranked)
        return True, self.questions(query, first.entry, second.entry)

    def questions(self, query: str, first: Entry, second: Entry) -> List[str]:
        """At least one question contrasting two candidate senses."""
        q = query.strip()
        questions = []

        pos_a = (first.part_of_speech or "").lower()
        pos_b = (second.part_of_speech or "").lower()
        if pos_a != pos_b and pos_a not in _UNKNOWN_POS and pos_b not in _UNKNOWN_POS:
            questions.append(
                f"Do you mean '{q}' as a {pos_a} ('{first.target_term}') "
                f"or as a {pos_b} ('{second.target_term}')?"
            )

        gloss_a, gloss_b = _short_gloss(first), _short_gloss(second)
        if gloss_a and gloss_b and normalize_query(gloss_a) != normalize_query(gloss_b):
            questions.append(
                f"Do you mean '{q}' as in \"{gloss_a}\" ('{first.target_term}') "
                f"or as in \"{gloss_b}\" ('{second.target_term}')?"
            )

        if not questions:
            questions.append(
                f"Which translation of '{q}' fits your context: "
                f"'{first.target_term}' or '{second.target_term}'?"
            )
        return questions

    def preferred_sense(self, key: str, senses: Sequence[Entry]) -> Optional[Entry]:
        """Curated leading sense among entries sharing a key, if one is configured."""
        target = self.preferred_senses.get(normalize_query(key))
        if target is None:
            return None
        return next((s for s in senses if normalize_query(s.target_term) == target), None)

    @staticmethod
    def _top_two(ranked: Sequence[RankedEntry]) -> Optional[Tuple[RankedEntry, RankedEntry]]:
        if len(ranked) < 2:
            return None
        ordered = sorted(ranked, key=lambda c: -c.confidence)
        return ordered[0], ordered[1]
