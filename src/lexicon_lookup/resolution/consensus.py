"""
Consensus across candidate translations from several sources.

Candidates are grouped by normalized target term. Each occurrence adds
confidence x source reliability to its group's weight; the heaviest group
supplies the primary result and every other group contributes its best
member as an alternative.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from ..models import RankedEntry
from ..normalization import normalize_query
from ..schemas import (
    SOURCE_AI_TRANSLATION,
    SOURCE_LEXICON_EXACT,
    SOURCE_LEXICON_FUZZY,
    SOURCE_SENTENCE_COMPOSITION,
    SOURCE_STRUCTURED_BACKEND,
    SOURCE_WEB_SEARCH,
)

logger = logging.getLogger(__name__)

SOURCE_RELIABILITY: Dict[str, float] = {
    SOURCE_LEXICON_EXACT: 0.95,
    SOURCE_LEXICON_FUZZY: 0.95,
    SOURCE_STRUCTURED_BACKEND: 0.85,
    SOURCE_AI_TRANSLATION: 0.70,
    SOURCE_WEB_SEARCH: 0.60,
    SOURCE_SENTENCE_COMPOSITION: 0.50,
}


@dataclass
class ConsensusGroup:
    target_key: str
    members: List[RankedEntry] = field(default_factory=list)
    weight: float = 0.0


@dataclass(frozen=True)
class ConsensusResult:
    """
    Attributes:
        primary: Best member of the heaviest group
        alternatives: Best member of every other group, confidence descending
        agreement: Share of the total weight held by the winning group
        conflicting_targets: Target terms that lost
    """
    primary: RankedEntry
    alternatives: List[RankedEntry]
    agreement: float
    conflicting_targets: List[str]


class ConsensusBuilder:
    """Merges candidates using fixed per-source reliability scores."""

    def __init__(self, reliability: Optional[Dict[str, float]] = None, default_reliability: float = 0.5):
        self.reliability = dict(reliability or SOURCE_RELIABILITY)
        self.default_reliability = default_reliability

    def reliability_of(self, source_tag: str) -> float:
        return self.reliability.get(source_tag, self.default_reliability)

    def group(self, candidates: Sequence[RankedEntry]) -> List[ConsensusGroup]:
        """Groups in first-seen order, weights accumulated."""
        groups: Dict[str, ConsensusGroup] = {}
        for candidate in candidates:
            target_key = normalize_query(candidate.entry.target_term)
            group = groups.setdefault(target_key, ConsensusGroup(target_key=target_key))
            group.members.append(candidate)
            group.weight += candidate.confidence * self.reliability_of(candidate.source_tag)
        return list(groups.values())

    def build(self, candidates: Sequence[RankedEntry]) -> Optional[ConsensusResult]:
        """
        Pick a primary and ordered alternatives.

        :return: ConsensusResult, or None when there are no candidates
        """
        if not candidates:
            return None

        groups = self.group(candidates)
        # Stable sort keeps caller priority order for exact ties
        groups.sort(key=lambda g: (-round(g.weight, 9), -max(m.confidence for m in g.members)))

        winner = groups[0]
        primary = self._best(winner.members)
        alternatives = sorted(
            (self._best(g.members) for g in groups[1:]),
            key=lambda c: -c.confidence,
        )

        total_weight = sum(g.weight for g in groups)
        agreement = winner.weight / total_weight if total_weight > 0 else 0.0
        if len(groups) > 1:
            logger.debug(
                f"Consensus picked '{primary.entry.target_term}' "
                f"(agreement {agreement:.2f}) over {[g.target_key for g in groups[1:]]}"
            )
        return ConsensusResult(
            primary=primary,
            alternatives=alternatives,
            agreement=agreement,
            conflicting_targets=[g.target_key for g in groups[1:]],
        )

    def _best(self, members: List[RankedEntry]) -> RankedEntry:
        return max(members, key=lambda m: (m.confidence, self.reliability_of(m.source_tag)))


def order_alternatives(alternatives: Sequence[RankedEntry], exclude: Tuple[str, ...] = ()) -> List[RankedEntry]:
    """Alternatives deduplicated by target term, confidence descending."""
    seen = set(normalize_query(term) for term in exclude)
    ordered = []
    for candidate in sorted(alternatives, key=lambda c: -c.confidence):
        key = normalize_query(candidate.entry.target_term)
        if key in seen:
            continue
        seen.add(key)
        ordered.append(candidate)
    return ordered
