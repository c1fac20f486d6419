"""
In-memory lexicon store with exact and semantic lookup.
"""
import logging
from collections import Counter, defaultdict
from typing import Dict, Iterable, List, Optional, Set

from rapidfuzz import fuzz, process

from ..exceptions import LexiconLoadError
from ..models import Entry, LexiconStats, RankedEntry
from ..normalization import normalize_query, tokenize
from ..schemas import SOURCE_LEXICON_FUZZY
from ..scoring.semantic_scorer import SemanticScorer
from .loader import LexiconLoader

logger = logging.getLogger(__name__)

_STEM_SUFFIXES = ("ing", "ed", "es", "s")


def _stem(token: str) -> str:
    for suffix in _STEM_SUFFIXES:
        if len(token) > len(suffix) + 3 and token.endswith(suffix):
            return token[: -len(suffix)]
    return token


class LexiconStore:
    """
    Holds canonical entries; read-only after load.

    A failed load does not raise: the store reports itself unloaded and every
    lookup returns empty until reload() succeeds.
    """

    def __init__(
        self,
        path: Optional[str] = None,
        scorer: Optional[SemanticScorer] = None,
        fuzzy_floor: float = 0.3,
        candidate_cutoff: float = 60.0,
    ):
        """
        :param path: JSON lexicon file, required for load()/reload()
        :param scorer: Scorer used to rank approximate matches
        :param fuzzy_floor: Minimum confidence for search_fuzzy results
        :param candidate_cutoff: rapidfuzz WRatio cutoff for near-miss source terms
        """
        self.path = path
        self.scorer = scorer or SemanticScorer()
        self.fuzzy_floor = fuzzy_floor
        self.candidate_cutoff = candidate_cutoff

        self._entries: List[Entry] = []
        self._by_key: Dict[str, List[Entry]] = {}
        self._key_positions: Dict[str, List[int]] = {}
        self._token_index: Dict[str, Set[int]] = {}
        self._loaded = False
        self._skipped = 0
        self.last_error: Optional[str] = None

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    def __len__(self) -> int:
        return len(self._entries)

    def load(self) -> bool:
        """
        Load entries from the configured file.

        :return: True if the store is now loaded
        """
        if not self.path:
            self._mark_unloaded("no lexicon path configured")
            return False

        loader = LexiconLoader(self.path)
        try:
            entries = loader.load_entries()
        except LexiconLoadError as e:
            self._mark_unloaded(str(e))
            return False

        self._skipped = loader.skipped
        self.load_entries(entries)
        logger.info(f"Lexicon loaded: {len(self._entries)} entries from {self.path}")
        return True

    def reload(self) -> bool:
        """Retry loading, e.g. after an unavailable source came back."""
        return self.load()

    def load_entries(self, entries: Iterable[Entry]) -> None:
        """Replace the store contents with already-built entries."""
        entries = list(entries)
        by_key: Dict[str, List[Entry]] = defaultdict(list)
        key_positions: Dict[str, List[int]] = defaultdict(list)
        token_index: Dict[str, Set[int]] = defaultdict(set)

        for position, entry in enumerate(entries):
            key = normalize_query(entry.source_term)
            by_key[key].append(entry)
            key_positions[key].append(position)
            for token in set(tokenize(entry.source_term)) | set(tokenize(entry.gloss)):
                token_index[token].add(position)
                token_index[_stem(token)].add(position)

        # Swap in complete indexes so readers never see a half-built store
        self._entries = entries
        self._by_key = dict(by_key)
        self._key_positions = dict(key_positions)
        self._token_index = dict(token_index)
        self._loaded = True
        self.last_error = None

    def search_exact(self, key: str) -> Optional[Entry]:
        """
        Case-insensitive exact lookup.

        :return: First sense stored under the key, or None
        """
        senses = self._by_key.get(normalize_query(key))
        return senses[0] if senses else None

    def senses(self, key: str) -> List[Entry]:
        """All entries sharing the normalized key, in load order."""
        return list(self._by_key.get(normalize_query(key), []))

    def search_fuzzy(self, key: str, limit: int = 5) -> List[RankedEntry]:
        """
        Approximate lookup ranked by the semantic scorer.

        :param key: Query text
        :param limit: Maximum number of results
        :return: Entries with confidence >= fuzzy_floor, best first
        """
        q = normalize_query(key)
        if not q or not self._loaded or limit <= 0:
            return []

        candidates = [self._entries[i] for i in sorted(self._candidate_positions(q, limit))]
        ranked = self.scorer.rank(q, candidates, floor=self.fuzzy_floor, limit=limit)
        return [
            RankedEntry(entry=entry, confidence=match.total, source_tag=SOURCE_LEXICON_FUZZY)
            for entry, match in ranked
        ]

    def stats(self) -> LexiconStats:
        categories = Counter(entry.category or "general" for entry in self._entries)
        return LexiconStats(
            total_entries=len(self._entries),
            loaded=self._loaded,
            skipped_items=self._skipped,
            categories=dict(categories),
        )

    def _candidate_positions(self, q: str, limit: int) -> Set[int]:
        positions: Set[int] = set()

        for token in tokenize(q):
            positions |= self._token_index.get(token, set())
            positions |= self._token_index.get(_stem(token), set())

        keys = list(self._by_key.keys())
        matched_keys = [k for k in keys if len(q) >= 2 and (k.startswith(q) or q in k or k in q)]
        near_misses = process.extract(
            q, keys, scorer=fuzz.WRatio, limit=limit * 4, score_cutoff=self.candidate_cutoff
        )
        matched_keys.extend(match[0] for match in near_misses)

        for k in matched_keys:
            positions.update(self._key_positions[k])
        return positions

    def _mark_unloaded(self, reason: str) -> None:
        self._entries = []
        self._by_key = {}
        self._key_positions = {}
        self._token_index = {}
        self._loaded = False
        self.last_error = reason
        logger.error(f"Lexicon unavailable: {reason}")
