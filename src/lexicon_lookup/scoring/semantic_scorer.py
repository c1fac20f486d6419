"""
Semantic scoring of lexicon entries against a query.

A score is a fixed weighted sum of independent signals, each in [0, 1]:

- primary: how directly the query names the entry (exact key, synonym list
  item, word in the gloss, partial or near-miss spelling)
- context: whether the gloss uses the query as a direct translation or only
  inside a compound/causative construction (heavily penalized)
- position: how early the query appears among the gloss segments
- definition: whether the query is the leading concept of the gloss
- completeness: curation quality of the entry (examples, pronunciation, ...)
- category: whether the query carries a keyword of the entry's category

Primary dominates the weights so that a direct sense always outranks an
entry that merely mentions the query.
"""
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Iterable, List, Optional, Tuple

from rapidfuzz import fuzz

from ..models import Entry
from ..normalization import normalize_query, tokenize
from .categories import UNKNOWN_PART_OF_SPEECH, category_keywords

_SEGMENT_SPLIT_RE = re.compile(r"(?<!\bvar)(?<!\bcf)(?<!\be\.g)(?<!\bi\.e)[.!?;]+(?=\s|$)")
_LEADING_FILLER_RE = re.compile(r"^(?:to|a|an|the)\s+")

_VOWELS = "aeiou"
_PREPOSITIONS = ("from", "off", "out", "away", "up", "into", "against")
_OBJECT_WORDS = ("someone", "somebody", "something", "one's", "oneself")
_CAUSATIVES = (
    "prevent", "prevents", "prevented", "preventing",
    "keep", "keeps", "kept", "keeping",
    "make", "makes", "made", "making",
    "cause", "causes", "caused", "causing",
    "force", "forces", "forced",
    "stop", "stops", "stopped",
    "let", "lets",
)

_BOUNDARY_START = r"(?<![\w'])"
_BOUNDARY_END = r"(?![\w'])"


@dataclass(frozen=True)
class ScoreWeights:
    primary: float = 0.40
    context: float = 0.20
    position: float = 0.15
    definition: float = 0.12
    completeness: float = 0.06
    category: float = 0.07

    def __post_init__(self):
        others = (self.context, self.position, self.definition, self.completeness, self.category)
        if any(weight < 0 for weight in (self.primary,) + others):
            raise ValueError("Score weights must be non-negative")
        if self.primary <= max(others):
            raise ValueError("Primary-match weight must be the largest weight")


@dataclass(frozen=True)
class MatchScore:
    """
    Signals and composite score of one entry against one query.

    Attributes:
        total: Weighted composite in [0, 1], used as the entry's confidence
        match_type: Kind of primary match ("exact", "synonym-list",
            "gloss-word", "partial", "near-miss" or "none")
    """
    primary: float
    context: float
    position: float
    definition: float
    completeness: float
    category: float
    total: float
    match_type: str


@dataclass(frozen=True)
class _Segment:
    body: str
    items: Tuple[str, ...]


@dataclass(frozen=True)
class _GlossView:
    text: str
    segments: Tuple[_Segment, ...]


def _strip_filler(text: str) -> str:
    return _LEADING_FILLER_RE.sub("", text.strip()).strip()


@lru_cache(maxsize=4096)
def _gloss_view(gloss: str) -> _GlossView:
    text = normalize_query(gloss)
    segments = []
    for raw in _SEGMENT_SPLIT_RE.split(text):
        body = _strip_filler(raw)
        if not body:
            continue
        items = tuple(_strip_filler(item) for item in body.split(",") if item.strip())
        segments.append(_Segment(body=body, items=items))
    return _GlossView(text=text, segments=tuple(segments))


def _inflections(q: str) -> List[str]:
    """Common English inflected forms of a single word, longest first."""
    forms = {q}
    if " " not in q and len(q) >= 3:
        forms.update({q + "s", q + "es", q + "ed", q + "ing"})
        if q.endswith("e"):
            forms.update({q + "d", q[:-1] + "ing"})
        if q.endswith("y") and q[-2] not in _VOWELS:
            forms.update({q[:-1] + "ies", q[:-1] + "ied"})
        if q[-1] not in _VOWELS + "wxy" and q[-2] in _VOWELS and q[-3] not in _VOWELS:
            forms.update({q + q[-1] + "ing", q + q[-1] + "ed"})
    return sorted(forms, key=len, reverse=True)


@lru_cache(maxsize=1024)
def _word_re(q: str) -> "re.Pattern":
    return re.compile(_BOUNDARY_START + re.escape(q) + _BOUNDARY_END)


@lru_cache(maxsize=1024)
def _forms_alternation(q: str) -> str:
    return "(?:" + "|".join(re.escape(form) for form in _inflections(q)) + ")"


@lru_cache(maxsize=1024)
def _forms_re(q: str) -> "re.Pattern":
    return re.compile(_BOUNDARY_START + _forms_alternation(q) + _BOUNDARY_END)


@lru_cache(maxsize=1024)
def _compound_patterns(q: str) -> Tuple["re.Pattern", ...]:
    forms = _forms_alternation(q)
    own_forms = set(_inflections(q))
    causatives = "|".join(re.escape(c) for c in _CAUSATIVES if c not in own_forms)
    followers = "|".join(re.escape(w) for w in _PREPOSITIONS + _OBJECT_WORDS)
    return (
        # "leave off", "stop someone"
        re.compile(_BOUNDARY_START + forms + r"\s+(?:" + followers + ")" + _BOUNDARY_END),
        # "prevent someone from leaving", "make him leave"
        re.compile(
            _BOUNDARY_START + "(?:" + causatives + ")" + r"(?:\s+[^\s.;!?,]+){1,4}?\s+"
            + forms + _BOUNDARY_END
        ),
        # "keep them away from"
        re.compile(_BOUNDARY_START + forms + r"(?:\s+[^\s.;!?,]+){1,2}\s+from" + _BOUNDARY_END),
    )


@lru_cache(maxsize=1024)
def _variant_re(q: str) -> "re.Pattern":
    return re.compile(r"\((?:var\.?|see also|see|cf\.?)\s+" + re.escape(q) + _BOUNDARY_END)


class SemanticScorer:
    """
    Scores lexicon entries against a query on weighted semantic signals.

    The scorer is stateless apart from pattern caches and is safe to share.
    """

    def __init__(self, weights: Optional[ScoreWeights] = None, near_miss_ratio: float = 85.0):
        """
        :param weights: Signal weights; primary must be the largest
        :param near_miss_ratio: Minimum rapidfuzz ratio (0-100) for a misspelling to count
        """
        self.weights = weights or ScoreWeights()
        self.near_miss_ratio = near_miss_ratio

    def analyze_match(self, query: str, entry: Entry) -> MatchScore:
        """
        Score one entry against a query.

        :param query: Raw query; normalized internally
        :param entry: Lexicon entry to score
        :return: MatchScore with every signal and the clipped weighted total
        """
        q = normalize_query(query)
        if not q:
            return MatchScore(0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, "none")

        key = normalize_query(entry.source_term)
        view = _gloss_view(entry.gloss or "")

        primary, match_type = self._primary(q, key, view)
        context = self._context(q, key, view)
        position = self._position(q, view)
        definition = self._definition(q, view)
        completeness = self._completeness(entry)
        category = self._category(query, entry)

        w = self.weights
        total = (
            w.primary * primary
            + w.context * context
            + w.position * position
            + w.definition * definition
            + w.completeness * completeness
            + w.category * category
        )
        return MatchScore(
            primary=primary,
            context=context,
            position=position,
            definition=definition,
            completeness=completeness,
            category=category,
            total=round(max(0.0, min(1.0, total)), 4),
            match_type=match_type,
        )

    def score(self, query: str, entry: Entry) -> float:
        return self.analyze_match(query, entry).total

    def rank(
        self,
        query: str,
        entries: Iterable[Entry],
        floor: float = 0.0,
        limit: Optional[int] = None,
    ) -> List[Tuple[Entry, MatchScore]]:
        """
        Score and order entries, best first.

        :param floor: Entries scoring below this are dropped
        :param limit: Maximum number of entries returned
        """
        scored = []
        for entry in entries:
            match = self.analyze_match(query, entry)
            if match.total >= floor and match.total > 0.0:
                scored.append((entry, match))
        scored.sort(key=lambda pair: (-pair[1].total, pair[0].id))
        return scored[:limit] if limit is not None else scored

    def explain(self, query: str, entry: Entry) -> str:
        """Human-readable breakdown, for debugging rankings."""
        m = self.analyze_match(query, entry)
        return (
            f"{entry.source_term} -> {entry.target_term}: total={m.total:.3f} "
            f"[{m.match_type}] primary={m.primary:.2f} context={m.context:.2f} "
            f"position={m.position:.2f} definition={m.definition:.2f} "
            f"completeness={m.completeness:.2f} category={m.category:.2f}"
        )

    # Signals

    def _primary(self, q: str, key: str, view: _GlossView) -> Tuple[float, str]:
        if q == key:
            return 1.0, "exact"

        for segment in view.segments:
            if len(segment.items) < 2:
                continue
            for idx, item in enumerate(segment.items):
                if item == q:
                    return max(0.85, 0.98 - 0.04 * idx), "synonym-list"

        match = _word_re(q).search(view.text)
        if match:
            ratio = match.start() / max(1, len(view.text))
            score = 0.7 + 0.2 * (1.0 - ratio)
            if re.search(r"(?<![\w'])to\s+" + re.escape(q) + _BOUNDARY_END, view.text):
                score += 0.05
            return min(0.95, score), "gloss-word"

        partial = self._partial(q, key)
        if partial > 0.0:
            return partial, "partial"

        ratio = fuzz.ratio(q, key)
        if ratio >= self.near_miss_ratio:
            return 0.5 * ratio / 100.0, "near-miss"

        return 0.0, "none"

    @staticmethod
    def _partial(q: str, key: str) -> float:
        if len(q) < 2 or not key:
            return 0.0
        if key.startswith(q):
            return 0.6 * len(q) / len(key)
        if q in key:
            position_penalty = key.index(q) / len(key)
            return 0.5 * (len(q) / len(key)) * (1.0 - 0.5 * position_penalty)
        if len(key) >= 3 and _word_re(key).search(q):
            return 0.45 * len(key) / len(q)
        return 0.0

    def _context(self, q: str, key: str, view: _GlossView) -> float:
        if not view.segments or not _forms_re(q).search(view.text):
            # The key itself is a direct translation even without a gloss mention
            return 1.0 if q == key else 0.0

        first = view.segments[0]
        leads = self._leads(q, first.body)

        if any(pattern.search(view.text) for pattern in _compound_patterns(q)):
            return 0.25 if leads else 0.2

        if leads:
            return 1.0

        if any(len(s.items) >= 2 and q in s.items for s in view.segments):
            return 0.8

        match = _word_re(q).search(view.text)
        if match:
            return 0.7 - 0.2 * (match.start() / max(1, len(view.text)))

        # Only an inflected form occurs
        return 0.3

    @staticmethod
    def _leads(q: str, body: str) -> bool:
        if not body.startswith(q):
            return False
        if len(body) == len(q):
            return True
        follower = body[len(q)]
        return not (follower.isalnum() or follower in "'_")

    def _position(self, q: str, view: _GlossView) -> float:
        pattern = _forms_re(q)
        for index, segment in enumerate(view.segments):
            match = pattern.search(segment.body)
            if not match:
                continue
            segment_weight = max(0.2, 1.0 - 0.25 * index)
            offset = match.start() / max(1, len(segment.body))
            if match.start() == 0:
                factor = 1.0
            elif offset < 0.25:
                factor = 0.85
            elif offset < 0.5:
                factor = 0.7
            else:
                factor = 0.5
            return segment_weight * factor
        return 0.0

    def _definition(self, q: str, view: _GlossView) -> float:
        if not view.segments:
            return 0.0
        first = view.segments[0]
        concept = first.items[0] if first.items else first.body
        if concept == q:
            return 1.0
        if concept.startswith(q + " "):
            return 0.85
        if q in first.items:
            return 0.7
        if _variant_re(q).search(view.text):
            return 0.6
        if _word_re(q).search(view.text):
            return 0.35
        return 0.0

    @staticmethod
    def _completeness(entry: Entry) -> float:
        score = 0.0
        if len(entry.examples) >= 2:
            score += 0.3
        elif len(entry.examples) == 1:
            score += 0.15
        if entry.pronunciation:
            score += 0.2
        if entry.part_of_speech and entry.part_of_speech.lower() != UNKNOWN_PART_OF_SPEECH:
            score += 0.2
        if len((entry.gloss or "").strip()) >= 40:
            score += 0.2
        if entry.cultural_note:
            score += 0.1
        return min(1.0, score)

    @staticmethod
    def _category(query: str, entry: Entry) -> float:
        keywords = category_keywords(entry.category)
        if not keywords:
            return 0.5
        return 1.0 if set(tokenize(query)) & keywords else 0.4
