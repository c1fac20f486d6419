"""
Core abstraction for external resolvers.

A resolver wraps one external knowledge source and turns a query into
ranked candidate entries. Resolvers raise ResolverError on failure; the
orchestrator isolates those failures so one source never aborts a lookup.
"""
import hashlib
import re
from abc import ABC, abstractmethod
from typing import Iterable, List, Optional, Tuple

from ..models import Entry, Example, RankedEntry
from ..normalization import normalize_query

_SLUG_RE = re.compile(r"[^\w]+")


def make_candidate(
    query: str,
    target_term: str,
    confidence: float,
    source_tag: str,
    gloss: Optional[str] = None,
    part_of_speech: str = "unknown",
    examples: Iterable[Tuple[str, str]] = (),
    cultural_note: Optional[str] = None,
) -> RankedEntry:
    """
    Build a ranked candidate for an externally produced translation.

    Entry ids are derived from source, query and target so that the same
    answer always gets the same id.
    """
    key = normalize_query(query)
    target = target_term.strip()
    digest = hashlib.sha1(f"{source_tag}|{key}|{target.lower()}".encode("utf-8")).hexdigest()[:10]
    slug = _SLUG_RE.sub("-", key).strip("-") or "query"
    entry = Entry(
        id=f"{source_tag}-{slug}-{digest}",
        source_term=key,
        target_term=target,
        gloss=gloss or key,
        part_of_speech=part_of_speech or "unknown",
        examples=tuple(Example(source=s, target=t) for s, t in examples if s),
        cultural_note=cultural_note,
    )
    return RankedEntry(entry=entry, confidence=max(0.0, min(1.0, confidence)), source_tag=source_tag)


class ExternalResolver(ABC):
    """
    Protocol for external translation sources.

    :param timeout: Seconds this resolver may take for one query
    """

    name: str = "external"
    source_tag: str = "external"

    def __init__(self, timeout: float = 8.0):
        self.timeout = timeout

    @abstractmethod
    async def resolve(self, query: str) -> List[RankedEntry]:
        """
        Produce candidate translations for a query.

        :param query: Source-language text (word or phrase)
        :return: Candidates, possibly empty
        :raises: ResolverError if the source fails
        """
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, timeout={self.timeout})"
