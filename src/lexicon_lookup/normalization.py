"""
Text normalization shared by the lexicon, the cache and the orchestrator.

There is exactly one key rule: lowercase, trim, collapse internal whitespace.
"""
import re
import unicodedata
from typing import List

_WHITESPACE_RE = re.compile(r"\s+")
_TOKEN_RE = re.compile(r"[^\W_]+(?:['’-][^\W_]+)*")

_QUOTE_TRANSLATION = str.maketrans({
    "‘": "'",
    "’": "'",
    "“": '"',
    "”": '"',
    "–": "-",
    "—": "-",
})


def normalize_query(text: str) -> str:
    """Lookup/cache key for a query or a lexicon source term."""
    if not text:
        return ""
    text = unicodedata.normalize("NFC", text)
    return _WHITESPACE_RE.sub(" ", text.strip().lower())


def normalize_text(text: str) -> str:
    """Clean free text from data files: straight quotes, plain dashes, single spaces."""
    if not text:
        return ""
    text = unicodedata.normalize("NFC", str(text)).translate(_QUOTE_TRANSLATION)
    return _WHITESPACE_RE.sub(" ", text).strip()


def tokenize(text: str) -> List[str]:
    """
    Split into lowercase word tokens, dropping surrounding punctuation.

    Inner apostrophes and hyphens are kept ("don't", "well-being").
    """
    return _TOKEN_RE.findall(normalize_query(text).replace("’", "'"))
