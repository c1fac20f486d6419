"""
Local lexicon: loading, validation and exact/approximate lookup.
"""
from .loader import LexiconLoader
from .store import LexiconStore

__all__ = [
    "LexiconLoader",
    "LexiconStore",
]
