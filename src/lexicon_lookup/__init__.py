"""
Lexicon lookup service.

Answers "what is X?" by cascading through a local lexicon, a semantic
matcher and external translation sources, returning one best answer with
ranked alternatives and a confidence score.
"""
from .app import LexiconLookupApp
from .config import LookupConfig
from .config_loader import load_config_from_env
from .exceptions import ConfigurationError, LexiconLookupError
from .models import Entry, Example, RankedEntry, WordBreakdownItem
from .schemas import ResolutionResult

__version__ = "0.1.0"

__all__ = [
    "LexiconLookupApp",
    "LookupConfig",
    "load_config_from_env",
    "ConfigurationError",
    "LexiconLookupError",
    "Entry",
    "Example",
    "RankedEntry",
    "WordBreakdownItem",
    "ResolutionResult",
]
