"""
Exception taxonomy for the lexicon lookup service.

Business-level absence (no lexicon or external match) is never an exception:
it is returned as a ResolutionResult with confidence 0. These classes cover
configuration problems and the failures that resolvers, decoders and the
cache recover from internally.
"""


class LexiconLookupError(Exception):
    """Base exception for lexicon lookup service."""


class ConfigurationError(LexiconLookupError):
    """Raised when required configuration (credentials, paths) is missing or invalid."""


class LexiconLoadError(LexiconLookupError):
    """Raised when the lexicon source is unavailable or malformed."""


class ParseError(LexiconLookupError):
    """Raised when an external structured payload cannot be extracted."""


class PayloadValidationError(ParseError):
    """Raised when an extracted payload does not match the expected schema."""


class ResolverError(LexiconLookupError):
    """Raised when an external resolver fails."""

    def __init__(self, resolver_name: str, message: str):
        super().__init__(f"{resolver_name}: {message}")
        self.resolver_name = resolver_name


class ResolverTimeoutError(ResolverError):
    """Raised when an external resolver does not answer in time."""


class StorageError(LexiconLookupError):
    """Raised when the durable key-value store cannot be read or written."""


class CacheCorruptionError(StorageError):
    """Raised when a persisted cache payload cannot be decoded."""
