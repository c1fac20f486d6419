"""
External resolvers: one wrapper per external knowledge source.

Key components:
- ExternalResolver: async protocol every source implements
- StructuredBackendResolver: dictionary backend over HTTP
- WebSearchResolver + GlosbeSearchTool: scraped web dictionary results
- AITranslationResolver: chat model answering with a structured payload
- decode_translation_payload: ordered fallback decoder for model output
"""
from .base import ExternalResolver, make_candidate
from .payload_decoder import DecodeResult, decode_translation_payload
from .ai_resolver import AITranslationResolver
from .backend_resolver import StructuredBackendResolver, extract_translation
from .glosbe_tool import GlosbeSearchTool, parse_translations
from .web_search_resolver import WebSearchResolver
from .factory import create_resolvers

__all__ = [
    "ExternalResolver",
    "make_candidate",
    "DecodeResult",
    "decode_translation_payload",
    "AITranslationResolver",
    "StructuredBackendResolver",
    "extract_translation",
    "GlosbeSearchTool",
    "parse_translations",
    "WebSearchResolver",
    "create_resolvers",
]
