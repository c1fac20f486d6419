"""
Factory for external resolvers.
"""
import logging
from typing import Any, List, Optional

from ..config import LookupConfig
from ..llm_factory import get_llm_instance
from .ai_resolver import AITranslationResolver
from .backend_resolver import StructuredBackendResolver
from .base import ExternalResolver
from .glosbe_tool import GlosbeSearchTool
from .web_search_resolver import WebSearchResolver

logger = logging.getLogger(__name__)


def create_resolvers(config: LookupConfig, llm: Optional[Any] = None) -> List[ExternalResolver]:
    """
    Build the external resolvers enabled by config, in priority order:
    structured backend, web search, AI translation.

    Call only once external access is known to be available; building the
    AI resolver needs the provider's API key.

    :param config: LookupConfig instance
    :param llm: Pre-built chat model; created from config if omitted
    :return: Resolvers, highest priority first
    """
    resolvers: List[ExternalResolver] = []

    if config.backend_url:
        resolvers.append(StructuredBackendResolver(
            base_url=config.backend_url,
            timeout=config.resolver_timeout,
        ))

    if config.enable_web_search:
        resolvers.append(WebSearchResolver(
            tool=GlosbeSearchTool(timeout=config.resolver_timeout),
            timeout=config.resolver_timeout,
        ))

    if llm is None:
        llm = get_llm_instance(
            provider=config.llm_provider,
            model=config.llm_model,
            temperature=config.llm_temperature,
        )
    resolvers.append(AITranslationResolver(llm=llm, timeout=config.resolver_timeout))

    logger.info(f"External resolvers: {[r.name for r in resolvers]}")
    return resolvers
