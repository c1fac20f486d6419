from dataclasses import dataclass
from typing import Optional


@dataclass
class LookupConfig:
    # Core paths
    lexicon_path: str = "data/lexicon.json"
    cache_dir: str = ".lookup_cache"

    # LLM
    llm_provider: str = "groq"
    llm_model: str = "llama-3.1-8b-instant"
    llm_temperature: float = 0.3

    # External resolvers
    enable_external: bool = True
    enable_web_search: bool = True
    backend_url: Optional[str] = None
    resolver_timeout: float = 8.0
    resolver_deadline: float = 12.0

    # Resolution thresholds
    early_stop_confidence: float = 0.9
    fuzzy_accept_threshold: float = 0.7
    fuzzy_limit: int = 5

    # Cache
    cache_default_ttl: float = 24 * 60 * 60
    cache_frequent_ttl: float = 7 * 24 * 60 * 60
    cache_frequency_threshold: int = 5
    cache_sweep_interval: float = 60 * 60
    cache_io_timeout: float = 2.0

    # Logging
    log_level: str = "INFO"
