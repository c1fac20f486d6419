"""
Configuration loader.

Builds a LookupConfig from environment variables and an optional .env file.
"""
from dotenv import load_dotenv

from .config import LookupConfig
from .config_validator import (
    get_bool_env,
    get_float_env,
    get_int_env,
    get_optional_env,
    validate_path,
)


def load_config_from_env(require_lexicon: bool = False) -> LookupConfig:
    """
    Load configuration from environment variables with validation.

    Usage:
        config = load_config_from_env()
        app = LexiconLookupApp(config)
        app.initialize()

    :param require_lexicon: Fail fast if the lexicon file is missing
    :return: LookupConfig instance
    :raises: ConfigurationError if a value is malformed
    """
    load_dotenv()

    defaults = LookupConfig()
    config = LookupConfig(
        lexicon_path=get_optional_env("LEXICON_PATH", default=defaults.lexicon_path),
        cache_dir=get_optional_env("CACHE_DIR", default=defaults.cache_dir),
        llm_provider=get_optional_env("LLM_PROVIDER", default=defaults.llm_provider),
        llm_model=get_optional_env("LLM_MODEL", default=defaults.llm_model),
        llm_temperature=get_float_env("LLM_TEMPERATURE", defaults.llm_temperature),
        enable_external=get_bool_env("ENABLE_EXTERNAL", defaults.enable_external),
        enable_web_search=get_bool_env("ENABLE_WEB_SEARCH", defaults.enable_web_search),
        backend_url=get_optional_env("BACKEND_URL"),
        resolver_timeout=get_float_env("RESOLVER_TIMEOUT", defaults.resolver_timeout),
        resolver_deadline=get_float_env("RESOLVER_DEADLINE", defaults.resolver_deadline),
        early_stop_confidence=get_float_env(
            "EARLY_STOP_CONFIDENCE", defaults.early_stop_confidence
        ),
        fuzzy_accept_threshold=get_float_env(
            "FUZZY_ACCEPT_THRESHOLD", defaults.fuzzy_accept_threshold
        ),
        fuzzy_limit=get_int_env("FUZZY_LIMIT", defaults.fuzzy_limit, minimum=1),
        cache_default_ttl=get_float_env("CACHE_DEFAULT_TTL", defaults.cache_default_ttl),
        cache_frequent_ttl=get_float_env("CACHE_FREQUENT_TTL", defaults.cache_frequent_ttl),
        cache_frequency_threshold=get_int_env(
            "CACHE_FREQUENCY_THRESHOLD", defaults.cache_frequency_threshold
        ),
        cache_sweep_interval=get_float_env(
            "CACHE_SWEEP_INTERVAL", defaults.cache_sweep_interval
        ),
        cache_io_timeout=get_float_env("CACHE_IO_TIMEOUT", defaults.cache_io_timeout),
        log_level=get_optional_env("LOG_LEVEL", default=defaults.log_level).upper(),
    )

    if require_lexicon:
        validate_path(config.lexicon_path, "LEXICON_PATH", must_exist=True)

    return config
