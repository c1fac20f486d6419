"""
Credential provider for external resolvers.

Missing credentials are a capability flag, not a per-call error: the check
runs once, a ConfigurationError is logged once, and every later query simply
skips external resolution.
"""
import logging
from typing import Optional

from .config_validator import get_required_env, validate_api_key
from .exceptions import ConfigurationError
from .llm_factory import PROVIDER_API_KEYS

logger = logging.getLogger(__name__)


class CredentialProvider:
    """
    Decides once whether external resolvers may be used.

    :param provider: LLM provider whose API key gates external access
    :param enabled: Master switch; False withholds access without checking keys
    """

    def __init__(self, provider: str = "groq", enabled: bool = True):
        self._provider = provider.lower()
        self._enabled = enabled
        self._available: Optional[bool] = None
        self._reason: Optional[str] = None

    def has_external_access(self) -> bool:
        if self._available is None:
            self._available = self._check()
        return self._available

    @property
    def reason(self) -> Optional[str]:
        """Why access is withheld, if it is."""
        self.has_external_access()
        return self._reason

    def _check(self) -> bool:
        if not self._enabled:
            self._reason = "external resolution disabled by configuration"
            logger.info("External resolvers disabled by configuration")
            return False

        key_name = PROVIDER_API_KEYS.get(self._provider)
        if key_name is None:
            self._reason = f"unknown LLM provider '{self._provider}'"
            logger.warning(f"External resolvers unavailable: {self._reason}")
            return False

        try:
            validate_api_key(
                get_required_env(key_name, description=f"{self._provider} API key"),
                key_name,
            )
        except ConfigurationError as e:
            self._reason = f"{key_name} is not configured"
            logger.warning(f"External resolvers unavailable: {self._reason}")
            logger.debug(str(e))
            return False

        return True


class StaticCredentialProvider(CredentialProvider):
    """Provider with a fixed answer, for wiring tests and offline use."""

    def __init__(self, available: bool):
        super().__init__(enabled=available)
        self._available = available
        self._reason = None if available else "external resolution disabled"
