"""
Environment readers for the lookup service settings.

Each reader either returns a usable value or raises ConfigurationError
naming the variable and how to fix it.
"""
import os
import warnings
from typing import Optional

from .exceptions import ConfigurationError

# Substrings that mark a value copied unchanged from .env.example
_PLACEHOLDER_MARKERS = (
    "your_",
    "placeholder",
    "xxx",
    "sk-0000",
    "gsk_0000",
    "replace_me",
    "changeme",
)

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})


def _read_env(key: str) -> Optional[str]:
    value = os.getenv(key)
    if value is None:
        return None
    value = value.strip()
    return value or None


def get_required_env(key: str, description: str = None) -> str:
    """
    Read a variable the service cannot run without.

    :param key: Environment variable name
    :param description: What the value is used for, shown in the error
    :return: The stripped value
    :raises: ConfigurationError if unset, blank or a placeholder
    """
    value = _read_env(key)

    if value is None:
        raise ConfigurationError(
            f"{key} is required but not set ({description or 'no description'}).\n"
            f"Export it in your shell (export {key}=...) or add a line\n"
            f"{key}=... to the .env file next to app.py."
        )

    if _is_placeholder(value):
        raise ConfigurationError(
            f"{key} still holds a placeholder value ({_mask_secret(value)}). "
            f"Replace it with the real value."
        )

    return value


def get_optional_env(key: str, default: Optional[str] = None) -> Optional[str]:
    """
    Read a variable that may be left unset.

    Placeholder values are treated as unset, with a warning.

    :param key: Environment variable name
    :param default: Returned when unset, blank or a placeholder
    """
    value = _read_env(key)
    if value is None:
        return default

    if _is_placeholder(value):
        warnings.warn(f"Ignoring placeholder value for {key}", UserWarning)
        return default

    return value


def get_bool_env(key: str, default: bool) -> bool:
    """Read an on/off switch (1/0, true/false, yes/no, on/off)."""
    value = get_optional_env(key)
    if value is None:
        return default
    return value.lower() in _TRUE_VALUES


def get_float_env(key: str, default: float, minimum: float = 0.0) -> float:
    """
    Read a numeric setting such as a timeout or threshold.

    :raises: ConfigurationError if the value is not a number or below minimum
    """
    value = get_optional_env(key)
    if value is None:
        return default

    try:
        number = float(value)
    except ValueError:
        raise ConfigurationError(f"{key} must be a number, got {value!r}")

    if number < minimum:
        raise ConfigurationError(f"{key} must be at least {minimum}, got {number}")
    return number


def get_int_env(key: str, default: int, minimum: int = 0) -> int:
    return int(get_float_env(key, float(default), float(minimum)))


def validate_api_key(key: str, key_name: str, min_length: int = 20) -> str:
    """
    Reject API keys that cannot be real before any request is made.

    :param key: The key value
    :param key_name: Variable name, used in the error message
    :param min_length: Shortest plausible key
    :return: The key, unchanged
    :raises: ConfigurationError if empty, a placeholder or too short
    """
    if not key:
        raise ConfigurationError(f"{key_name} is empty.")

    if _is_placeholder(key):
        raise ConfigurationError(f"{key_name} is a placeholder, not a real API key.")

    if len(key) < min_length:
        raise ConfigurationError(
            f"{key_name} looks truncated (too short: {len(key)} chars, "
            f"expected {min_length} or more)."
        )

    return key


def validate_path(path: str, path_name: str, must_exist: bool = False) -> str:
    """
    Check a configured file or directory path.

    :param path: Configured path
    :param path_name: Variable name, used in the error message
    :param must_exist: Also require the path to exist
    :return: The path, unchanged
    :raises: ConfigurationError if empty or missing when must_exist is set
    """
    if not path:
        raise ConfigurationError(f"{path_name} is empty.")

    if must_exist and not os.path.exists(path):
        raise ConfigurationError(f"{path_name} points to a missing path: {path}")

    return path


def _is_placeholder(value: str) -> bool:
    lowered = value.lower()
    return any(marker in lowered for marker in _PLACEHOLDER_MARKERS)


def _mask_secret(secret: str, show_chars: int = 4) -> str:
    # Enough of the value to recognize it, never the whole secret
    if len(secret) <= show_chars * 2:
        return "***"
    return f"{secret[:show_chars]}...{secret[-show_chars:]}"
