import logging
from typing import Any

from langchain_groq import ChatGroq
from langchain_openai import ChatOpenAI

from .config_validator import get_required_env

logger = logging.getLogger(__name__)

# Environment variable holding the credential for each provider
PROVIDER_API_KEYS = {
    "groq": "GROQ_API_KEY",
    "openai": "OPENAI_API_KEY",
}

KNOWN_GROQ_MODELS = [
    "llama-3.1-8b-instant",
    "llama-3.3-70b-versatile",
    "llama3-8b-8192",
    "mixtral-8x7b-32768",
]


def get_llm_instance(provider: str, model: str, temperature: float = 0.3) -> Any:
    """
    Factory to return a ready-to-use chat model based on provider name.

    :param provider: 'groq' or 'openai'
    :param model: LLM model name
    :param temperature: Sampling temperature; low values keep answers literal
    :return: LangChain chat model
    :raises: ConfigurationError if the provider's API key is missing
    :raises: ValueError for an unknown provider
    """
    provider = provider.lower()

    if provider == "groq":
        api_key = get_required_env(
            PROVIDER_API_KEYS["groq"],
            description="Groq API key for the AI translation resolver (get from https://console.groq.com/keys)"
        )

        if model not in KNOWN_GROQ_MODELS:
            # Groq adds models often, so this is only a warning
            logger.warning(
                f"Model '{model}' not in known Groq models. Known models: {KNOWN_GROQ_MODELS}"
            )

        return ChatGroq(
            model=model,
            api_key=api_key,
            temperature=temperature,
            streaming=False,
        )

    elif provider == "openai":
        api_key = get_required_env(
            PROVIDER_API_KEYS["openai"],
            description="OpenAI API key for the AI translation resolver (get from https://platform.openai.com/api-keys)"
        )
        return ChatOpenAI(
            model=model,
            api_key=api_key,
            temperature=temperature,
            streaming=False,
        )

    else:
        raise ValueError(f"Unknown LLM provider: {provider}")
