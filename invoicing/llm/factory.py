"""Selection of the JSON completion backend.

``Settings.llm_provider`` names one entry of ``ProviderRegistry``; the
classifier, extractor and verifier all share the single provider built here.
The availability check may touch the network (Ollama), so call
``create_completion_provider`` before entering the event loop.
"""

import logging

from invoicing.llm.base import JsonCompletionProvider
from invoicing.llm.ollama_provider import OllamaJsonProvider
from invoicing.llm.openai_provider import OpenAIJsonProvider
from invoicing.shared.config import Settings

logger = logging.getLogger(__name__)


class ProviderRegistry:
    """Completion backends by name. Tests and plugins may add their own."""

    _providers: dict[str, type[JsonCompletionProvider]] = {
        "openai": OpenAIJsonProvider,
        "ollama": OllamaJsonProvider,
    }

    @classmethod
    def register(cls, name: str, provider_class: type[JsonCompletionProvider]) -> None:
        cls._providers[name] = provider_class
        logger.info(f"Registered completion provider: {name}")

    @classmethod
    def get_provider_class(cls, name: str) -> type[JsonCompletionProvider]:
        """Look up a backend class.

        Raises:
            ValueError: If nothing is registered under ``name``
        """
        try:
            return cls._providers[name]
        except KeyError:
            available = ", ".join(cls._providers)
            raise ValueError(
                f"Unknown completion provider: '{name}'. Available providers: {available}"
            ) from None

    @classmethod
    def list_providers(cls) -> list[str]:
        return list(cls._providers)


def create_completion_provider(settings: Settings) -> JsonCompletionProvider:
    """Build the backend named by ``settings.llm_provider``.

    An unconfigured backend (no API key, Ollama unreachable or model not
    pulled) is still returned; the first model call will then fail through the
    invoker. The warning logged here makes that failure easy to trace.

    Args:
        settings: Application settings

    Returns:
        Provider instance; the caller owns it and should ``aclose()`` it

    Raises:
        ValueError: If the configured backend is not registered
    """
    name = settings.llm_provider
    provider = ProviderRegistry.get_provider_class(name)(settings)

    if not provider.is_available():
        logger.warning(
            f"Completion provider '{name}' is not fully available. "
            f"Check OPENAI_API_KEY or the Ollama server at {settings.ollama_base_url}."
        )

    logger.info(f"Created completion provider: {name}")
    return provider
