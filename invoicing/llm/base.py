"""Abstract base class for JSON completion providers.

The classifier and extractor consume a language model as a single capability:
given system instructions and document text, return a JSON object as text.
Providers implement that capability for a particular backend (OpenAI, Ollama)
behind a common interface.

Based on Strategy Pattern:
https://refactoring.guru/design-patterns/strategy/python
"""

from abc import ABC, abstractmethod

from invoicing.shared.config import Settings


class JsonCompletionProvider(ABC):
    """Abstract base class for language model JSON completion.

    Implementations must sample deterministically (temperature 0) and must
    not catch transport errors: the resilient invoker decides what to retry.
    """

    def __init__(self, settings: Settings) -> None:
        """Initialize provider with settings.

        Args:
            settings: Application settings
        """
        self.settings = settings

    @abstractmethod
    async def complete_json(self, system_prompt: str, user_content: str) -> str:
        """Ask the model for a JSON object.

        Args:
            system_prompt: Fixed instructions describing the output shape
            user_content: Document or email text to analyse

        Returns:
            Raw response text, expected to be a JSON object
        """
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """Check if this provider is configured (API keys, server reachable).

        Returns:
            True if provider can be used, False otherwise
        """
        pass

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Get provider name for logging/metrics.

        Returns:
            Provider identifier (e.g., 'openai', 'ollama')
        """
        pass

    async def aclose(self) -> None:
        """Release network resources held by the provider. Safe to call more than once."""
        return None
