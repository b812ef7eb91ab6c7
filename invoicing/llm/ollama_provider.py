"""Ollama-based JSON completion provider for self-hosted LLM inference.

Uses a local Ollama server with ``format: json`` so the model is constrained
to emit a single JSON object. Supports data sovereignty requirements by
running entirely on-premises.

Requires Ollama server running on localhost:11434.
See: https://ollama.ai/
"""

import logging

import httpx

from invoicing.llm.base import JsonCompletionProvider
from invoicing.shared.config import Settings

logger = logging.getLogger(__name__)


class OllamaJsonProvider(JsonCompletionProvider):
    """JSON completion through an Ollama server.

    Supports models like Qwen2.5, Llama3, Mistral.
    """

    def __init__(self, settings: Settings, client: httpx.AsyncClient | None = None) -> None:
        """Initialize Ollama provider.

        Args:
            settings: Application settings
            client: HTTP client (created with the configured timeout when omitted)
        """
        super().__init__(settings)
        self._base_url = settings.ollama_base_url.rstrip("/")
        self._model = settings.ollama_model
        self._client = client or httpx.AsyncClient(timeout=settings.llm_timeout_seconds)

    @property
    def provider_name(self) -> str:
        return "ollama"

    def is_available(self) -> bool:
        """Check if Ollama server is running and model is available.

        Returns:
            True if Ollama server responds and model is pulled
        """
        try:
            response = httpx.get(f"{self._base_url}/api/tags", timeout=5.0)
            if response.status_code != 200:
                return False
            models = response.json().get("models", [])
            model_names = [m.get("name", "").split(":")[0] for m in models]
            return self._model.split(":")[0] in model_names
        except httpx.HTTPError:
            return False

    async def complete_json(self, system_prompt: str, user_content: str) -> str:
        response = await self._client.post(
            f"{self._base_url}/api/chat",
            json={
                "model": self._model,
                "messages": [
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_content},
                ],
                "format": "json",
                "stream": False,
                "options": {
                    "temperature": 0,  # Deterministic output
                },
            },
        )
        response.raise_for_status()
        content: str = response.json().get("message", {}).get("content", "")
        logger.debug(f"Ollama returned {len(content)} characters")
        return content

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()
