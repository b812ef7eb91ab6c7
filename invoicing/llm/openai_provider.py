"""OpenAI-based JSON completion provider.

Uses the OpenAI chat completions API in JSON mode at temperature 0.
Requires OPENAI_API_KEY environment variable.

Retries are not handled here; callers wrap ``complete_json`` in the
resilient invoker, which classifies openai's connection, rate-limit and
server errors as transient.
"""

import logging
import os

from openai import AsyncOpenAI

from invoicing.llm.base import JsonCompletionProvider
from invoicing.shared.config import Settings
from invoicing.shared.errors import SchemaError

logger = logging.getLogger(__name__)


class OpenAIJsonProvider(JsonCompletionProvider):
    """JSON completion through the OpenAI API."""

    def __init__(self, settings: Settings, client: AsyncOpenAI | None = None) -> None:
        """Initialize OpenAI provider.

        Args:
            settings: Application settings
            client: Preconfigured client (created lazily when omitted)
        """
        super().__init__(settings)
        self._client = client

    @property
    def provider_name(self) -> str:
        return "openai"

    def is_available(self) -> bool:
        """Check if OpenAI API key is configured.

        Returns:
            True if OPENAI_API_KEY environment variable is set
        """
        return self._client is not None or os.getenv("OPENAI_API_KEY") is not None

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            # max_retries=0: backoff belongs to the resilient invoker
            self._client = AsyncOpenAI(
                timeout=self.settings.llm_timeout_seconds,
                max_retries=0,
            )
        return self._client

    async def complete_json(self, system_prompt: str, user_content: str) -> str:
        response = await self._get_client().chat.completions.create(
            model=self.settings.openai_model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_content},
            ],
            response_format={"type": "json_object"},
            temperature=0,  # Deterministic output
        )

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise SchemaError("No response content from OpenAI", raw_response=content)

        logger.debug(f"OpenAI returned {len(content)} characters")
        return content

    async def aclose(self) -> None:
        """Close the underlying OpenAI client, if one was created."""
        if self._client is not None:
            await self._client.close()
            self._client = None
