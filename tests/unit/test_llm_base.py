"""Unit tests for the completion provider interface."""

import pytest

from invoicing.llm.base import JsonCompletionProvider
from invoicing.shared.config import Settings


def test_cannot_instantiate_abstract_provider() -> None:
    with pytest.raises(TypeError):
        JsonCompletionProvider(Settings(_env_file=None))  # type: ignore[abstract]


def test_incomplete_subclass_rejected() -> None:
    class Partial(JsonCompletionProvider):
        def is_available(self) -> bool:
            return True

    with pytest.raises(TypeError):
        Partial(Settings(_env_file=None))  # type: ignore[abstract]


@pytest.mark.asyncio
async def test_concrete_subclass_keeps_settings() -> None:
    class Canned(JsonCompletionProvider):
        async def complete_json(self, system_prompt: str, user_content: str) -> str:
            return '{"is_invoice": false, "confidence": 0.1}'

        def is_available(self) -> bool:
            return True

        @property
        def provider_name(self) -> str:
            return "canned"

    settings = Settings(_env_file=None)
    provider = Canned(settings)

    assert provider.settings is settings
    assert await provider.complete_json("system", "user") == (
        '{"is_invoice": false, "confidence": 0.1}'
    )
