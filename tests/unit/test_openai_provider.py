"""Unit tests for OpenAIJsonProvider with a mocked client."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from invoicing.llm.openai_provider import OpenAIJsonProvider
from invoicing.shared.config import Settings
from invoicing.shared.errors import SchemaError


def _response(content: str | None) -> SimpleNamespace:
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


@pytest.fixture
def client() -> MagicMock:
    mock = MagicMock()
    mock.chat.completions.create = AsyncMock(return_value=_response('{"ok": true}'))
    return mock


@pytest.fixture
def provider(client: MagicMock) -> OpenAIJsonProvider:
    return OpenAIJsonProvider(Settings(_env_file=None, openai_model="gpt-4o-mini"), client=client)


def test_provider_name(provider: OpenAIJsonProvider) -> None:
    assert provider.provider_name == "openai"


def test_available_with_injected_client(provider: OpenAIJsonProvider) -> None:
    assert provider.is_available() is True


def test_unavailable_without_key(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)

    assert OpenAIJsonProvider(Settings(_env_file=None)).is_available() is False


@pytest.mark.asyncio
async def test_complete_json_request(provider: OpenAIJsonProvider, client: MagicMock) -> None:
    content = await provider.complete_json("Return JSON.", "Invoice text")

    assert content == '{"ok": true}'
    kwargs = client.chat.completions.create.call_args.kwargs
    assert kwargs["model"] == "gpt-4o-mini"
    assert kwargs["temperature"] == 0
    assert kwargs["response_format"] == {"type": "json_object"}
    assert kwargs["messages"] == [
        {"role": "system", "content": "Return JSON."},
        {"role": "user", "content": "Invoice text"},
    ]


@pytest.mark.asyncio
@pytest.mark.parametrize("content", [None, ""])
async def test_empty_content_is_schema_error(
    provider: OpenAIJsonProvider, client: MagicMock, content: str | None
) -> None:
    client.chat.completions.create.return_value = _response(content)

    with pytest.raises(SchemaError, match="No response content"):
        await provider.complete_json("system", "user")


@pytest.mark.asyncio
async def test_client_errors_propagate(provider: OpenAIJsonProvider, client: MagicMock) -> None:
    """Transport failures are left for the invoker to classify."""
    client.chat.completions.create.side_effect = ConnectionError("reset")

    with pytest.raises(ConnectionError):
        await provider.complete_json("system", "user")


@pytest.mark.asyncio
async def test_aclose_closes_client(provider: OpenAIJsonProvider, client: MagicMock) -> None:
    client.close = AsyncMock()

    await provider.aclose()
    await provider.aclose()

    client.close.assert_awaited_once()
