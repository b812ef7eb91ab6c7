"""Unit tests for OllamaJsonProvider.

Tests the Ollama-based completion provider with mocked HTTP calls.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from invoicing.llm.ollama_provider import OllamaJsonProvider
from invoicing.shared.config import Settings


@pytest.fixture
def settings() -> Settings:
    """Create test settings with Ollama provider."""
    return Settings(
        _env_file=None,
        llm_provider="ollama",
        ollama_base_url="http://localhost:11434/",
        ollama_model="qwen2.5:7b",
    )


@pytest.fixture
def client() -> MagicMock:
    return MagicMock(spec=httpx.AsyncClient)


@pytest.fixture
def provider(settings: Settings, client: MagicMock) -> OllamaJsonProvider:
    return OllamaJsonProvider(settings, client=client)


def _chat_response(content: str, status_code: int = 200) -> httpx.Response:
    return httpx.Response(
        status_code,
        json={"message": {"role": "assistant", "content": content}},
        request=httpx.Request("POST", "http://localhost:11434/api/chat"),
    )


class TestOllamaProviderProperties:
    """Test provider properties and availability."""

    def test_provider_name(self, provider: OllamaJsonProvider) -> None:
        assert provider.provider_name == "ollama"

    def test_is_available_when_server_running(self, provider: OllamaJsonProvider) -> None:
        mock_response = MagicMock()
        mock_response.status_code = 200
        mock_response.json.return_value = {"models": [{"name": "qwen2.5:7b"}]}

        with patch("httpx.get", return_value=mock_response) as mock_get:
            assert provider.is_available() is True

        assert mock_get.call_args.args[0] == "http://localhost:11434/api/tags"

    def test_is_available_when_server_down(self, provider: OllamaJsonProvider) -> None:
        with patch("httpx.get", side_effect=httpx.ConnectError("Connection refused")):
            assert provider.is_available() is False

    def test_is_available_when_model_not_found(self, provider: OllamaJsonProvider) -> None:
        mock_response = MagicMock()
        mock_response.status_code = 200
        mock_response.json.return_value = {"models": [{"name": "llama3.1:8b"}]}

        with patch("httpx.get", return_value=mock_response):
            assert provider.is_available() is False


class TestOllamaCompletion:
    """Test JSON completion requests."""

    @pytest.mark.asyncio
    async def test_complete_json_request(
        self, provider: OllamaJsonProvider, client: MagicMock
    ) -> None:
        client.post = AsyncMock(return_value=_chat_response('{"is_invoice": true}'))

        content = await provider.complete_json("Classify.", "Email Subject: Invoice")

        assert content == '{"is_invoice": true}'
        url = client.post.call_args.args[0]
        body = client.post.call_args.kwargs["json"]
        assert url == "http://localhost:11434/api/chat"
        assert body["model"] == "qwen2.5:7b"
        assert body["format"] == "json"
        assert body["stream"] is False
        assert body["options"] == {"temperature": 0}
        assert body["messages"][0] == {"role": "system", "content": "Classify."}

    @pytest.mark.asyncio
    async def test_server_error_raises_status_error(
        self, provider: OllamaJsonProvider, client: MagicMock
    ) -> None:
        client.post = AsyncMock(return_value=_chat_response("", status_code=503))

        with pytest.raises(httpx.HTTPStatusError):
            await provider.complete_json("system", "user")

    @pytest.mark.asyncio
    async def test_aclose(self, provider: OllamaJsonProvider, client: MagicMock) -> None:
        client.aclose = AsyncMock()

        await provider.aclose()

        client.aclose.assert_awaited_once()
