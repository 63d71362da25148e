"""Unit tests for LLMClient."""
import sys
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

import pytest
from unittest.mock import patch, MagicMock
import httpx
from services.llm_client import LLMClient
from services.errors import GenerationError


def mock_stream(mock_client_class, lines=None, status_code=200, error_payload=None):
    """Wire httpx.Client().stream() to return a response yielding `lines`."""
    mock_response = MagicMock()
    mock_response.status_code = status_code
    mock_response.iter_lines.return_value = iter(lines or [])
    mock_response.json.return_value = error_payload
    mock_response.text = ""

    mock_stream_cm = MagicMock()
    mock_stream_cm.__enter__.return_value = mock_response

    mock_client = MagicMock()
    mock_client.__enter__.return_value.stream.return_value = mock_stream_cm
    mock_client_class.return_value = mock_client
    return mock_client, mock_stream_cm, mock_response


class TestLLMClient:
    """Test suite for LLMClient class."""

    def test_initialization(self):
        """LLMClient builds the generate URL from the base URL."""
        client = LLMClient(base_url="http://ollama:11434/", model_name="llama3")
        assert client.api_url == "http://ollama:11434/api/generate"
        assert client.model_name == "llama3"

    def test_initialization_defaults(self):
        """Without arguments the configured URL and model are used."""
        with patch('services.llm_client.OLLAMA_URL', "http://configured:1234"), \
                patch('services.llm_client.OLLAMA_MODEL', "configured-model"):
            client = LLMClient()

        assert client.api_url == "http://configured:1234/api/generate"
        assert client.model_name == "configured-model"

    @patch('httpx.Client')
    def test_generate_stream_success(self, mock_client_class):
        """Fragments are yielded in order and the request is a streaming generate call."""
        mock_client, _, _ = mock_stream(mock_client_class, [
            '{"response":"The "}',
            '{"response":"answer"}',
            '{"done":true}',
        ])

        client = LLMClient(base_url="http://ollama:11434", model_name="llama3")
        fragments = list(client.generate_stream("Prompt text"))

        assert fragments == ["The ", "answer"]
        call = mock_client.__enter__.return_value.stream.call_args
        assert call[0] == ("POST", "http://ollama:11434/api/generate")
        assert call[1]["json"] == {"model": "llama3", "prompt": "Prompt text", "stream": True}

    @patch('httpx.Client')
    def test_generate_stream_is_lazy(self, mock_client_class):
        """No request is made until the first fragment is requested."""
        mock_stream(mock_client_class, ['{"response":"x"}'])

        client = LLMClient(base_url="http://ollama:11434")
        fragments = client.generate_stream("Prompt")

        mock_client_class.assert_not_called()
        assert next(fragments) == "x"
        mock_client_class.assert_called_once_with(timeout=client.timeout)

    @patch('httpx.Client')
    def test_generate_concatenates(self, mock_client_class):
        """generate() returns the whole answer."""
        mock_stream(mock_client_class, ['{"response":"Hel"}', 'garbage', '{"response":"lo"}', '{"done":true}'])

        client = LLMClient(base_url="http://ollama:11434")

        assert client.generate("Prompt") == "Hello"

    @patch('httpx.Client')
    def test_backend_error_line(self, mock_client_class):
        """An error record mid-stream surfaces the backend's message verbatim."""
        mock_stream(mock_client_class, ['{"response":"part"}', '{"error":"boom"}'])

        client = LLMClient(base_url="http://ollama:11434")
        received = []

        with pytest.raises(GenerationError) as exc_info:
            for fragment in client.generate_stream("Prompt"):
                received.append(fragment)

        assert received == ["part"]
        assert str(exc_info.value) == "boom"
        assert exc_info.value.error.code == "BACKEND_ERROR"

    @patch('httpx.Client')
    def test_error_status(self, mock_client_class):
        """Non-200 responses raise with the backend's error field."""
        _, _, mock_response = mock_stream(
            mock_client_class,
            status_code=404,
            error_payload={"error": "model 'llama3' not found"}
        )

        client = LLMClient(base_url="http://ollama:11434", model_name="llama3")

        with pytest.raises(GenerationError) as exc_info:
            list(client.generate_stream("Prompt"))

        error = exc_info.value.error
        assert error.code == "API_ERROR"
        assert error.message == "Generation request failed: model 'llama3' not found"
        assert error.details["status_code"] == 404
        assert error.details["model"] == "llama3"
        mock_response.read.assert_called_once()
        mock_response.iter_lines.assert_not_called()

    @patch('httpx.Client')
    def test_transport_error(self, mock_client_class):
        """Connection failures raise a transport-level GenerationError."""
        mock_client = MagicMock()
        mock_client.__enter__.return_value.stream.side_effect = httpx.ConnectError("Connection refused")
        mock_client_class.return_value = mock_client

        client = LLMClient(base_url="http://ollama:11434")

        with pytest.raises(GenerationError) as exc_info:
            list(client.generate_stream("Prompt"))

        assert exc_info.value.error.code == "TRANSPORT_ERROR"
        assert "Connection refused" in exc_info.value.error.message

    @patch('httpx.Client')
    def test_timeout_error(self, mock_client_class):
        """Timeouts raise a GenerationError with the timeout code."""
        mock_client = MagicMock()
        mock_client.__enter__.return_value.stream.side_effect = httpx.ReadTimeout("read timed out")
        mock_client_class.return_value = mock_client

        client = LLMClient(base_url="http://ollama:11434")

        with pytest.raises(GenerationError) as exc_info:
            list(client.generate_stream("Prompt"))

        assert exc_info.value.error.code == "TIMEOUT_ERROR"

    @patch('httpx.Client')
    def test_early_close_releases_stream(self, mock_client_class):
        """Closing the iterator early exits the response and client contexts."""
        mock_client, mock_stream_cm, _ = mock_stream(
            mock_client_class,
            [f'{{"response":"{i}"}}' for i in range(50)]
        )

        client = LLMClient(base_url="http://ollama:11434")
        fragments = client.generate_stream("Prompt")

        assert next(fragments) == "0"
        fragments.close()

        mock_stream_cm.__exit__.assert_called_once()
        mock_client.__exit__.assert_called_once()
