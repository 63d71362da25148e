"""LLM Client for the Ollama generate API."""
import time
from typing import Iterator, Optional
import httpx
import logging

from config import OLLAMA_URL, OLLAMA_MODEL, REQUEST_TIMEOUT
from services.errors import GenerationError, LLMError, error_detail
from services.stream_decoder import StreamDecoder

logger = logging.getLogger(__name__)


class LLMClient:
    """Client streaming completions from an Ollama-compatible `/api/generate` endpoint."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        model_name: Optional[str] = None,
        timeout: float = REQUEST_TIMEOUT
    ):
        """
        Initialize LLM client.

        Args:
            base_url: Ollama server URL (defaults to OLLAMA_URL from environment)
            model_name: Generation model (defaults to OLLAMA_MODEL from environment)
            timeout: Request timeout in seconds, applied per read while streaming
        """
        self.base_url = (base_url or OLLAMA_URL).rstrip("/")
        self.model_name = model_name or OLLAMA_MODEL
        self.timeout = timeout
        self.api_url = f"{self.base_url}/api/generate"
        logger.info(f"LLMClient initialized with model: {self.model_name}")

    def generate_stream(self, prompt: str) -> Iterator[str]:
        """
        Stream generated text fragments for a prompt.

        Fragments are yielded as soon as their line arrives. Closing the
        iterator early closes the HTTP response and connection.

        Args:
            prompt: Complete prompt with context and conversation

        Yields:
            Text fragments in generation order

        Raises:
            GenerationError: Structured error with code, message, and details
        """
        payload = {"model": self.model_name, "prompt": prompt, "stream": True}
        start_time = time.time()
        decoder = StreamDecoder()

        logger.debug(f"Generating response with model: {self.model_name}")

        try:
            with httpx.Client(timeout=self.timeout) as client:
                with client.stream(
                    "POST",
                    self.api_url,
                    json=payload,
                    headers={"Content-Type": "application/json"}
                ) as response:
                    if response.status_code != 200:
                        response.read()
                        raise self._error(
                            "API_ERROR",
                            f"Generation request failed: {error_detail(response)}",
                            start_time,
                            status_code=response.status_code
                        )

                    yield from decoder.decode(response.iter_lines())

        except httpx.TimeoutException as e:
            raise self._error("TIMEOUT_ERROR", f"Generation request failed: timed out ({e})", start_time)
        except httpx.HTTPError as e:
            raise self._error("TRANSPORT_ERROR", f"Generation request failed: {str(e)}", start_time)

        latency_ms = int((time.time() - start_time) * 1000)
        logger.info(
            f"Generated response: model={self.model_name}, "
            f"fragments={decoder.fragments}, latency={latency_ms}ms"
        )

    def generate(self, prompt: str) -> str:
        """Generate a complete response by concatenating all streamed fragments."""
        return "".join(self.generate_stream(prompt))

    def _error(self, code: str, message: str, start_time: float, **details) -> GenerationError:
        latency_ms = int((time.time() - start_time) * 1000)
        error = LLMError(
            code=code,
            message=message,
            details={"model": self.model_name, "latency_ms": latency_ms, **details}
        )
        logger.error(
            f"Generation error: model={self.model_name}, latency={latency_ms}ms, error={message}",
            extra={"error_code": error.code, "error_details": error.details}
        )
        return GenerationError(error)

