"""Embedding model integration with the Ollama embeddings API."""
import time
import logging
from numbers import Real
from typing import Any, List, Sequence
import httpx
from config import OLLAMA_URL, OLLAMA_EMBED_MODEL, REQUEST_TIMEOUT
from services.errors import EmbeddingError, error_detail

logger = logging.getLogger(__name__)


class EmbeddingModel:
    """Client for an Ollama-compatible `/api/embeddings` endpoint."""

    def __init__(
        self,
        base_url: str = OLLAMA_URL,
        model_name: str = OLLAMA_EMBED_MODEL,
        timeout: float = REQUEST_TIMEOUT
    ):
        """
        Initialize the embedding model client.

        Args:
            base_url: Base URL of the Ollama server
            model_name: Embedding model identifier (default: nomic-embed-text)
            timeout: Request timeout in seconds
        """
        if not base_url:
            raise ValueError("OLLAMA_URL must be provided")

        self.base_url = base_url.rstrip("/")
        self.model_name = model_name
        self.timeout = timeout
        self.api_url = f"{self.base_url}/api/embeddings"

        logger.info(f"Initialized EmbeddingModel with model: {model_name}")

    def embed_text(self, text: str) -> List[float]:
        """
        Generate embedding for a single text string.

        Args:
            text: Text to embed

        Returns:
            Embedding vector as list of floats

        Raises:
            EmbeddingError: If the backend returns no usable vector
        """
        return self.embed([text])[0]

    def embed(self, texts: Sequence[str]) -> List[List[float]]:
        """
        Generate one embedding per text, in input order.

        The backend takes a single prompt per request, so texts are sent one
        after another over a shared connection.

        Args:
            texts: Texts to embed

        Returns:
            List of embedding vectors, aligned with texts

        Raises:
            EmbeddingError: If any request fails or returns an invalid vector
        """
        if not texts:
            return []

        vectors: List[List[float]] = []
        start_time = time.time()

        with httpx.Client(timeout=self.timeout) as client:
            for text in texts:
                vectors.append(self._embed_one(client, text))

        elapsed = time.time() - start_time
        logger.debug(f"Generated embeddings for {len(texts)} texts in {elapsed:.2f}s")
        return vectors

    def _embed_one(self, client: httpx.Client, text: str) -> List[float]:
        """Request the embedding of one text and validate the response."""
        payload = {"model": self.model_name, "prompt": text}

        try:
            response = client.post(self.api_url, json=payload)
        except httpx.TimeoutException:
            error_msg = f"Embedding request timed out after {self.timeout}s"
            logger.error(error_msg)
            raise EmbeddingError(error_msg)
        except httpx.RequestError as e:
            error_msg = f"Embedding request failed: {str(e)}"
            logger.error(error_msg)
            raise EmbeddingError(error_msg)

        if response.status_code != 200:
            error_msg = (
                f"Embedding request failed with status {response.status_code}: "
                f"{error_detail(response)}"
            )
            logger.error(error_msg)
            raise EmbeddingError(error_msg)

        try:
            data = response.json()
        except ValueError:
            logger.error("Embedding response is not valid JSON")
            raise EmbeddingError("Invalid embedding returned by the backend")

        embedding = data.get("embedding") if isinstance(data, dict) else None
        if not _is_numeric_vector(embedding):
            logger.error(f"Embedding response has no numeric 'embedding' field (model={self.model_name})")
            raise EmbeddingError(
                "Invalid embedding returned by the backend: expected a non-empty list of numbers"
            )

        return [float(value) for value in embedding]


def _is_numeric_vector(value: Any) -> bool:
    if not isinstance(value, list) or not value:
        return False
    return all(isinstance(v, Real) and not isinstance(v, bool) for v in value)

