"""Error types raised by the RAG pipeline services."""
from dataclasses import dataclass, field
from typing import Any, Dict


class EmbeddingError(Exception):
    """The embedding backend returned no usable vector, or could not be reached."""


class DimensionMismatchError(ValueError):
    """A vector does not have the dimensionality the vector store was built with."""


@dataclass
class LLMError:
    """Structured error from generation operations."""
    code: str
    message: str
    details: Dict[str, Any] = field(default_factory=dict)


class GenerationError(Exception):
    """Generation failed, either reported by the backend mid-stream or at transport level."""

    def __init__(self, error: LLMError):
        self.error = error
        super().__init__(error.message)


def error_detail(response) -> str:
    """Best-effort message from a failed backend response: its `error` field, else the body."""
    try:
        data = response.json()
    except ValueError:
        return response.text or f"status {response.status_code}"
    if isinstance(data, dict) and data.get("error"):
        return str(data["error"])
    return response.text or f"status {response.status_code}"
