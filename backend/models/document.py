"""Document data models."""
from dataclasses import dataclass


@dataclass(frozen=True)
class Document:
    """Represents a markdown document supplied by the caller."""
    id: str
    name: str
    size: int
    content: str
