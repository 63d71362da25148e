"""Retrieval and prompt result models."""
from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(frozen=True)
class Source:
    """A numbered citation target, matching a `### [n]` block of the context."""
    n: int
    filename: str
    section: Optional[str] = None


@dataclass
class RetrievalResult:
    """Formatted context block and the sources it was built from."""
    context_block: str = ""
    sources: List[Source] = field(default_factory=list)


@dataclass
class AssembledPrompt:
    """Final generation prompt plus the sources to surface alongside the answer."""
    prompt: str
    sources: List[Source] = field(default_factory=list)
