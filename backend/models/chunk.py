"""Chunk data models."""
from dataclasses import dataclass
from typing import Optional, List


@dataclass
class Chunk:
    """A section-tagged slice of a markdown document."""
    text: str
    section: Optional[str] = None


@dataclass(frozen=True)
class ChunkMeta:
    """Provenance of an indexed chunk."""
    doc_id: str
    filename: str
    section: Optional[str] = None


@dataclass
class IndexedChunk:
    """Represents a chunk stored in the vector index."""
    chunk_id: str  # uuid4, unique per chunk
    text: str
    meta: ChunkMeta
    vector: Optional[List[float]] = None


@dataclass
class ScoredChunk:
    """Chunk with relevance score from retrieval."""
    chunk: IndexedChunk
    relevance_score: float  # cosine similarity, -1.0 to 1.0
