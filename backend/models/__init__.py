"""Data models for the Markdown RAG chat backend."""
from .document import Document
from .chunk import Chunk, ChunkMeta, IndexedChunk, ScoredChunk
from .conversation import ConversationTurn
from .retrieval import Source, RetrievalResult, AssembledPrompt
from .api import ChatRequest, HistoryEntry, DocumentPayload

__all__ = [
    "Document",
    "Chunk",
    "ChunkMeta",
    "IndexedChunk",
    "ScoredChunk",
    "ConversationTurn",
    "Source",
    "RetrievalResult",
    "AssembledPrompt",
    "ChatRequest",
    "HistoryEntry",
    "DocumentPayload",
]
