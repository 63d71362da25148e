"""Services for the Markdown RAG chat backend."""
from .errors import DimensionMismatchError, EmbeddingError, GenerationError, LLMError
from .document_loader import DocumentLoader
from .chunking_engine import ChunkingEngine, split_markdown
from .embedding_model import EmbeddingModel
from .vector_store import InMemoryVectorStore
from .retrieval_engine import RetrievalEngine
from .prompt_assembler import PromptAssembler, CITATION_INSTRUCTION
from .stream_decoder import StreamDecoder, StreamState
from .llm_client import LLMClient
from .chat_service import RagChatService

__all__ = ['EmbeddingError', 'DimensionMismatchError', 'GenerationError', 'LLMError', 'DocumentLoader', 'ChunkingEngine', 'split_markdown', 'EmbeddingModel', 'InMemoryVectorStore', 'RetrievalEngine', 'PromptAssembler', 'CITATION_INSTRUCTION', 'StreamDecoder', 'StreamState', 'LLMClient', 'RagChatService']
