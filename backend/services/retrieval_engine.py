"""Retrieval engine orchestrating document ingestion and context retrieval."""
import logging
import uuid
from typing import List, Sequence
from models.chunk import ChunkMeta, IndexedChunk, ScoredChunk
from models.document import Document
from models.retrieval import RetrievalResult, Source
from services.chunking_engine import ChunkingEngine
from services.errors import DimensionMismatchError, EmbeddingError
from services.vector_store import InMemoryVectorStore
from services.embedding_model import EmbeddingModel
from config import MAX_DOCS, MAX_CHUNKS_PER_DOC, MAX_CHARS_PER_DOC, RETRIEVAL_TOP_K

logger = logging.getLogger(__name__)

CONTEXT_SEPARATOR = "\n\n---\n\n"


class RetrievalEngine:
    """Index markdown documents and build numbered context blocks for queries."""

    def __init__(
        self,
        vector_store: InMemoryVectorStore,
        embedding_model: EmbeddingModel,
        chunking_engine: ChunkingEngine = None,
        max_docs: int = MAX_DOCS,
        max_chunks_per_doc: int = MAX_CHUNKS_PER_DOC,
        max_chars_per_doc: int = MAX_CHARS_PER_DOC
    ):
        """
        Initialize the retrieval engine.

        Args:
            vector_store: Store the chunks are indexed in and searched from
            embedding_model: EmbeddingModel used for chunks and queries
            chunking_engine: ChunkingEngine splitting documents (default settings if omitted)
            max_docs: Documents considered per ingest call, extras are dropped
            max_chunks_per_doc: Chunks kept per document
            max_chars_per_doc: Characters of content considered per document
        """
        self.vector_store = vector_store
        self.embedding_model = embedding_model
        self.chunking_engine = chunking_engine or ChunkingEngine()
        self.max_docs = max_docs
        self.max_chunks_per_doc = max_chunks_per_doc
        self.max_chars_per_doc = max_chars_per_doc
        logger.info("Initialized RetrievalEngine")

    def ingest(self, documents: Sequence[Document]) -> int:
        """
        Chunk, embed and index documents.

        Hard caps keep a single call bounded: at most max_docs documents, the
        first max_chars_per_doc characters of each and at most
        max_chunks_per_doc chunks per document.

        Args:
            documents: Documents to index

        Returns:
            Number of chunks added to the vector store

        Raises:
            EmbeddingError: If embedding any chunk fails or the vectors do not
                match the dimensionality already indexed (nothing is indexed)
        """
        if not documents:
            return 0

        if len(documents) > self.max_docs:
            logger.warning(
                f"Received {len(documents)} documents, only the first {self.max_docs} are indexed"
            )

        pending: List[IndexedChunk] = []
        for document in documents[:self.max_docs]:
            content = document.content[:self.max_chars_per_doc]
            chunks = self.chunking_engine.split(content)[:self.max_chunks_per_doc]
            logger.debug(f"Chunked {document.name}: {len(chunks)} chunks")

            for chunk in chunks:
                pending.append(IndexedChunk(
                    chunk_id=str(uuid.uuid4()),
                    text=chunk.text,
                    meta=ChunkMeta(
                        doc_id=document.id,
                        filename=document.name,
                        section=chunk.section
                    )
                ))

        if not pending:
            return 0

        vectors = self.embedding_model.embed([chunk.text for chunk in pending])
        try:
            self.vector_store.add_many(pending, vectors)
        except DimensionMismatchError as e:
            logger.error(f"Embedding model returned vectors the index cannot hold: {e}")
            raise EmbeddingError(f"Embedding dimension does not match the index: {e}") from e

        logger.info(f"Indexed {len(pending)} chunks from {min(len(documents), self.max_docs)} documents")
        return len(pending)

    def retrieve(self, query: str, top_k: int = RETRIEVAL_TOP_K) -> RetrievalResult:
        """
        Retrieve the chunks most relevant to the query as a numbered context block.

        A blank query or an empty index returns an empty result without
        calling the embedding backend, so backend failures only surface once
        something is indexed.

        Args:
            query: User message
            top_k: Maximum number of chunks to include

        Returns:
            RetrievalResult, empty if the query is blank or nothing is indexed

        Raises:
            EmbeddingError: If the query cannot be embedded or its dimension
                does not match the index
        """
        if not query or not query.strip():
            logger.warning("Empty query string provided, returning empty context")
            return RetrievalResult()

        if self.vector_store.is_empty():
            logger.info("Vector store is empty, skipping retrieval")
            return RetrievalResult()

        logger.debug(f"Embedding query: {query[:100]}...")
        query_embedding = self.embedding_model.embed([query])[0]

        try:
            hits = self.vector_store.search_with_scores(query_embedding, top_k=top_k)
        except DimensionMismatchError as e:
            logger.error(f"Query embedding does not fit the index: {e}")
            raise EmbeddingError(f"Embedding dimension does not match the index: {e}") from e
        if hits:
            logger.info(f"Retrieved {len(hits)} chunks (top score: {hits[0].relevance_score:.3f})")

        return format_context(hits)


def format_context(hits: Sequence[ScoredChunk]) -> RetrievalResult:
    """Render ranked hits as `### [n] filename > section` blocks with matching sources."""
    blocks = []
    sources = []
    for n, hit in enumerate(hits, start=1):
        meta = hit.chunk.meta
        heading = f"### [{n}] {meta.filename}"
        if meta.section:
            heading += f" > {meta.section}"
        blocks.append(f"{heading}\n{hit.chunk.text}")
        sources.append(Source(n=n, filename=meta.filename, section=meta.section))

    return RetrievalResult(context_block=CONTEXT_SEPARATOR.join(blocks), sources=sources)
