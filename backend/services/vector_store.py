"""In-memory vector store with brute-force cosine similarity search."""
import logging
import threading
from dataclasses import replace
from typing import List, Optional, Sequence

import numpy as np

from models.chunk import IndexedChunk, ScoredChunk
from services.errors import DimensionMismatchError

logger = logging.getLogger(__name__)

EPSILON = 1e-12


class InMemoryVectorStore:
    """
    Store chunk embeddings in process memory and rank them by cosine similarity.

    Every search scans all stored vectors, so this is only suited to the small
    corpora bounded by the ingestion caps. There is no eviction: the store
    grows for the lifetime of the instance.

    A single lock guards the stored items. It is held for the duration of an
    append or a scan only, so callers may share one instance across threads.
    """

    def __init__(self):
        """Initialize an empty vector store."""
        self._lock = threading.Lock()
        self._items: List[IndexedChunk] = []
        self._vectors: List[np.ndarray] = []
        self._norms: List[float] = []
        self.dim: Optional[int] = None

    def add_many(self, chunks: Sequence[IndexedChunk], vectors: Sequence[Sequence[float]]) -> None:
        """
        Add chunks with their embeddings to the store.

        Chunks and vectors are paired positionally. The dimensionality of the
        store is fixed by the first vector ever added.

        Args:
            chunks: Chunks to store (their own vector field is ignored)
            vectors: One embedding per chunk

        Raises:
            ValueError: If the counts differ
            DimensionMismatchError: If a vector does not match the store's
                dimensionality
        """
        if len(chunks) != len(vectors):
            raise ValueError(
                f"Got {len(chunks)} chunks but {len(vectors)} vectors"
            )

        arrays = [np.asarray(vector, dtype=np.float64) for vector in vectors]

        with self._lock:
            expected_dim = self.dim
            if expected_dim is None and arrays and arrays[0].ndim == 1:
                expected_dim = arrays[0].shape[0]
            for array in arrays:
                if array.ndim != 1 or array.shape[0] != expected_dim:
                    raise DimensionMismatchError(
                        f"Vector dimension mismatch: expected {expected_dim}, got {array.shape}"
                    )

            if self.dim is None and arrays:
                self.dim = expected_dim

            for chunk, vector, array in zip(chunks, vectors, arrays):
                self._items.append(replace(chunk, vector=list(vector)))
                self._vectors.append(array)
                self._norms.append(float(np.linalg.norm(array)))

            total = len(self._items)

        logger.debug(f"Added {len(chunks)} chunks to vector store ({total} total)")

    def search(self, query_vector: Sequence[float], top_k: int = 6) -> List[IndexedChunk]:
        """
        Find the chunks most similar to the query vector.

        Args:
            query_vector: Embedding of the query
            top_k: Number of chunks to return

        Returns:
            Up to top_k chunks in descending similarity order
        """
        return [scored.chunk for scored in self.search_with_scores(query_vector, top_k)]

    def search_with_scores(self, query_vector: Sequence[float], top_k: int = 6) -> List[ScoredChunk]:
        """
        Rank stored chunks by cosine similarity to the query vector.

        Ties keep insertion order.

        Args:
            query_vector: Embedding of the query
            top_k: Number of chunks to return

        Returns:
            List of ScoredChunk, length min(top_k, count()), best first

        Raises:
            ValueError: If top_k is not positive
            DimensionMismatchError: If the query vector does not match the
                store's dimensionality
        """
        if top_k <= 0:
            raise ValueError("top_k must be positive")

        query = np.asarray(query_vector, dtype=np.float64)

        with self._lock:
            if not self._items:
                return []

            if query.ndim != 1 or query.shape[0] != self.dim:
                raise DimensionMismatchError(
                    f"Query dimension mismatch: expected {self.dim}, got {query.shape}"
                )

            matrix = np.vstack(self._vectors)
            norms = np.asarray(self._norms)
            scores = (matrix @ query) / (norms * np.linalg.norm(query) + EPSILON)

            order = np.argsort(-scores, kind="stable")[:top_k]
            results = [
                ScoredChunk(chunk=self._items[i], relevance_score=float(scores[i]))
                for i in order
            ]

        logger.debug(f"Found {len(results)} chunks for query")
        return results

    def count(self) -> int:
        """Get the number of chunks in the store."""
        with self._lock:
            return len(self._items)

    def is_empty(self) -> bool:
        """Whether the store holds no chunks."""
        return self.count() == 0
