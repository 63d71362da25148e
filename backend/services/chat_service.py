"""Chat pipeline: ingest, retrieve, assemble, generate."""
import logging
from typing import Iterator, Optional, Sequence

from models.conversation import ConversationTurn
from models.document import Document
from models.retrieval import AssembledPrompt
from services.retrieval_engine import RetrievalEngine
from services.prompt_assembler import PromptAssembler
from services.llm_client import LLMClient
from config import RETRIEVAL_TOP_K

logger = logging.getLogger(__name__)


class RagChatService:
    """
    Runs one chat request through the RAG pipeline.

    Each call is sequential: attached documents are indexed first, the
    message is used to retrieve context, the prompt is assembled and the
    generation backend's answer is streamed back fragment by fragment.
    The retrieval engine (and its vector store) is shared by all calls.
    """

    def __init__(
        self,
        retrieval_engine: RetrievalEngine,
        prompt_assembler: PromptAssembler,
        llm_client: LLMClient,
        top_k: int = RETRIEVAL_TOP_K
    ):
        self.retrieval_engine = retrieval_engine
        self.prompt_assembler = prompt_assembler
        self.llm_client = llm_client
        self.top_k = top_k
        logger.info("Initialized RagChatService")

    def ingest(self, documents: Optional[Sequence[Document]]) -> int:
        """Index documents; returns the number of chunks added."""
        if not documents:
            return 0
        return self.retrieval_engine.ingest(documents)

    def prepare(
        self,
        message: str,
        history: Optional[Sequence[ConversationTurn]] = None,
        system_prompt: Optional[str] = None,
        documents: Optional[Sequence[Document]] = None
    ) -> AssembledPrompt:
        """
        Index attached documents, retrieve context and assemble the prompt.

        Raises:
            EmbeddingError: If documents or the message cannot be embedded
        """
        self.ingest(documents)
        retrieval = self.retrieval_engine.retrieve(message, top_k=self.top_k)
        return self.prompt_assembler.assemble(message, history, system_prompt, retrieval)

    def stream_prompt(self, prompt: str) -> Iterator[str]:
        """Stream the generation backend's answer to an assembled prompt."""
        return self.llm_client.generate_stream(prompt)

    def generate(
        self,
        message: str,
        history: Optional[Sequence[ConversationTurn]] = None,
        system_prompt: Optional[str] = None,
        documents: Optional[Sequence[Document]] = None
    ) -> Iterator[str]:
        """
        Lazily produce the answer to a message as text fragments.

        Nothing runs until the first fragment is requested. The iterator is
        single-pass; closing it early releases the generation stream.

        Raises:
            EmbeddingError: If retrieval fails
            GenerationError: If generation fails
        """
        assembled = self.prepare(message, history, system_prompt, documents)
        yield from self.stream_prompt(assembled.prompt)

    def chat(
        self,
        message: str,
        history: Optional[Sequence[ConversationTurn]] = None,
        system_prompt: Optional[str] = None,
        documents: Optional[Sequence[Document]] = None
    ) -> str:
        """Non-streaming variant of generate(): the full answer as one string."""
        return "".join(self.generate(message, history, system_prompt, documents))
