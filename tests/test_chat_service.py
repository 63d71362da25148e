"""Unit tests for RagChatService."""
import sys
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

import re
import pytest
from unittest.mock import Mock, call
from models.conversation import ConversationTurn
from models.document import Document
from models.retrieval import AssembledPrompt, RetrievalResult, Source
from services.chat_service import RagChatService
from services.errors import EmbeddingError, GenerationError, LLMError
from services.prompt_assembler import PromptAssembler
from services.retrieval_engine import RetrievalEngine
from services.vector_store import InMemoryVectorStore


class TestRagChatService:
    """Test suite for RagChatService."""

    @pytest.fixture
    def retrieval_engine(self):
        engine = Mock()
        engine.retrieve.return_value = RetrievalResult(
            context_block="### [1] a.md\ntext",
            sources=[Source(n=1, filename="a.md")]
        )
        return engine

    @pytest.fixture
    def prompt_assembler(self):
        assembler = Mock()
        assembler.assemble.return_value = AssembledPrompt(
            prompt="assembled prompt",
            sources=[Source(n=1, filename="a.md")]
        )
        return assembler

    @pytest.fixture
    def llm_client(self):
        client = Mock()
        client.generate_stream.return_value = iter(["He", "llo"])
        return client

    @pytest.fixture
    def service(self, retrieval_engine, prompt_assembler, llm_client):
        return RagChatService(retrieval_engine, prompt_assembler, llm_client, top_k=4)

    def test_generate_runs_pipeline_in_order(self, service, retrieval_engine, prompt_assembler, llm_client):
        """Documents are indexed, context retrieved, prompt assembled and streamed."""
        manager = Mock()
        manager.attach_mock(retrieval_engine, "retrieval_engine")
        manager.attach_mock(prompt_assembler, "prompt_assembler")
        manager.attach_mock(llm_client, "llm_client")

        docs = [Document(id="d1", name="a.md", size=4, content="text")]
        history = [ConversationTurn(role="user", content="earlier")]

        fragments = list(service.generate("question", history, "system", docs))

        assert fragments == ["He", "llo"]
        assert manager.mock_calls == [
            call.retrieval_engine.ingest(docs),
            call.retrieval_engine.retrieve("question", top_k=4),
            call.prompt_assembler.assemble(
                "question", history, "system", retrieval_engine.retrieve.return_value
            ),
            call.llm_client.generate_stream("assembled prompt"),
        ]

    def test_generate_is_lazy(self, service, retrieval_engine, llm_client):
        """Nothing runs before the first fragment is requested."""
        fragments = service.generate("question")

        retrieval_engine.retrieve.assert_not_called()
        llm_client.generate_stream.assert_not_called()

        assert next(fragments) == "He"
        retrieval_engine.retrieve.assert_called_once()

    def test_no_documents_skips_ingest(self, service, retrieval_engine):
        """Without documents nothing is indexed."""
        list(service.generate("question"))
        list(service.generate("question", documents=[]))

        retrieval_engine.ingest.assert_not_called()

    def test_prepare_returns_assembled_prompt(self, service, prompt_assembler):
        """prepare() exposes the prompt and its sources."""
        assembled = service.prepare("question")

        assert assembled is prompt_assembler.assemble.return_value
        assert assembled.sources == [Source(n=1, filename="a.md")]

    def test_chat_concatenates(self, service):
        """chat() returns the full answer."""
        assert service.chat("question") == "Hello"

    def test_embedding_error_propagates(self, service, retrieval_engine, llm_client):
        """Retrieval failures end the fragment sequence before generation starts."""
        retrieval_engine.retrieve.side_effect = EmbeddingError("Invalid embedding")

        with pytest.raises(EmbeddingError):
            list(service.generate("question"))

        llm_client.generate_stream.assert_not_called()

    def test_generation_error_propagates(self, service, llm_client):
        """Generation failures surface through the fragment sequence."""
        def failing_stream(prompt):
            yield "partial"
            raise GenerationError(LLMError(code="BACKEND_ERROR", message="boom"))

        llm_client.generate_stream.side_effect = failing_stream
        received = []

        with pytest.raises(GenerationError, match="boom"):
            for fragment in service.generate("question"):
                received.append(fragment)

        assert received == ["partial"]


class TestRagChatServiceEndToEnd:
    """Pipeline wired with the real retrieval and prompt components."""

    VOCABULARY = ["widget", "assemble", "screws", "warranty", "refund", "shipping"]

    def embed(self, texts):
        vectors = []
        for text in texts:
            words = re.findall(r"[a-z]+", text.lower())
            vectors.append([float(words.count(term)) + 0.01 for term in self.VOCABULARY])
        return vectors

    def test_answer_streams_with_cited_context(self):
        """Documents sent with a message are retrieved into the prompt."""
        embedding_model = Mock()
        embedding_model.embed.side_effect = self.embed
        llm_client = Mock()
        llm_client.generate_stream.return_value = iter(["Use ", "four screws [1]."])

        service = RagChatService(
            RetrievalEngine(InMemoryVectorStore(), embedding_model),
            PromptAssembler(default_system_prompt="You help with widgets."),
            llm_client
        )
        manual = (
            "## Intro\n"
            "To assemble the widget, fasten the four screws.\n"
            "## Returns\n"
            "Refund and warranty claims need the shipping receipt."
        )
        docs = [Document(id="m1", name="manual.md", size=len(manual), content=manual)]

        assembled = service.prepare("How do I assemble the widget with screws?", documents=docs)
        answer = "".join(service.stream_prompt(assembled.prompt))

        assert answer == "Use four screws [1]."
        assert assembled.sources[0] == Source(n=1, filename="manual.md", section="Intro")
        assert "### [1] manual.md > Intro\n## Intro\nTo assemble the widget" in assembled.prompt
        assert assembled.prompt.startswith("You help with widgets.\nCite your sources as [n]")
        llm_client.generate_stream.assert_called_once_with(assembled.prompt)
