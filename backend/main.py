"""Main entry point for the Markdown RAG chat API."""
import json
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from dataclasses import asdict

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse

from config import PORT, LOG_LEVEL, LOG_FORMAT, CORS_ORIGINS, DOCS_DIRECTORY
from logger import setup_logging
from models.api import ChatRequest
from models.conversation import ConversationTurn
from models.document import Document
from services.chat_service import RagChatService
from services.chunking_engine import ChunkingEngine
from services.document_loader import DocumentLoader
from services.embedding_model import EmbeddingModel
from services.errors import EmbeddingError, GenerationError
from services.llm_client import LLMClient
from services.prompt_assembler import PromptAssembler
from services.retrieval_engine import RetrievalEngine
from services.vector_store import InMemoryVectorStore

if LOG_FORMAT == "json":
    setup_logging(LOG_LEVEL)

logger = logging.getLogger(__name__)

# Initialized in lifespan
chat_service: RagChatService = None


def build_chat_service() -> RagChatService:
    """Wire the pipeline with settings from config."""
    embedding_model = EmbeddingModel()
    retrieval_engine = RetrievalEngine(
        vector_store=InMemoryVectorStore(),
        embedding_model=embedding_model,
        chunking_engine=ChunkingEngine()
    )
    return RagChatService(
        retrieval_engine=retrieval_engine,
        prompt_assembler=PromptAssembler(),
        llm_client=LLMClient()
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize services on startup."""
    global chat_service

    logger.info("Initializing chat services...")
    try:
        chat_service = build_chat_service()

        if DOCS_DIRECTORY:
            documents = DocumentLoader(DOCS_DIRECTORY).load_documents()
            indexed = chat_service.ingest(documents)
            logger.info(f"Preloaded {indexed} chunks from {DOCS_DIRECTORY}")

        logger.info("All services initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize services: {e}", exc_info=True)
        raise
    yield


app = FastAPI(
    title="Markdown RAG Chat",
    description="Streaming chat over user-supplied markdown documents, backed by Ollama",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def _ndjson(payload: dict) -> bytes:
    return (json.dumps(payload) + "\n").encode("utf-8")


@app.get("/ollama")
async def health():
    """Health check endpoint."""
    return {
        "status": "ok",
        "service": "markdown-rag-chat",
        "message": "Local generation API is up",
        "timestamp": _timestamp()
    }


@app.post("/ollama/chat")
async def chat_endpoint(request: ChatRequest):
    """
    Stream an answer to a chat message as newline-delimited JSON.

    Attached documents are indexed before retrieval. The stream carries one
    `sources` record, then a `chunk` record per generated fragment and a
    final `done` record; a failure ends the stream with an `error` record.

    Raises:
        HTTPException: 400 if the message is empty
    """
    message = request.message.strip()
    if not message:
        raise HTTPException(status_code=400, detail="Message cannot be empty")

    # PromptAssembler caps and trims the history
    history = [ConversationTurn(role=entry.role, content=entry.content) for entry in request.history]

    documents = [
        Document(id=doc.id, name=doc.name, size=doc.size, content=doc.content.strip())
        for doc in (request.documents or [])
        if doc.content.strip()
    ]

    logger.info(
        f"Processing chat message ({len(history)} history turns, {len(documents)} documents)"
    )

    def generate_stream():
        """Generator function for streaming response."""
        try:
            assembled = chat_service.prepare(
                message,
                history=history,
                system_prompt=request.system_prompt,
                documents=documents or None
            )
            yield _ndjson({
                "type": "sources",
                "data": [asdict(source) for source in assembled.sources],
                "timestamp": _timestamp()
            })

            for fragment in chat_service.stream_prompt(assembled.prompt):
                yield _ndjson({"type": "chunk", "data": fragment, "timestamp": _timestamp()})

            yield _ndjson({"type": "done", "timestamp": _timestamp()})

        except GenerationError as e:
            logger.error(f"Generation error during streaming: {e.error.message}")
            yield _ndjson({
                "type": "error",
                "error": e.error.message,
                "code": e.error.code,
                "timestamp": _timestamp()
            })
        except EmbeddingError as e:
            logger.error(f"Embedding error during streaming: {e}")
            yield _ndjson({
                "type": "error",
                "error": str(e),
                "code": "EMBEDDING_ERROR",
                "timestamp": _timestamp()
            })
        except Exception as e:
            logger.error(f"Unexpected error during streaming: {e}", exc_info=True)
            yield _ndjson({
                "type": "error",
                "error": f"Internal server error: {str(e)}",
                "code": "UNKNOWN_ERROR",
                "timestamp": _timestamp()
            })

    return StreamingResponse(
        generate_stream(),
        media_type="application/x-ndjson; charset=utf-8",
        headers={
            "Cache-Control": "no-cache, no-transform",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no"  # Disable buffering in nginx
        }
    )


if __name__ == "__main__":
    import uvicorn
    logger.info(f"Starting Markdown RAG Chat API on port {PORT}")
    uvicorn.run(app, host="0.0.0.0", port=PORT)
