"""Configuration management for the Markdown RAG chat backend."""
import os
import logging
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Ollama Configuration
OLLAMA_URL = os.getenv("OLLAMA_URL", "http://localhost:11434").rstrip("/")
OLLAMA_MODEL = os.getenv("OLLAMA_MODEL", "gpt-oss:20b")
OLLAMA_EMBED_MODEL = os.getenv("OLLAMA_EMBED_MODEL", "nomic-embed-text")
SYSTEM_PROMPT = os.getenv("SYSTEM_PROMPT", "You are a helpful and caring AI assistant.")
REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT", "120"))

# Server Configuration
PORT = int(os.getenv("PORT", "8000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = os.getenv("LOG_FORMAT", "text")  # "text" or "json"

# CORS Configuration
CORS_ORIGINS = os.getenv(
    "CORS_ORIGINS",
    "http://localhost:3000,http://localhost:3001"
).split(",")

# Optional directory of markdown files indexed at startup
DOCS_DIRECTORY = os.getenv("DOCS_DIRECTORY")

# Chunking Configuration
CHUNK_MAX_LEN = 1200  # characters
CHUNK_OVERLAP = 150  # characters of slack before a forced split

# Ingestion caps
MAX_DOCS = 20
MAX_CHUNKS_PER_DOC = 80
MAX_CHARS_PER_DOC = 200_000

# Retrieval / prompt Configuration
RETRIEVAL_TOP_K = 6
MAX_HISTORY_ENTRIES = 12

# Logging Configuration
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
