"""Request payload models for the chat API."""
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class HistoryEntry(BaseModel):
    """One previous turn sent by the client."""
    role: Literal["user", "assistant"]
    content: str


class DocumentPayload(BaseModel):
    """A markdown document attached to a chat request."""
    id: str
    name: str
    size: int
    content: str


class ChatRequest(BaseModel):
    """Body of POST /ollama/chat."""
    model_config = ConfigDict(populate_by_name=True)

    message: str
    history: List[HistoryEntry] = Field(default_factory=list)
    system_prompt: Optional[str] = Field(default=None, alias="systemPrompt")
    documents: Optional[List[DocumentPayload]] = None
