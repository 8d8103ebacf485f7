"""
Defines the core Pydantic data models for the application.

These models are the contract between the HTTP clients, the chat engine and
the layout: albums as the backend returns them, the request bodies sent to
it, and the chat messages exchanged with the assistant endpoint.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

# --- Constants ---
USER_ROLE = "user"
ASSISTANT_ROLE = "assistant"
SYSTEM_ROLE = "system"
Role = Literal[USER_ROLE, ASSISTANT_ROLE, SYSTEM_ROLE]


# --- Albums ---
class AlbumInput(BaseModel):
    """Request body for creating or replacing an album."""

    title: str = Field(min_length=1)
    artist: str = Field(min_length=1)
    price: float = Field(ge=0)

    @field_validator("title", "artist", mode="before")
    @classmethod
    def _strip(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip()
        return value


CreateAlbumInput = AlbumInput
UpdateAlbumInput = AlbumInput


class Album(BaseModel):
    """A catalog record as returned by the backend."""

    id: int
    title: str
    artist: str
    price: float
    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime] = None

    @property
    def display_price(self) -> str:
        return f"${self.price:.2f}"

    def to_input(self) -> AlbumInput:
        return AlbumInput(title=self.title, artist=self.artist, price=self.price)


# --- Chat ---
class ChatMessage(BaseModel):
    """A single entry of the payload sent to the chat endpoint."""

    role: Role
    content: str


class ChatResponse(BaseModel):
    """Reply from the chat endpoint.

    ``tool_calls`` and ``tool_results`` describe work the backend did on the
    album store; they are kept as-is and never interpreted here.
    """

    message: str
    tool_calls: Optional[List[Any]] = None
    tool_results: Optional[List[Any]] = None


class Message(BaseModel):
    """Represents a single entry of the on-page chat transcript."""

    role: Role
    content: str
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def to_chat_message(self) -> ChatMessage:
        return ChatMessage(role=self.role, content=self.content)
