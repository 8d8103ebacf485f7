"""
Chat engines: the send-message protocol behind the chat page.

A send happens in two steps so the page can show the user's message before
the assistant answers. ``append_user_message`` returns the transcript with
the new user entry; ``complete`` is then given that *updated* transcript,
builds the outgoing request from it and appends the assistant's reply. The
request therefore always ends with the message just sent, no matter how the
page schedules its state updates.
"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional

from .errors import ServiceError
from .models import ASSISTANT_ROLE, SYSTEM_ROLE, USER_ROLE, ChatMessage, Message

logger = logging.getLogger(__name__)

GREETING = (
    "Hello! I'm your album management assistant. I can help you view, create, "
    "update, and delete albums. What would you like to do?"
)
ERROR_REPLY = (
    "Sorry, I encountered an error processing your request. Please try again."
)
QUICK_ACTIONS = [
    "Show me all albums",
    "Create a new album",
    "What albums do you have?",
    "Delete an album",
]


def initial_transcript() -> List[Message]:
    """A fresh transcript: the assistant's greeting and nothing else."""
    return [Message(role=ASSISTANT_ROLE, content=GREETING)]


def dump_transcript(transcript: Iterable[Message]) -> List[Dict[str, Any]]:
    """Serializes a transcript for a ``dcc.Store``."""
    return [message.model_dump(mode="json") for message in transcript]


def load_transcript(data: Optional[List[Dict[str, Any]]]) -> List[Message]:
    """Inverse of ``dump_transcript``; an empty store gives a fresh transcript."""
    if not data:
        return initial_transcript()
    return [Message.model_validate(item) for item in data]


class StreamBuffer:
    """Accumulates a reply while it streams in."""

    def __init__(self):
        self._chunks: List[str] = []
        self._lock = threading.Lock()
        self.finished = False

    def feed(self, chunk: str) -> None:
        if self.finished:
            raise RuntimeError("Cannot feed a finished stream buffer")
        with self._lock:
            self._chunks.append(chunk)

    @property
    def content(self) -> str:
        with self._lock:
            return "".join(self._chunks)

    def finalize(self) -> str:
        self.finished = True
        return self.content


class Engine(ABC):
    """Abstract base for chat engines.

    Engines may be created without an app and bound later; the app sets
    ``engine.app`` to itself on construction.
    """

    streams = False

    def __init__(self, app=None):
        self.app = app

    def append_user_message(
        self, transcript: List[Message], content: str
    ) -> List[Message]:
        """Returns a new transcript ending with a user entry for ``content``."""
        return [*transcript, Message(role=USER_ROLE, content=content)]

    def build_request(self, transcript: List[Message]) -> List[ChatMessage]:
        """The outgoing payload: the transcript without system entries."""
        return [
            message.to_chat_message()
            for message in transcript
            if message.role != SYSTEM_ROLE
        ]

    @abstractmethod
    def generate_reply(
        self, request: List[ChatMessage], request_id: Optional[str] = None
    ) -> str:
        """Asks the assistant for a reply to ``request``.

        Raises
        ------
        ServiceError
            When the assistant fails. ``complete`` turns it into the apology
            reply.
        """
        pass

    def complete(
        self, transcript: List[Message], request_id: Optional[str] = None
    ) -> List[Message]:
        """Returns ``transcript`` plus exactly one assistant entry.

        The entry holds the assistant's reply, or ``ERROR_REPLY`` if the
        assistant failed. Existing entries are never removed.
        """
        request = self.build_request(transcript)
        try:
            content = self.generate_reply(request, request_id)
        except ServiceError as e:
            logger.warning(
                "Assistant failed with status %s: %s", e.status, e.message
            )
            content = ERROR_REPLY
        return [*transcript, Message(role=ASSISTANT_ROLE, content=content)]

    def partial(self, request_id: Optional[str]) -> Optional[str]:
        """Text received so far for an in-flight request, if the engine streams."""
        return None


class Synchronous(Engine):
    """Waits for the complete reply in a single call."""

    def generate_reply(self, request, request_id=None):
        return self.app.assistant.send_message(request).message


class Streaming(Engine):
    """Collects the reply chunk by chunk so the page can render it early.

    Buffers are keyed by request id and live only while their request is in
    flight; ``partial`` is safe to call from other threads.
    """

    streams = True

    def __init__(self, app=None):
        super().__init__(app)
        self._buffers: Dict[str, StreamBuffer] = {}
        self._lock = threading.Lock()

    def generate_reply(self, request, request_id=None):
        buffer = StreamBuffer()
        if request_id is not None:
            with self._lock:
                self._buffers[request_id] = buffer
        try:
            for chunk in self.app.assistant.stream_message(request):
                buffer.feed(chunk)
            return buffer.finalize()
        finally:
            if request_id is not None:
                with self._lock:
                    self._buffers.pop(request_id, None)

    def partial(self, request_id):
        if request_id is None:
            return None
        with self._lock:
            buffer = self._buffers.get(request_id)
        return buffer.content if buffer is not None else None
