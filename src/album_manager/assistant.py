"""Concrete implementations for chat assistants."""

import logging
import time
from abc import ABC, abstractmethod
from typing import Iterator, List, Optional

import requests

from .config import get_settings
from .errors import ChatServiceError
from .models import USER_ROLE, ChatMessage, ChatResponse

logger = logging.getLogger(__name__)


class Assistant(ABC):
    """Abstract Base Class for everything that answers chat messages."""

    @abstractmethod
    def send_message(self, messages: List[ChatMessage]) -> ChatResponse:
        """Sends the conversation and returns the assistant's reply.

        Parameters
        ----------
        messages : List[ChatMessage]
            The conversation so far, oldest first. The last entry is the
            message the user just sent.

        Returns
        -------
        ChatResponse
            The reply text, plus any tool metadata the backend attached.

        Raises
        ------
        ChatServiceError
            On any failure, HTTP or otherwise.
        """
        pass

    def stream_message(self, messages: List[ChatMessage]) -> Iterator[str]:
        """Yields the reply text in chunks.

        The default implementation yields the complete reply once. Joining
        every chunk gives the same text as ``send_message``.
        """
        yield self.send_message(messages).message


class HTTP(Assistant):
    """Forwards the conversation to the backend's ``/chat`` endpoint."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        settings = get_settings()
        self.base_url = (base_url or settings.api_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.api_timeout_sec
        self.session = session or requests.Session()

    def send_message(self, messages: List[ChatMessage]) -> ChatResponse:
        url = f"{self.base_url}/chat"
        payload = {"messages": [message.model_dump() for message in messages]}
        logger.debug("POST %s with %d messages", url, len(messages))
        try:
            response = self.session.post(
                url,
                json=payload,
                headers={"Content-Type": "application/json"},
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.warning("Chat request failed: %s", e)
            raise ChatServiceError(0, str(e)) from e

        if not 200 <= response.status_code < 300:
            logger.warning("Chat request returned %s", response.status_code)
            raise ChatServiceError(
                response.status_code,
                self._error_text(response)
                or f"HTTP error! status: {response.status_code}",
            )

        try:
            return ChatResponse.model_validate(response.json())
        except ValueError as e:
            raise ChatServiceError(0, f"Invalid chat response: {e}") from e

    @staticmethod
    def _error_text(response: requests.Response) -> Optional[str]:
        """Returns the ``error`` field of a failed response, if it has one."""
        try:
            body = response.json()
        except ValueError:
            return None
        if isinstance(body, dict) and body.get("error"):
            return str(body["error"])
        return None


class Echo(Assistant):
    """Answers without a backend by echoing the last user message."""

    def __init__(self, delay: float = 0.8):
        self.delay = delay

    @staticmethod
    def _reply(messages: List[ChatMessage]) -> str:
        user_prompt = next(
            (m.content for m in reversed(messages) if m.role == USER_ROLE),
            "No message provided",
        )
        return f"Echo assistant - offline response\n\nYour message:\n\n{user_prompt}"

    def send_message(self, messages: List[ChatMessage]) -> ChatResponse:
        if self.delay:
            time.sleep(self.delay)
        return ChatResponse(message=self._reply(messages))

    def stream_message(self, messages: List[ChatMessage]) -> Iterator[str]:
        words = self._reply(messages).split(" ")
        for i, word in enumerate(words):
            if self.delay:
                time.sleep(self.delay / max(len(words), 1))
            yield word if i == len(words) - 1 else word + " "
