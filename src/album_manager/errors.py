"""Typed failures raised by the album and chat clients."""


class ServiceError(Exception):
    """A failed call to the backend, with an HTTP-like status code.

    ``status`` is the response status for HTTP failures and ``0`` for
    anything that happened before or outside the HTTP layer (connection
    refused, timeouts, undecodable bodies).
    """

    def __init__(self, status: int, message: str):
        self.status = status
        self.message = message
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(status={self.status!r}, message={self.message!r})"


class AlbumServiceError(ServiceError):
    """Raised by album clients."""


class ChatServiceError(ServiceError):
    """Raised by chat assistants."""
