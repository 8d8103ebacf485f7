"""
Routing between the application's pages.

The URL pillar parses the browser location into the page to show (and the
album it refers to) and builds the paths the layout links to.
"""

from abc import ABC, abstractmethod
from typing import Optional

from pydantic import BaseModel

LANDING = "landing"
ALBUMS = "albums"
ALBUM_DETAIL = "album_detail"
CHAT = "chat"
NOT_FOUND = "not_found"

PAGES = (LANDING, ALBUMS, ALBUM_DETAIL, CHAT, NOT_FOUND)


class URLParts(BaseModel):
    """What a location points at."""

    page: str
    album_id: Optional[int] = None


class URL(ABC):
    """Interface for mapping locations to pages and back."""

    @abstractmethod
    def parse(self, pathname: Optional[str], search: Optional[str] = None) -> URLParts:
        """Parses a location into URLParts. Never raises."""
        pass

    @abstractmethod
    def build_albums_path(self) -> str:
        pass

    @abstractmethod
    def build_album_path(self, album_id: int) -> str:
        pass

    @abstractmethod
    def build_chat_path(self) -> str:
        pass

    def build_home_path(self) -> str:
        return "/"


class PathBased(URL):
    """Routes on the path: ``/``, ``/albums``, ``/albums/<id>``, ``/chat``.

    An album path whose id is not an integer still routes to the detail
    page, with no album id, so the page can report the album as not found.
    """

    def parse(self, pathname, search=None):
        segments = [s for s in (pathname or "/").strip().split("/") if s]

        if not segments:
            return URLParts(page=LANDING)
        if segments == ["albums"]:
            return URLParts(page=ALBUMS)
        if segments == ["chat"]:
            return URLParts(page=CHAT)
        if len(segments) == 2 and segments[0] == "albums":
            try:
                album_id = int(segments[1])
            except ValueError:
                album_id = None
            return URLParts(page=ALBUM_DETAIL, album_id=album_id)
        return URLParts(page=NOT_FOUND)

    def build_albums_path(self):
        return "/albums"

    def build_album_path(self, album_id):
        return f"/albums/{album_id}"

    def build_chat_path(self):
        return "/chat"
