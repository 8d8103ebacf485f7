"""Concrete implementations for album clients."""

import logging
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import requests
from pydantic import ValidationError

from .config import get_settings
from .errors import AlbumServiceError
from .models import Album, AlbumInput

logger = logging.getLogger(__name__)

NO_CACHE_HEADERS = {"Cache-Control": "no-cache", "Pragma": "no-cache"}
JSON_HEADERS = {"Content-Type": "application/json"}


class Albums(ABC):
    """Interface for reading and writing the album catalog."""

    @abstractmethod
    def get_all(self) -> List[Album]:
        """Returns every album, in the order the catalog reports them.

        Raises
        ------
        AlbumServiceError
            If the catalog cannot be read.
        """
        pass

    @abstractmethod
    def get_by_id(self, album_id: int) -> Album:
        """Returns a single album.

        Raises
        ------
        AlbumServiceError
            If the album does not exist (status 404) or cannot be read.
        """
        pass

    @abstractmethod
    def create(self, album: AlbumInput) -> Album:
        """Creates an album and returns it with its server-assigned fields."""
        pass

    @abstractmethod
    def update(self, album_id: int, album: AlbumInput) -> Album:
        """Replaces title, artist and price of an existing album.

        Parameters
        ----------
        album_id : int
            Identifier of the album to replace.
        album : AlbumInput
            The complete new values; all three fields are required.

        Returns
        -------
        Album
            The updated album. Its identifier is unchanged.
        """
        pass

    @abstractmethod
    def delete(self, album_id: int) -> None:
        """Deletes an album. Returns nothing on success."""
        pass


class HTTP(Albums):
    """Talks to the album REST endpoints of the backend."""

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

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def _request(
        self,
        method: str,
        path: str,
        action: str,
        json: Optional[Dict[str, Any]] = None,
    ) -> requests.Response:
        """Sends a request and raises AlbumServiceError on any failure."""
        headers = dict(JSON_HEADERS)
        if method == "GET":
            headers.update(NO_CACHE_HEADERS)

        url = self._url(path)
        logger.debug("%s %s", method, url)
        try:
            response = self.session.request(
                method=method,
                url=url,
                json=json,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.warning("Album request %s %s failed: %s", method, url, e)
            raise AlbumServiceError(0, f"Failed to {action}: {e}") from e

        if not 200 <= response.status_code < 300:
            reason = response.reason or f"HTTP {response.status_code}"
            logger.warning(
                "Album request %s %s returned %s", method, url, response.status_code
            )
            raise AlbumServiceError(response.status_code, f"Failed to {action}: {reason}")
        return response

    @staticmethod
    def _parse_album(data: Any) -> Album:
        try:
            return Album.model_validate(data)
        except ValidationError as e:
            raise AlbumServiceError(0, f"Invalid album in response: {e}") from e

    @staticmethod
    def _json(response: requests.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise AlbumServiceError(0, f"Invalid response body: {e}") from e

    def get_all(self) -> List[Album]:
        data = self._json(self._request("GET", "/albums", "fetch albums"))
        if data is None:
            return []
        if not isinstance(data, list):
            raise AlbumServiceError(0, "Invalid response body: expected a list of albums")
        return [self._parse_album(item) for item in data]

    def get_by_id(self, album_id: int) -> Album:
        response = self._request("GET", f"/albums/{album_id}", "fetch album")
        return self._parse_album(self._json(response))

    def create(self, album: AlbumInput) -> Album:
        response = self._request(
            "POST", "/albums", "create album", json=album.model_dump()
        )
        return self._parse_album(self._json(response))

    def update(self, album_id: int, album: AlbumInput) -> Album:
        response = self._request(
            "PUT", f"/albums/{album_id}", "update album", json=album.model_dump()
        )
        return self._parse_album(self._json(response))

    def delete(self, album_id: int) -> None:
        # The body, if the backend sends one, is not part of the contract.
        self._request("DELETE", f"/albums/{album_id}", "delete album")


class InMemory(Albums):
    """Keeps the catalog in a dictionary, with the backend's semantics.

    Identifiers start at 1, listing is ordered by id and deletion is soft:
    deleted albums keep their record but stop being visible.
    """

    def __init__(self, albums: Optional[List[AlbumInput]] = None):
        self._albums: Dict[int, Album] = {}
        self._next_id = 1
        self._lock = threading.Lock()
        for album in albums or []:
            self.create(album)

    def _visible(self, album_id: int, action: str) -> Album:
        album = self._albums.get(album_id)
        if album is None or album.deleted_at is not None:
            raise AlbumServiceError(404, f"Failed to {action}: Not Found")
        return album

    def get_all(self) -> List[Album]:
        with self._lock:
            return [
                album.model_copy()
                for _, album in sorted(self._albums.items())
                if album.deleted_at is None
            ]

    def get_by_id(self, album_id: int) -> Album:
        with self._lock:
            return self._visible(album_id, "fetch album").model_copy()

    def create(self, album: AlbumInput) -> Album:
        now = datetime.now(timezone.utc)
        with self._lock:
            created = Album(
                id=self._next_id,
                created_at=now,
                updated_at=now,
                **album.model_dump(),
            )
            self._albums[created.id] = created
            self._next_id += 1
            return created.model_copy()

    def update(self, album_id: int, album: AlbumInput) -> Album:
        with self._lock:
            current = self._visible(album_id, "update album")
            updated = current.model_copy(
                update={**album.model_dump(), "updated_at": datetime.now(timezone.utc)}
            )
            self._albums[album_id] = updated
            return updated.model_copy()

    def delete(self, album_id: int) -> None:
        with self._lock:
            current = self._visible(album_id, "delete album")
            self._albums[album_id] = current.model_copy(
                update={"deleted_at": datetime.now(timezone.utc)}
            )
