"""
State transitions for the album pages.

The album list/editor page and the detail page keep no state of their own
between requests: every transition takes the current state, talks to the
album client and returns the next state. The callbacks only move these
states in and out of Dash components.
"""

import logging
from typing import List, Optional

from pydantic import BaseModel, Field, ValidationError

from .albums import Albums
from .errors import ServiceError
from .models import Album, AlbumInput

logger = logging.getLogger(__name__)

LOAD_ERROR = "Failed to load albums"
SAVE_ERROR = "Failed to save album"
DELETE_ERROR = "Failed to delete album"
DELETE_PROMPT = "Are you sure you want to delete this album?"


class ListState(BaseModel):
    """The album list: either ready with albums, or failed with a message."""

    albums: List[Album] = Field(default_factory=list)
    error: Optional[str] = None

    @property
    def status(self) -> str:
        return "error" if self.error else "ready"


class FormState(BaseModel):
    """Values of the album form and the album being edited, if any."""

    title: str = ""
    artist: str = ""
    price: Optional[float] = 0
    editing_id: Optional[int] = None

    @property
    def mode(self) -> str:
        return "create" if self.editing_id is None else "edit"

    def to_input(self) -> AlbumInput:
        return AlbumInput(title=self.title, artist=self.artist, price=self.price)


class SubmitResult(BaseModel):
    form: FormState
    saved: Optional[Album] = None
    error: Optional[str] = None

    @property
    def reload(self) -> bool:
        return self.saved is not None


class DeleteResult(BaseModel):
    deleted: bool = False
    error: Optional[str] = None

    @property
    def reload(self) -> bool:
        return self.deleted


class DetailState(BaseModel):
    album: Optional[Album] = None
    error: Optional[str] = None

    @property
    def found(self) -> bool:
        return self.album is not None


def _describe(error: ValidationError) -> str:
    first = error.errors()[0]
    field = ".".join(str(part) for part in first["loc"])
    return f"{field}: {first['msg']}"


class AlbumEditor:
    """Drives the album pages against an album client."""

    def __init__(self, albums: Albums):
        self.albums = albums

    def load(self) -> ListState:
        try:
            return ListState(albums=self.albums.get_all())
        except ServiceError as e:
            logger.warning("Loading albums failed: %s", e.message)
            return ListState(error=f"{LOAD_ERROR}: {e.message}")

    def submit(self, form: FormState) -> SubmitResult:
        """Creates or updates, depending on the form's mode.

        On success the form goes back to an empty create form and the caller
        is expected to reload the list. On failure the form is returned
        untouched together with the error.
        """
        try:
            payload = form.to_input()
        except ValidationError as e:
            return SubmitResult(form=form, error=f"{SAVE_ERROR}: {_describe(e)}")

        try:
            if form.editing_id is not None:
                saved = self.albums.update(form.editing_id, payload)
            else:
                saved = self.albums.create(payload)
        except ServiceError as e:
            logger.warning("Saving album failed: %s", e.message)
            return SubmitResult(form=form, error=f"{SAVE_ERROR}: {e.message}")

        logger.info("Saved album %s", saved.id)
        return SubmitResult(form=FormState(), saved=saved)

    def start_edit(self, album: Album) -> FormState:
        return FormState(
            title=album.title,
            artist=album.artist,
            price=album.price,
            editing_id=album.id,
        )

    def cancel(self) -> FormState:
        return FormState()

    def delete(self, album_id: int, confirmed: bool) -> DeleteResult:
        """Deletes ``album_id`` if the user confirmed; otherwise does nothing."""
        if not confirmed:
            return DeleteResult()
        try:
            self.albums.delete(album_id)
        except ServiceError as e:
            logger.warning("Deleting album %s failed: %s", album_id, e.message)
            return DeleteResult(error=f"{DELETE_ERROR}: {e.message}")
        logger.info("Deleted album %s", album_id)
        return DeleteResult(deleted=True)

    def load_detail(self, album_id: Optional[int]) -> DetailState:
        if album_id is None:
            return DetailState(error="Album not found")
        try:
            return DetailState(album=self.albums.get_by_id(album_id))
        except ServiceError as e:
            logger.warning("Loading album %s failed: %s", album_id, e.message)
            return DetailState(error=e.message)
