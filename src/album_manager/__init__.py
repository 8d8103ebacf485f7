"""
The main entrypoint for the Album Manager package.

This module contains the AlbumManager class, a Dash application assembled
from injectable pillars: the album client, the chat assistant, the chat
engine, the URL scheme and the layout builder. Each pillar is defined by an
abstract interface in its own module, so any of them can be swapped out.
"""

from typing import Optional

from dash import Dash

from . import albums, assistant, engine, layout, url
from .config import Settings, get_settings
from .editor import AlbumEditor

__all__ = ["AlbumManager"]


class AlbumManager(Dash):
    """
    The album catalog manager: album pages plus a chat assistant.

    The constructor falls back to concrete defaults for every pillar that is
    not given, so ``AlbumManager()`` is a working app pointed at the backend
    configured in the environment.
    """

    def __init__(
        self,
        layout: Optional["layout.Layout"] = None,
        albums: Optional["albums.Albums"] = None,
        assistant: Optional["assistant.Assistant"] = None,
        engine: Optional["engine.Engine"] = None,
        url: Optional["url.URL"] = None,
        settings: Optional[Settings] = None,
        **kwargs,
    ) -> None:
        """
        Initialize the application with configurable pillars.

        Parameters
        ----------
        layout : layout.Layout, optional
            Layout builder for the Dash component tree.
            Defaults to layout.Bootstrap().
        albums : albums.Albums, optional
            Album client. Defaults to albums.HTTP() against ``settings.api_url``.
        assistant : assistant.Assistant, optional
            Chat assistant. Defaults to assistant.HTTP() against the same
            backend.
        engine : engine.Engine, optional
            Chat engine. Defaults to engine.Synchronous(). The engine is bound
            to this app, replacing any app it was bound to before.
        url : url.URL, optional
            URL scheme. Defaults to url.PathBased().
        settings : Settings, optional
            Backend and server settings. Defaults to the environment.
        **kwargs
            Additional arguments passed to the Dash constructor.

        Raises
        ------
        ValueError
            If the default layout cannot provide every required component ID.

        Examples
        --------
        Against a running backend:

        >>> app = AlbumManager()

        Without one:

        >>> app = AlbumManager(
        ...     albums=albums.InMemory(),
        ...     assistant=assistant.Echo(),
        ... )
        """
        albums_module = globals()["albums"]
        assistant_module = globals()["assistant"]
        engine_module = globals()["engine"]
        layout_module = globals()["layout"]
        url_module = globals()["url"]

        settings = settings if settings is not None else get_settings()
        url = url if url is not None else url_module.PathBased()
        layout_builder = layout if layout else layout_module.Bootstrap(url=url)

        if "external_stylesheets" not in kwargs:
            kwargs["external_stylesheets"] = []
        kwargs["external_stylesheets"].extend(
            layout_builder.get_external_stylesheets()
        )

        if "external_scripts" not in kwargs:
            kwargs["external_scripts"] = []
        kwargs["external_scripts"].extend(layout_builder.get_external_scripts())

        kwargs.setdefault("title", "Album Manager")

        super().__init__(**kwargs)

        self.settings = settings
        self.url = url
        self.layout_builder = layout_builder
        self.albums = (
            albums
            if albums is not None
            else albums_module.HTTP(
                base_url=settings.api_url, timeout=settings.api_timeout_sec
            )
        )
        self.assistant = (
            assistant
            if assistant is not None
            else assistant_module.HTTP(
                base_url=settings.api_url, timeout=settings.api_timeout_sec
            )
        )
        self.editor = AlbumEditor(self.albums)
        self.engine = engine if engine is not None else engine_module.Synchronous()
        self.engine.app = self

        self.layout = self.layout_builder.build_layout()
        self._register_callbacks()

    def _register_callbacks(self) -> None:
        """Registers all the callbacks that orchestrate the pillars."""
        from .callbacks import register_callbacks

        register_callbacks(self)
