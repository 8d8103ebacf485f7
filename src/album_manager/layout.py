"""
Layout builders: the Dash component tree and the renderers that fill it.

Every page lives in one static tree and is shown or hidden by the routing
callback, so the callbacks can rely on a fixed set of component IDs. A
layout is checked for those IDs when it is created.
"""

from abc import ABC, abstractmethod
from datetime import datetime, tzinfo
from typing import Any, Dict, List, Optional, Set

import dash_bootstrap_components as dbc
from dash import dcc, html
from dash.development.base_component import Component as DashComponent

from .editor import DELETE_PROMPT, DetailState
from .engine import QUICK_ACTIONS, dump_transcript, initial_transcript
from .models import USER_ROLE, Album, Message
from .url import URL, PathBased

REQUIRED_COMPONENT_IDS = {
    # routing
    "url_location",
    "landing_page",
    "albums_page",
    "album_detail_page",
    "chat_page",
    "not_found_page",
    # album list/editor
    "album_count",
    "albums_error",
    "album_form_title",
    "album_title_input",
    "album_artist_input",
    "album_price_input",
    "album_submit_button",
    "album_cancel_button",
    "album_list",
    "albums_store",
    "albums_refresh",
    "editing_album_id",
    "pending_delete_id",
    "delete_confirm",
    # album detail
    "album_detail",
    # chat
    "chat_scroll",
    "messages_container",
    "stream_preview",
    "quick_actions",
    "input_textarea",
    "submit_button",
    "chat_transcript",
    "chat_loading",
    "chat_pending",
    "stream_interval",
}

_RTL_RANGES = (
    (0x0590, 0x05FF),  # Hebrew
    (0x0600, 0x06FF),  # Arabic
    (0x0750, 0x077F),
    (0x08A0, 0x08FF),
    (0xFB1D, 0xFB4F),
    (0xFB50, 0xFDFF),
    (0xFE70, 0xFEFF),
)

GRADIENT = "linear-gradient(135deg, #667eea 0%, #764ba2 100%)"


def format_time(timestamp: datetime, tz: Optional[tzinfo] = None) -> str:
    """Formats a timestamp as wall-clock time, e.g. ``3:04 PM``.

    Rendering happens on the server, so without ``tz`` the time is shown in
    the server's local timezone, which may differ from the viewer's.
    """
    return timestamp.astimezone(tz).strftime("%I:%M %p").lstrip("0")


class Layout(ABC):
    """Interface for building the Dash component layout."""

    def __init__(self, url: Optional[URL] = None):
        self.url = url if url is not None else PathBased()
        self._layout = self.build_layout()
        self._validate_layout()

    @abstractmethod
    def build_layout(self) -> DashComponent:
        """Constructs and returns the entire Dash component tree for the UI."""
        pass

    @abstractmethod
    def build_messages(
        self,
        messages: List[Message],
        partial: Optional[str] = None,
        loading: bool = False,
    ) -> List[DashComponent]:
        """Renders the chat transcript.

        Parameters
        ----------
        messages : List[Message]
            The transcript, oldest first.
        partial : str, optional
            Text of a reply that is still streaming in. Rendered after the
            transcript with an in-progress marker.
        loading : bool
            Whether a reply is pending. Ignored when ``partial`` is given.
        """
        pass

    @abstractmethod
    def build_album_cards(self, albums: List[Album]) -> List[DashComponent]:
        """Renders the album list, including its empty state."""
        pass

    @abstractmethod
    def build_album_detail(self, state: DetailState) -> DashComponent:
        """Renders the detail page body for a loaded (or missing) album."""
        pass

    @abstractmethod
    def get_external_stylesheets(self) -> List[Any]:
        pass

    def get_external_scripts(self) -> List[Any]:
        return []

    # --- Utilities ---

    def _walk(self, component: Any):
        if isinstance(component, (list, tuple)):
            for child in component:
                yield from self._walk(child)
            return
        if not isinstance(component, DashComponent):
            return
        yield component
        yield from self._walk(getattr(component, "children", None))

    def get_component_keys(self) -> Set[str]:
        """String IDs of every component in the layout."""
        return {
            component.id
            for component in self._walk(self._layout)
            if isinstance(getattr(component, "id", None), str)
        }

    def _find(self, component_id: str) -> Optional[DashComponent]:
        for component in self._walk(self._layout):
            if getattr(component, "id", None) == component_id:
                return component
        return None

    def get_class_name(self, component_id: str) -> Optional[str]:
        component = self._find(component_id)
        return getattr(component, "className", None) if component else None

    def get_style(self, component_id: str) -> Optional[Dict[str, Any]]:
        component = self._find(component_id)
        return getattr(component, "style", None) if component else None

    def _validate_layout(self) -> None:
        missing = sorted(REQUIRED_COMPONENT_IDS - self.get_component_keys())
        if missing:
            raise ValueError(
                f"Layout is missing required component IDs: {', '.join(missing)}"
            )

    @staticmethod
    def _is_rtl(text: str) -> bool:
        """True when the first strongly directional character is right-to-left."""
        for char in text or "":
            if any(start <= ord(char) <= end for start, end in _RTL_RANGES):
                return True
            if char.isalpha():
                return False
        return False


class Bootstrap(Layout):
    """Builds the default layout with dash-bootstrap-components."""

    def get_external_stylesheets(self):
        return [dbc.themes.BOOTSTRAP, dbc.icons.BOOTSTRAP]

    def build_layout(self) -> DashComponent:
        return html.Div(
            style={"background": GRADIENT, "minHeight": "100vh"},
            children=[
                dcc.Location(id="url_location", refresh=False),
                *self.build_stores(),
                self.build_landing_page(),
                self.build_albums_page(),
                self.build_album_detail_page(),
                self.build_chat_page(),
                self.build_not_found_page(),
            ],
        )

    def build_stores(self) -> List[DashComponent]:
        return [
            dcc.Store(id="albums_store", data=[]),
            dcc.Store(id="albums_refresh", data=0),
            dcc.Store(id="editing_album_id", data=None),
            dcc.Store(id="pending_delete_id", data=None),
            dcc.Store(
                id="chat_transcript",
                storage_type="memory",
                data=dump_transcript(initial_transcript()),
            ),
            dcc.Store(id="chat_loading", data=False),
            dcc.Store(id="chat_pending", data=None),
            dcc.Interval(id="stream_interval", interval=250, disabled=True),
        ]

    # --- Pages ---

    def build_landing_page(self) -> DashComponent:
        return html.Div(
            id="landing_page",
            hidden=True,
            className="container py-5",
            children=[
                html.Div(
                    className="text-center mb-5",
                    children=[
                        html.H1("Album Manager", className="display-3 fw-bold text-white"),
                        html.P(
                            "Manage your music collection with AI assistance",
                            className="lead text-white-50",
                        ),
                    ],
                ),
                dbc.Row(
                    className="g-4",
                    children=[
                        dbc.Col(
                            self._landing_card(
                                "bi bi-music-note-beamed",
                                "Album Interface",
                                "Browse, create, edit, and delete albums with a traditional interface",
                                "Go to Albums →",
                                self.url.build_albums_path(),
                            ),
                            md=6,
                        ),
                        dbc.Col(
                            self._landing_card(
                                "bi bi-chat-dots",
                                "Chat Assistant",
                                "Manage albums using natural language with AI-powered chat",
                                "Go to Chat →",
                                self.url.build_chat_path(),
                            ),
                            md=6,
                        ),
                    ],
                ),
                html.P(
                    "Choose your preferred way to manage your music collection",
                    className="text-center text-white-50 small mt-5",
                ),
            ],
        )

    def _landing_card(self, icon, title, description, cta, href) -> DashComponent:
        return dcc.Link(
            href=href,
            className="text-decoration-none",
            children=dbc.Card(
                className="h-100 shadow-lg text-center p-4",
                children=[
                    html.I(className=f"{icon} display-4 text-primary mb-3"),
                    html.H2(title, className="h3 fw-bold text-dark"),
                    html.P(description, className="text-muted"),
                    html.Div(cta, className="fw-semibold text-primary"),
                ],
            ),
        )

    def build_albums_page(self) -> DashComponent:
        return html.Div(
            id="albums_page",
            hidden=True,
            className="container py-5",
            children=[
                html.H1("Album Manager", className="display-4 fw-bold text-white text-center"),
                html.P("Albums (0)", id="album_count", className="text-white-50 text-center mb-5"),
                dbc.Alert(
                    id="albums_error",
                    color="danger",
                    dismissable=True,
                    is_open=False,
                    className="mx-auto",
                    style={"maxWidth": "42rem"},
                ),
                self.build_album_form(),
                dcc.Loading(
                    html.Div(id="album_list", className="row g-4"),
                    type="circle",
                    color="#ffffff",
                ),
                dcc.ConfirmDialog(id="delete_confirm", message=DELETE_PROMPT),
            ],
        )

    def build_album_form(self) -> DashComponent:
        return dbc.Card(
            className="mx-auto mb-5 shadow-lg",
            style={"maxWidth": "42rem"},
            body=True,
            children=[
                html.H2("Add New Album", id="album_form_title", className="h3 fw-bold mb-4"),
                self._form_field(
                    "Title",
                    dbc.Input(
                        id="album_title_input",
                        name="title",
                        type="text",
                        required=True,
                        placeholder="Album title",
                        value="",
                    ),
                ),
                self._form_field(
                    "Artist",
                    dbc.Input(
                        id="album_artist_input",
                        name="artist",
                        type="text",
                        required=True,
                        placeholder="Artist name",
                        value="",
                    ),
                ),
                self._form_field(
                    "Price ($)",
                    dbc.Input(
                        id="album_price_input",
                        name="price",
                        type="number",
                        min=0,
                        step=0.01,
                        required=True,
                        placeholder="0.00",
                        value=0,
                    ),
                ),
                html.Div(
                    className="d-flex gap-3",
                    children=[
                        dbc.Button(
                            "Add Album",
                            id="album_submit_button",
                            type="submit",
                            color="primary",
                            className="flex-grow-1",
                        ),
                        dbc.Button(
                            "Cancel",
                            id="album_cancel_button",
                            color="secondary",
                            outline=True,
                            style={"display": "none"},
                        ),
                    ],
                ),
            ],
        )

    def _form_field(self, label: str, control: DashComponent) -> DashComponent:
        return html.Div(
            className="mb-3",
            children=[dbc.Label(label, html_for=control.id), control],
        )

    def build_album_detail_page(self) -> DashComponent:
        return html.Div(
            id="album_detail_page",
            hidden=True,
            className="container py-5",
            children=[
                dcc.Link("← All albums", href=self.url.build_albums_path(), className="text-white"),
                dbc.Card(
                    className="mt-4 p-5 shadow-lg",
                    children=dcc.Loading(html.Div(id="album_detail", children="Loading...")),
                ),
            ],
        )

    def build_chat_page(self) -> DashComponent:
        return html.Div(
            id="chat_page",
            hidden=True,
            className="container py-5",
            style={"maxWidth": "56rem"},
            children=[
                dbc.Card(
                    className="shadow-lg",
                    children=[
                        dbc.CardHeader(
                            className="d-flex align-items-center gap-3",
                            children=[
                                html.I(className="bi bi-robot fs-3 text-primary"),
                                html.Div(
                                    [
                                        html.H3("Album Assistant", className="h6 fw-semibold m-0"),
                                        html.Small(
                                            "Ask me anything about your album collection",
                                            className="text-muted",
                                        ),
                                    ]
                                ),
                            ],
                        ),
                        html.Div(
                            id="chat_scroll",
                            style={"height": "450px", "overflowY": "auto"},
                            children=[
                                html.Div(id="messages_container", children=[]),
                                html.Div(id="stream_preview", children=[]),
                            ],
                        ),
                        self.build_quick_actions(),
                        self.build_input_area(),
                    ],
                )
            ],
        )

    def build_quick_actions(self) -> DashComponent:
        return html.Div(
            id="quick_actions",
            className="p-3 border-top bg-light",
            children=[
                html.P("Try asking:", className="small text-muted mb-2"),
                html.Div(
                    className="d-flex flex-wrap gap-2",
                    children=[
                        dbc.Button(
                            action,
                            id={"type": "quick-action", "index": i},
                            size="sm",
                            color="primary",
                            outline=True,
                            className="rounded-pill",
                        )
                        for i, action in enumerate(QUICK_ACTIONS)
                    ],
                ),
            ],
        )

    def build_input_area(self) -> DashComponent:
        return html.Div(
            className="p-3 border-top",
            children=[
                dbc.InputGroup(
                    [
                        dbc.Textarea(
                            id="input_textarea",
                            placeholder="Type your message... (Shift+Enter for new line)",
                            rows=1,
                            style={"minHeight": "44px", "maxHeight": "120px"},
                        ),
                        dbc.Button(
                            html.I(className="bi bi-send"),
                            id="submit_button",
                            color="primary",
                        ),
                    ]
                ),
                html.Small(
                    "Press Enter to send, Shift+Enter for new line",
                    className="text-muted",
                ),
            ],
        )

    def build_not_found_page(self) -> DashComponent:
        return html.Div(
            id="not_found_page",
            hidden=True,
            className="container py-5 text-center text-white",
            children=[
                html.H1("Page not found", className="display-5"),
                dcc.Link("Back to home", href=self.url.build_home_path(), className="text-white"),
            ],
        )

    # --- Renderers ---

    def build_album_cards(self, albums):
        if not albums:
            return [
                html.Div(
                    "No albums yet. Add your first album above!",
                    className="col-12 text-center text-white fs-5",
                )
            ]
        return [self.build_album_card(album) for album in albums]

    def build_album_card(self, album: Album) -> DashComponent:
        return dbc.Col(
            md=6,
            lg=4,
            children=dbc.Card(
                className="h-100 shadow",
                body=True,
                children=[
                    html.H3(
                        dcc.Link(
                            album.title,
                            href=self.url.build_album_path(album.id),
                            className="text-dark text-decoration-none",
                        ),
                        className="h5 fw-bold",
                    ),
                    html.P(album.artist, className="text-primary fw-semibold mb-1"),
                    html.P(album.display_price, className="fs-4 fw-bold text-primary"),
                    html.Div(
                        className="d-flex gap-3",
                        children=[
                            dbc.Button(
                                "Edit",
                                id={"type": "edit-album", "id": album.id},
                                color="primary",
                                className="flex-grow-1",
                            ),
                            dbc.Button(
                                "Delete",
                                id={"type": "delete-album", "id": album.id},
                                color="danger",
                                className="flex-grow-1",
                            ),
                        ],
                    ),
                ],
            ),
        )

    def build_album_detail(self, state):
        if not state.found:
            return html.Div("Album not found", className="fs-4")
        album = state.album
        return html.Div(
            [
                html.H1(album.title, className="display-5 fw-bold mb-3"),
                html.P(album.artist, className="fs-3 text-primary mb-2"),
                html.P(album.display_price, className="fs-2 fw-bold"),
            ]
        )

    def build_messages(self, messages, partial=None, loading=False):
        rendered = [self.build_message(message) for message in messages]
        if partial is not None:
            rendered.append(self.build_streaming_message(partial))
        elif loading:
            rendered.append(self.build_thinking_indicator())
        return rendered

    def build_message(self, message: Message) -> DashComponent:
        is_user = message.role == USER_ROLE
        return self._bubble(
            content=message.content,
            is_user=is_user,
            footer=format_time(message.timestamp),
        )

    def build_streaming_message(self, content: str) -> DashComponent:
        return self._bubble(
            content=[
                content,
                html.Span(
                    dbc.Spinner(size="sm", type="grow", color="secondary"),
                    className="ms-1",
                ),
            ],
            is_user=False,
            text=content,
        )

    def build_thinking_indicator(self) -> DashComponent:
        return html.Div(
            className="d-flex align-items-center gap-3 p-3",
            children=[
                html.I(className="bi bi-robot text-secondary"),
                html.Div(
                    className="d-flex align-items-center gap-2 bg-light rounded p-2",
                    children=[
                        dbc.Spinner(size="sm", color="secondary"),
                        html.Span("Thinking...", className="text-secondary"),
                    ],
                ),
            ],
        )

    def _bubble(self, content, is_user, footer=None, text=None) -> DashComponent:
        text = content if text is None else text
        body = [
            html.Div(
                content,
                dir="rtl" if self._is_rtl(text) else "ltr",
                className="d-inline-block p-2 rounded "
                + ("bg-primary text-white" if is_user else "bg-light text-dark"),
                style={"whiteSpace": "pre-wrap"},
            )
        ]
        if footer:
            body.append(html.Div(footer, className="small text-muted mt-1"))
        return html.Div(
            className="d-flex align-items-start gap-3 p-3"
            + (" flex-row-reverse" if is_user else ""),
            children=[
                html.I(
                    className="bi bi-person-circle text-primary fs-4"
                    if is_user
                    else "bi bi-robot text-secondary fs-4"
                ),
                html.Div(
                    body,
                    className="text-end" if is_user else "",
                    style={"maxWidth": "70%"},
                ),
            ],
        )
