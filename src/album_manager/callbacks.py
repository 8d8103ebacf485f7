"""Callback wiring: moves component state in and out of the editor and engine."""

import logging
import uuid

from dash import ALL, Input, Output, State, callback_context, no_update

from .editor import FormState
from .engine import QUICK_ACTIONS, dump_transcript, load_transcript
from .models import Album
from .url import ALBUM_DETAIL, ALBUMS, PAGES

logger = logging.getLogger(__name__)

FORM_VALUES = [
    ("album_title_input", "title"),
    ("album_artist_input", "artist"),
    ("album_price_input", "price"),
]


def _triggered_value():
    """The new value of whatever fired the current callback, if anything."""
    if not callback_context.triggered:
        return None
    return callback_context.triggered[0]["value"]


def register_callbacks(app):
    _register_routing_callbacks(app)
    _register_album_callbacks(app)
    _register_chat_callbacks(app)
    _register_clientside_callbacks(app)


def _register_routing_callbacks(app):
    @app.callback(
        [Output(f"{page}_page", "hidden") for page in PAGES],
        [Input("url_location", "pathname")],
    )
    def show_page(pathname):
        current = app.url.parse(pathname).page
        return [page != current for page in PAGES]


def _register_album_callbacks(app):
    def form_outputs(allow_duplicate=False):
        return [Output("editing_album_id", "data", allow_duplicate=allow_duplicate)] + [
            Output(component_id, "value", allow_duplicate=allow_duplicate)
            for component_id, _ in FORM_VALUES
        ]

    def form_values(form: FormState):
        return [form.editing_id, form.title, form.artist, form.price]

    @app.callback(
        [
            Output("album_list", "children"),
            Output("album_count", "children"),
            Output("albums_store", "data"),
            Output("albums_error", "children"),
            Output("albums_error", "is_open"),
        ],
        [Input("url_location", "pathname"), Input("albums_refresh", "data")],
    )
    def load_albums(pathname, refresh):
        if app.url.parse(pathname).page != ALBUMS:
            return [no_update] * 5

        state = app.editor.load()
        cards = app.layout_builder.build_album_cards(state.albums)
        count = f"Albums ({len(state.albums)})"
        data = [album.model_dump(mode="json") for album in state.albums]
        if state.error:
            return cards, count, data, state.error, True
        return cards, count, data, None, False

    @app.callback(
        [
            Output("albums_refresh", "data"),
            *form_outputs(allow_duplicate=True),
            Output("albums_error", "children", allow_duplicate=True),
            Output("albums_error", "is_open", allow_duplicate=True),
        ],
        [Input("album_submit_button", "n_clicks")],
        [
            *[State(component_id, "value") for component_id, _ in FORM_VALUES],
            State("editing_album_id", "data"),
            State("albums_refresh", "data"),
        ],
        prevent_initial_call=True,
    )
    def save_album(n_clicks, title, artist, price, editing_id, refresh):
        if not n_clicks:
            return [no_update] * 7

        form = FormState(
            title=title or "",
            artist=artist or "",
            price=price,
            editing_id=editing_id,
        )
        result = app.editor.submit(form)
        if result.error:
            return [no_update] * 5 + [result.error, True]
        return [(refresh or 0) + 1, *form_values(result.form), None, False]

    @app.callback(
        form_outputs(),
        [Input({"type": "edit-album", "id": ALL}, "n_clicks")],
        [State("albums_store", "data")],
        prevent_initial_call=True,
    )
    def start_edit(n_clicks, albums_data):
        # Re-rendering the list creates fresh buttons, which fires this too.
        if not _triggered_value():
            return [no_update] * 4

        album_id = callback_context.triggered_id["id"]
        album = next(
            (
                Album.model_validate(item)
                for item in albums_data or []
                if item["id"] == album_id
            ),
            None,
        )
        if album is None:
            return [no_update] * 4
        return form_values(app.editor.start_edit(album))

    @app.callback(
        form_outputs(allow_duplicate=True),
        [Input("album_cancel_button", "n_clicks")],
        prevent_initial_call=True,
    )
    def cancel_edit(n_clicks):
        if not n_clicks:
            return [no_update] * 4
        return form_values(app.editor.cancel())

    @app.callback(
        [
            Output("album_form_title", "children"),
            Output("album_submit_button", "children"),
            Output("album_cancel_button", "style"),
        ],
        [Input("editing_album_id", "data")],
    )
    def show_form_mode(editing_id):
        if editing_id is None:
            return "Add New Album", "Add Album", {"display": "none"}
        return "Edit Album", "Update Album", {}

    @app.callback(
        [
            Output("delete_confirm", "displayed"),
            Output("pending_delete_id", "data"),
        ],
        [Input({"type": "delete-album", "id": ALL}, "n_clicks")],
        prevent_initial_call=True,
    )
    def request_delete(n_clicks):
        if not _triggered_value():
            return no_update, no_update
        return True, callback_context.triggered_id["id"]

    @app.callback(
        [
            Output("albums_refresh", "data", allow_duplicate=True),
            Output("pending_delete_id", "data", allow_duplicate=True),
            Output("albums_error", "children", allow_duplicate=True),
            Output("albums_error", "is_open", allow_duplicate=True),
        ],
        [
            Input("delete_confirm", "submit_n_clicks"),
            Input("delete_confirm", "cancel_n_clicks"),
        ],
        [State("pending_delete_id", "data"), State("albums_refresh", "data")],
        prevent_initial_call=True,
    )
    def resolve_delete(submit_n_clicks, cancel_n_clicks, album_id, refresh):
        if album_id is None or not _triggered_value():
            return [no_update] * 4

        confirmed = callback_context.triggered[0]["prop_id"].endswith(".submit_n_clicks")
        result = app.editor.delete(album_id, confirmed=confirmed)
        if result.error:
            return no_update, None, result.error, True
        if result.reload:
            return (refresh or 0) + 1, None, no_update, no_update
        return no_update, None, no_update, no_update

    @app.callback(
        Output("album_detail", "children"),
        [Input("url_location", "pathname")],
    )
    def load_album_detail(pathname):
        url_parts = app.url.parse(pathname)
        if url_parts.page != ALBUM_DETAIL:
            return no_update
        state = app.editor.load_detail(url_parts.album_id)
        return app.layout_builder.build_album_detail(state)


def _register_chat_callbacks(app):
    @app.callback(
        [
            Output("chat_transcript", "data"),
            Output("input_textarea", "value"),
            Output("chat_loading", "data"),
            Output("chat_pending", "data"),
            Output("stream_interval", "disabled"),
        ],
        [
            Input("submit_button", "n_clicks"),
            Input({"type": "quick-action", "index": ALL}, "n_clicks"),
        ],
        [
            State("input_textarea", "value"),
            State("chat_transcript", "data"),
            State("chat_loading", "data"),
        ],
        prevent_initial_call=True,
    )
    def submit_message(n_clicks, quick_clicks, user_input, transcript_data, loading):
        if loading or not _triggered_value():
            return [no_update] * 5

        triggered = callback_context.triggered_id
        if isinstance(triggered, dict):
            content = QUICK_ACTIONS[triggered["index"]]
            input_value = no_update
        else:
            if not user_input or not user_input.strip():
                return [no_update] * 5
            content = user_input.strip()
            input_value = ""

        transcript = app.engine.append_user_message(
            load_transcript(transcript_data), content
        )
        pending = {"request_id": str(uuid.uuid4())}
        return (
            dump_transcript(transcript),
            input_value,
            True,
            pending,
            not app.engine.streams,
        )

    # Fires only once submit_message's outputs are applied, so the transcript
    # read here already holds the new user message.
    @app.callback(
        [
            Output("chat_transcript", "data", allow_duplicate=True),
            Output("chat_loading", "data", allow_duplicate=True),
            Output("stream_interval", "disabled", allow_duplicate=True),
        ],
        [Input("chat_pending", "data")],
        [State("chat_transcript", "data")],
        prevent_initial_call=True,
    )
    def fetch_reply(pending, transcript_data):
        if not pending:
            return no_update, no_update, no_update

        transcript = app.engine.complete(
            load_transcript(transcript_data), pending.get("request_id")
        )
        return dump_transcript(transcript), False, True

    @app.callback(
        [
            Output("messages_container", "children"),
            Output("stream_preview", "children"),
            Output("quick_actions", "hidden"),
            Output("submit_button", "disabled"),
            Output({"type": "quick-action", "index": ALL}, "disabled"),
        ],
        [Input("chat_transcript", "data"), Input("chat_loading", "data")],
    )
    def render_transcript(transcript_data, loading):
        transcript = load_transcript(transcript_data)
        loading = bool(loading)

        if app.engine.streams:
            # The indicator sits in the preview until the first chunk replaces it.
            messages = app.layout_builder.build_messages(transcript)
            preview = app.layout_builder.build_messages([], loading=loading)
        else:
            messages = app.layout_builder.build_messages(transcript, loading=loading)
            preview = []

        quick_action_count = len(callback_context.outputs_list[4])
        return (
            messages,
            preview,
            len(transcript) > 1,
            loading,
            [loading] * quick_action_count,
        )

    # Reads nothing fetch_reply writes, so it is not held back while a reply
    # is in flight.
    @app.callback(
        Output("stream_preview", "children", allow_duplicate=True),
        [Input("stream_interval", "n_intervals")],
        [State("chat_pending", "data")],
        prevent_initial_call=True,
    )
    def render_stream_preview(n_intervals, pending):
        if not pending:
            return no_update
        partial = app.engine.partial(pending.get("request_id"))
        if not partial:
            return no_update
        return app.layout_builder.build_messages([], partial=partial)


def _register_clientside_callbacks(app):
    app.clientside_callback(
        """
        function(pathname) {
            // Set up enter to send functionality when page loads/changes
            setTimeout(function() {
                const textarea = document.getElementById('input_textarea');
                const submitButton = document.getElementById('submit_button');

                if (textarea && submitButton && !window.enterListenerSetup) {
                    window.enterListenerSetup = true;

                    window.enterToSendHandler = function(e) {
                        if (e.key === 'Enter' && !e.shiftKey) {
                            e.preventDefault();
                            // Disabled while a reply is pending
                            if (textarea.value.trim() && !submitButton.disabled) {
                                submitButton.click();
                            }
                        }
                        // Shift+Enter falls through and inserts a newline
                    };

                    textarea.addEventListener('keydown', window.enterToSendHandler);
                }
            }, 100);

            return window.dash_clientside.no_update;
        }
        """,
        Output("submit_button", "n_clicks", allow_duplicate=True),
        [Input("url_location", "pathname")],
        prevent_initial_call="initial_duplicate",
    )

    # Auto-scroll to bottom
    app.clientside_callback(
        """
        function(messages_content, preview_content) {
            setTimeout(function() {
                const chatScroll = document.getElementById('chat_scroll');
                if (chatScroll) {
                    chatScroll.scrollTop = chatScroll.scrollHeight;
                }
            }, 100);
            return window.dash_clientside.no_update;
        }
        """,
        Output("chat_scroll", "data-scroll-trigger", allow_duplicate=True),
        [
            Input("messages_container", "children"),
            Input("stream_preview", "children"),
        ],
        prevent_initial_call=True,
    )

    # Focus input after sending
    app.clientside_callback(
        """
        function(input_value) {
            if (input_value === "") {
                setTimeout(() => {
                    const textarea = document.getElementById('input_textarea');
                    if (textarea) {
                        textarea.focus();
                    }
                }, 100);
            }
            return window.dash_clientside.no_update;
        }
        """,
        Output("input_textarea", "style", allow_duplicate=True),
        [Input("input_textarea", "value")],
        prevent_initial_call=True,
    )
