"""
Core pytest configuration and fixtures for Album Manager testing.

This module provides shared test data, fake HTTP responses and app fixtures
for the pillar tests.
"""

from typing import Any, Dict, List
from unittest.mock import MagicMock, Mock

import pytest
from album_manager.models import (
    ASSISTANT_ROLE,
    SYSTEM_ROLE,
    USER_ROLE,
    AlbumInput,
    Message,
)

# ===== TEST DATA FIXTURES =====


@pytest.fixture
def album_json() -> Dict[str, Any]:
    """An album as the backend serializes it."""
    return {
        "id": 1,
        "title": "The Wall",
        "artist": "Pink Floyd",
        "price": 24.99,
        "created_at": "2024-01-01T10:00:00Z",
        "updated_at": "2024-01-01T10:00:00Z",
    }


@pytest.fixture
def the_wall() -> AlbumInput:
    return AlbumInput(title="The Wall", artist="Pink Floyd", price=24.99)


@pytest.fixture
def sample_transcript() -> List[Message]:
    """A transcript with a greeting, a system entry and one exchange."""
    return [
        Message(role=ASSISTANT_ROLE, content="Hello! How can I help?"),
        Message(role=SYSTEM_ROLE, content="You manage albums."),
        Message(role=USER_ROLE, content="List my albums"),
        Message(role=ASSISTANT_ROLE, content="You have no albums yet."),
    ]


# ===== HTTP FIXTURES =====


def make_response(
    status_code: int = 200,
    json_data: Any = None,
    reason: str = "OK",
    invalid_json: bool = False,
) -> Mock:
    """Builds a stand-in for requests.Response."""
    response = Mock()
    response.status_code = status_code
    response.reason = reason
    if invalid_json:
        response.json.side_effect = ValueError("Expecting value: line 1 column 1")
    else:
        response.json.return_value = json_data
    return response


@pytest.fixture
def response_factory():
    return make_response


@pytest.fixture
def mock_session():
    """A requests.Session stand-in; tests set return values per call."""
    session = MagicMock()
    session.request.return_value = make_response(json_data=[])
    session.post.return_value = make_response(json_data={"message": "ok"})
    return session


# ===== MOCK FIXTURES =====


@pytest.fixture
def mock_albums():
    """Mock album client."""
    mock = MagicMock()
    mock.get_all.return_value = []
    return mock


@pytest.fixture
def mock_assistant():
    """Mock assistant that always answers "Mock reply"."""
    from album_manager.models import ChatResponse

    mock = MagicMock()
    mock.send_message.return_value = ChatResponse(message="Mock reply")
    mock.stream_message.side_effect = lambda messages: iter(["Mock ", "reply"])
    return mock


@pytest.fixture
def mock_app(mock_albums, mock_assistant):
    """A stand-in for AlbumManager carrying only the pillars engines use."""
    app = Mock()
    app.albums = mock_albums
    app.assistant = mock_assistant
    return app


# ===== APP FIXTURES =====


@pytest.fixture
def test_app():
    """
    Provides an AlbumManager with in-process pillars.

    Nothing talks to a backend: albums live in memory and the assistant
    echoes without delay.
    """
    from album_manager import AlbumManager
    from album_manager.albums import InMemory
    from album_manager.assistant import Echo

    return AlbumManager(albums=InMemory(), assistant=Echo(delay=0))


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch):
    """Every test starts from default settings, whatever the environment says."""
    from album_manager import config

    for name in (
        "ALBUM_API_URL",
        "ALBUM_API_TIMEOUT",
        "ALBUM_MANAGER_HOST",
        "ALBUM_MANAGER_PORT",
        "ALBUM_MANAGER_DEBUG",
    ):
        monkeypatch.delenv(name, raising=False)
    config.set_settings(None)
    yield
    config.set_settings(None)


# ===== CONFIGURATION =====


def pytest_configure(config):
    """Pytest configuration."""
    config.addinivalue_line("markers", "integration: marks tests as integration tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on location."""
    for item in items:
        if "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
