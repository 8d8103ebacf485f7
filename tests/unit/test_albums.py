"""
Tests for the Albums pillar implementations.

HTTP is tested against a mocked requests session, so every assertion is
about what goes over the wire and how failures are reported. InMemory is
tested against the same contract the backend implements.
"""

import pytest
import requests
from album_manager.albums import HTTP, Albums, InMemory
from album_manager.errors import AlbumServiceError, ServiceError
from album_manager.models import Album, AlbumInput


class TestAlbumsInterface:
    """Test the Albums abstract base class."""

    def test_albums_is_abstract(self):
        with pytest.raises(TypeError) as exc_info:
            Albums()
        assert "abstract" in str(exc_info.value).lower()

    def test_albums_requires_delete(self):
        class IncompleteAlbums(Albums):
            def get_all(self):
                return []

            def get_by_id(self, album_id):
                pass

            def create(self, album):
                pass

            def update(self, album_id, album):
                pass

        with pytest.raises(TypeError) as exc_info:
            IncompleteAlbums()
        assert "delete" in str(exc_info.value)


class TestHTTPAlbums:
    """Test the HTTP album client."""

    @pytest.fixture
    def client(self, mock_session):
        return HTTP(base_url="http://albums.test/", timeout=5, session=mock_session)

    def test_base_url_defaults_to_settings(self, monkeypatch, mock_session):
        from album_manager import config

        monkeypatch.setenv("ALBUM_API_URL", "http://backend:9000")
        config.set_settings(None)

        client = HTTP(session=mock_session)
        assert client.base_url == "http://backend:9000"
        assert client.timeout == 30

    def test_get_all_sends_uncached_get(self, client, mock_session, album_json, response_factory):
        mock_session.request.return_value = response_factory(json_data=[album_json])

        albums = client.get_all()

        assert albums == [Album.model_validate(album_json)]
        kwargs = mock_session.request.call_args.kwargs
        assert kwargs["method"] == "GET"
        assert kwargs["url"] == "http://albums.test/albums"
        assert kwargs["headers"]["Cache-Control"] == "no-cache"
        assert kwargs["json"] is None
        assert kwargs["timeout"] == 5

    def test_get_all_keeps_server_order(self, client, mock_session, album_json, response_factory):
        second = dict(album_json, id=7, title="Animals")
        mock_session.request.return_value = response_factory(json_data=[second, album_json])

        assert [album.id for album in client.get_all()] == [7, 1]

    def test_get_all_null_body_is_empty(self, client, mock_session, response_factory):
        mock_session.request.return_value = response_factory(json_data=None)
        assert client.get_all() == []

    def test_get_all_http_error(self, client, mock_session, response_factory):
        mock_session.request.return_value = response_factory(
            status_code=500, reason="Internal Server Error"
        )

        with pytest.raises(AlbumServiceError) as exc_info:
            client.get_all()

        assert exc_info.value.status == 500
        assert exc_info.value.message == "Failed to fetch albums: Internal Server Error"

    def test_get_by_id_not_found(self, client, mock_session, response_factory):
        mock_session.request.return_value = response_factory(status_code=404, reason="Not Found")

        with pytest.raises(AlbumServiceError) as exc_info:
            client.get_by_id(42)

        assert exc_info.value.status == 404
        assert mock_session.request.call_args.kwargs["url"] == "http://albums.test/albums/42"

    def test_get_by_id_is_uncached(self, client, mock_session, album_json, response_factory):
        mock_session.request.return_value = response_factory(json_data=album_json)

        assert client.get_by_id(1).title == "The Wall"
        assert mock_session.request.call_args.kwargs["headers"]["Pragma"] == "no-cache"

    def test_connection_error_has_status_zero(self, client, mock_session):
        mock_session.request.side_effect = requests.exceptions.ConnectionError("refused")

        with pytest.raises(AlbumServiceError) as exc_info:
            client.get_all()

        assert exc_info.value.status == 0
        assert "refused" in exc_info.value.message

    def test_timeout_has_status_zero(self, client, mock_session):
        mock_session.request.side_effect = requests.exceptions.Timeout("slow")

        with pytest.raises(ServiceError) as exc_info:
            client.delete(1)
        assert exc_info.value.status == 0

    def test_invalid_json_has_status_zero(self, client, mock_session, response_factory):
        mock_session.request.return_value = response_factory(invalid_json=True)

        with pytest.raises(AlbumServiceError) as exc_info:
            client.get_all()
        assert exc_info.value.status == 0

    def test_unexpected_body_shape_has_status_zero(self, client, mock_session, response_factory):
        mock_session.request.return_value = response_factory(json_data={"albums": []})

        with pytest.raises(AlbumServiceError) as exc_info:
            client.get_all()
        assert exc_info.value.status == 0

    def test_malformed_album_has_status_zero(self, client, mock_session, response_factory):
        mock_session.request.return_value = response_factory(json_data={"title": "No id"})

        with pytest.raises(AlbumServiceError) as exc_info:
            client.get_by_id(1)
        assert exc_info.value.status == 0

    def test_create_posts_json_body(self, client, mock_session, album_json, the_wall, response_factory):
        mock_session.request.return_value = response_factory(201, album_json, "Created")

        created = client.create(the_wall)

        assert created.id == 1
        kwargs = mock_session.request.call_args.kwargs
        assert kwargs["method"] == "POST"
        assert kwargs["url"] == "http://albums.test/albums"
        assert kwargs["json"] == {"title": "The Wall", "artist": "Pink Floyd", "price": 24.99}
        assert kwargs["headers"]["Content-Type"] == "application/json"
        assert "Cache-Control" not in kwargs["headers"]

    def test_create_validation_error(self, client, mock_session, the_wall, response_factory):
        mock_session.request.return_value = response_factory(400, {"error": "bad"}, "Bad Request")

        with pytest.raises(AlbumServiceError) as exc_info:
            client.create(the_wall)

        assert exc_info.value.status == 400
        assert exc_info.value.message == "Failed to create album: Bad Request"

    def test_update_puts_full_body(self, client, mock_session, album_json, response_factory):
        updated_json = dict(album_json, price=22.99)
        mock_session.request.return_value = response_factory(json_data=updated_json)

        updated = client.update(1, AlbumInput(title="The Wall", artist="Pink Floyd", price=22.99))

        assert updated.price == 22.99
        kwargs = mock_session.request.call_args.kwargs
        assert kwargs["method"] == "PUT"
        assert kwargs["url"] == "http://albums.test/albums/1"
        assert kwargs["json"]["price"] == 22.99

    def test_delete_ignores_body(self, client, mock_session, response_factory):
        response = response_factory(json_data={"message": "Album deleted"})
        mock_session.request.return_value = response

        assert client.delete(3) is None
        kwargs = mock_session.request.call_args.kwargs
        assert kwargs["method"] == "DELETE"
        assert kwargs["url"] == "http://albums.test/albums/3"
        response.json.assert_not_called()

    def test_delete_accepts_no_content(self, client, mock_session, response_factory):
        mock_session.request.return_value = response_factory(204, invalid_json=True, reason="No Content")
        assert client.delete(3) is None

    def test_delete_missing_album(self, client, mock_session, response_factory):
        mock_session.request.return_value = response_factory(404, reason="Not Found")

        with pytest.raises(AlbumServiceError) as exc_info:
            client.delete(3)
        assert exc_info.value.message == "Failed to delete album: Not Found"

    def test_missing_reason_falls_back_to_status(self, client, mock_session, response_factory):
        mock_session.request.return_value = response_factory(503, reason="")

        with pytest.raises(AlbumServiceError) as exc_info:
            client.get_all()
        assert exc_info.value.message == "Failed to fetch albums: HTTP 503"


class TestInMemoryAlbums:
    """Test InMemory against the backend's contract."""

    @pytest.fixture
    def store(self):
        return InMemory()

    def test_starts_empty(self, store):
        assert store.get_all() == []

    def test_seeded_albums(self, the_wall):
        store = InMemory([the_wall, AlbumInput(title="Animals", artist="Pink Floyd", price=17.99)])
        assert [a.title for a in store.get_all()] == ["The Wall", "Animals"]

    def test_create_assigns_ids_and_timestamps(self, store, the_wall):
        first = store.create(the_wall)
        second = store.create(the_wall)

        assert (first.id, second.id) == (1, 2)
        assert first.created_at == first.updated_at
        assert first.deleted_at is None

    def test_create_then_get_all_includes_input(self, store, the_wall):
        store.create(the_wall)
        assert any(
            (a.title, a.artist, a.price) == ("The Wall", "Pink Floyd", 24.99)
            for a in store.get_all()
        )

    def test_update_then_get_by_id(self, store, the_wall):
        created = store.create(the_wall)
        change = AlbumInput(title="The Wall (Remaster)", artist="Pink Floyd", price=22.99)

        store.update(created.id, change)
        fetched = store.get_by_id(created.id)

        assert fetched.id == created.id
        assert fetched.to_input() == change
        assert fetched.created_at == created.created_at
        assert fetched.updated_at >= created.updated_at

    def test_update_missing_album(self, store, the_wall):
        with pytest.raises(AlbumServiceError) as exc_info:
            store.update(99, the_wall)
        assert exc_info.value.status == 404

    def test_delete_hides_album(self, store, the_wall):
        created = store.create(the_wall)
        store.delete(created.id)

        assert all(a.id != created.id for a in store.get_all())
        with pytest.raises(AlbumServiceError) as exc_info:
            store.get_by_id(created.id)
        assert exc_info.value.status == 404

    def test_delete_twice_fails(self, store, the_wall):
        created = store.create(the_wall)
        store.delete(created.id)
        with pytest.raises(AlbumServiceError):
            store.delete(created.id)

    def test_ids_are_not_reused_after_delete(self, store, the_wall):
        store.delete(store.create(the_wall).id)
        assert store.create(the_wall).id == 2

    def test_returned_albums_are_copies(self, store, the_wall):
        created = store.create(the_wall)
        created.title = "Changed locally"
        assert store.get_by_id(created.id).title == "The Wall"
