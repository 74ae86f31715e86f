"""MediaManagerClient over a mocked requests.Session, plus configuration."""

from unittest.mock import MagicMock

import pytest
import requests

from src.mediamanager import MediaManagerClient, MediaManagerConfig, is_error
from src.pipeline import PipelineConfig


BASE = "https://mm.example.org/api/v1"


def make_response(status_code=200, body=None, headers=None, url=BASE):
    response = MagicMock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 400
    response.headers = headers or {}
    response.url = url
    if body is None:
        response.json.side_effect = ValueError("No JSON")
        response.text = ""
    else:
        response.json.return_value = body
    return response


@pytest.fixture
def config() -> MediaManagerConfig:
    return MediaManagerConfig(
        api_key="key",
        api_secret="secret",
        endpoint="https://mm.example.org",
        api_path="/api/v1/",
        timeout=10,
    )


@pytest.fixture
def session() -> MagicMock:
    return MagicMock()


@pytest.fixture
def mm(config, session) -> MediaManagerClient:
    return MediaManagerClient(config, session=session)


# =============================================================================
# Configuration
# =============================================================================


class TestConfig:
    def test_base_url_joins_endpoint_and_api_path(self, config):
        assert config.base_url == BASE

    def test_missing_credentials(self):
        config = MediaManagerConfig(api_key=None, api_secret="", endpoint=None)

        with pytest.raises(ValueError) as excinfo:
            config.validate()

        assert "MM_KEY" in str(excinfo.value)
        assert "MM_SECRET" in str(excinfo.value)
        assert "MM_ENDPOINT" in str(excinfo.value)

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("MM_KEY", "env-key")
        monkeypatch.setenv("MM_SECRET", "env-secret")
        monkeypatch.setenv("MM_ENDPOINT", "https://env.example.org")
        monkeypatch.setenv("MM_API", "/api/v2/")
        monkeypatch.setenv("MM_TIMEOUT", "5")

        config = MediaManagerConfig()

        assert config.api_key == "env-key"
        assert config.base_url == "https://env.example.org/api/v2"
        assert config.timeout == 5.0

    def test_client_refuses_incomplete_config(self, session):
        with pytest.raises(ValueError):
            MediaManagerClient(MediaManagerConfig(api_key=None, api_secret=None, endpoint=None), session=session)

    def test_pipeline_concurrency_from_environment(self, monkeypatch):
        monkeypatch.setenv("CONCURRENT_TASKS", "12")

        assert PipelineConfig().concurrent_tasks == 12

    def test_pipeline_concurrency_must_be_positive(self):
        with pytest.raises(ValueError):
            PipelineConfig(concurrent_tasks=0).validate()


# =============================================================================
# Session setup
# =============================================================================


class TestSession:
    def test_basic_auth_and_json_headers(self, mm, session):
        assert session.auth == ("key", "secret")
        session.headers.update.assert_called_once_with(
            {"Accept": "application/json", "Content-Type": "application/json"}
        )


# =============================================================================
# Lookups
# =============================================================================


class TestLookups:
    def test_get_show(self, mm, session):
        session.request.return_value = make_response(body={"data": {"id": "show-id"}})

        assert mm.get_show("show-a") == {"data": {"id": "show-id"}}
        session.request.assert_called_once_with(
            "GET", f"{BASE}/shows/show-a/", params=None, json=None, timeout=10
        )

    @pytest.mark.parametrize("method,path", [
        ("get_episode", "episodes"),
        ("get_special", "specials"),
        ("get_asset", "assets"),
    ])
    def test_object_lookups(self, mm, session, method, path):
        session.request.return_value = make_response(body={"data": {"id": "x"}})

        getattr(mm, method)("some-slug")

        assert session.request.call_args.args == ("GET", f"{BASE}/{path}/some-slug/")
        assert session.request.call_args.kwargs["params"] is None

    def test_unpublished_lookup(self, mm, session):
        session.request.return_value = make_response(body={"data": {"id": "x"}})

        mm.get_asset("some-slug", unpublished=True)

        assert session.request.call_args.kwargs["params"] == {"platform-slug": "partnerplayer"}

    def test_not_found_is_error_payload(self, mm, session):
        session.request.return_value = make_response(
            404, body={"detail": "Not found."}, url=f"{BASE}/assets/missing/"
        )

        response = mm.get_asset("missing")

        assert is_error(response)
        assert response == {
            "errors": {
                "status_code": 404,
                "url": f"{BASE}/assets/missing/",
                "response": {"detail": "Not found."},
            }
        }

    def test_transport_failure_is_error_payload(self, mm, session):
        session.request.side_effect = requests.ConnectionError("refused")

        response = mm.get_show("show-a")

        assert is_error(response)
        assert "ConnectionError" in response["errors"]["exception"]
        assert response["errors"]["url"] == f"{BASE}/shows/show-a/"

    def test_invalid_json_is_error_payload(self, mm, session):
        session.request.return_value = make_response(200, body=None)

        assert is_error(mm.get_show("show-a"))

    def test_get_show_seasons(self, mm, session):
        session.request.return_value = make_response(body={"data": [{"id": "season-55"}]})

        seasons = mm.get_show_seasons("show-a", {"ordinal": 55})

        assert seasons == [{"id": "season-55"}]
        assert session.request.call_args.args == ("GET", f"{BASE}/shows/show-a/seasons/")
        assert session.request.call_args.kwargs["params"] == {"ordinal": 55}

    def test_get_show_seasons_error_is_empty(self, mm, session):
        session.request.return_value = make_response(500, body={"detail": "boom"})

        assert mm.get_show_seasons("show-a", {"ordinal": 55}) == []

    def test_get_updatable_object(self, mm, session):
        session.request.return_value = make_response(body={"data": {"id": "12345"}})

        mm.get_updatable_object("12345", "asset")

        assert session.request.call_args.args == ("GET", f"{BASE}/assets/12345/edit/")


# =============================================================================
# Mutations
# =============================================================================


class TestMutations:
    def test_create_child_posts_json_api_body(self, mm, session):
        session.request.return_value = make_response(201, body={"data": {"id": "new-season"}})

        new_id = mm.create_child("show-a", "show", "season", {"ordinal": 55})

        assert new_id == "new-season"
        session.request.assert_called_once_with(
            "POST",
            f"{BASE}/shows/show-a/seasons/",
            params=None,
            json={"data": {"type": "season", "attributes": {"ordinal": 55}}},
            timeout=10,
        )

    def test_create_child_id_from_location_header(self, mm, session):
        session.request.return_value = make_response(
            201, body=None, headers={"Location": f"{BASE}/assets/abc-123/edit/"}
        )

        assert mm.create_child("episode-id", "episode", "asset", {}) == "abc-123"

    def test_create_child_without_id(self, mm, session):
        session.request.return_value = make_response(201, body={})

        assert is_error(mm.create_child("episode-id", "episode", "asset", {}))

    def test_create_child_error(self, mm, session):
        session.request.return_value = make_response(400, body={"slug": ["already exists"]})

        response = mm.create_child("show-a", "show", "special", {"slug": "dup"})

        assert response["errors"]["status_code"] == 400
        assert response["errors"]["response"] == {"slug": ["already exists"]}

    def test_update_object(self, mm, session):
        session.request.return_value = make_response(204, body=None)

        assert mm.update_object("12345", "asset", {"video": None}) is True
        session.request.assert_called_once_with(
            "PATCH",
            f"{BASE}/assets/12345/edit/",
            params=None,
            json={"data": {"type": "asset", "id": "12345", "attributes": {"video": None}}},
            timeout=10,
        )

    def test_update_object_error(self, mm, session):
        session.request.return_value = make_response(403, body={"detail": "Forbidden"})

        response = mm.update_object("12345", "asset", {"caption": None})

        assert is_error(response)
        assert response["errors"]["status_code"] == 403
