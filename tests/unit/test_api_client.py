"""Tests for api_client module."""
from unittest.mock import MagicMock, Mock, patch

import pytest
import requests
from pydantic import BaseModel

from shimux.api_client import APIError, api_call, rpc

BASE_URL = "http://127.0.0.1:21591"


class FocusModel(BaseModel):
    """Test model for API responses."""
    status: str
    pane_id: str


def make_response(status_code=200, content=b"", json_data=None, text=""):
    response = Mock()
    response.status_code = status_code
    response.content = content
    response.text = text
    if isinstance(json_data, Exception):
        response.json.side_effect = json_data
    else:
        response.json.return_value = json_data
    return response


@pytest.fixture
def session():
    """Patch requests.Session and hand back the instance api_client uses."""
    with patch("requests.Session") as session_class:
        mock_session = MagicMock()
        mock_session.__enter__.return_value = mock_session
        mock_session.__exit__.return_value = False
        session_class.return_value = mock_session
        yield mock_session


def test_api_error_message():
    error = APIError(404, "Not found")

    assert isinstance(error, Exception)
    assert error.status_code == 404
    assert error.detail == "Not found"
    assert str(error) == "API error 404: Not found"


class TestAPICall:
    """Tests for api_call function."""

    def test_success_with_model(self, session):
        session.request.return_value = make_response(
            content=b'{"status": "focused", "pane_id": "%emacs-2"}')

        result = api_call(BASE_URL, "POST", "/focus/next", response_model=FocusModel)

        assert result == FocusModel(status="focused", pane_id="%emacs-2")
        session.request.assert_called_once_with("POST", f"{BASE_URL}/focus/next")

    def test_success_without_model(self, session):
        session.request.return_value = make_response(
            content=b'{"status": "tiled"}', json_data={"status": "tiled"})

        assert api_call(BASE_URL, "POST", "/layout/show-all") == {"status": "tiled"}

    def test_request_data_from_model(self, session):
        session.request.return_value = make_response(content=b'{}', json_data={})

        api_call(BASE_URL, "POST", "/focus/select", data=FocusModel(status="x", pane_id="%emacs-1"))

        session.request.assert_called_once_with(
            "POST", f"{BASE_URL}/focus/select", json={"status": "x", "pane_id": "%emacs-1"})

    def test_empty_response(self, session):
        session.request.return_value = make_response(status_code=204)

        assert api_call(BASE_URL, "POST", "/layout/resize", data={"width": 100}) == {}

    def test_error_with_detail(self, session):
        session.request.return_value = make_response(
            status_code=400, json_data={"detail": "Unknown terminal backend 'vterm'"})

        with pytest.raises(APIError) as exc_info:
            api_call(BASE_URL, "POST", "/session/start", data={})

        assert exc_info.value.status_code == 400
        assert exc_info.value.detail == "Unknown terminal backend 'vterm'"

    def test_error_with_text(self, session):
        session.request.return_value = make_response(
            status_code=500, json_data=ValueError("Not JSON"), text="Internal Server Error")

        with pytest.raises(APIError) as exc_info:
            api_call(BASE_URL, "GET", "/layout")

        assert exc_info.value.detail == "Internal Server Error"

    def test_error_without_detail(self, session):
        session.request.return_value = make_response(
            status_code=400, json_data=ValueError("Not JSON"))

        with pytest.raises(APIError) as exc_info:
            api_call(BASE_URL, "GET", "/layout")

        assert exc_info.value.detail == "HTTP 400"

    def test_network_error(self, session):
        session.request.side_effect = requests.ConnectionError("Connection refused")

        with pytest.raises(APIError) as exc_info:
            api_call(BASE_URL, "GET", "/layout")

        assert exc_info.value.status_code == 0
        assert "Connection refused" in exc_info.value.detail

    @pytest.mark.parametrize("base_url,path", [
        (BASE_URL, "/layout"),
        (BASE_URL, "layout"),
        (BASE_URL + "/", "/layout"),
    ])
    def test_url_building(self, session, base_url, path):
        session.request.return_value = make_response(content=b'{}', json_data={})

        api_call(base_url, "GET", path)

        session.request.assert_called_with("GET", f"{BASE_URL}/layout")

    def test_session_configuration(self, session):
        session.request.return_value = make_response(content=b'{}', json_data={})

        api_call(BASE_URL, "GET", "/layout")

        assert session.max_redirects == 10

    def test_session_is_closed(self, session):
        session.request.return_value = make_response(content=b"{}", json_data={})

        api_call(BASE_URL, "GET", "/layout")

        session.__exit__.assert_called_once()

    def test_session_closed_on_network_error(self, session):
        session.request.side_effect = requests.ConnectionError("Connection refused")

        with pytest.raises(APIError):
            api_call(BASE_URL, "GET", "/layout")

        session.__exit__.assert_called_once()


class TestRPC:
    """Tests for rpc function."""

    def test_post_with_params(self, session):
        session.request.return_value = make_response(content=b"%emacs-1", text="%emacs-1")

        assert rpc(BASE_URL, "create_pane", name="worker") == "%emacs-1"

        session.request.assert_called_once_with(
            "POST", f"{BASE_URL}/rpc/create_pane", json={"name": "worker"})

    def test_none_params_are_dropped(self, session):
        session.request.return_value = make_response(content=b"%emacs-1", text="%emacs-1")

        rpc(BASE_URL, "create_pane", name=None)

        session.request.assert_called_once_with("POST", f"{BASE_URL}/rpc/create_pane", json={})

    def test_list_panes_is_get(self, session):
        session.request.return_value = make_response(
            content=b"%emacs-1\n%emacs-3", text="%emacs-1\n%emacs-3")

        assert rpc(BASE_URL, "list_panes") == "%emacs-1\n%emacs-3"

        session.request.assert_called_once_with("GET", f"{BASE_URL}/rpc/list_panes")

    def test_error_raises(self, session):
        session.request.return_value = make_response(
            status_code=500, json_data={"detail": "Failed to launch claude"})

        with pytest.raises(APIError, match="Failed to launch claude"):
            rpc(BASE_URL, "create_pane")
