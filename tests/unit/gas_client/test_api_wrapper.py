"""Unit tests for gas_client.api_wrapper module."""

import pytest
from unittest.mock import MagicMock, patch
from requests.exceptions import ConnectionError, HTTPError, Timeout

from src.gas_client.api_wrapper import REQUEST_TIMEOUT, APIWrapper
from src.gas_client.auth import Credentials
from src.gas_client.errors import (
    APIAccessError,
    APIUnreachableError,
    InvalidCredentialsError,
    InvalidProjectIdError,
    ProjectNotFoundError,
)

PROJECT_ID = "1AbCdEfGhIjKlMnOpQrStUvWxYz"
API_URL = "https://script.googleapis.com/v1"


@pytest.fixture
def authenticator():
    auth = MagicMock()
    auth.get_credentials.return_value = Credentials(api_url=API_URL, access_token="ya29.secret")
    return auth


def _response(payload=None, status_code=200):
    response = MagicMock()
    response.status_code = status_code
    response.headers = {}
    response.content = b"{}" if payload is not None else b""
    response.json.return_value = payload
    if status_code >= 400:
        response.raise_for_status.side_effect = HTTPError(f"{status_code} Error", response=response)
    return response


class TestGetContent:
    """Test cases for APIWrapper.get_content."""

    def test_returns_files(self, authenticator):
        session = MagicMock()
        session.request.return_value = _response({"files": [{"name": "main", "type": "SERVER_JS", "source": ""}]})
        api = APIWrapper(authenticator, session=session)

        files = api.get_content(PROJECT_ID)

        assert files == [{"name": "main", "type": "SERVER_JS", "source": ""}]
        session.request.assert_called_once_with(
            'GET',
            f"{API_URL}/projects/{PROJECT_ID}/content",
            timeout=REQUEST_TIMEOUT,
        )

    def test_empty_project(self, authenticator):
        session = MagicMock()
        session.request.return_value = _response({})

        assert APIWrapper(authenticator, session=session).get_content(PROJECT_ID) == []

    @pytest.mark.parametrize("project_id", ["", "   ", "../../etc", "short", "id with spaces here"])
    def test_invalid_project_id_is_rejected(self, authenticator, project_id):
        session = MagicMock()

        with pytest.raises(InvalidProjectIdError):
            APIWrapper(authenticator, session=session).get_content(project_id)
        session.request.assert_not_called()


class TestUpdateContent:
    """Test cases for APIWrapper.update_content."""

    def test_sends_full_file_list(self, authenticator):
        files = [{"name": "main", "type": "SERVER_JS", "source": "x"}]
        session = MagicMock()
        session.request.return_value = _response({"files": files})

        echoed = APIWrapper(authenticator, session=session).update_content(PROJECT_ID, files)

        assert echoed == files
        session.request.assert_called_once_with(
            'PUT',
            f"{API_URL}/projects/{PROJECT_ID}/content",
            timeout=REQUEST_TIMEOUT,
            json={"files": files},
        )


class TestErrorTranslation:
    """HTTP failures become typed exceptions."""

    @pytest.mark.parametrize("status_code", [401, 403])
    def test_auth_failures(self, authenticator, status_code):
        session = MagicMock()
        session.request.return_value = _response(status_code=status_code)

        with pytest.raises(InvalidCredentialsError):
            APIWrapper(authenticator, session=session).get_content(PROJECT_ID)

    def test_not_found(self, authenticator):
        session = MagicMock()
        session.request.return_value = _response(status_code=404)

        with pytest.raises(ProjectNotFoundError) as exc_info:
            APIWrapper(authenticator, session=session).get_content(PROJECT_ID)
        assert exc_info.value.project_id == PROJECT_ID

    @pytest.mark.parametrize("exception", [ConnectionError("refused"), Timeout("slow")])
    def test_unreachable(self, authenticator, exception):
        session = MagicMock()
        session.request.side_effect = exception

        with pytest.raises(APIUnreachableError):
            APIWrapper(authenticator, session=session).get_content(PROJECT_ID)

    def test_server_error_is_generic_access_error(self, authenticator):
        session = MagicMock()
        session.request.return_value = _response(status_code=500)

        with pytest.raises(APIAccessError):
            APIWrapper(authenticator, session=session).get_content(PROJECT_ID)

    @patch('src.gas_client.retry_logic.time.sleep')
    def test_rate_limit_is_retried(self, mock_sleep, authenticator):
        session = MagicMock()
        session.request.side_effect = [
            _response(status_code=429),
            _response({"files": []}),
        ]

        assert APIWrapper(authenticator, session=session).get_content(PROJECT_ID) == []
        assert session.request.call_count == 2
        mock_sleep.assert_called_once_with(1)


class TestSessionLifecycle:
    """Test cases for lazy session creation and close()."""

    @patch('src.gas_client.api_wrapper.requests.Session')
    def test_session_carries_bearer_token(self, mock_session_cls, authenticator):
        session = mock_session_cls.return_value
        session.request.return_value = _response({"files": []})

        APIWrapper(authenticator).get_content(PROJECT_ID)

        session.headers.update.assert_called_once()
        headers = session.headers.update.call_args.args[0]
        assert headers["Authorization"] == "Bearer ya29.secret"

    def test_close_releases_session(self, authenticator):
        session = MagicMock()
        api = APIWrapper(authenticator, session=session)

        api.close()

        session.close.assert_called_once()
        assert api._session is None


class TestSanitizeCredentials:
    """Tokens never reach error messages."""

    def test_masks_bearer_tokens(self, authenticator):
        api = APIWrapper(authenticator, session=MagicMock())

        sanitized = api._sanitize_credentials("Authorization: Bearer ya29.secret-token")

        assert "ya29" not in sanitized
        assert "REDACTED" in sanitized

    def test_masks_token_fields(self, authenticator):
        api = APIWrapper(authenticator, session=MagicMock())

        sanitized = api._sanitize_credentials('{"access_token": "abc123"}')

        assert "abc123" not in sanitized
