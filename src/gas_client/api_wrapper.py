"""API wrapper for the Apps Script REST API v1.

This module wraps a requests session and provides error translation from
HTTP exceptions to our typed exception hierarchy. It integrates with the
retry logic for handling rate limits.
"""

import logging
import re
from typing import Any, Dict, List, Optional

import requests
from requests.exceptions import ConnectionError, Timeout

from src.models.remote_file import PROJECT_ID_PATTERN

from .auth import Authenticator
from .errors import (
    APIAccessError,
    APIUnreachableError,
    InvalidCredentialsError,
    InvalidProjectIdError,
    ProjectNotFoundError,
)
from .retry_logic import retry_on_rate_limit

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 30


class APIWrapper:
    """Thin wrapper over the projects.getContent / projects.updateContent endpoints.

    This class:
    1. Handles authentication using the Authenticator
    2. Translates HTTP errors to typed exceptions
    3. Integrates retry logic for 429 rate limits
    4. Owns the HTTP session (closed via close())

    Example:
        >>> api = APIWrapper(Authenticator())
        >>> files = api.get_content("1AbCdEfGhIjKlMnOp")
        >>> api.close()
    """

    def __init__(self, authenticator: Authenticator, session: Optional[requests.Session] = None):
        """Initialize the API wrapper.

        Args:
            authenticator: Authenticator instance for loading credentials
            session: Optional pre-built session (created lazily otherwise)
        """
        self._authenticator = authenticator
        self._session = session

    def _get_session(self) -> requests.Session:
        """Get or create the HTTP session with the bearer token installed.

        Raises:
            InvalidCredentialsError: If credentials are missing
        """
        if self._session is None:
            creds = self._authenticator.get_credentials()
            session = requests.Session()
            session.headers.update({
                'Authorization': f"Bearer {creds.access_token}",
                'Accept': 'application/json',
            })
            self._session = session
        return self._session

    def close(self) -> None:
        """Close the underlying HTTP session."""
        if self._session is not None:
            self._session.close()
            self._session = None

    def _validate_project_id(self, project_id: str) -> None:
        """Reject project ids that could alter the request path.

        Raises:
            InvalidProjectIdError: If project_id is empty or has unexpected characters
        """
        if not project_id or not str(project_id).strip():
            raise InvalidProjectIdError(project_id, "cannot be empty")

        if not PROJECT_ID_PATTERN.match(str(project_id).strip()):
            raise InvalidProjectIdError(
                project_id, "script ids contain only letters, digits, '-' and '_'"
            )

    def _content_url(self, project_id: str) -> str:
        creds = self._authenticator.get_credentials()
        return f"{creds.api_url}/projects/{project_id}/content"

    def _sanitize_credentials(self, text: str) -> str:
        """Mask bearer tokens and token fields in error messages.

        Example:
            >>> api._sanitize_credentials("Authorization: Bearer ya29.abc")
            "Authorization: ***REDACTED***"
        """
        if not text:
            return text

        sanitized = re.sub(
            r'Authorization:\s*[^\n\r]+',
            'Authorization: ***REDACTED***',
            text,
            flags=re.IGNORECASE
        )
        sanitized = re.sub(
            r'Bearer\s+[^\s\n\r]+',
            'Bearer ***REDACTED***',
            sanitized,
            flags=re.IGNORECASE
        )
        sanitized = re.sub(
            r'(access_?token|token)["\']?\s*[:=]\s*["\']?([^"\'\s&]+)',
            r'\1=***REDACTED***',
            sanitized,
            flags=re.IGNORECASE
        )
        sanitized = re.sub(r'\bya29\.[\w.-]+', '***REDACTED***', sanitized)
        return sanitized

    def _translate_error(self, exception: Exception, operation: str, project_id: str) -> Exception:
        """Translate HTTP exceptions to typed remote store exceptions.

        Args:
            exception: The original exception from requests
            operation: Description of the operation that failed (for logging)
            project_id: Project the call was made against

        Returns:
            Exception: Translated exception (one of our typed exceptions)
        """
        if isinstance(exception, (Timeout, ConnectionError)):
            return APIUnreachableError(endpoint=self._authenticator.get_credentials().api_url)

        response = getattr(exception, 'response', None)
        status_code = getattr(response, 'status_code', None)

        # Leave 429 alone so retry_on_rate_limit can see it
        if status_code == 429:
            return exception

        if status_code in (401, 403):
            return InvalidCredentialsError(
                endpoint=self._authenticator.get_credentials().api_url,
                reason=f"HTTP {status_code}"
            )

        if status_code == 404:
            return ProjectNotFoundError(project_id=project_id)

        safe_error_msg = self._sanitize_credentials(str(exception))
        logger.error(f"API operation failed: {operation} - {safe_error_msg}")
        return APIAccessError(f"Apps Script API failure during {operation}")

    def _request(self, method: str, project_id: str, operation: str, **kwargs) -> Dict[str, Any]:
        self._validate_project_id(project_id)

        def _call():
            try:
                response = self._get_session().request(
                    method,
                    self._content_url(project_id),
                    timeout=REQUEST_TIMEOUT,
                    **kwargs
                )
                response.raise_for_status()
                return response.json() if response.content else {}
            except InvalidCredentialsError:
                raise
            except Exception as e:
                translated = self._translate_error(e, operation, project_id)
                if translated is e:
                    raise
                raise translated from e

        return retry_on_rate_limit(_call)

    def get_content(self, project_id: str) -> List[Dict[str, Any]]:
        """Fetch every file of a project, in execution order.

        Returns:
            List of raw file dicts ({name, type, source, ...})

        Raises:
            InvalidCredentialsError: If the token is missing or rejected
            ProjectNotFoundError: If the project doesn't exist
            APIUnreachableError: If API is unreachable
            APIAccessError: If API access fails after retries
        """
        data = self._request('GET', project_id, f"get_content({project_id})")
        files = data.get('files') or []
        logger.debug(f"Fetched {len(files)} files from project {project_id}")
        return files

    def update_content(self, project_id: str, files: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Replace the full content of a project.

        The API applies the list as the new file set in the given order.

        Args:
            project_id: Script project id
            files: Complete ordered list of {name, type, source} dicts

        Returns:
            The file list echoed back by the API

        Raises:
            Same as get_content
        """
        logger.debug(f"Sending {len(files)} files to project {project_id}")
        data = self._request(
            'PUT',
            project_id,
            f"update_content({project_id})",
            json={'files': files},
        )
        return data.get('files') or []
