"""Authentication module for loading Apps Script API credentials.

This module handles loading the API access token from environment variables
using python-dotenv. Token acquisition and refresh are handled outside this
tool; we only read what the environment provides.
"""

import os
from typing import NamedTuple

from dotenv import load_dotenv

from .errors import InvalidCredentialsError

DEFAULT_API_URL = "https://script.googleapis.com/v1"


class Credentials(NamedTuple):
    """Apps Script API credentials."""
    api_url: str
    access_token: str


class Authenticator:
    """Loads and validates API credentials from environment variables.

    Credentials are loaded from a .env file using python-dotenv and are never
    cached or logged.

    Environment variables:
        GAS_ACCESS_TOKEN: OAuth access token with the script.projects scope (required)
        GAS_API_URL: API base URL (optional, defaults to the public endpoint)

    Raises:
        InvalidCredentialsError: If the access token is missing

    Example:
        >>> auth = Authenticator()
        >>> creds = auth.get_credentials()
        >>> print(f"Connecting to {creds.api_url}")
    """

    def __init__(self):
        """Initialize the authenticator by loading environment variables from .env file."""
        load_dotenv()

    def get_credentials(self) -> Credentials:
        """Get API credentials from environment variables.

        Returns:
            Credentials: A named tuple containing api_url and access_token

        Raises:
            InvalidCredentialsError: If GAS_ACCESS_TOKEN is missing
        """
        api_url = os.getenv('GAS_API_URL') or DEFAULT_API_URL
        access_token = os.getenv('GAS_ACCESS_TOKEN')

        if not access_token:
            raise InvalidCredentialsError(
                endpoint=api_url,
                reason="GAS_ACCESS_TOKEN is not set"
            )

        return Credentials(api_url=api_url.rstrip('/'), access_token=access_token)
