"""
Google Calendar API authentication using a service account.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict

from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import AuthorizedSession
from google.oauth2 import service_account

from ..domain.exceptions import AuthenticationError

logger = logging.getLogger(__name__)


SERVICE_ACCOUNT_ENV_VAR = "GOOGLE_SERVICE_ACCOUNT_KEY"


class GoogleAuthenticator:
    """
    Loads service-account credentials for the Google Calendar API.

    The key is looked up in this order:
    1. The GOOGLE_SERVICE_ACCOUNT_KEY environment variable (JSON text)
    2. The configured key file

    The service account needs "Make changes to events" permission on the
    booking calendar, otherwise inserts fail with a permission error.
    """

    SCOPES = ["https://www.googleapis.com/auth/calendar"]

    def __init__(
        self,
        key_file: Path | None = None,
        env_var: str = SERVICE_ACCOUNT_ENV_VAR,
    ):
        """
        Initialize the authenticator.

        Args:
            key_file: Optional path to a service-account JSON key
            env_var: Environment variable holding the JSON key
        """
        self.key_file = key_file
        self.env_var = env_var
        self._credentials: service_account.Credentials | None = None

    def _load_key_info(self) -> Dict[str, Any]:
        raw = os.environ.get(self.env_var)
        if raw:
            try:
                info = json.loads(raw)
            except json.JSONDecodeError as exc:
                raise AuthenticationError(
                    f"Invalid {self.env_var} format in environment variable"
                ) from exc
            logger.info("Using service account key from environment variable")
            return info

        if self.key_file is None or not self.key_file.exists():
            raise AuthenticationError(
                "Service account key not found. Please either:\n"
                f"1. Set the {self.env_var} environment variable, or\n"
                f"2. Point service_account_key_file at your key (currently: {self.key_file})"
            )

        try:
            with open(self.key_file, "r", encoding="utf-8") as f:
                info = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            raise AuthenticationError(f"Could not read service account key {self.key_file}: {exc}") from exc

        logger.info("Using service account key from file %s", self.key_file)
        return info

    def get_credentials(self) -> service_account.Credentials:
        """
        Build (once) and return the service-account credentials.

        Raises:
            AuthenticationError: If no usable key is available
        """
        if self._credentials is None:
            info = self._load_key_info()
            try:
                self._credentials = service_account.Credentials.from_service_account_info(
                    info,
                    scopes=self.SCOPES,
                )
            except (ValueError, GoogleAuthError) as exc:
                raise AuthenticationError(f"Invalid service account key: {exc}") from exc
        return self._credentials

    def get_session(self) -> AuthorizedSession:
        """Return a requests session that signs every call with the credentials."""
        return AuthorizedSession(self.get_credentials())

    @property
    def service_account_email(self) -> str | None:
        credentials = self.get_credentials()
        return getattr(credentials, "service_account_email", None)
