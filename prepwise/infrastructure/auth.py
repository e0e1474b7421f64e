"""
Google credentials for REST calls and Firebase session verification.
"""
import logging
from dataclasses import dataclass
from typing import Optional, Dict, Any

import google.auth
import google.auth.exceptions
import google.auth.transport.requests
from google.oauth2 import id_token, service_account

from ..errors import AuthError

logger = logging.getLogger("auth")

CLOUD_PLATFORM_SCOPE = "https://www.googleapis.com/auth/cloud-platform"
DATASTORE_SCOPE = "https://www.googleapis.com/auth/datastore"


class AccessTokenProvider:
    """Hands out OAuth bearer tokens, refreshing them when they expire."""

    def __init__(self, credentials_json: Optional[str] = None, scopes=(CLOUD_PLATFORM_SCOPE,)):
        self.credentials_json = credentials_json
        self.scopes = list(scopes)
        self._creds = None

    def _load_credentials(self):
        """Load service account or application default credentials."""
        if self.credentials_json:
            creds = service_account.Credentials.from_service_account_file(
                self.credentials_json,
                scopes=self.scopes,
            )
        else:
            creds, _ = google.auth.default(scopes=self.scopes)
        return creds

    def token(self) -> str:
        """
        Return a valid access token.

        Raises:
            AuthError: If credentials cannot be loaded or refreshed
        """
        try:
            if self._creds is None:
                self._creds = self._load_credentials()
            if not self._creds.valid:
                auth_req = google.auth.transport.requests.Request()
                self._creds.refresh(auth_req)
        except (google.auth.exceptions.GoogleAuthError, OSError, ValueError) as e:
            # OSError and ValueError cover a missing or malformed key file
            logger.error("Could not obtain Google access token: %s", e)
            raise AuthError(f"Google credentials unavailable: {e}") from e
        return self._creds.token


@dataclass
class User:
    """The signed-in user as seen by the presentation layer."""
    id: str
    name: str = ""
    email: Optional[str] = None


class FirebaseTokenVerifier:
    """Verifies Firebase ID tokens carried in the session cookie."""

    def __init__(self, project_id: str):
        self.project_id = project_id
        self._request = google.auth.transport.requests.Request()

    def verify(self, token: str) -> User:
        """
        Verify a Firebase ID token and return the user it belongs to.

        Raises:
            AuthError: If the token is empty, expired or not for this project
        """
        if not token:
            raise AuthError("No session token")
        try:
            claims: Dict[str, Any] = id_token.verify_firebase_token(
                token, self._request, audience=self.project_id
            )
        except (ValueError, google.auth.exceptions.GoogleAuthError) as e:
            raise AuthError(f"Invalid session token: {e}") from e
        if not claims:
            raise AuthError("Session token could not be verified")

        user_id = claims.get("user_id") or claims.get("sub")
        if not user_id:
            raise AuthError("Session token has no subject")
        return User(
            id=user_id,
            name=claims.get("name") or claims.get("email") or "",
            email=claims.get("email"),
        )
