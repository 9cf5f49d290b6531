"""Bearer token access over google-auth credentials."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from google.auth.transport.requests import Request
from google.oauth2 import service_account

from gdrivefs.errors import AuthError


@dataclass(slots=True, frozen=True)
class AccessToken:
    """An access token and, when known, the refresh token behind it."""

    access_token: str = ""
    refresh_token: str = ""


class GoogleCredentialProvider:
    """
    Token collaborator used by the download path.

    Any object exposing the same four methods can stand in for it:
        - get_access_token() -> AccessToken | None
        - fetch_access_token_with_refresh_token() -> AccessToken
        - fetch_access_token_with_assertion() -> AccessToken
        - is_using_assertion_credentials() -> bool
    """

    def __init__(self, credentials: Any) -> None:
        self._credentials = credentials

    @property
    def credentials(self) -> Any:
        return self._credentials

    def get_access_token(self) -> Optional[AccessToken]:
        token = getattr(self._credentials, "token", None) or ""
        refresh = getattr(self._credentials, "refresh_token", None) or ""
        if not token and not refresh:
            return None
        return AccessToken(access_token=token, refresh_token=refresh)

    def fetch_access_token_with_refresh_token(self) -> AccessToken:
        self._refresh("Failed to refresh access token")
        return AccessToken(
            access_token=self._credentials.token or "",
            refresh_token=getattr(self._credentials, "refresh_token", None) or "",
        )

    def fetch_access_token_with_assertion(self) -> AccessToken:
        # Service account credentials refresh through a signed JWT assertion.
        self._refresh("Failed to fetch access token with assertion")
        return AccessToken(access_token=self._credentials.token or "")

    def is_using_assertion_credentials(self) -> bool:
        return isinstance(self._credentials, service_account.Credentials)

    def _refresh(self, message: str) -> None:
        try:
            self._credentials.refresh(Request())
        except Exception as exc:
            raise AuthError(message, cause=exc) from exc
