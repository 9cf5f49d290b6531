"""Credential loading and Drive service construction."""

from __future__ import annotations

import logging
import os
from typing import Any, Sequence

from google.auth.transport.requests import Request
from google.oauth2 import service_account
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build

from gdrivefs.errors import AuthError, InvalidArgumentError

from .auth_info import AuthInfo

logger = logging.getLogger(__name__)


class OAuthClient:
    """
    Turn an AuthInfo into google-auth credentials and a Drive v3 service.

    kind="oauth" reuses the token file when it is valid (refreshing it when
    possible) and falls back to the installed-app flow. kind="service_account"
    loads the key file and optionally impersonates `subject`.
    """

    def __init__(self, auth_info: AuthInfo) -> None:
        if not isinstance(auth_info, AuthInfo):
            raise InvalidArgumentError("OAuthClient requires an AuthInfo")
        self._auth_info = auth_info

    def get_credentials(self, scopes: Sequence[str], ensure_valid: bool = True) -> Any:
        """
        Return credentials for the given scopes.

        Raises:
            AuthError: on load/refresh/flow failures.
            InvalidArgumentError: if scopes is invalid.
        """
        if not scopes or not all(isinstance(s, str) and s.strip() for s in scopes):
            raise InvalidArgumentError("scopes must be a non-empty sequence of strings")

        if self._auth_info.uses_assertion:
            return self._service_account_credentials(list(scopes))

        creds = self._load_token(list(scopes))
        if creds is not None:
            if not ensure_valid or self._ensure_fresh(creds):
                return creds
        return self._run_flow(list(scopes))

    def build_drive_service(self, credentials: Any) -> Any:
        """Build the googleapiclient Drive v3 resource."""
        try:
            return build("drive", "v3", credentials=credentials, cache_discovery=False)
        except Exception as exc:
            raise AuthError("Failed to build Drive service", cause=exc) from exc

    # ----------------------------
    # OAuth (installed app)
    # ----------------------------
    def _load_token(self, scopes: list[str]) -> Any:
        token_file = self._auth_info.token_file
        if not os.path.exists(token_file):
            return None
        try:
            return Credentials.from_authorized_user_file(token_file, scopes=scopes)
        except Exception as exc:
            raise AuthError(
                "Failed to load token_file",
                details={"token_file": token_file},
                cause=exc,
            ) from exc

    def _ensure_fresh(self, creds: Any) -> bool:
        if creds.valid:
            return True
        if not creds.refresh_token:
            return False
        try:
            creds.refresh(Request())
        except Exception as exc:
            raise AuthError(
                "Failed to refresh OAuth credentials",
                details={"token_file": self._auth_info.token_file},
                cause=exc,
            ) from exc
        self._save_credentials(creds)
        return bool(creds.valid)

    def _run_flow(self, scopes: list[str]) -> Any:
        client_secrets = self._auth_info.client_secrets_file
        logger.info("Starting OAuth authorization flow (client_secrets=%s)", client_secrets)
        try:
            flow = InstalledAppFlow.from_client_secrets_file(client_secrets, scopes=scopes)
            creds = flow.run_local_server(port=0)
        except Exception as exc:
            raise AuthError(
                "OAuth authorization flow failed",
                details={
                    "client_secrets_file": client_secrets,
                    "token_file": self._auth_info.token_file,
                },
                cause=exc,
            ) from exc
        self._save_credentials(creds)
        return creds

    def _save_credentials(self, creds: Any) -> None:
        token_file = self._auth_info.token_file
        token_dir = os.path.dirname(token_file)
        try:
            if token_dir:
                os.makedirs(token_dir, exist_ok=True)
            with open(token_file, "w", encoding="utf-8") as f:
                f.write(creds.to_json())
        except OSError as exc:
            raise AuthError(
                "Failed to save OAuth token file",
                details={"token_file": token_file},
                cause=exc,
            ) from exc

    # ----------------------------
    # Service account (assertion)
    # ----------------------------
    def _service_account_credentials(self, scopes: list[str]) -> Any:
        key_file = self._auth_info.service_account_file
        try:
            creds = service_account.Credentials.from_service_account_file(key_file, scopes=scopes)
        except Exception as exc:
            raise AuthError(
                "Failed to load service_account_file",
                details={"service_account_file": key_file},
                cause=exc,
            ) from exc

        subject = self._auth_info.subject
        if subject:
            logger.debug("Impersonating %s with domain-wide delegation", subject)
            creds = creds.with_subject(subject)
        return creds
