"""Public auth exports for gdrivefs."""

from __future__ import annotations

from .auth_info import AuthInfo
from .credentials import AccessToken, GoogleCredentialProvider
from .oauth_client import OAuthClient

__all__ = ["AuthInfo", "OAuthClient", "AccessToken", "GoogleCredentialProvider"]
