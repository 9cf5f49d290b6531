"""Authentication information for gdrivefs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

_REQUIRED_KEYS: dict[str, tuple[str, ...]] = {
    "oauth": ("client_secrets_file", "token_file"),
    "service_account": ("service_account_file",),
}


@dataclass(slots=True, frozen=True)
class AuthInfo:
    """
    Authentication information.

    Supported kinds:
        kind = "oauth"
            data must include:
                - client_secrets_file
                - token_file
        kind = "service_account" (assertion-based credentials)
            data must include:
                - service_account_file
            data may include:
                - subject (user to impersonate with domain-wide delegation)
    """

    kind: str
    data: dict[str, Any]

    def __post_init__(self) -> None:
        if self.kind not in _REQUIRED_KEYS:
            raise ValueError(
                f"AuthInfo.kind must be one of {tuple(_REQUIRED_KEYS)}"
            )

        if not isinstance(self.data, dict):
            raise TypeError("AuthInfo.data must be a dict")

        for key in _REQUIRED_KEYS[self.kind]:
            value = self.data.get(key)
            if not isinstance(value, str) or not value.strip():
                raise ValueError(f"AuthInfo.data['{key}'] must be a non-empty string")

    @property
    def uses_assertion(self) -> bool:
        return self.kind == "service_account"

    @property
    def client_secrets_file(self) -> str:
        """Path to OAuth client secrets JSON."""
        return str(self.data["client_secrets_file"])

    @property
    def token_file(self) -> str:
        """Path to OAuth token JSON (authorized user)."""
        return str(self.data["token_file"])

    @property
    def service_account_file(self) -> str:
        """Path to a service account key JSON."""
        return str(self.data["service_account_file"])

    @property
    def subject(self) -> Optional[str]:
        value = self.data.get("subject")
        return value if isinstance(value, str) and value else None
