"""Credential selection.

Picks which GitHub token to attach to outbound calls. This is pass-through
selection, not a security boundary: the server-configured token always wins
over one supplied by the caller, and no token means unauthenticated calls.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, SecretStr

from core.config import AppSettings


class CredentialSource(str, Enum):
    ENVIRONMENT = "environment"
    CALLER = "caller"


class Credential(BaseModel):
    """Opaque bearer string plus where it came from."""

    model_config = ConfigDict(frozen=True)

    token: SecretStr
    source: CredentialSource

    def reveal(self) -> str:
        return self.token.get_secret_value()


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def resolve_credential(settings: AppSettings, caller_token: str | None = None) -> Credential | None:
    server_token = _clean(settings.github_access_token)
    if server_token:
        return Credential(token=SecretStr(server_token), source=CredentialSource.ENVIRONMENT)

    client_token = _clean(caller_token)
    if client_token:
        return Credential(token=SecretStr(client_token), source=CredentialSource.CALLER)

    return None
