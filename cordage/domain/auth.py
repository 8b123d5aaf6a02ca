"""Auth request records passed through the event log."""

from typing import Any

from pydantic import BaseModel, Field


class AuthConfig(BaseModel):
    """
    Describes a credential a tool needs before it can run.

    The engine only carries this object from the tool that requested it to
    the client; exchanging or refreshing the credential is left to the host.
    """

    auth_scheme: dict[str, Any] = Field(default_factory=dict)
    raw_auth_credential: dict[str, Any] | None = None
    exchanged_auth_credential: dict[str, Any] | None = None
    credential_key: str | None = None


__all__ = ["AuthConfig"]
