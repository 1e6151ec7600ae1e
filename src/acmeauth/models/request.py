"""Inbound authorization request models.

Contains the client display metadata served by the federation registry and
the validated request record produced from an inbound deep link.
"""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator

from acmeauth.models.errors import InvalidParameterError, MissingParameterError

CODE_CHALLENGE_METHOD = "S256"


class ClientMetadata(BaseModel):
    """Display metadata of a registered relying party.

    See https://openid.net/specs/openid-connect-registration-1_0.html#ClientMetadata
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(min_length=1)
    display_name: str = Field(alias="name")
    icon_uri: str | None = None

    @field_validator("icon_uri")
    @classmethod
    def validate_icon_uri(cls, v: str | None) -> str | None:
        if v is not None and urlparse(v).scheme not in ("http", "https"):
            raise ValueError(f"icon_uri must be an http(s) URL: {v}")
        return v

    @classmethod
    def placeholder(cls, client_id: str) -> ClientMetadata:
        """Metadata to display for a client the registry does not know."""
        return cls(id=client_id, display_name="Unknown application")


def is_absolute_uri(uri: str) -> bool:
    parsed = urlparse(uri)
    return bool(parsed.scheme) and bool(parsed.netloc or parsed.path)


@dataclass(frozen=True)
class AuthRequest:
    """Validated authorization request received from a relying party.

    Presence of ``authn_challenge`` selects the remote challenge-relay flow.
    ``client_metadata`` is None when the registry does not know the client.
    """

    client_id: str
    redirect_uri: str
    code_challenge: str
    scope: str
    authn_challenge: str | None = None
    client_metadata: ClientMetadata | None = None
    code_challenge_method: str = CODE_CHALLENGE_METHOD
    url: str | None = None

    def __post_init__(self) -> None:
        # Checked in the order a relying party is expected to send them.
        for name in ("client_id", "redirect_uri", "code_challenge", "scope"):
            if not getattr(self, name):
                raise MissingParameterError(name)
        if not is_absolute_uri(self.redirect_uri):
            raise InvalidParameterError(
                "redirect_uri", f"not an absolute URI: {self.redirect_uri}"
            )
        if self.code_challenge_method != CODE_CHALLENGE_METHOD:
            raise InvalidParameterError(
                "code_challenge_method", "only S256 is supported"
            )

    @property
    def is_remote(self) -> bool:
        return self.authn_challenge is not None

    @property
    def display_metadata(self) -> ClientMetadata:
        """Client metadata for display, falling back to a placeholder."""
        if self.client_metadata is None:
            return ClientMetadata.placeholder(self.client_id)
        return self.client_metadata

    def authorization_params(self) -> dict[str, str]:
        """Query parameters for the identity provider's authorization endpoint."""
        return {
            "response_type": "code",
            "client_id": self.client_id,
            "code_challenge_method": self.code_challenge_method,
            "redirect_uri": self.redirect_uri,
            "code_challenge": self.code_challenge,
            "scope": self.scope,
        }
