"""Settings for an authorization flow orchestrator.

One immutable FlowSettings value is handed to the orchestrator at
construction time. It can be built from keyword arguments or loaded from a
JSON file.
"""

from __future__ import annotations

import json
from pathlib import Path
from urllib.parse import urlparse

import httpx
from pydantic import BaseModel, ConfigDict, Field, field_validator

from acmeauth._version import __version__


class FlowSettings(BaseModel):
    """Identity provider endpoint, local identity, and page element names."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    authorization_endpoint: str
    username: str = Field(default="user1", min_length=1)
    timeout: float = Field(default=30.0, gt=0)

    # Element ids of the identity provider's login pages (Keycloak defaults)
    login_form_id: str = "kc-form-login"
    challenge_form_id: str = "kc-totp-login-form"
    error_element_id: str = "kc-error-message"

    # Sent as challenge_data when the challenge form carries no challenge
    challenge_data: str = "fake"

    user_agent: str = f"acmeauth/{__version__}"

    @field_validator("authorization_endpoint")
    @classmethod
    def validate_authorization_endpoint(cls, v: str) -> str:
        parsed = urlparse(v)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"authorization_endpoint must be an absolute URL: {v}")
        return v

    @classmethod
    def from_file(cls, path: str | Path) -> FlowSettings:
        """Load settings from a JSON document."""
        with open(path, encoding="utf-8") as f:
            return cls.model_validate(json.load(f))

    def http_timeout(self) -> httpx.Timeout:
        return httpx.Timeout(self.timeout)
