"""Challenge resource exchanged with the identity provider in the relay flow."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ChallengeResource(BaseModel):
    """JSON body returned by the challenge endpoint.

    ``endpoint`` is where the next step is posted. ``device_code`` correlates
    the steps of one attempt and must survive every replacement of
    ``challenge``.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    endpoint: str = Field(min_length=1)
    challenge: str | None = None
    device_code: str | None = None
    authenticated: bool | None = None

    def with_challenge(self, challenge: str) -> ChallengeResource:
        """Copy with ``challenge`` replaced, keeping endpoint and device code."""
        return self.model_copy(update={"challenge": challenge})

    def carrying_device_code(self, previous: ChallengeResource) -> ChallengeResource:
        """Copy with the device code taken from the previous resource."""
        return self.model_copy(update={"device_code": previous.device_code})
