"""Flow state models shared by both authentication variants.

Contains the transient values passed between steps, the state machine
states, and the tagged results that step transitions return.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from urllib.parse import parse_qs, urlparse

from acmeauth.models.errors import AuthFlowError
from acmeauth.models.request import AuthRequest


class FlowVariant(str, Enum):
    """Which conversation is held with the identity provider."""

    LOCAL = "local"
    REMOTE = "remote"

    @classmethod
    def for_request(cls, auth_request: AuthRequest) -> FlowVariant:
        return cls.REMOTE if auth_request.authn_challenge is not None else cls.LOCAL


class FlowState(str, Enum):
    INIT = "init"
    REQUESTED_CHALLENGE = "requested_challenge"
    USERNAME_REQUESTED = "username_requested"
    FORM_SUBMITTED = "form_submitted"
    CHALLENGE_REPLACED = "challenge_replaced"
    RESPONSE_SUBMITTED = "response_submitted"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (FlowState.COMPLETED, FlowState.FAILED)


@dataclass(frozen=True)
class HtmlForm:
    """Submission target of a form scraped from an identity provider page."""

    action_url: str
    challenge_context: str | None = None
    fields: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class FlowResult:
    """Redirect target captured at the end of a successful attempt.

    The URL is handed back untouched; it is never requested by the engine.
    """

    url: str

    def _param(self, key: str) -> str | None:
        values = parse_qs(urlparse(self.url).query).get(key, [])
        return values[0] if values else None

    @property
    def code(self) -> str | None:
        return self._param("code")

    @property
    def state(self) -> str | None:
        return self._param("state")

    @property
    def error(self) -> str | None:
        return self._param("error")

    def __str__(self) -> str:
        return self.url


@dataclass(frozen=True)
class StepResult:
    """Tagged outcome of one state transition.

    Either names the next state (with an optional value handed to it) or
    carries the error that failed the attempt.
    """

    state: FlowState
    value: Any = None
    error: AuthFlowError | None = None

    @classmethod
    def advance(cls, state: FlowState, value: Any = None) -> StepResult:
        return cls(state=state, value=value)

    @classmethod
    def completed(cls, result: FlowResult) -> StepResult:
        return cls(state=FlowState.COMPLETED, value=result)

    @classmethod
    def failed(cls, error: AuthFlowError) -> StepResult:
        return cls(state=FlowState.FAILED, error=error)


@dataclass(frozen=True)
class FlowOutcome:
    """Final report of one authentication attempt."""

    variant: FlowVariant
    state: FlowState
    history: tuple[FlowState, ...] = ()
    result: FlowResult | None = None
    error: AuthFlowError | None = None

    def is_success(self) -> bool:
        return self.state is FlowState.COMPLETED and self.result is not None

    def is_error(self) -> bool:
        return self.error is not None

    def raise_for_error(self) -> FlowResult:
        """Return the result or raise the classified error."""
        if self.error is not None:
            raise self.error
        if self.result is None:
            raise RuntimeError(f"Attempt ended in {self.state.value} without a result")
        return self.result
