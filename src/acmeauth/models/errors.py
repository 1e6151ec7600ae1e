"""Exception hierarchy for browser-less authorization flows.

Every failure of an authentication attempt is classified into one
ErrorKind so callers can decide what to show the end user. None of these
errors are retried internally; a retry means a fresh attempt with a fresh
session.
"""

from __future__ import annotations

from enum import Enum

GENERIC_FAILURE_MESSAGE = "Authentication failed."


class ErrorKind(str, Enum):
    MISSING_PARAMETER = "missing_parameter"
    INVALID_PARAMETER = "invalid_parameter"
    CLIENT_ERROR = "client_error"
    FORM_PARSE = "form_parse"
    USERNAME_SUBMIT = "username_submit"
    CHALLENGE_SUBMIT = "challenge_submit"
    CHALLENGE_RESPONSE = "challenge_response"
    REDIRECT = "redirect"
    SIGNATURE = "signature"
    TIMEOUT = "timeout"
    TRANSPORT = "transport"


class AuthFlowError(Exception):
    """Base exception for all authentication attempt failures."""

    kind: ErrorKind
    # Whether str(self) is fit for display to the end user.
    user_visible: bool = False

    @property
    def user_message(self) -> str:
        """Message to present to the end user.

        Protocol and parsing problems collapse into a generic message,
        reasons reported by the identity provider are shown verbatim.
        """
        if self.user_visible:
            return str(self)
        return GENERIC_FAILURE_MESSAGE


class AuthRequestError(AuthFlowError):
    """Raised when an inbound authorization request is malformed."""

    user_visible = True


class MissingParameterError(AuthRequestError):
    """Raised when a required query parameter is absent or empty."""

    kind = ErrorKind.MISSING_PARAMETER

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Missing required parameter: {name}")


class InvalidParameterError(AuthRequestError):
    """Raised when a query parameter is present but unusable."""

    kind = ErrorKind.INVALID_PARAMETER

    def __init__(self, name: str, reason: str):
        self.name = name
        self.reason = reason
        super().__init__(f"Invalid parameter {name}: {reason}")


class ClientError(AuthFlowError):
    """Raised when the identity provider rejects the authorization request.

    The reason is the human-readable message extracted from the provider's
    error page.
    """

    kind = ErrorKind.CLIENT_ERROR
    user_visible = True

    def __init__(self, reason: str, status_code: int | None = None):
        self.reason = reason
        self.status_code = status_code
        super().__init__(reason)


class FormParseError(AuthFlowError):
    """Raised when an expected HTML form is absent or malformed."""

    kind = ErrorKind.FORM_PARSE


class UsernameSubmitError(AuthFlowError):
    """Raised when the username form submission is not accepted."""

    kind = ErrorKind.USERNAME_SUBMIT


class ChallengeSubmitError(AuthFlowError):
    """Raised when the challenge form submission does not redirect."""

    kind = ErrorKind.CHALLENGE_SUBMIT


class ChallengeResponseError(AuthFlowError):
    """Raised when a challenge relay step returns an unexpected response."""

    kind = ErrorKind.CHALLENGE_RESPONSE


class RedirectError(AuthFlowError):
    """Raised when a redirect response carries no Location header."""

    kind = ErrorKind.REDIRECT


class SignatureError(AuthFlowError):
    """Raised when the device key cannot be loaded or cannot sign."""

    kind = ErrorKind.SIGNATURE


class FlowTimeoutError(AuthFlowError):
    """Raised when a step exceeds the attempt deadline."""

    kind = ErrorKind.TIMEOUT
    user_visible = True

    def __init__(self, step: str):
        self.step = step
        super().__init__(f"Timed out during {step}")


class TransportError(AuthFlowError):
    """Raised when the HTTP exchange itself fails."""

    kind = ErrorKind.TRANSPORT
    user_visible = True
