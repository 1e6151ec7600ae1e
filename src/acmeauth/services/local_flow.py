"""Local browser-emulation flow.

Walks the identity provider's HTML login pages the way a browser would:

1. GET the authorization endpoint and scrape the challenge form
   (submitting the username form first when the provider asks for it)
2. POST the challenge response to the form's action
3. Capture the redirect to the relying party as the flow result
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any

import httpx

from acmeauth.models.errors import (
    ChallengeSubmitError,
    ClientError,
    FormParseError,
    UsernameSubmitError,
)
from acmeauth.models.flow import FlowState, FlowVariant, HtmlForm, StepResult
from acmeauth.primitives.html_forms import HtmlFormExtractor
from acmeauth.primitives.redirects import RedirectInterceptor
from acmeauth.services.attempt import LoginAttempt

logger = logging.getLogger(__name__)

HTML_ACCEPT = "text/html,application/xhtml+xml"

Transition = Callable[[LoginAttempt, Any], Awaitable[StepResult]]


class LocalBrowserFlow:
    """State transitions of the HTML form based login conversation."""

    variant = FlowVariant.LOCAL

    def __init__(
        self,
        extractor: HtmlFormExtractor | None = None,
        interceptor: RedirectInterceptor | None = None,
    ):
        self.extractor = extractor or HtmlFormExtractor()
        self.interceptor = interceptor or RedirectInterceptor()

    def transitions(self) -> dict[FlowState, Transition]:
        return {
            FlowState.INIT: self.request_challenge,
            FlowState.USERNAME_REQUESTED: self.submit_username,
            FlowState.REQUESTED_CHALLENGE: self.submit_challenge,
            FlowState.FORM_SUBMITTED: self.capture_redirect,
        }

    async def request_challenge(self, attempt: LoginAttempt, _: Any) -> StepResult:
        """Send the authorization request and scrape the returned login page."""
        response = await attempt.send(
            "GET",
            attempt.settings.authorization_endpoint,
            "authorization request",
            params=attempt.auth_request.authorization_params(),
            headers={"Accept": HTML_ACCEPT},
        )

        # An existing provider session may redirect straight to the client
        result = self.interceptor.capture(response)
        if result is not None:
            return StepResult.completed(result)

        if response.status_code >= 400:
            reason = self.extractor.extract_error_message(response.content)
            logger.warning(
                f"Authorization request rejected with {response.status_code}: {reason}"
            )
            return StepResult.failed(ClientError(reason, response.status_code))

        settings = attempt.settings
        try:
            form = self.extractor.extract_form(
                response.content, settings.challenge_form_id, str(response.url)
            )
        except FormParseError:
            if not self.extractor.has_form(response.content, settings.login_form_id):
                raise
            login_form = self.extractor.extract_form(
                response.content, settings.login_form_id, str(response.url)
            )
            return StepResult.advance(FlowState.USERNAME_REQUESTED, login_form)

        return StepResult.advance(FlowState.REQUESTED_CHALLENGE, form)

    async def submit_username(
        self, attempt: LoginAttempt, login_form: HtmlForm
    ) -> StepResult:
        """Submit the username form and scrape the challenge form that follows."""
        response = await attempt.send(
            "POST",
            login_form.action_url,
            "username submission",
            data={**login_form.fields, "username": attempt.settings.username},
            headers={"Accept": HTML_ACCEPT},
        )

        result = self.interceptor.capture(response)
        if result is not None:
            return StepResult.completed(result)

        if response.status_code != 200:
            return StepResult.failed(
                UsernameSubmitError(
                    f"Username submission returned status {response.status_code}"
                )
            )

        form = self.extractor.extract_form(
            response.content, attempt.settings.challenge_form_id, str(response.url)
        )
        return StepResult.advance(FlowState.REQUESTED_CHALLENGE, form)

    async def submit_challenge(self, attempt: LoginAttempt, form: HtmlForm) -> StepResult:
        """POST the challenge response to the scraped form action."""
        settings = attempt.settings
        data = {
            **form.fields,
            "challenge_data": form.challenge_context or settings.challenge_data,
            "username": settings.username,
        }
        response = await attempt.send(
            "POST",
            form.action_url,
            "challenge submission",
            data=data,
            headers={"Accept": HTML_ACCEPT},
        )
        return StepResult.advance(FlowState.FORM_SUBMITTED, response)

    async def capture_redirect(
        self, attempt: LoginAttempt, response: httpx.Response
    ) -> StepResult:
        """Classify the challenge submission reply; only a redirect succeeds."""
        result = self.interceptor.require(
            response, ChallengeSubmitError, "challenge submission"
        )
        return StepResult.completed(result)
