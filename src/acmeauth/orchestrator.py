"""Browser-less authorization flow orchestration.

Runs one authentication attempt per inbound request: opens an isolated
HTTP session, selects the flow variant, and drives its state transitions
until the redirect to the relying party is captured or the attempt fails.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

import httpx

from acmeauth.config import FlowSettings
from acmeauth.models.errors import AuthFlowError
from acmeauth.models.flow import (
    FlowOutcome,
    FlowResult,
    FlowState,
    FlowVariant,
    StepResult,
)
from acmeauth.models.request import AuthRequest
from acmeauth.primitives.html_forms import HtmlFormExtractor
from acmeauth.primitives.redirects import RedirectInterceptor
from acmeauth.primitives.signing import ChallengeSigner
from acmeauth.services.attempt import LoginAttempt
from acmeauth.services.local_flow import LocalBrowserFlow
from acmeauth.services.remote_flow import RemoteChallengeFlow

logger = logging.getLogger(__name__)

TransportFactory = Callable[[], httpx.AsyncBaseTransport]


class SessionOrchestrator:
    """Drives authentication attempts against one identity provider.

    The orchestrator itself holds no per-attempt state, so independent
    attempts may run concurrently. Each attempt gets its own HTTP session
    (cookie jar, connection pool, redirect policy) which is closed when the
    attempt ends, fails, or is cancelled.
    """

    def __init__(
        self,
        settings: FlowSettings,
        signer: ChallengeSigner | None = None,
        transport_factory: TransportFactory | None = None,
    ):
        """Initialize the orchestrator.

        Args:
            settings: Identity provider endpoint, username, and deadline
            signer: Optional device-key signer for the challenge relay flow
            transport_factory: Optional factory for the HTTP transport of
                each attempt; a new transport is created per attempt
        """
        self.settings = settings
        self.interceptor = RedirectInterceptor()
        self.extractor = HtmlFormExtractor(settings.error_element_id)
        self._transport_factory = transport_factory
        self._flows: dict[FlowVariant, LocalBrowserFlow | RemoteChallengeFlow] = {
            FlowVariant.LOCAL: LocalBrowserFlow(self.extractor, self.interceptor),
            FlowVariant.REMOTE: RemoteChallengeFlow(signer, self.interceptor),
        }

    async def run(self, auth_request: AuthRequest) -> FlowOutcome:
        """Run one authentication attempt to completion.

        Classified failures are reported in the outcome, not raised.
        Cancellation propagates after the session has been closed.

        Args:
            auth_request: Validated inbound authorization request

        Returns:
            FlowOutcome: Captured redirect or the error that ended the attempt
        """
        variant = FlowVariant.for_request(auth_request)
        flow = self._flows[variant]
        transitions = flow.transitions()

        logger.info(
            f"Starting {variant.value} authentication for client "
            f"{auth_request.client_id}"
        )

        transport = self._transport_factory() if self._transport_factory else None
        async with self.interceptor.open_session(self.settings, transport) as client:
            attempt = LoginAttempt(auth_request, self.settings, client, variant)
            step = StepResult.advance(FlowState.INIT)

            while not step.state.is_terminal:
                transition = transitions.get(step.state)
                if transition is None:
                    raise RuntimeError(
                        f"No {variant.value} transition from {step.state.value}"
                    )
                try:
                    step = await transition(attempt, step.value)
                except AuthFlowError as e:
                    step = StepResult.failed(e)
                attempt.move_to(step.state)

        return self._outcome(attempt, step)

    async def authenticate(self, auth_request: AuthRequest) -> FlowResult:
        """Run one attempt and return the captured redirect.

        Raises:
            AuthFlowError: The classified error that ended the attempt
        """
        outcome = await self.run(auth_request)
        return outcome.raise_for_error()

    def _outcome(self, attempt: LoginAttempt, step: StepResult) -> FlowOutcome:
        history = tuple(attempt.history)
        if step.error is not None:
            logger.warning(
                f"{attempt.variant.value} authentication failed "
                f"({step.error.kind.value}): {step.error}"
            )
            return FlowOutcome(
                variant=attempt.variant,
                state=FlowState.FAILED,
                history=history,
                error=step.error,
            )

        logger.info(f"{attempt.variant.value} authentication completed")
        return FlowOutcome(
            variant=attempt.variant,
            state=FlowState.COMPLETED,
            history=history,
            result=step.value,
        )
