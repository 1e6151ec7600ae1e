"""Remote challenge-relay flow.

Relays a challenge computed elsewhere (carried on the inbound request as
``authn_challenge``) through the identity provider's JSON challenge API:

1. GET the authorization endpoint and decode the challenge resource
2. Replace the server challenge with the relayed one
3. POST the challenge response, keeping the device code
4. POST ``finish`` and capture the redirect as the flow result
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any

import httpx
from pydantic import ValidationError

from acmeauth.models.challenge import ChallengeResource
from acmeauth.models.errors import ChallengeResponseError
from acmeauth.models.flow import FlowState, FlowVariant, StepResult
from acmeauth.primitives.redirects import RedirectInterceptor
from acmeauth.primitives.signing import ChallengeSigner
from acmeauth.services.attempt import LoginAttempt

logger = logging.getLogger(__name__)

JSON_ACCEPT = "application/json"

Transition = Callable[[LoginAttempt, Any], Awaitable[StepResult]]


def _decode_resource(response: httpx.Response, step: str) -> ChallengeResource:
    try:
        return ChallengeResource.model_validate_json(response.content)
    except (ValidationError, ValueError) as e:
        raise ChallengeResponseError(f"Invalid challenge resource from {step}: {e}") from e


class RemoteChallengeFlow:
    """State transitions of the JSON challenge relay conversation.

    With a signer configured the relayed challenge is signed with the
    device key before it is submitted; otherwise it is submitted as is.
    """

    variant = FlowVariant.REMOTE

    def __init__(
        self,
        signer: ChallengeSigner | None = None,
        interceptor: RedirectInterceptor | None = None,
    ):
        self.signer = signer
        self.interceptor = interceptor or RedirectInterceptor()

    def transitions(self) -> dict[FlowState, Transition]:
        return {
            FlowState.INIT: self.request_challenge,
            FlowState.REQUESTED_CHALLENGE: self.replace_challenge,
            FlowState.CHALLENGE_REPLACED: self.submit_challenge_response,
            FlowState.RESPONSE_SUBMITTED: self.finish,
        }

    async def request_challenge(self, attempt: LoginAttempt, _: Any) -> StepResult:
        """Send the authorization request and decode the challenge resource."""
        response = await attempt.send(
            "GET",
            attempt.settings.authorization_endpoint,
            "challenge request",
            params=attempt.auth_request.authorization_params(),
            headers={"Accept": JSON_ACCEPT},
        )

        result = self.interceptor.capture(response)
        if result is not None:
            return StepResult.completed(result)

        if response.status_code != 200:
            return StepResult.failed(
                ChallengeResponseError(
                    f"Challenge request returned status {response.status_code}"
                )
            )

        resource = _decode_resource(response, "challenge request")
        logger.debug(f"Got challenge resource with endpoint {resource.endpoint}")
        return StepResult.advance(FlowState.REQUESTED_CHALLENGE, resource)

    async def replace_challenge(
        self, attempt: LoginAttempt, resource: ChallengeResource
    ) -> StepResult:
        """Swap in the relayed challenge; endpoint and device code are kept."""
        relayed = attempt.auth_request.authn_challenge
        if not relayed:
            return StepResult.failed(
                ChallengeResponseError("Request carries no challenge to relay")
            )
        return StepResult.advance(
            FlowState.CHALLENGE_REPLACED, resource.with_challenge(relayed)
        )

    async def submit_challenge_response(
        self, attempt: LoginAttempt, resource: ChallengeResource
    ) -> StepResult:
        """POST the challenge response and decode the updated resource."""
        challenge = resource.challenge or ""
        signature = challenge
        if self.signer is not None:
            signature = await attempt.within_deadline(
                self.signer.sign_async(challenge), "challenge signing"
            )

        response = await attempt.send(
            "POST",
            resource.endpoint,
            "challenge response",
            data={
                "command": "challenge_response",
                "signature": signature,
                "challenge_data": challenge,
                "username": attempt.settings.username,
            },
            headers={"Accept": JSON_ACCEPT},
        )

        result = self.interceptor.capture(response)
        if result is not None:
            return StepResult.completed(result)

        if response.status_code != 200:
            return StepResult.failed(
                ChallengeResponseError(
                    f"Challenge response returned status {response.status_code}"
                )
            )

        updated = _decode_resource(response, "challenge response")
        updated = updated.carrying_device_code(resource)
        logger.info(
            "Submitted challenge response, "
            f"authenticated={bool(updated.authenticated)}"
        )
        return StepResult.advance(FlowState.RESPONSE_SUBMITTED, updated)

    async def finish(
        self, attempt: LoginAttempt, resource: ChallengeResource
    ) -> StepResult:
        """POST the finish command; the reply must redirect to the client."""
        if not resource.device_code:
            return StepResult.failed(
                ChallengeResponseError("No device code to finish authentication")
            )

        response = await attempt.send(
            "POST",
            resource.endpoint,
            "finish",
            data={"command": "finish", "device_code": resource.device_code},
            headers={"Accept": JSON_ACCEPT},
        )
        result = self.interceptor.require(response, ChallengeResponseError, "finish")
        return StepResult.completed(result)
