"""Per-attempt login session context.

A LoginAttempt owns the HTTP session of exactly one authentication attempt
together with its state history and deadline. Requests go out strictly one
at a time and are never retried.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from typing import Any, TypeVar

import httpx

from acmeauth.config import FlowSettings
from acmeauth.models.errors import FlowTimeoutError, TransportError
from acmeauth.models.flow import FlowState, FlowVariant
from acmeauth.models.request import AuthRequest

logger = logging.getLogger(__name__)

T = TypeVar("T")


class LoginAttempt:
    """State of one authentication attempt.

    The attempt-level deadline is shared by every suspension point: each
    request (and the signing step of the relay flow) only gets the time
    left over from the previous steps.
    """

    def __init__(
        self,
        auth_request: AuthRequest,
        settings: FlowSettings,
        client: httpx.AsyncClient,
        variant: FlowVariant,
    ):
        self.auth_request = auth_request
        self.settings = settings
        self.client = client
        self.variant = variant
        self.state = FlowState.INIT
        self.history: list[FlowState] = [FlowState.INIT]
        self._deadline = asyncio.get_running_loop().time() + settings.timeout

    @property
    def remaining(self) -> float:
        return self._deadline - asyncio.get_running_loop().time()

    def move_to(self, state: FlowState) -> None:
        logger.debug(f"{self.variant.value} flow: {self.state.value} -> {state.value}")
        self.state = state
        self.history.append(state)

    async def within_deadline(self, awaitable: Awaitable[T], step: str) -> T:
        """Await a suspension point, failing with FlowTimeoutError past the deadline."""
        remaining = self.remaining
        if remaining <= 0:
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise FlowTimeoutError(step)
        try:
            return await asyncio.wait_for(awaitable, timeout=remaining)
        except asyncio.TimeoutError as e:
            raise FlowTimeoutError(step) from e

    async def send(
        self, method: str, url: str, step: str, **kwargs: Any
    ) -> httpx.Response:
        """Issue one request of the flow.

        Raises:
            FlowTimeoutError: If the attempt deadline passes first
            TransportError: If the request fails at the HTTP layer
        """
        logger.debug(f"{step}: {method} {url}")
        try:
            response = await self.within_deadline(
                self.client.request(method, url, **kwargs), step
            )
        except httpx.TimeoutException as e:
            raise FlowTimeoutError(step) from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise TransportError(f"HTTP error during {step}: {e}") from e

        logger.debug(f"{step}: status {response.status_code}")
        return response
