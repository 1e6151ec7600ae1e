"""Redirect interception for login sessions.

A login session never follows redirects. The terminal 302 of a flow
carries the relying party callback with the authorization code, and its
Location header is captured as the flow result instead of being requested.
"""

from __future__ import annotations

import logging
from urllib.parse import urljoin, urlparse

import httpx

from acmeauth.config import FlowSettings
from acmeauth.models.errors import AuthFlowError, RedirectError
from acmeauth.models.flow import FlowResult

logger = logging.getLogger(__name__)

REDIRECT_STATUS = 302


class RedirectInterceptor:
    """Session policy that turns a 302 response into a FlowResult."""

    follow_redirects = False

    def is_redirect(self, response: httpx.Response) -> bool:
        return response.status_code == REDIRECT_STATUS

    def capture(self, response: httpx.Response) -> FlowResult | None:
        """Capture the Location of a redirect response.

        Returns:
            FlowResult for a 302 response, None for any other status

        Raises:
            RedirectError: If a 302 response has no Location header
        """
        if not self.is_redirect(response):
            return None

        location = response.headers.get("location")
        if not location:
            raise RedirectError(
                f"Redirect from {response.request.url} has no Location header"
            )

        if not urlparse(location).scheme:
            location = urljoin(str(response.request.url), location)

        logger.debug(f"Intercepted redirect from {response.request.url}")
        return FlowResult(url=location)

    def require(
        self,
        response: httpx.Response,
        otherwise: type[AuthFlowError],
        step: str,
    ) -> FlowResult:
        """Capture a redirect that must end the flow.

        Raises:
            otherwise: If the response is not a redirect
            RedirectError: If the redirect has no Location header
        """
        result = self.capture(response)
        if result is None:
            raise otherwise(
                f"Expected redirect after {step}, got status {response.status_code}"
            )
        return result

    def open_session(
        self,
        settings: FlowSettings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> httpx.AsyncClient:
        """Create the HTTP session owned by one attempt.

        Each call returns a fresh client with its own cookie jar, so
        sessions are never shared between attempts.
        """
        return httpx.AsyncClient(
            follow_redirects=self.follow_redirects,
            timeout=settings.http_timeout(),
            transport=transport,
            headers={"User-Agent": settings.user_agent},
        )
