"""Inbound authorization request parsing.

Turns the deep-link URL a relying party opened into a validated
AuthRequest, resolving the client's display metadata on the way.
"""

from __future__ import annotations

import logging
from urllib.parse import parse_qsl, urlparse

from acmeauth.federation import ClientMetadataRegistry
from acmeauth.models.errors import AuthRequestError, MissingParameterError
from acmeauth.models.request import CODE_CHALLENGE_METHOD, AuthRequest

logger = logging.getLogger(__name__)

REQUIRED_PARAMETERS = ("client_id", "redirect_uri", "code_challenge", "scope")


class AuthorizationRequestParser:
    """Validates inbound deep links against the client registry.

    Parameter names are matched case-insensitively; the first occurrence of
    a name wins. Required parameters are checked in a fixed order and the
    first missing one is reported. An unknown client is not an error: the
    request simply carries no client metadata.
    """

    def __init__(self, registry: ClientMetadataRegistry | None = None):
        if registry is None:
            registry = ClientMetadataRegistry.default()
        self.registry = registry

    def parse(self, url: str) -> AuthRequest:
        """Parse an inbound authorization request URL.

        Args:
            url: Deep-link URL carrying the authorization request parameters

        Returns:
            AuthRequest: Validated, immutable request record

        Raises:
            MissingParameterError: If a required parameter is absent or empty
            InvalidParameterError: If redirect_uri is not absolute or an
                unsupported code_challenge_method is requested
        """
        logger.debug(f"Parsing inbound authorization request: {url}")

        params = self._query_params(url)

        for name in REQUIRED_PARAMETERS:
            if not params.get(name):
                raise MissingParameterError(name)

        client_id = params["client_id"]
        client_metadata = self.registry.lookup(client_id)
        if client_metadata is None:
            logger.info(f"Client {client_id} is not in the federation registry")

        return AuthRequest(
            client_id=client_id,
            redirect_uri=params["redirect_uri"],
            code_challenge=params["code_challenge"],
            scope=params["scope"],
            authn_challenge=params.get("authn_challenge") or None,
            client_metadata=client_metadata,
            code_challenge_method=params.get("code_challenge_method")
            or CODE_CHALLENGE_METHOD,
            url=url,
        )

    def accepts(self, url: str | None) -> bool:
        """Check whether a URL is an authorization request this app can handle."""
        if not url:
            return False
        try:
            self.parse(url)
        except AuthRequestError:
            return False
        return True

    def _query_params(self, url: str) -> dict[str, str]:
        params: dict[str, str] = {}
        for name, value in parse_qsl(urlparse(url).query, keep_blank_values=True):
            params.setdefault(name.lower(), value)
        return params
