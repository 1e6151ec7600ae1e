"""Browser-less OpenID Connect authorization code login for native clients."""

from acmeauth._version import __version__
from acmeauth.config import FlowSettings
from acmeauth.federation import ClientMetadataRegistry
from acmeauth.models.errors import AuthFlowError, ErrorKind
from acmeauth.models.flow import FlowOutcome, FlowResult
from acmeauth.models.request import AuthRequest, ClientMetadata
from acmeauth.orchestrator import SessionOrchestrator
from acmeauth.services.request_parser import AuthorizationRequestParser

__all__ = [
    "AuthFlowError",
    "AuthRequest",
    "AuthorizationRequestParser",
    "ClientMetadata",
    "ClientMetadataRegistry",
    "ErrorKind",
    "FlowOutcome",
    "FlowResult",
    "FlowSettings",
    "SessionOrchestrator",
    "__version__",
]
