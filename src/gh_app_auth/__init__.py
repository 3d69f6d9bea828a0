"""Create GitHub App JWTs and installation access tokens."""

__version__ = "0.1.0"

from .auth import GitHubAppAuth, RepositoryTarget
from .errors import (
    ApiError,
    CryptoError,
    GitHubAppAuthError,
    InvalidArgumentError,
    MalformedResponseError,
    MissingTargetError,
    TransportError,
    UnavailableCapabilityError,
)
from .transport import HttpxTransport, Transport, TransportRequest, TransportResponse

__all__ = [
    "ApiError",
    "CryptoError",
    "GitHubAppAuth",
    "GitHubAppAuthError",
    "InvalidArgumentError",
    "MalformedResponseError",
    "MissingTargetError",
    "RepositoryTarget",
    "HttpxTransport",
    "Transport",
    "TransportError",
    "TransportRequest",
    "TransportResponse",
    "UnavailableCapabilityError",
    "__version__",
]
