"""Exceptions raised by the GitHub App authentication helpers."""

from __future__ import annotations

from typing import Optional


class GitHubAppAuthError(RuntimeError):
    """Base class for every error raised by ``gh_app_auth``."""


class InvalidArgumentError(GitHubAppAuthError, ValueError):
    """Raised when a constructor or call argument fails validation."""


class MissingTargetError(GitHubAppAuthError):
    """Raised when neither an installation id nor an owner/repo pair is available."""


class UnavailableCapabilityError(GitHubAppAuthError):
    """Raised when no HTTP transport can be used for a request."""


class CryptoError(GitHubAppAuthError):
    """Raised when the App JWT cannot be signed."""


class TransportError(GitHubAppAuthError):
    """Raised when the transport fails before GitHub returns a response."""

    def __init__(self, context: str, cause: BaseException) -> None:
        super().__init__(f"{context}: {cause}")
        self.context = context


class ApiError(GitHubAppAuthError):
    """Raised when GitHub answers with a status outside the 2xx range."""

    def __init__(self, context: str, status: int, status_text: str, body: Optional[str]) -> None:
        summary = f"{status} {status_text}".strip()
        message = f"{context} ({summary})"
        details = (body or "").strip()
        if details:
            message = f"{message}: {details}"
        super().__init__(message)
        self.context = context
        self.status = status
        self.status_text = status_text
        self.body = body


class MalformedResponseError(GitHubAppAuthError):
    """Raised when a successful GitHub response lacks the expected field."""
