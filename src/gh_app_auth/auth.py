"""GitHub App client: JWT minting, installation lookup and token exchange."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Mapping, NamedTuple, Optional, Sequence, Union
from urllib.parse import quote

from .errors import (
    ApiError,
    InvalidArgumentError,
    MalformedResponseError,
    MissingTargetError,
    TransportError,
)
from .signing import DEFAULT_JWT_EXPIRES_IN_SECONDS, create_jwt
from .transport import Transport, TransportRequest, resolve_transport
from .utils import (
    normalize_api_base_url,
    normalize_optional_string,
    normalize_private_key,
    parse_jwt_expiry_window,
    parse_optional_positive_integer,
    parse_positive_integer,
)

logger = logging.getLogger(__name__)

GITHUB_API_VERSION = "2022-11-28"

_MISSING_TARGET_MESSAGE = (
    "Missing repository target. Provide both `owner` and `repo` in the constructor or method call."
)
_MISSING_ID_MESSAGE = "GitHub response did not include an installation id."
_MISSING_TOKEN_MESSAGE = "GitHub response did not include an installation token."

Permissions = Mapping[str, str]
IntegerLike = Union[int, str]


class RepositoryTarget(NamedTuple):
    owner: str
    repo: str


class GitHubAppAuth:
    """Authenticate as a GitHub App and create installation access tokens.

    Every network operation mints a fresh JWT, so a single instance can be
    shared between concurrent tasks. Tokens are returned to the caller and
    never cached.

    ``owner`` and ``repo`` form an optional default repository target and must
    be given together. ``transport`` overrides the HTTP layer; by default a
    :class:`~gh_app_auth.transport.HttpxTransport` is created on first use.
    """

    _app_id: int
    _private_key: str
    _default_target: Optional[RepositoryTarget]
    _installation_id: Optional[int]
    _api_base_url: str
    _jwt_expires_in_seconds: int
    _transport: Optional[Transport]

    def __init__(
        self,
        *,
        app_id: IntegerLike,
        private_key: str,
        owner: Optional[str] = None,
        repo: Optional[str] = None,
        installation_id: Optional[IntegerLike] = None,
        jwt_expires_in_seconds: Optional[int] = None,
        api_base_url: Optional[str] = None,
        transport: Optional[Transport] = None,
    ) -> None:
        self._app_id = parse_positive_integer(app_id, "app_id")
        self._private_key = normalize_private_key(private_key)

        owner = normalize_optional_string(owner, "owner")
        repo = normalize_optional_string(repo, "repo")
        if (owner is None) != (repo is None):
            raise InvalidArgumentError(
                "Both `owner` and `repo` must be provided together when setting a default "
                "repository target."
            )
        self._default_target = RepositoryTarget(owner, repo) if owner and repo else None

        self._installation_id = parse_optional_positive_integer(installation_id, "installation_id")
        window = parse_jwt_expiry_window(jwt_expires_in_seconds)
        self._jwt_expires_in_seconds = window if window is not None else DEFAULT_JWT_EXPIRES_IN_SECONDS
        self._api_base_url = normalize_api_base_url(api_base_url)
        self._transport = transport

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(app_id={self._app_id}, default_target={self._default_target!r}, "
            f"installation_id={self._installation_id}, api_base_url={self._api_base_url!r})"
        )

    @property
    def app_id(self) -> int:
        return self._app_id

    @property
    def api_base_url(self) -> str:
        return self._api_base_url

    @property
    def jwt_expires_in_seconds(self) -> int:
        return self._jwt_expires_in_seconds

    @property
    def installation_id(self) -> Optional[int]:
        return self._installation_id

    @property
    def default_target(self) -> Optional[RepositoryTarget]:
        return self._default_target

    def create_jwt(self) -> str:
        """Return a freshly signed App JWT."""

        return create_jwt(self._app_id, self._private_key, self._jwt_expires_in_seconds)

    async def resolve_installation_id(
        self,
        owner: Optional[str] = None,
        repo: Optional[str] = None,
    ) -> int:
        """Return the installation id of the App on ``owner/repo``.

        Missing arguments fall back to the default repository target.
        """

        target = self._effective_target(owner, repo)
        if target is None:
            raise MissingTargetError(_MISSING_TARGET_MESSAGE)

        context = f"Failed to read installation for {target.owner}/{target.repo}"
        url = (
            f"{self._api_base_url}/repos/{quote(target.owner, safe='')}"
            f"/{quote(target.repo, safe='')}/installation"
        )
        logger.debug("Resolving installation for %s/%s", target.owner, target.repo)

        payload = await self._request(
            url, TransportRequest("GET", self._headers()), context, _MISSING_ID_MESSAGE
        )

        installation_id = payload.get("id") if isinstance(payload, dict) else None
        if not _is_positive_int(installation_id):
            raise MalformedResponseError(_MISSING_ID_MESSAGE)

        return installation_id

    async def create_access_token(
        self,
        *,
        installation_id: Optional[IntegerLike] = None,
        owner: Optional[str] = None,
        repo: Optional[str] = None,
        permissions: Optional[Permissions] = None,
        repositories: Optional[Sequence[str]] = None,
        repository_ids: Optional[Sequence[int]] = None,
    ) -> str:
        """Exchange an App JWT for an installation access token.

        The installation is taken from ``installation_id``, then from the
        client's default installation id, and only then looked up from the
        repository target. ``permissions``, ``repositories`` and
        ``repository_ids`` are sent as given to narrow the token's scope.
        """

        resolved_id = parse_optional_positive_integer(
            installation_id if installation_id is not None else self._installation_id,
            "installation_id",
        )

        if resolved_id is None:
            target = self._effective_target(owner, repo)
            if target is None:
                raise MissingTargetError(_MISSING_TARGET_MESSAGE)
            resolved_id = await self.resolve_installation_id(target.owner, target.repo)

        body: Dict[str, Any] = {}
        if permissions is not None:
            body["permissions"] = dict(permissions)
        if repositories is not None:
            body["repositories"] = list(repositories)
        if repository_ids is not None:
            body["repository_ids"] = list(repository_ids)

        headers = self._headers()
        headers["Content-Type"] = "application/json"

        context = f"Failed to create installation access token for installation {resolved_id}"
        url = f"{self._api_base_url}/app/installations/{resolved_id}/access_tokens"
        logger.debug("Creating access token for installation %s", resolved_id)

        payload = await self._request(
            url, TransportRequest("POST", headers, json.dumps(body)), context, _MISSING_TOKEN_MESSAGE
        )

        token = payload.get("token") if isinstance(payload, dict) else None
        if not isinstance(token, str) or not token:
            raise MalformedResponseError(_MISSING_TOKEN_MESSAGE)

        return token

    @classmethod
    async def issue_access_token(
        cls,
        *,
        app_id: IntegerLike,
        private_key: str,
        owner: Optional[str] = None,
        repo: Optional[str] = None,
        installation_id: Optional[IntegerLike] = None,
        jwt_expires_in_seconds: Optional[int] = None,
        api_base_url: Optional[str] = None,
        transport: Optional[Transport] = None,
        permissions: Optional[Permissions] = None,
        repositories: Optional[Sequence[str]] = None,
        repository_ids: Optional[Sequence[int]] = None,
    ) -> str:
        """Create an installation access token without keeping a client around."""

        auth = cls(
            app_id=app_id,
            private_key=private_key,
            owner=owner,
            repo=repo,
            installation_id=installation_id,
            jwt_expires_in_seconds=jwt_expires_in_seconds,
            api_base_url=api_base_url,
            transport=transport,
        )
        return await auth.create_access_token(
            permissions=permissions,
            repositories=repositories,
            repository_ids=repository_ids,
        )

    def _effective_target(self, owner: Optional[str], repo: Optional[str]) -> Optional[RepositoryTarget]:
        default_owner, default_repo = self._default_target or (None, None)
        owner = normalize_optional_string(owner, "owner") or default_owner
        repo = normalize_optional_string(repo, "repo") or default_repo
        if not owner or not repo:
            return None
        return RepositoryTarget(owner, repo)

    def _headers(self) -> Dict[str, str]:
        return {
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {self.create_jwt()}",
            "X-GitHub-Api-Version": GITHUB_API_VERSION,
        }

    def _get_transport(self) -> Transport:
        if self._transport is None:
            self._transport = resolve_transport()
        return self._transport

    async def _request(
        self, url: str, request: TransportRequest, context: str, missing_message: str
    ) -> Any:
        """Send ``request`` and return the decoded JSON body of a 2xx response.

        A 2xx body that is not JSON raises ``MalformedResponseError`` with
        ``missing_message``, the same error as a body lacking the expected field.
        """

        transport = self._get_transport()
        try:
            response = await transport(url, request)
        except Exception as exc:
            raise TransportError(context, exc) from exc

        if not response.ok:
            raise ApiError(context, response.status, response.status_text, response.text())

        try:
            return response.json()
        except ValueError as exc:
            raise MalformedResponseError(missing_message) from exc


def _is_positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


__all__ = ["GitHubAppAuth", "RepositoryTarget", "GITHUB_API_VERSION"]
