"""HTTP transport capability used by :class:`gh_app_auth.GitHubAppAuth`.

A transport is any coroutine function accepting a URL and a
:class:`TransportRequest` and returning an object shaped like
:class:`TransportResponse`. Callers may inject their own to control
timeouts, proxies or cancellation; otherwise :class:`HttpxTransport` is used.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Optional

try:  # Optional at import time so a custom transport can be injected instead.
    import httpx
except ImportError:  # pragma: no cover - exercised only without httpx installed.
    httpx = None  # type: ignore[assignment]

from . import __version__
from .errors import UnavailableCapabilityError

logger = logging.getLogger(__name__)

USER_AGENT = f"gh-app-auth-py/{__version__}"
DEFAULT_TIMEOUT = 20


@dataclass(frozen=True)
class TransportRequest:
    """Description of a single HTTP request."""

    method: str = "GET"
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[str] = None


@dataclass(frozen=True)
class TransportResponse:
    """Fully read HTTP response."""

    status: int
    status_text: str = ""
    content: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def json(self) -> Any:
        return json.loads(self.content)

    def text(self) -> str:
        return self.content


Transport = Callable[[str, TransportRequest], Awaitable[Any]]


class HttpxTransport:
    """Default transport backed by :class:`httpx.AsyncClient`.

    Each request opens and closes its own client, so concurrent calls share
    no connection state and nothing is left open between calls.
    """

    def __init__(self, timeout: float = DEFAULT_TIMEOUT) -> None:
        if httpx is None:
            raise UnavailableCapabilityError(
                "No HTTP transport available: install 'httpx' or pass `transport=`."
            )
        self.timeout = timeout

    async def __call__(self, url: str, request: TransportRequest) -> TransportResponse:
        async with httpx.AsyncClient(timeout=self.timeout, headers={"User-Agent": USER_AGENT}) as client:
            response = await client.request(
                request.method,
                url,
                headers=request.headers,
                content=request.body.encode("utf-8") if request.body is not None else None,
            )
        logger.debug("%s %s -> %s", request.method, url, response.status_code)
        return TransportResponse(
            status=response.status_code,
            status_text=response.reason_phrase or "",
            content=response.text,
        )


def resolve_transport(transport: Optional[Transport] = None) -> Transport:
    """Return ``transport`` or the default transport when none is supplied."""

    if transport is not None:
        return transport
    return HttpxTransport()
