"""Server-side rendering gateway.

The SSR service is a Node process exposing:

- ``POST /render``: accepts the page object as JSON and returns ``{"head": [...], "body": "..."}``
- ``GET /health``: returns 2xx when the service is up

Rendering never fails the request: any transport, HTTP or payload error is logged and
the page is rendered without SSR content.
"""

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol, cast, runtime_checkable

import httpx

from litestar_inertia._async_mixin import AsyncRenderMixin

if TYPE_CHECKING:
    from anyio.from_thread import BlockingPortal

__all__ = ("HttpSsrGateway", "InvalidSsrPayload", "SsrGateway", "SsrResponse")

logger = logging.getLogger("litestar_inertia")


def _empty_head() -> list[str]:
    return []


@dataclass(frozen=True)
class SsrResponse:
    """Markup returned by the SSR service."""

    head: list[str] = field(default_factory=_empty_head)
    body: str = ""

    @property
    def head_html(self) -> str:
        """The head tags joined into one string."""
        return "\n".join(self.head)


@runtime_checkable
class SsrGateway(Protocol):
    """Anything that can prerender a page."""

    def render(self, page: "dict[str, Any]") -> "SsrResponse | None": ...

    def is_available(self) -> bool: ...


class InvalidSsrPayload(ValueError):
    """The SSR service answered with something other than ``{"head": [...], "body": "..."}``."""


def _parse_ssr_payload(payload: Any, url: str) -> SsrResponse:
    if not isinstance(payload, dict):
        msg = f"Inertia SSR server at {url!r} returned unexpected payload type: {type(payload)!r}."
        raise InvalidSsrPayload(msg)

    payload_dict = cast("dict[str, Any]", payload)

    body = payload_dict.get("body")
    if not isinstance(body, str):
        msg = f"Inertia SSR server at {url!r} returned invalid 'body' (expected string)."
        raise InvalidSsrPayload(msg)

    head_raw: Any = payload_dict.get("head") or []
    if not isinstance(head_raw, list) or any(not isinstance(item, str) for item in cast("list[Any]", head_raw)):
        msg = f"Inertia SSR server at {url!r} returned invalid 'head' (expected list[str])."
        raise InvalidSsrPayload(msg)

    return SsrResponse(head=cast("list[str]", head_raw), body=body)


class HttpSsrGateway(AsyncRenderMixin):
    """SSR gateway talking to a Node service over HTTP.

    Requests go through an ``httpx.AsyncClient`` run on a blocking portal, so the
    synchronous response rendering never blocks the event loop on the SSR call.

    Args:
        url: Base URL of the SSR service.
        timeout: Request timeout in seconds.
        client: Shared client. A client is created per request when omitted.
        portal: Portal used to run the async client from synchronous code.
    """

    __slots__ = ("client", "portal", "timeout", "url")

    def __init__(
        self,
        url: str = "http://127.0.0.1:13714",
        *,
        timeout: float = 2.0,
        client: "httpx.AsyncClient | None" = None,
        portal: "BlockingPortal | None" = None,
    ) -> None:
        self.url = url.rstrip("/")
        self.timeout = timeout
        self.client = client
        self.portal = portal

    @property
    def render_url(self) -> str:
        return f"{self.url}/render"

    @property
    def health_url(self) -> str:
        return f"{self.url}/health"

    async def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        if self.client is not None:
            response = await self.client.request(method, url, timeout=self.timeout, **kwargs)
        else:
            async with httpx.AsyncClient() as fallback_client:
                response = await fallback_client.request(method, url, timeout=self.timeout, **kwargs)
        response.raise_for_status()
        return response

    async def render_async(self, page: "dict[str, Any]") -> "SsrResponse | None":
        """Prerender a page.

        Args:
            page: The serialised page object.

        Returns:
            The SSR markup, or None when the service is unreachable or misbehaves.
        """
        try:
            response = await self._send("POST", self.render_url, json=page)
            return _parse_ssr_payload(response.json(), self.render_url)
        except httpx.RequestError as exc:
            logger.warning("Inertia SSR server is not reachable at %s: %s", self.render_url, exc)
        except httpx.HTTPStatusError as exc:
            logger.warning(
                "Inertia SSR server at %s returned HTTP %s, falling back to client-side rendering",
                self.render_url,
                exc.response.status_code,
            )
        except ValueError as exc:
            logger.warning("Inertia SSR render failed, falling back to client-side rendering: %s", exc)
        return None

    async def is_available_async(self) -> bool:
        """Check the SSR service health endpoint.

        Returns:
            True when the service answered with a 2xx status.
        """
        try:
            await self._send("GET", self.health_url)
        except httpx.RequestError as exc:
            logger.debug("Inertia SSR server not reachable: %s", exc)
            return False
        except httpx.HTTPStatusError as exc:
            logger.debug("Inertia SSR health check failed with HTTP %s", exc.response.status_code)
            return False
        return True

    def render(self, page: "dict[str, Any]") -> "SsrResponse | None":
        """Prerender a page from synchronous code.

        Returns:
            The SSR markup, or None when rendering failed.
        """
        with self.with_portal(self.portal) as p:
            return p.call(self.render_async, page)

    def is_available(self) -> bool:
        """Check the SSR service health endpoint from synchronous code.

        Returns:
            True when the service is healthy.
        """
        with self.with_portal(self.portal) as p:
            return p.call(self.is_available_async)
