import logging
from typing import TYPE_CHECKING, Any, cast

from litestar.datastructures import MutableScopeHeaders
from litestar.enums import ScopeType
from litestar.middleware import AbstractMiddleware
from litestar.status_codes import HTTP_302_FOUND, HTTP_303_SEE_OTHER

from litestar_inertia._utils import InertiaHeaders
from litestar_inertia.flash import FlashStore
from litestar_inertia.request import InertiaContext, InertiaRequest
from litestar_inertia.response import InertiaExternalRedirect

if TYPE_CHECKING:
    from litestar.types import ASGIApp, Message, Receive, Scope, Send

    from litestar_inertia.plugin import InertiaPlugin

__all__ = ("InertiaMiddleware", "adapt_redirect_status", "get_version_mismatch_location")

logger = logging.getLogger("litestar_inertia")

_METHODS_REQUIRING_SEE_OTHER = frozenset({"PUT", "PATCH", "DELETE"})


def get_version_mismatch_location(context: "InertiaContext", server_version: "str | None") -> "str | None":
    """Return where the client must hard-reload to when its assets are stale.

    Args:
        context: The request context.
        server_version: The current server asset version.

    Returns:
        The request URL when an Inertia client sent a version that differs from the
        server version, otherwise None.
    """
    if not context.is_inertia:
        return None
    if context.version is None or server_version is None:
        return None
    if context.version == server_version:
        return None
    return context.url


def adapt_redirect_status(status: int, method: str, *, is_inertia: bool) -> int:
    """Return the redirect status an Inertia client should receive.

    A 302 after PUT, PATCH or DELETE becomes a 303 so the browser follows it with GET.

    Args:
        status: The response status.
        method: The request method.
        is_inertia: Whether the request came from an Inertia client.

    Returns:
        The adapted status.
    """
    if is_inertia and status == HTTP_302_FOUND and method.upper() in _METHODS_REQUIRING_SEE_OTHER:
        return HTTP_303_SEE_OTHER
    return status


def redirect_on_asset_version_mismatch(request: "InertiaRequest[Any, Any, Any]") -> "InertiaExternalRedirect | None":
    """Return redirect response when client and server asset versions differ.

    Returns:
        An InertiaExternalRedirect when versions differ, otherwise None.
    """
    inertia_plugin = cast("InertiaPlugin", request.app.plugins.get("InertiaPlugin"))
    location = get_version_mismatch_location(request.inertia, inertia_plugin.config.version)
    if location is None:
        return None
    logger.debug("Asset version mismatch (client=%s, server=%s)", request.inertia.version, inertia_plugin.config.version)
    return InertiaExternalRedirect(request, redirect_to=location)


def _add_vary_header(headers: "MutableScopeHeaders") -> None:
    marker = InertiaHeaders.ENABLED.value
    if InertiaHeaders.VARY.value not in headers:
        headers[InertiaHeaders.VARY.value] = marker
        return
    values = [v.strip().lower() for value in headers.getall(InertiaHeaders.VARY.value) for v in value.split(",")]
    if marker.lower() not in values:
        headers.extend_header_value(InertiaHeaders.VARY.value, marker)


class InertiaMiddleware(AbstractMiddleware):
    """Middleware for handling Inertia.js protocol requirements.

    This middleware:
    1. Returns 409 Conflict with X-Inertia-Location header when asset versions differ
    2. Loads flash data carried over from the previous request
    3. Turns 302 into 303 after PUT, PATCH and DELETE from Inertia clients
    4. Adds ``Vary: X-Inertia`` to every response to an Inertia request
    5. Stores unread flash data in the session when the response starts
    """

    scopes = {ScopeType.HTTP}

    def __init__(self, app: "ASGIApp") -> None:
        super().__init__(app)
        self.app = app

    async def __call__(self, scope: "Scope", receive: "Receive", send: "Send") -> None:
        request: InertiaRequest[Any, Any, Any] = InertiaRequest(scope=scope)
        context = request.inertia
        flash_store = FlashStore.from_connection(request)

        async def send_wrapper(message: "Message") -> None:
            if message["type"] == "http.response.start":
                flash_store.persist(request)
                if context.is_inertia:
                    message["status"] = adapt_redirect_status(
                        message["status"], context.method, is_inertia=context.is_inertia
                    )
                    _add_vary_header(MutableScopeHeaders.from_message(message))
            await send(message)

        redirect = redirect_on_asset_version_mismatch(request)
        if redirect is not None:
            response = redirect.to_asgi_response(app=None, request=request)  # pyright: ignore[reportUnknownMemberType]
            await response(scope, receive, send_wrapper)
        else:
            await self.app(scope, receive, send_wrapper)
