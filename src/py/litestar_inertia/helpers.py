from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from litestar.exceptions import ImproperlyConfiguredException
from litestar.response import Redirect

from litestar_inertia.assembler import validate_component
from litestar_inertia.flash import FlashStore
from litestar_inertia.request import InertiaContext
from litestar_inertia.response import (
    CLEAR_HISTORY_SESSION_KEY,
    InertiaExternalRedirect,
    InertiaResponse,
)
from litestar_inertia.shared import get_request_shared

if TYPE_CHECKING:
    from litestar import Request
    from litestar.connection import ASGIConnection

__all__ = ("clear_history", "flash", "location", "render", "share")


def render(component: str, props: "Mapping[str, Any] | None" = None, **kwargs: "Any") -> "InertiaResponse[Any]":
    """Render an Inertia page.

    Args:
        component: The component name, e.g. ``"Users/Index"``.
        props: The page props.
        **kwargs: Additional keyword arguments passed to :class:`~litestar_inertia.response.InertiaResponse`.

    Raises:
        ValueError: If the component name is blank.

    Returns:
        The response.

    Example::

        @get("/users")
        async def users() -> InertiaResponse[Any]:
            return render("Users/Index", {"users": defer(load_users)})
    """
    validate_component(component)
    return InertiaResponse(dict(props or {}), component=component, **kwargs)


def share(
    connection: "ASGIConnection[Any, Any, Any, Any]",
    key: "str",
    value: "Any",
) -> "None":
    """Share a prop with every page rendered for this request.

    Use :attr:`InertiaPlugin.shared <litestar_inertia.plugin.InertiaPlugin.shared>`
    for props shared with every request.

    Args:
        connection: The ASGI connection.
        key: The key to store the value under.
        value: The value to store.
    """
    get_request_shared(connection)[key] = value


def flash(
    connection: "ASGIConnection[Any, Any, Any, Any]",
    key: "str",
    value: "Any",
) -> "None":
    """Set a flash value for the next rendered page.

    The value is shown once, either on a page rendered by this request or on the
    page after the next redirect.

    Args:
        connection: The ASGI connection.
        key: The key to store the value under.
        value: The value to store.
    """
    store = FlashStore.from_connection(connection)
    if not store.persistent:
        msg = "Flash data will not survive a redirect.  A valid session was not found for this request."
        connection.logger.warning(msg)
    store.flash(key, value)


def clear_history(connection: "ASGIConnection[Any, Any, Any, Any]") -> "None":
    """Clear the client's encrypted history state on the next rendered page.

    Args:
        connection: The ASGI connection.
    """
    try:
        connection.session[CLEAR_HISTORY_SESSION_KEY] = True
    except (AttributeError, ImproperlyConfiguredException, TypeError):
        msg = "Unable to set `clear_history` session state.  A valid session was not found for this request."
        connection.logger.warning(msg)


def location(connection: "Request[Any, Any, Any]", url: str) -> "InertiaExternalRedirect | Redirect":
    """Send the client to ``url`` with a full page visit.

    Args:
        connection: The request.
        url: The target URL, possibly on another origin.

    Returns:
        A 409 response carrying ``X-Inertia-Location`` for Inertia requests, otherwise
        a plain redirect.
    """
    if not InertiaContext.from_connection(connection).is_inertia:
        return Redirect(path=url)
    return InertiaExternalRedirect(connection, redirect_to=url)
