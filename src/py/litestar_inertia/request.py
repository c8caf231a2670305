from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, cast
from urllib.parse import unquote

from litestar import Request
from litestar.connection.base import AuthT, StateT, UserT, empty_receive, empty_send

from litestar_inertia._utils import InertiaHeaders, parse_header_list
from litestar_inertia.types import MergeIntent

if TYPE_CHECKING:
    from litestar.connection import ASGIConnection
    from litestar.types import Receive, Scope, Send

    from litestar_inertia.plugin import InertiaPlugin

__all__ = ("InertiaContext", "InertiaHeaders", "InertiaRequest")

_DEFAULT_COMPONENT_OPT_KEYS: "tuple[str, ...]" = ("component", "page")
_SCOPE_STATE_KEY = "_litestar_inertia_context"


def _empty_keys() -> "frozenset[str]":
    return frozenset()


def _get_header_value(headers: "Mapping[str, str]", name: "InertiaHeaders") -> "str | None":
    """Read a protocol header.

    Check for uri encoded header and unquotes it in readable format.

    Args:
        headers: The request headers.
        name: The header name.

    Returns:
        The header value.
    """
    if value := headers.get(name.value):
        is_uri_encoded = headers.get(f"{name.value}-uri-autoencoded") == "true"
        return unquote(value) if is_uri_encoded else value
    return None


def _parse_merge_intent(value: "str | None") -> "MergeIntent | None":
    if value is None:
        return None
    try:
        return MergeIntent(value.strip().lower())
    except ValueError:
        return None


@dataclass(frozen=True)
class InertiaContext:
    """Everything the Inertia client declared about one request.

    Parsing never raises: missing or malformed headers become ``None`` or an
    empty set.

    Attributes:
        is_inertia: The request carries ``X-Inertia: true``.
        version: Asset version last seen by the client.
        partial_component: Component named by a partial reload.
        partial_data: Props a partial reload asks for.
        partial_except: Props a partial reload asks to skip.
        reset: Props the client will replace instead of merging.
        except_once_props: Once props the client already has cached.
        merge_intent: Direction requested by an infinite scroll request.
        error_bag: Name of the error bag for scoped validation errors.
        url: Request path, with ``?query`` when a query string exists.
        method: HTTP method.
    """

    is_inertia: bool = False
    version: "str | None" = None
    partial_component: "str | None" = None
    partial_data: "frozenset[str]" = field(default_factory=_empty_keys)
    partial_except: "frozenset[str]" = field(default_factory=_empty_keys)
    reset: "frozenset[str]" = field(default_factory=_empty_keys)
    except_once_props: "frozenset[str]" = field(default_factory=_empty_keys)
    merge_intent: "MergeIntent | None" = None
    error_bag: "str | None" = None
    url: str = "/"
    method: str = "GET"

    @property
    def is_partial_reload(self) -> bool:
        """True for an Inertia request that names props to include or exclude."""
        return self.is_inertia and bool(self.partial_data or self.partial_except)

    @classmethod
    def from_headers(cls, headers: "Mapping[str, str]", *, url: str = "/", method: str = "GET") -> "InertiaContext":
        """Parse protocol headers into a context.

        Args:
            headers: Request headers.
            url: Request path plus query string.
            method: HTTP method.

        Returns:
            The parsed context.
        """
        return cls(
            is_inertia=_get_header_value(headers, InertiaHeaders.ENABLED) == "true",
            version=_get_header_value(headers, InertiaHeaders.VERSION),
            partial_component=_get_header_value(headers, InertiaHeaders.PARTIAL_COMPONENT),
            partial_data=parse_header_list(_get_header_value(headers, InertiaHeaders.PARTIAL_DATA)),
            partial_except=parse_header_list(_get_header_value(headers, InertiaHeaders.PARTIAL_EXCEPT)),
            reset=parse_header_list(_get_header_value(headers, InertiaHeaders.RESET)),
            except_once_props=parse_header_list(_get_header_value(headers, InertiaHeaders.EXCEPT_ONCE_PROPS)),
            merge_intent=_parse_merge_intent(_get_header_value(headers, InertiaHeaders.INFINITE_SCROLL_MERGE_INTENT)),
            error_bag=_get_header_value(headers, InertiaHeaders.ERROR_BAG),
            url=url,
            method=method.upper(),
        )

    @classmethod
    def from_connection(cls, connection: "ASGIConnection[Any, Any, Any, Any]") -> "InertiaContext":
        """Return the context for a connection, parsing it on first access.

        The parsed context is cached in the ASGI scope state, so the middleware,
        the handler and the response share the same instance.

        Args:
            connection: The ASGI connection.

        Returns:
            The request context.
        """
        state = cast("dict[str, Any]", connection.scope.setdefault("state", {}))  # pyright: ignore[reportUnknownMemberType]
        context = state.get(_SCOPE_STATE_KEY)
        if context is None:
            path = connection.url.path
            query = connection.url.query
            context = cls.from_headers(
                connection.headers,
                url=f"{path}?{query}" if query else path,
                method=cast("str", connection.scope.get("method", "GET")),
            )
            state[_SCOPE_STATE_KEY] = context
        return cast("InertiaContext", context)


def get_route_component(connection: "ASGIConnection[Any, Any, Any, Any]") -> "str | None":
    """Return the route component from handler opts if present.

    Returns:
        The route component name, or None if not configured on the handler.
    """
    rh = connection.scope.get("route_handler")  # pyright: ignore[reportUnknownMemberType]
    if rh:
        component_opt_keys: "tuple[str, ...]" = _DEFAULT_COMPONENT_OPT_KEYS
        try:
            inertia_plugin: "InertiaPlugin" = connection.app.plugins.get("InertiaPlugin")
            component_opt_keys = inertia_plugin.config.component_opt_keys
        except KeyError:
            pass

        for key in component_opt_keys:
            if (value := rh.opt.get(key)) is not None:
                return cast("str", value)
    return None


class InertiaRequest(Request[UserT, AuthT, StateT]):
    """Inertia Request class to work with Inertia client."""

    __slots__ = ()

    def __init__(self, scope: "Scope", receive: "Receive" = empty_receive, send: "Send" = empty_send) -> None:
        """Initialize :class:`InertiaRequest`"""
        super().__init__(scope=scope, receive=receive, send=send)

    @property
    def inertia(self) -> "InertiaContext":
        """The parsed Inertia context for this request."""
        return InertiaContext.from_connection(self)

    @property
    def is_inertia(self) -> bool:
        """True if the request contained inertia headers.

        Returns:
            True if the request contains Inertia headers, otherwise False.
        """
        return self.inertia.is_inertia

    @property
    def route_component(self) -> "str | None":
        """The component configured on the route handler opts, if any."""
        return get_route_component(self)

    @property
    def is_partial_reload(self) -> bool:
        return self.inertia.is_partial_reload

    @property
    def inertia_version(self) -> "str | None":
        """Get the Inertia asset version sent by the client.

        Returns:
            The version string sent by the client, or None if not present.
        """
        return self.inertia.version
