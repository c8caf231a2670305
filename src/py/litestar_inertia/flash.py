"""One-time flash data.

Flash values written while handling a request are shown on the next rendered page,
either in the same request or after exactly one redirect, and then discarded.

The session carries values across the redirect: :class:`~litestar_inertia.middleware.InertiaMiddleware`
pops them into a new store when the next request arrives and writes back entries
that no rendered page read when the response starts. Without a session the store only
works within a single request.
"""

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, cast

from litestar.exceptions import ImproperlyConfiguredException

if TYPE_CHECKING:
    from litestar.connection import ASGIConnection

__all__ = ("FLASH_SESSION_KEY", "FlashStore")

FLASH_SESSION_KEY = "_inertia_flash"
_SCOPE_STATE_KEY = "_litestar_inertia_flash"


class FlashStore:
    """Flash data for one request.

    Args:
        incoming: Values carried over from the previous request, already taken out
            of the session.
        persistent: Whether unread values can be carried over to the next request.
    """

    __slots__ = ("_incoming", "_outgoing", "_read", "persistent")

    def __init__(self, incoming: "Mapping[str, Any] | None" = None, *, persistent: bool = True) -> None:
        self._incoming: "dict[str, Any]" = dict(incoming or {})
        self._outgoing: "dict[str, Any]" = {}
        self._read = False
        self.persistent = persistent

    def flash(self, key: str, value: "Any") -> None:
        """Store a value for the next rendered page."""
        self._outgoing[key] = value

    def get_flash(self) -> "dict[str, Any]":
        """Return the flash data for this response and consume this request's values.

        Values flashed during this request win over carried-over values with the same key.

        Returns:
            The merged flash data.
        """
        result = {**self._incoming, **self._outgoing}
        self._outgoing.clear()
        self._read = True
        return result

    def pending(self) -> "dict[str, Any]":
        """Return values no rendered page has shown yet.

        Carried-over values stay pending until a page reads them, so a request that
        renders nothing passes them on to the next one.
        """
        if self._read:
            return dict(self._outgoing)
        return {**self._incoming, **self._outgoing}

    @classmethod
    def from_connection(cls, connection: "ASGIConnection[Any, Any, Any, Any]") -> "FlashStore":
        """Return the store for a connection, creating it on first access.

        Creating the store pops the carried-over values from the session.

        Args:
            connection: The ASGI connection.

        Returns:
            The request's flash store.
        """
        state = cast("dict[str, Any]", connection.scope.setdefault("state", {}))  # pyright: ignore[reportUnknownMemberType]
        store = state.get(_SCOPE_STATE_KEY)
        if store is None:
            try:
                incoming = cast("dict[str, Any]", connection.session.pop(FLASH_SESSION_KEY, None) or {})
                store = cls(incoming)
            except (AttributeError, ImproperlyConfiguredException):
                store = cls(persistent=False)
            state[_SCOPE_STATE_KEY] = store
        return cast("FlashStore", store)

    def persist(self, connection: "ASGIConnection[Any, Any, Any, Any]") -> None:
        """Write unread values to the session so they survive a redirect.

        Args:
            connection: The ASGI connection.
        """
        pending = self.pending()
        if not pending:
            return
        if not self.persistent:
            msg = "Unable to carry flash data to the next request.  A valid session was not found for this request."
            connection.logger.warning(msg)
            return
        try:
            connection.session.setdefault(FLASH_SESSION_KEY, {}).update(pending)
        except (AttributeError, ImproperlyConfiguredException):
            msg = "Unable to carry flash data to the next request.  A valid session was not found for this request."
            connection.logger.warning(msg)
