"""Process-wide shared props.

A :class:`SharedProps` store is owned by the :class:`~litestar_inertia.plugin.InertiaPlugin`
and read on every page build. It can be written from any handler, sync handlers
running in the thread pool included.
"""

import threading
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any, cast, overload

from litestar_inertia._async_mixin import AsyncRenderMixin
from litestar_inertia.props import is_inertia_prop

if TYPE_CHECKING:
    from anyio.from_thread import BlockingPortal
    from litestar.connection import ASGIConnection

__all__ = ("SharedProps", "get_request_shared")


class SharedProps(AsyncRenderMixin):
    """Thread-safe store of props added to every page.

    Static values and callbacks live in separate maps. Sharing a key in one map
    removes it from the other, so the latest ``share`` call for a key wins.

    Example::

        shared = SharedProps()
        shared.share("app_name", "Acme")
        shared.share("now", lambda: datetime.now(timezone.utc).isoformat())
        shared.share({"locale": "en", "theme": "dark"})
    """

    __slots__ = ("_callbacks", "_lock", "_static")

    def __init__(self, props: "Mapping[str, Any] | None" = None) -> None:
        self._lock = threading.Lock()
        self._static: "dict[str, Any]" = {}
        self._callbacks: "dict[str, Callable[[], Any]]" = {}
        if props:
            self.share(props)

    @overload
    def share(self, key: str, value: "Any") -> None: ...

    @overload
    def share(self, key: "Mapping[str, Any]") -> None: ...

    def share(self, key: "str | Mapping[str, Any]", value: "Any" = None) -> None:
        """Share a value or a callback under ``key``, or bulk-share a mapping of static values.

        Plain callables are stored as callbacks and invoked on every ``get_shared()``
        call. Classes and special props are stored as values; the page assembler applies
        the inclusion rules of special props.

        Args:
            key: The prop name, or a mapping of names to static values.
            value: The value or zero-argument callable.
        """
        if isinstance(key, Mapping):
            with self._lock:
                for name, item in key.items():
                    self._callbacks.pop(name, None)
                    self._static[name] = item
            return
        with self._lock:
            if callable(value) and not isinstance(value, type) and not is_inertia_prop(value):
                self._static.pop(key, None)
                self._callbacks[key] = value
            else:
                self._callbacks.pop(key, None)
                self._static[key] = value

    def get_shared(self, portal: "BlockingPortal | None" = None) -> "dict[str, Any]":
        """Return a snapshot of every shared prop with callbacks resolved.

        Both maps are copied under the lock; callbacks run outside it, once each.
        Exceptions raised by a callback propagate.

        Args:
            portal: Optional portal used for async callbacks.

        Returns:
            Static values merged with callback results.
        """
        with self._lock:
            static_snapshot = dict(self._static)
            callback_snapshot = dict(self._callbacks)
        resolved = {key: self._invoke(callback, portal) for key, callback in callback_snapshot.items()}
        return {**static_snapshot, **resolved}

    def clear(self) -> None:
        """Remove every shared prop."""
        with self._lock:
            self._static.clear()
            self._callbacks.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._static) + len(self._callbacks)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._static or key in self._callbacks


_REQUEST_SHARED_KEY = "_litestar_inertia_shared"


def get_request_shared(connection: "ASGIConnection[Any, Any, Any, Any]") -> "dict[str, Any]":
    """Return the props shared with every page rendered for this request.

    Args:
        connection: The ASGI connection.

    Returns:
        The request-scoped shared props. Mutating the result shares more props.
    """
    state = cast("dict[str, Any]", connection.scope.setdefault("state", {}))  # pyright: ignore[reportUnknownMemberType]
    return cast("dict[str, Any]", state.setdefault(_REQUEST_SHARED_KEY, {}))
