"""Async resolution mixin for Inertia prop callbacks.

Page assembly runs synchronously inside ``Response.to_asgi_response``, but prop
callbacks may be ``async def`` functions. They are executed through an anyio
blocking portal.
"""

import inspect
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, TypeGuard, TypeVar, cast

from anyio.from_thread import BlockingPortal, start_blocking_portal

if TYPE_CHECKING:
    from collections.abc import Callable, Coroutine, Generator

T = TypeVar("T")


class AsyncRenderMixin:
    """Mixin providing callback invocation for sync and async callables.

    Used by :class:`~litestar_inertia.props.InertiaProp` and
    :class:`~litestar_inertia.assembler.PageAssembler`:

    - ``with_portal``: Context manager for obtaining a BlockingPortal
    - ``_is_awaitable``: Type guard for checking if a callable is async
    - ``_invoke``: Call a callable, routing coroutine functions through a portal

    Example::

        class MyProp(AsyncRenderMixin):
            def render(self, portal: BlockingPortal | None = None) -> Any:
                return self._invoke(self._callback, portal)
    """

    @staticmethod
    @contextmanager
    def with_portal(portal: "BlockingPortal | None" = None) -> "Generator[BlockingPortal, None, None]":
        """Get or create a blocking portal for async execution.

        Args:
            portal: Optional existing portal to reuse. If None, creates a new one.

        Yields:
            A BlockingPortal for executing async code from sync context.
        """
        if portal is None:
            with start_blocking_portal() as p:
                yield p
        else:
            yield portal

    @staticmethod
    def _is_awaitable(v: "Callable[..., T | Coroutine[Any, Any, T]]") -> "TypeGuard[Callable[..., Coroutine[Any, Any, T]]]":
        """Check if a callable is an async coroutine function.

        Args:
            v: The callable to check.

        Returns:
            True if the callable is an async coroutine function.
        """
        return inspect.iscoroutinefunction(v)

    @classmethod
    def _invoke(cls, callback: "Callable[[], T | Coroutine[Any, Any, T]]", portal: "BlockingPortal | None" = None) -> "T":
        """Invoke a zero-argument callable and return its result.

        Args:
            callback: A sync or async callable.
            portal: Optional portal used for async callables.

        Returns:
            The callable's result. Exceptions propagate unchanged.
        """
        if not cls._is_awaitable(callback):
            return cast("T", callback())
        with cls.with_portal(portal) as p:
            return p.call(callback)
