"""Special Inertia props.

Every special prop is an :class:`InertiaProp`: a resolution callback plus explicit
capability fields that the page assembler checks. The factories below (``lazy``,
``optional``, ``defer``, ``merge``, ``always``, ``once`` and ``scroll``) fix the set of
capabilities a prop supports; the chainable builder methods only configure
capabilities inside that set.

Example::

    from datetime import timedelta

    render(
        "Users/Index",
        {
            "users": users,
            "filters": always(current_filters),
            "stats": defer(load_stats, group="sidebar"),
            "config": once(load_config).until(timedelta(hours=1)),
            "feed": scroll(page).defer(),
        },
    )
"""

from collections.abc import Callable, Coroutine
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any, Generic, TypeGuard, TypeVar, cast

from litestar_inertia._async_mixin import AsyncRenderMixin
from litestar_inertia.types import MergeMode, PageData, ScrollData, ScrollMetadata, SimplePageData

if TYPE_CHECKING:
    from anyio.from_thread import BlockingPortal

__all__ = (
    "DEFAULT_DEFERRED_GROUP",
    "Capability",
    "InertiaProp",
    "OnceConfig",
    "always",
    "defer",
    "is_inertia_prop",
    "lazy",
    "merge",
    "once",
    "optional",
    "scroll",
)

T = TypeVar("T")

# Default group for deferred props
DEFAULT_DEFERRED_GROUP = "default"

PropCallback = Callable[[], "T | Coroutine[Any, Any, T]"]


class Capability(str, Enum):
    """Special behaviours a prop can carry."""

    ALWAYS_INCLUDE = "always_include"
    IGNORE_FIRST_LOAD = "ignore_first_load"
    DEFERRABLE = "deferrable"
    MERGEABLE = "mergeable"
    ONCEABLE = "onceable"


@dataclass
class OnceConfig:
    """Client-side caching settings for a once prop.

    Attributes:
        key: Cache key on the client. ``None`` means the prop name.
        expiration: Fixed expiry instant.
        ttl: Time to live, turned into an instant each time ``expires_at`` is read.
        fresh: Resolve even when the client reports a cached value.
    """

    key: "str | None" = None
    expiration: "datetime | None" = None
    ttl: "timedelta | None" = None
    fresh: bool = False

    def expires_at(self) -> "datetime | None":
        """Return the expiry instant, recomputed from the TTL on every call."""
        if self.ttl is not None:
            return datetime.now(timezone.utc) + self.ttl
        return self.expiration

    def expires_at_millis(self) -> "int | None":
        """Return the expiry as epoch milliseconds, or None when the value never expires."""
        expires_at = self.expires_at()
        return int(expires_at.timestamp() * 1000) if expires_at is not None else None


class InertiaProp(AsyncRenderMixin, Generic[T]):
    """A prop with special inclusion, merge or caching behaviour.

    The assembler never type-tests props; it reads ``always_include``,
    ``ignore_first_load``, ``defer_group``, ``merge_mode`` and ``once_config``.
    Values are not memoised: each ``render()`` call invokes the callback again.
    """

    __slots__ = (
        "_always_include",
        "_callback",
        "_capabilities",
        "_defer_group",
        "_ignore_first_load",
        "_merge_mode",
        "_merge_modes",
        "_once",
        "_once_enabled",
    )

    def __init__(
        self,
        callback: "PropCallback[T]",
        capabilities: "frozenset[Capability]",
        *,
        defer_group: "str | None" = None,
        merge_mode: "MergeMode | None" = None,
        once_enabled: bool = False,
        merge_modes: "frozenset[MergeMode] | None" = None,
    ) -> None:
        """Initialize an InertiaProp.

        Args:
            callback: Zero-argument callable (sync or async) producing the value.
            capabilities: The behaviours this prop supports.
            defer_group: Initial deferred group, when ``DEFERRABLE`` is active.
            merge_mode: Initial merge mode, when ``MERGEABLE`` is active.
            once_enabled: Whether once caching starts active.
            merge_modes: Merge modes this prop accepts. None allows every mode.

        Raises:
            ValueError: If an initial setting needs a capability that is not supported.
        """
        self._callback = callback
        self._capabilities = capabilities
        self._always_include = Capability.ALWAYS_INCLUDE in capabilities
        self._ignore_first_load = Capability.IGNORE_FIRST_LOAD in capabilities
        self._defer_group: "str | None" = None
        self._merge_mode: "MergeMode | None" = None
        self._once = OnceConfig()
        self._once_enabled = False
        self._merge_modes = merge_modes
        if defer_group is not None:
            self._require(Capability.DEFERRABLE)
            self._defer_group = defer_group
        if merge_mode is not None:
            self._set_merge_mode(MergeMode(merge_mode))
        if once_enabled:
            self._require(Capability.ONCEABLE)
            self._once_enabled = True

    def __repr__(self) -> str:
        caps = ",".join(sorted(c.value for c in self._capabilities))
        return f"{type(self).__name__}(capabilities={caps})"

    def _require(self, capability: Capability) -> None:
        if capability not in self._capabilities:
            msg = f"This prop does not support the '{capability.value}' capability."
            raise ValueError(msg)

    def _set_merge_mode(self, mode: MergeMode) -> None:
        self._require(Capability.MERGEABLE)
        if self._merge_modes is not None and mode not in self._merge_modes:
            msg = f"This prop does not support the '{mode.value}' merge mode."
            raise ValueError(msg)
        self._merge_mode = mode

    @property
    def capabilities(self) -> "frozenset[Capability]":
        """The behaviours this prop supports."""
        return self._capabilities

    @property
    def always_include(self) -> bool:
        return self._always_include

    @property
    def ignore_first_load(self) -> bool:
        return self._ignore_first_load

    @property
    def defer_group(self) -> "str | None":
        """The deferred group, or None when the prop is not deferred."""
        return self._defer_group

    @property
    def merge_mode(self) -> "MergeMode | None":
        """The merge mode, or None when the prop is not merged."""
        return self._merge_mode

    @property
    def once_config(self) -> "OnceConfig | None":
        """The once settings, or None when once caching is not active."""
        return self._once if self._once_enabled else None

    # Merge builders

    def merge(self) -> "InertiaProp[T]":
        """Append to existing client data."""
        self._set_merge_mode(MergeMode.APPEND)
        return self

    def prepend(self) -> "InertiaProp[T]":
        """Prepend to existing client data."""
        self._set_merge_mode(MergeMode.PREPEND)
        return self

    def deep_merge(self) -> "InertiaProp[T]":
        """Recursively merge into existing client data."""
        self._set_merge_mode(MergeMode.DEEP)
        return self

    # Defer builder

    def defer(self, group: str = DEFAULT_DEFERRED_GROUP) -> "InertiaProp[T]":
        """Load this prop after the initial render, batched with its group."""
        self._require(Capability.DEFERRABLE)
        self._defer_group = group
        return self

    # Once builders

    def once(self) -> "InertiaProp[T]":
        """Resolve once and let the client cache the value."""
        self._require(Capability.ONCEABLE)
        self._once_enabled = True
        return self

    def until(self, expiration: "datetime | timedelta") -> "InertiaProp[T]":
        """Set when the cached value expires. Implies :meth:`once`.

        A ``timedelta`` is a TTL applied each time the page is built; a ``datetime`` is a
        fixed instant. Setting one clears the other.

        Args:
            expiration: Fixed instant or TTL.

        Returns:
            The prop.
        """
        self.once()
        if isinstance(expiration, timedelta):
            self._once.ttl = expiration
            self._once.expiration = None
        else:
            self._once.expiration = expiration
            self._once.ttl = None
        return self

    def as_(self, key: str) -> "InertiaProp[T]":
        """Use a custom client cache key instead of the prop name. Implies :meth:`once`."""
        self.once()
        self._once.key = key
        return self

    def fresh(self) -> "InertiaProp[T]":
        """Resolve even when the client already holds a cached value. Implies :meth:`once`."""
        self.once()
        self._once.fresh = True
        return self

    def render(self, portal: "BlockingPortal | None" = None) -> "T":
        """Invoke the callback.

        Args:
            portal: Optional portal to use for async callbacks.

        Returns:
            The raw callback result; nested callables are resolved by the caller.
        """
        return self._invoke(self._callback, portal)


def is_inertia_prop(value: "Any") -> "TypeGuard[InertiaProp[Any]]":
    """Check if value is a special Inertia prop.

    Args:
        value: Any value to check

    Returns:
        bool: True if value is an InertiaProp
    """
    return isinstance(value, InertiaProp)


def _as_callback(value_or_callable: "T | PropCallback[T]") -> "PropCallback[T]":
    if callable(value_or_callable):
        return cast("PropCallback[T]", value_or_callable)
    return lambda: value_or_callable


def lazy(value_or_callable: "T | PropCallback[T]") -> "InertiaProp[T]":
    """Create a prop that is only resolved when a partial reload names it.

    Args:
        value_or_callable: The value or callable to store.

    Returns:
        The prop.
    """
    return InertiaProp[T](_as_callback(value_or_callable), frozenset({Capability.IGNORE_FIRST_LOAD}))


def optional(value_or_callable: "T | PropCallback[T]") -> "InertiaProp[T]":
    """Create a lazy prop that can also be cached client-side with ``once()``.

    Args:
        value_or_callable: The value or callable to store.

    Returns:
        The prop.
    """
    return InertiaProp[T](
        _as_callback(value_or_callable),
        frozenset({Capability.IGNORE_FIRST_LOAD, Capability.ONCEABLE}),
    )


def defer(
    callback: "PropCallback[T]",
    group: str = DEFAULT_DEFERRED_GROUP,
) -> "InertiaProp[T]":
    """Create a deferred prop with optional grouping (v2 feature).

    Deferred props are loaded lazily after the initial page render.
    Props in the same group are fetched together in a single request.

    Args:
        callback: A callable (sync or async) that returns the value.
        group: The group name for batched loading. Defaults to "default".

    Returns:
        The prop.

    Raises:
        TypeError: If ``callback`` is not callable.

    Example::

        # Basic deferred prop
        defer(lambda: Permission.all())

        # Grouped deferred props (fetched together)
        defer(lambda: Team.all(), group="attributes")
        defer(lambda: Project.all(), group="attributes")

        # Cached client-side and merged on reload
        defer(load_feed).once().merge()
    """
    if not callable(callback):
        msg = f"defer() expects a callable, got {type(callback).__name__}."
        raise TypeError(msg)
    return InertiaProp[T](
        callback,
        frozenset({
            Capability.IGNORE_FIRST_LOAD,
            Capability.DEFERRABLE,
            Capability.MERGEABLE,
            Capability.ONCEABLE,
        }),
        defer_group=group,
    )


def merge(
    value_or_callable: "T | PropCallback[T]",
    mode: "MergeMode | str" = MergeMode.APPEND,
) -> "InertiaProp[T]":
    """Create a merge prop for combining data on the client (v2 feature).

    Merge props allow new data to be combined with existing props rather than
    replacing them entirely. This is useful for infinite scroll, load more buttons,
    and similar patterns.

    Args:
        value_or_callable: The value or callable to store.
        mode: How to merge the data:
            - 'append': Add new items to the end (default)
            - 'prepend': Add new items to the beginning
            - 'deep': Recursively merge nested objects

    Returns:
        The prop.

    Example::

        merge(new_posts)
        merge(new_messages).prepend()
        merge(updates, mode="deep")
    """
    return InertiaProp[T](
        _as_callback(value_or_callable),
        frozenset({Capability.MERGEABLE, Capability.ONCEABLE}),
        merge_mode=MergeMode(mode),
    )


def always(value_or_callable: "T | PropCallback[T]") -> "InertiaProp[T]":
    """Create a prop that is included in every response, partial reloads too.

    Args:
        value_or_callable: The value or callable to store.

    Returns:
        The prop.
    """
    return InertiaProp[T](_as_callback(value_or_callable), frozenset({Capability.ALWAYS_INCLUDE}))


def once(value_or_callable: "T | PropCallback[T]") -> "InertiaProp[T]":
    """Create a prop that the client resolves once and caches.

    Args:
        value_or_callable: The value or callable to store.

    Returns:
        The prop.

    Example::

        once(load_app_config)
        once(load_preferences).until(timedelta(hours=1))
        once(load_notifications).fresh()
    """
    return InertiaProp[T](_as_callback(value_or_callable), frozenset({Capability.ONCEABLE}), once_enabled=True)


def scroll(page: "PageData[T] | Any") -> "InertiaProp[ScrollData[T]]":
    """Create an infinite scroll prop from a page of results.

    The prop always merges (append by default, ``prepend()`` for "load newer"; deep
    merging is rejected) and can be deferred with ``defer()``. It resolves to
    ``{"items": [...], "meta": {...}}``.

    Args:
        page: A :class:`~litestar_inertia.types.PageData`, or a pagination container
            such as Litestar's ``OffsetPagination``.

    Returns:
        The prop.
    """
    page_data: "PageData[T]" = page if isinstance(page, PageData) else SimplePageData[T].from_pagination(page)

    def _resolve() -> "ScrollData[T]":
        return ScrollData(
            items=list(page_data.content),
            meta=ScrollMetadata(
                current_page=page_data.number,
                total_pages=page_data.total_pages,
                total_items=page_data.total_elements,
                has_next_page=page_data.has_next,
                has_previous_page=page_data.has_previous,
                is_first_page=page_data.is_first,
                is_last_page=page_data.is_last,
            ),
        )

    return InertiaProp[ScrollData[T]](
        _resolve,
        frozenset({Capability.MERGEABLE, Capability.DEFERRABLE}),
        merge_mode=MergeMode.APPEND,
        merge_modes=frozenset({MergeMode.APPEND, MergeMode.PREPEND}),
    )
