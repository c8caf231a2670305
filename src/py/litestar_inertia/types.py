"""Inertia protocol types and serialization helpers.

This module defines the Python-side data structures for the Inertia.js protocol and provides
helpers to serialize dataclass instances into the camelCase shape expected by the client.
"""

import re
from collections.abc import Sequence
from dataclasses import dataclass, field, fields, is_dataclass
from enum import Enum
from typing import Any, Generic, Protocol, TypedDict, TypeVar, cast, runtime_checkable

__all__ = (
    "InertiaHeaderType",
    "InertiaPage",
    "MergeIntent",
    "MergeMode",
    "OncePropMetadata",
    "PageData",
    "ScrollData",
    "ScrollMetadata",
    "SimplePageData",
    "to_camel_case",
    "to_inertia_dict",
)


T = TypeVar("T")
T_co = TypeVar("T_co", covariant=True)

_SNAKE_CASE_PATTERN = re.compile(r"_([a-z])")


class MergeMode(str, Enum):
    """How the client combines a merge prop with the data it already holds."""

    APPEND = "append"
    PREPEND = "prepend"
    DEEP = "deep"


class MergeIntent(str, Enum):
    """Direction requested by an infinite scroll client."""

    APPEND = "append"
    PREPEND = "prepend"


def to_camel_case(snake_str: str) -> str:
    """Convert snake_case string to camelCase.

    Args:
        snake_str: A snake_case string.

    Returns:
        The camelCase equivalent.

    Examples:
        >>> to_camel_case("encrypt_history")
        'encryptHistory'
        >>> to_camel_case("deep_merge_props")
        'deepMergeProps'
    """
    return _SNAKE_CASE_PATTERN.sub(lambda m: m.group(1).upper(), snake_str)


def _is_dataclass_instance(value: Any) -> bool:
    return is_dataclass(value) and not isinstance(value, type)


def _is_empty(value: Any) -> bool:
    return value is None or value is False or (isinstance(value, (dict, list, tuple)) and not value)


def _convert_value(value: Any) -> Any:
    """Recursively convert a value for Inertia.js protocol.

    Handles nested dataclasses, dicts, and lists without using asdict()
    to avoid Python 3.10/3.11 bugs with dict[str, list[str]] types.

    Returns:
        The converted value.
    """
    if _is_dataclass_instance(value):
        return to_inertia_dict(value)
    if isinstance(value, dict):
        return {k: _convert_value(v) for k, v in value.items()}  # pyright: ignore[reportUnknownVariableType]
    if isinstance(value, (list, tuple)):
        return type(value)(_convert_value(v) for v in value)  # pyright: ignore[reportUnknownArgumentType,reportUnknownVariableType]
    return value


def to_inertia_dict(
    obj: Any,
    required_fields: "set[str] | None" = None,
    omit_empty: bool = False,
) -> dict[str, Any]:
    """Convert a dataclass to a dict with camelCase keys for Inertia.js protocol.

    Args:
        obj: A dataclass instance.
        required_fields: Set of field names that should always be included (even if None).
        omit_empty: Also drop ``False`` flags and empty collections, not only ``None``.

    Returns:
        A dictionary with camelCase keys, excluding None values for optional fields.

    Note:
        This function avoids using dataclasses.asdict() directly because of a bug
        in Python 3.10/3.11 that fails when processing dict[str, list[str]] types.
        See: https://github.com/python/cpython/issues/103000
    """
    if not _is_dataclass_instance(obj):
        return cast("dict[str, Any]", obj)

    required_fields = required_fields or set()
    result: dict[str, Any] = {}

    for dc_field in fields(obj):
        field_name = dc_field.name
        value = getattr(obj, field_name)
        if field_name not in required_fields and (value is None or (omit_empty and _is_empty(value))):
            continue

        value = _convert_value(value)
        camel_key = to_camel_case(field_name)
        result[camel_key] = value

    return result


@dataclass(frozen=True)
class OncePropMetadata:
    """Client cache metadata for a once prop.

    Serialized as ``{"expiresAt": <millis or null>}``.

    Attributes:
        expires_at: Expiry as epoch milliseconds, or None when the value never expires.
    """

    expires_at: "int | None" = None


@dataclass
class InertiaPage:
    """Inertia page object.

    This represents the page object sent to the Inertia client.
    See: https://inertiajs.com/the-protocol

    Note: Field names use snake_case in Python but are serialized to camelCase
    for the Inertia.js protocol using ``to_dict()``. Optional collections are
    omitted from the payload when empty, and history flags when ``False``.

    Attributes:
        component: JavaScript component name to render.
        props: Resolved page data passed to the component.
        url: Current page URL, including the query string.
        version: Asset version identifier for cache busting.
        clear_history: Whether to clear encrypted history state (v2).
        encrypt_history: Whether to encrypt browser history state (v2).
        deferred_props: Deferred prop names keyed by fetch group (v2).
        merge_props: Props to append during navigation (v2).
        prepend_props: Props to prepend during navigation (v2).
        deep_merge_props: Props to deep merge during navigation (v2).
        once_props: Client cache metadata keyed by once key (v2.2+).
        flash: One-time messages, kept out of props so they never land in history state.
    """

    component: str
    props: dict[str, Any]
    url: str
    version: "str | None" = None

    clear_history: bool = False
    encrypt_history: bool = False

    deferred_props: "dict[str, list[str]] | None" = None
    merge_props: "list[str] | None" = None
    prepend_props: "list[str] | None" = None
    deep_merge_props: "list[str] | None" = None
    once_props: "dict[str, OncePropMetadata] | None" = None

    flash: "dict[str, Any] | None" = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to Inertia.js protocol format with camelCase keys.

        Returns:
            The Inertia protocol dictionary.
        """
        result = to_inertia_dict(self, required_fields={"component", "props", "url"}, omit_empty=True)
        if "onceProps" in result and self.once_props:
            # expiresAt is part of the contract even when the value never expires
            result["onceProps"] = {key: {"expiresAt": meta.expires_at} for key, meta in self.once_props.items()}
        return result


@dataclass(frozen=True)
class ScrollMetadata:
    """Pagination metadata sent alongside scroll prop items."""

    current_page: int
    total_pages: int
    total_items: int
    has_next_page: bool
    has_previous_page: bool
    is_first_page: bool
    is_last_page: bool


@dataclass(frozen=True)
class ScrollData(Generic[T]):
    """Resolved value of a scroll prop: the page items plus their metadata."""

    items: list[T]
    meta: ScrollMetadata


@runtime_checkable
class PageData(Protocol[T_co]):
    """A page of results from any pagination source.

    Scroll props trust these values as given; nothing is recomputed.
    ``number`` is zero-based.
    """

    @property
    def content(self) -> "Sequence[T_co]": ...

    @property
    def number(self) -> int: ...

    @property
    def total_pages(self) -> int: ...

    @property
    def total_elements(self) -> int: ...

    @property
    def has_next(self) -> bool: ...

    @property
    def has_previous(self) -> bool: ...

    @property
    def is_first(self) -> bool: ...

    @property
    def is_last(self) -> bool: ...


def _content_factory() -> list[Any]:
    return []


@dataclass(frozen=True)
class SimplePageData(Generic[T]):
    """Plain :class:`PageData` implementation for manual construction.

    Example::

        page = SimplePageData.of(items, page_number=0, page_size=10, total_elements=100)
        render("Items/Index", {"items": scroll(page)})
    """

    content: list[T] = field(default_factory=_content_factory)
    number: int = 0
    total_pages: int = 1
    total_elements: int = 0
    has_next: bool = False
    has_previous: bool = False
    is_first: bool = True
    is_last: bool = True

    @classmethod
    def of(cls, content: "Sequence[T]", page_number: int, page_size: int, total_elements: int) -> "SimplePageData[T]":
        """Create a page from a slice of items and its position in the full result.

        Args:
            content: The items of this page.
            page_number: Zero-based page number.
            page_size: Maximum items per page.
            total_elements: Number of items across all pages.

        Returns:
            The page data with derived navigation flags.
        """
        total_pages = (total_elements + page_size - 1) // page_size if page_size > 0 else 0
        return cls(
            content=list(content),
            number=page_number,
            total_pages=total_pages,
            total_elements=total_elements,
            has_next=page_number < total_pages - 1,
            has_previous=page_number > 0,
            is_first=page_number == 0,
            is_last=page_number >= total_pages - 1,
        )

    @classmethod
    def single(cls, content: "Sequence[T]") -> "SimplePageData[T]":
        """Create a single page holding every item.

        Returns:
            The page data.
        """
        return cls(content=list(content), total_elements=len(content))

    @classmethod
    def from_pagination(cls, pagination: Any) -> "SimplePageData[T]":
        """Create from any pagination container (auto-detects type).

        Supports Litestar's ``OffsetPagination`` and ``ClassicPagination`` and any
        custom class exposing the same attributes. Anything else with an ``items``
        attribute becomes a single page.

        Args:
            pagination: Any pagination container with ``items`` attribute.

        Returns:
            The page data.

        Example::

            from litestar.pagination import OffsetPagination

            offset_page = OffsetPagination(items=[...], limit=10, offset=20, total=100)
            page = SimplePageData.from_pagination(offset_page)  # number == 2
        """
        items = list(pagination.items)
        if (offset_meta := _extract_offset_pagination(pagination, items)) is not None:
            total, limit, offset = offset_meta
            return cls.of(items, offset // limit if limit > 0 else 0, limit, total)
        if (classic_meta := _extract_classic_pagination(pagination)) is not None:
            page_size, current_page, total_pages = classic_meta
            number = current_page - 1
            return cls(
                content=items,
                number=number,
                total_pages=total_pages,
                total_elements=total_pages * page_size,
                has_next=number < total_pages - 1,
                has_previous=number > 0,
                is_first=number == 0,
                is_last=number >= total_pages - 1,
            )
        return cls.single(items)


def _extract_offset_pagination(pagination: Any, items: list[Any]) -> tuple[int, int, int] | None:
    try:
        limit = pagination.limit
        offset = pagination.offset
    except AttributeError:
        return None

    try:
        total = pagination.total
    except AttributeError:
        total = len(items)

    if not (isinstance(limit, int) and isinstance(offset, int) and isinstance(total, int)):
        return None

    return total, limit, offset


def _extract_classic_pagination(pagination: Any) -> tuple[int, int, int] | None:
    try:
        page_size = pagination.page_size
        current_page = pagination.current_page
    except AttributeError:
        return None

    try:
        total_pages = pagination.total_pages
    except AttributeError:
        total_pages = 1

    if not (isinstance(page_size, int) and isinstance(current_page, int) and isinstance(total_pages, int)):
        return None

    return page_size, current_page, total_pages


class InertiaHeaderType(TypedDict, total=False):
    """Type for inertia_headers parameter in get_headers()."""

    enabled: "bool | None"
    vary: "bool | None"
    location: "str | None"
