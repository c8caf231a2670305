from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable

    from litestar_inertia.types import InertiaHeaderType


class InertiaHeaders(str, Enum):
    """Enum for Inertia Headers.

    See: https://inertiajs.com/the-protocol

    This includes both core protocol headers and v2 extensions (partial excludes, reset, error bags,
    once props and infinite scroll merge intent).
    """

    ENABLED = "X-Inertia"
    VERSION = "X-Inertia-Version"
    LOCATION = "X-Inertia-Location"
    REFERER = "Referer"
    VARY = "Vary"

    PARTIAL_DATA = "X-Inertia-Partial-Data"
    PARTIAL_COMPONENT = "X-Inertia-Partial-Component"
    PARTIAL_EXCEPT = "X-Inertia-Partial-Except"

    RESET = "X-Inertia-Reset"
    ERROR_BAG = "X-Inertia-Error-Bag"
    EXCEPT_ONCE_PROPS = "X-Inertia-Except-Once-Props"

    INFINITE_SCROLL_MERGE_INTENT = "X-Inertia-Infinite-Scroll-Merge-Intent"


def get_enabled_header(enabled: bool = True) -> "dict[str, Any]":
    """True if inertia is enabled.

    Args:
        enabled: Whether inertia is enabled.

    Returns:
        The headers for inertia.
    """

    return {InertiaHeaders.ENABLED.value: "true" if enabled else "false"}


def get_vary_header(enabled: bool = True) -> "dict[str, Any]":
    """Return the caching header that keys responses on the Inertia marker.

    Args:
        enabled: Whether the header should be emitted.

    Returns:
        The headers for inertia.
    """
    return {InertiaHeaders.VARY.value: InertiaHeaders.ENABLED.value} if enabled else {}


def get_location_header(location: str) -> "dict[str, Any]":
    """Return headers for a client-side hard visit.

    Args:
        location: The URL the client should visit.

    Returns:
        The headers for inertia.
    """
    return {InertiaHeaders.LOCATION.value: location}


def get_headers(inertia_headers: "InertiaHeaderType") -> "dict[str, Any]":
    """Return headers for Inertia responses.

    Args:
        inertia_headers: The inertia headers.

    Raises:
        ValueError: If the inertia headers are None.

    Returns:
        The headers for inertia.
    """
    if not inertia_headers:
        msg = "Value for inertia_headers cannot be None."
        raise ValueError(msg)
    inertia_headers_dict: "dict[str, Callable[..., dict[str, Any]]]" = {
        "enabled": get_enabled_header,
        "vary": get_vary_header,
        "location": get_location_header,
    }

    header: "dict[str, Any]" = {}
    response: "dict[str, Any]"
    key: "str"
    value: "Any"

    for key, value in inertia_headers.items():
        if value is not None:
            response = inertia_headers_dict[key](value)
            header.update(response)
    return header


def parse_header_list(value: "str | None") -> "frozenset[str]":
    """Split a comma separated header value into a set of keys.

    Items are trimmed and empty items are dropped.

    Args:
        value: The raw header value.

    Returns:
        The parsed keys. Empty when the header is absent.
    """
    if not value:
        return frozenset()
    return frozenset(item for item in (part.strip() for part in value.split(",")) if item)
