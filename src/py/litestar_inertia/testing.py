"""Helpers for testing Inertia endpoints.

Build Inertia request headers with :class:`InertiaRequestHeaders` and check the page
object of a response with :func:`assert_inertia`.

Example::

    from litestar.testing import create_test_client

    from litestar_inertia.testing import InertiaRequestHeaders, assert_inertia


    def test_users_page() -> None:
        with create_test_client(route_handlers=[users], plugins=[InertiaPlugin()]) as client:
            headers = InertiaRequestHeaders().with_partial_data("users").for_component("Users/Index")
            response = client.get("/users", headers=headers.build())

            assert_inertia(response).component("Users/Index").has("users").missing("stats")
"""

from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any, cast

from litestar_inertia._utils import InertiaHeaders
from litestar_inertia.props import DEFAULT_DEFERRED_GROUP
from litestar_inertia.types import MergeIntent

if TYPE_CHECKING:
    import httpx

__all__ = (
    "InertiaPageAssertions",
    "InertiaRequestHeaders",
    "assert_inertia",
    "partial_reload_headers",
)

_MISSING = object()


class InertiaRequestHeaders:
    """Chainable builder for the headers an Inertia client sends.

    Every builder method returns the builder; :meth:`build` returns a plain ``dict``
    that can be passed as ``headers=`` to a test client.
    """

    __slots__ = ("_headers",)

    def __init__(self, headers: "Mapping[str, str] | None" = None, *, inertia: bool = True) -> None:
        self._headers: "dict[str, str]" = dict(headers or {})
        if inertia:
            self.as_inertia()

    def _set(self, header: InertiaHeaders, value: str) -> "InertiaRequestHeaders":
        self._headers[header.value] = value
        return self

    def as_inertia(self) -> "InertiaRequestHeaders":
        """Mark the request as coming from an Inertia client."""
        return self._set(InertiaHeaders.ENABLED, "true")

    def with_version(self, version: str) -> "InertiaRequestHeaders":
        """Send the asset version the client was built with."""
        return self._set(InertiaHeaders.VERSION, version)

    def with_partial_data(self, *props: str) -> "InertiaRequestHeaders":
        """Ask for a partial reload of the given props."""
        return self._set(InertiaHeaders.PARTIAL_DATA, ",".join(props))

    def with_partial_except(self, *props: str) -> "InertiaRequestHeaders":
        """Ask for a partial reload of everything but the given props."""
        return self._set(InertiaHeaders.PARTIAL_EXCEPT, ",".join(props))

    def for_component(self, component: str) -> "InertiaRequestHeaders":
        return self._set(InertiaHeaders.PARTIAL_COMPONENT, component)

    def with_merge_intent(self, intent: "MergeIntent | str") -> "InertiaRequestHeaders":
        """Set the infinite scroll direction."""
        return self._set(InertiaHeaders.INFINITE_SCROLL_MERGE_INTENT, MergeIntent(intent).value)

    def with_except_once_props(self, *props: str) -> "InertiaRequestHeaders":
        """Report once props the client already holds."""
        return self._set(InertiaHeaders.EXCEPT_ONCE_PROPS, ",".join(props))

    def with_reset(self, *props: str) -> "InertiaRequestHeaders":
        return self._set(InertiaHeaders.RESET, ",".join(props))

    def with_error_bag(self, bag: str) -> "InertiaRequestHeaders":
        return self._set(InertiaHeaders.ERROR_BAG, bag)

    def build(self) -> "dict[str, str]":
        """Return a copy of the headers."""
        return dict(self._headers)


def partial_reload_headers(component: str, *props: str) -> "dict[str, str]":
    """Return headers for a partial reload of ``props`` on ``component``.

    Args:
        component: The component the client currently shows.
        *props: The props to reload.

    Returns:
        The request headers.
    """
    return InertiaRequestHeaders().for_component(component).with_partial_data(*props).build()


class InertiaPageAssertions:
    """Fluent assertions on an Inertia page object.

    Each check raises :class:`AssertionError` with a descriptive message when it fails
    and returns the assertions object otherwise, so checks can be chained.

    Args:
        page: The page object as decoded from the response JSON.
    """

    __slots__ = ("page",)

    def __init__(self, page: "Mapping[str, Any]") -> None:
        self.page = page

    @classmethod
    def from_response(cls, response: "httpx.Response") -> "InertiaPageAssertions":
        """Read the page object from a JSON Inertia response.

        Args:
            response: A test client response.

        Raises:
            AssertionError: If the response is not an Inertia JSON response.

        Returns:
            The assertions for the page.
        """
        if response.headers.get(InertiaHeaders.ENABLED.value) != "true":
            msg = f"Expected an Inertia response, got status {response.status_code} without the X-Inertia header"
            raise AssertionError(msg)
        page = response.json()
        if not isinstance(page, Mapping):
            msg = f"Expected the Inertia page to be an object, got {type(page).__name__}"
            raise AssertionError(msg)
        return cls(cast("Mapping[str, Any]", page))

    @property
    def props(self) -> "Mapping[str, Any]":
        return cast("Mapping[str, Any]", self.page.get("props") or {})

    def _check_equal(self, field: str, expected: "Any") -> "InertiaPageAssertions":
        actual = self.page.get(field)
        if actual != expected:
            msg = f"Expected {field} {expected!r}, got {actual!r}"
            raise AssertionError(msg)
        return self

    def _check_listed(self, field: str, prop: str, description: str) -> "InertiaPageAssertions":
        listed = self.page.get(field)
        if not listed or prop not in listed:
            msg = f"Expected prop '{prop}' to be a {description} prop, {field} is {listed!r}"
            raise AssertionError(msg)
        return self

    def component(self, expected: str) -> "InertiaPageAssertions":
        return self._check_equal("component", expected)

    def url(self, expected: str) -> "InertiaPageAssertions":
        return self._check_equal("url", expected)

    def version(self, expected: "str | None") -> "InertiaPageAssertions":
        return self._check_equal("version", expected)

    def has(self, prop: str) -> "InertiaPageAssertions":
        if prop not in self.props:
            msg = f"Expected prop '{prop}' to exist, props are {sorted(self.props)!r}"
            raise AssertionError(msg)
        return self

    def missing(self, prop: str) -> "InertiaPageAssertions":
        if prop in self.props:
            msg = f"Expected prop '{prop}' to be missing"
            raise AssertionError(msg)
        return self

    def where(self, prop: str, predicate: "Callable[[Any], bool]") -> "InertiaPageAssertions":
        """Check a prop value with a predicate.

        Args:
            prop: The prop name.
            predicate: Called with the prop value, must return True.

        Raises:
            AssertionError: If the prop is missing or the predicate fails.

        Returns:
            The assertions.
        """
        self.has(prop)
        value = self.props[prop]
        if not predicate(value):
            msg = f"Predicate failed for prop '{prop}' with value {value!r}"
            raise AssertionError(msg)
        return self

    def where_equals(self, prop: str, expected: "Any") -> "InertiaPageAssertions":
        self.has(prop)
        value = self.props[prop]
        if value != expected:
            msg = f"Expected prop '{prop}' to equal {expected!r}, got {value!r}"
            raise AssertionError(msg)
        return self

    def has_flash(self, key: str, expected: "Any" = _MISSING) -> "InertiaPageAssertions":
        """Check that the page carries a flash value.

        Args:
            key: The flash key.
            expected: The expected value. When omitted only the key is checked.

        Raises:
            AssertionError: If the key is missing or its value differs.

        Returns:
            The assertions.
        """
        flash = cast("Mapping[str, Any] | None", self.page.get("flash"))
        if not flash or key not in flash:
            msg = f"Expected flash key '{key}' to exist, flash is {flash!r}"
            raise AssertionError(msg)
        if expected is not _MISSING and flash[key] != expected:
            msg = f"Expected flash '{key}' to equal {expected!r}, got {flash[key]!r}"
            raise AssertionError(msg)
        return self

    def missing_flash(self, key: str) -> "InertiaPageAssertions":
        flash = cast("Mapping[str, Any] | None", self.page.get("flash")) or {}
        if key in flash:
            msg = f"Expected flash key '{key}' to be missing"
            raise AssertionError(msg)
        return self

    def has_deferred_prop(self, prop: str, group: str = DEFAULT_DEFERRED_GROUP) -> "InertiaPageAssertions":
        deferred = cast("Mapping[str, list[str]]", self.page.get("deferredProps") or {})
        if prop not in deferred.get(group, []):
            msg = f"Expected prop '{prop}' in deferred group '{group}', deferredProps is {dict(deferred)!r}"
            raise AssertionError(msg)
        return self

    def has_merge_prop(self, prop: str) -> "InertiaPageAssertions":
        return self._check_listed("mergeProps", prop, "merge")

    def has_prepend_prop(self, prop: str) -> "InertiaPageAssertions":
        return self._check_listed("prependProps", prop, "prepend")

    def has_deep_merge_prop(self, prop: str) -> "InertiaPageAssertions":
        return self._check_listed("deepMergeProps", prop, "deep merge")

    def has_once_prop(self, key: str) -> "InertiaPageAssertions":
        """Check that ``onceProps`` lists ``key``, the prop name or its custom cache key."""
        return self._check_listed("onceProps", key, "once")


def assert_inertia(response: "httpx.Response") -> "InertiaPageAssertions":
    """Return fluent assertions for the page object of an Inertia JSON response.

    Args:
        response: A test client response to a request sent with the Inertia header.

    Returns:
        The assertions for the page.
    """
    return InertiaPageAssertions.from_response(response)
