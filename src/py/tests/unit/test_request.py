from typing import Any

import pytest
from litestar import MediaType, get
from litestar.status_codes import HTTP_200_OK
from litestar.testing import create_test_client  # pyright: ignore[reportUnknownVariableType]

from litestar_inertia import InertiaContext, InertiaHeaders, InertiaPlugin, InertiaRequest, MergeIntent

pytestmark = pytest.mark.anyio


def test_empty_headers_parse_to_defaults() -> None:
    context = InertiaContext.from_headers({}, url="/", method="get")

    assert context.is_inertia is False
    assert context.version is None
    assert context.partial_component is None
    assert context.partial_data == frozenset()
    assert context.partial_except == frozenset()
    assert context.reset == frozenset()
    assert context.except_once_props == frozenset()
    assert context.merge_intent is None
    assert context.error_bag is None
    assert context.method == "GET"
    assert context.is_partial_reload is False


def test_all_protocol_headers_are_parsed() -> None:
    headers = {
        "X-Inertia": "true",
        "X-Inertia-Version": "abc123",
        "X-Inertia-Partial-Component": "Users/Index",
        "X-Inertia-Partial-Data": "users, stats",
        "X-Inertia-Partial-Except": "filters",
        "X-Inertia-Reset": "feed",
        "X-Inertia-Except-Once-Props": "config,plans",
        "X-Inertia-Infinite-Scroll-Merge-Intent": "prepend",
        "X-Inertia-Error-Bag": "createUser",
    }

    context = InertiaContext.from_headers(headers, url="/users?page=2", method="POST")

    assert context.is_inertia is True
    assert context.version == "abc123"
    assert context.partial_component == "Users/Index"
    assert context.partial_data == {"users", "stats"}
    assert context.partial_except == {"filters"}
    assert context.reset == {"feed"}
    assert context.except_once_props == {"config", "plans"}
    assert context.merge_intent is MergeIntent.PREPEND
    assert context.error_bag == "createUser"
    assert context.url == "/users?page=2"
    assert context.method == "POST"
    assert context.is_partial_reload is True


def test_list_headers_are_trimmed_and_deduplicated() -> None:
    context = InertiaContext.from_headers({"X-Inertia": "true", "X-Inertia-Partial-Data": " a, ,b,a ,, "})

    assert context.partial_data == {"a", "b"}


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("append", MergeIntent.APPEND),
        ("APPEND", MergeIntent.APPEND),
        ("Prepend", MergeIntent.PREPEND),
        ("sideways", None),
        ("", None),
    ],
)
def test_merge_intent_is_case_insensitive(value: str, expected: "MergeIntent | None") -> None:
    context = InertiaContext.from_headers({"X-Inertia-Infinite-Scroll-Merge-Intent": value})

    assert context.merge_intent is expected


def test_marker_header_must_be_true() -> None:
    assert InertiaContext.from_headers({"X-Inertia": "false"}).is_inertia is False
    assert InertiaContext.from_headers({"X-Inertia": "yes"}).is_inertia is False


def test_partial_reload_requires_inertia_request() -> None:
    context = InertiaContext.from_headers({"X-Inertia-Partial-Data": "users"})

    assert context.partial_data == {"users"}
    assert context.is_partial_reload is False


def test_partial_except_alone_is_a_partial_reload() -> None:
    context = InertiaContext.from_headers({"X-Inertia": "true", "X-Inertia-Partial-Except": "stats"})

    assert context.is_partial_reload is True


def test_uri_encoded_header_is_unquoted() -> None:
    context = InertiaContext.from_headers({
        "X-Inertia-Partial-Component": "Users%2FIndex",
        "X-Inertia-Partial-Component-uri-autoencoded": "true",
    })

    assert context.partial_component == "Users/Index"


def test_context_is_cached_per_request(inertia_plugin: InertiaPlugin) -> None:
    @get("/users", media_type=MediaType.JSON)
    async def handler(request: InertiaRequest[Any, Any, Any]) -> dict[str, Any]:
        first = InertiaContext.from_connection(request)
        return {
            "same": first is request.inertia,
            "url": first.url,
            "partial": sorted(first.partial_data),
        }

    with create_test_client(route_handlers=[handler], plugins=[inertia_plugin]) as client:
        response = client.get(
            "/users?page=2&sort=name",
            headers={InertiaHeaders.ENABLED.value: "true", InertiaHeaders.PARTIAL_DATA.value: "users,stats"},
        )
        assert response.status_code == HTTP_200_OK
        assert response.json() == {"same": True, "url": "/users?page=2&sort=name", "partial": ["stats", "users"]}


async def test_is_inertia_default(inertia_plugin: InertiaPlugin) -> None:
    @get("/")
    async def handler(request: InertiaRequest[Any, Any, Any]) -> bool:
        return bool(request.is_inertia)

    with create_test_client(route_handlers=[handler], plugins=[inertia_plugin]) as client:
        response = client.get("/")
        assert response.text == "false"


async def test_is_inertia_true(inertia_plugin: InertiaPlugin) -> None:
    @get("/")
    async def handler(request: InertiaRequest[Any, Any, Any]) -> bool:
        return bool(request.is_inertia)

    with create_test_client(route_handlers=[handler], plugins=[inertia_plugin]) as client:
        response = client.get("/", headers={InertiaHeaders.ENABLED.value: "true"})
        assert response.text == "true"


async def test_route_component_from_opts(inertia_plugin: InertiaPlugin) -> None:
    @get("/", opt={"page": "Dashboard"})
    async def handler(request: InertiaRequest[Any, Any, Any]) -> dict[str, Any]:
        return {"component": request.route_component}

    with create_test_client(route_handlers=[handler], plugins=[inertia_plugin]) as client:
        response = client.get("/", headers={InertiaHeaders.ENABLED.value: "true"})
        assert response.json()["component"] == "Dashboard"
        assert response.json()["props"] == {"component": "Dashboard"}
