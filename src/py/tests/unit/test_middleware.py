"""Tests for InertiaMiddleware: version checks, redirect statuses and caching headers."""

from typing import Any

import pytest
from litestar import delete, get, patch, post, put
from litestar.response import Redirect
from litestar.status_codes import HTTP_302_FOUND, HTTP_303_SEE_OTHER, HTTP_307_TEMPORARY_REDIRECT, HTTP_409_CONFLICT
from litestar.testing import create_test_client  # pyright: ignore[reportUnknownVariableType]

from litestar_inertia import (
    InertiaContext,
    InertiaHeaders,
    InertiaPlugin,
    adapt_redirect_status,
    get_version_mismatch_location,
)

pytestmark = pytest.mark.anyio


@pytest.mark.parametrize(
    ("context", "server_version", "expected"),
    [
        (InertiaContext(is_inertia=True, version="old", url="/users?page=2"), "new", "/users?page=2"),
        (InertiaContext(is_inertia=True, version="new", url="/users"), "new", None),
        (InertiaContext(is_inertia=True, version=None, url="/users"), "new", None),
        (InertiaContext(is_inertia=True, version="old", url="/users"), None, None),
        (InertiaContext(is_inertia=False, version="old", url="/users"), "new", None),
    ],
)
def test_get_version_mismatch_location(
    context: InertiaContext, server_version: "str | None", expected: "str | None"
) -> None:
    assert get_version_mismatch_location(context, server_version) == expected


@pytest.mark.parametrize(
    ("status", "method", "is_inertia", "expected"),
    [
        (HTTP_302_FOUND, "PUT", True, HTTP_303_SEE_OTHER),
        (HTTP_302_FOUND, "patch", True, HTTP_303_SEE_OTHER),
        (HTTP_302_FOUND, "DELETE", True, HTTP_303_SEE_OTHER),
        (HTTP_302_FOUND, "POST", True, HTTP_302_FOUND),
        (HTTP_302_FOUND, "GET", True, HTTP_302_FOUND),
        (HTTP_302_FOUND, "PUT", False, HTTP_302_FOUND),
        (HTTP_307_TEMPORARY_REDIRECT, "PUT", True, HTTP_307_TEMPORARY_REDIRECT),
        (200, "DELETE", True, 200),
    ],
)
def test_adapt_redirect_status(status: int, method: str, is_inertia: bool, expected: int) -> None:
    assert adapt_redirect_status(status, method, is_inertia=is_inertia) == expected


async def test_version_mismatch_returns_409_with_location(inertia_plugin: InertiaPlugin) -> None:
    calls: list[str] = []

    @get("/users", component="Users/Index")
    async def handler() -> dict[str, Any]:
        calls.append("handler")
        return {}

    with create_test_client(route_handlers=[handler], plugins=[inertia_plugin]) as client:
        response = client.get(
            "/users?page=2",
            headers={InertiaHeaders.ENABLED.value: "true", InertiaHeaders.VERSION.value: "stale"},
        )

        assert response.status_code == HTTP_409_CONFLICT
        assert response.headers[InertiaHeaders.LOCATION.value] == "/users?page=2"
        assert calls == []


async def test_version_match_proceeds(inertia_plugin: InertiaPlugin) -> None:
    @get("/", component="Home")
    async def handler() -> dict[str, Any]:
        return {"data": "value"}

    with create_test_client(route_handlers=[handler], plugins=[inertia_plugin]) as client:
        response = client.get("/", headers={InertiaHeaders.ENABLED.value: "true", InertiaHeaders.VERSION.value: "1.0"})

        assert response.status_code == 200
        assert response.json()["version"] == "1.0"


async def test_missing_client_version_proceeds(inertia_plugin: InertiaPlugin) -> None:
    @get("/", component="Home")
    async def handler() -> dict[str, Any]:
        return {}

    with create_test_client(route_handlers=[handler], plugins=[inertia_plugin]) as client:
        response = client.get("/", headers={InertiaHeaders.ENABLED.value: "true"})

        assert response.status_code == 200


async def test_version_gate_ignores_non_inertia_requests(inertia_plugin: InertiaPlugin) -> None:
    @get("/ping")
    async def handler() -> dict[str, str]:
        return {"status": "ok"}

    with create_test_client(route_handlers=[handler], plugins=[inertia_plugin]) as client:
        response = client.get("/ping", headers={InertiaHeaders.VERSION.value: "stale"})

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}
        assert InertiaHeaders.VARY.value not in response.headers


@pytest.mark.parametrize(("route", "method"), [(put, "PUT"), (patch, "PATCH"), (delete, "DELETE")])
async def test_redirect_after_mutation_becomes_303(inertia_plugin: InertiaPlugin, route: Any, method: str) -> None:
    @route("/users/1", status_code=HTTP_302_FOUND)
    async def handler() -> Redirect:
        return Redirect(path="/users", status_code=HTTP_302_FOUND)

    with create_test_client(route_handlers=[handler], plugins=[inertia_plugin]) as client:
        response = client.request(
            method,
            "/users/1",
            headers={InertiaHeaders.ENABLED.value: "true"},
            follow_redirects=False,
        )

        assert response.status_code == HTTP_303_SEE_OTHER
        assert response.headers["location"] == "/users"


async def test_redirect_after_post_is_unchanged(inertia_plugin: InertiaPlugin) -> None:
    @post("/users")
    async def handler() -> Redirect:
        return Redirect(path="/users", status_code=HTTP_302_FOUND)

    with create_test_client(route_handlers=[handler], plugins=[inertia_plugin]) as client:
        response = client.post("/users", headers={InertiaHeaders.ENABLED.value: "true"}, follow_redirects=False)

        assert response.status_code == HTTP_302_FOUND


async def test_redirect_for_plain_request_is_unchanged(inertia_plugin: InertiaPlugin) -> None:
    @put("/users/1")
    async def handler() -> Redirect:
        return Redirect(path="/users", status_code=HTTP_302_FOUND)

    with create_test_client(route_handlers=[handler], plugins=[inertia_plugin]) as client:
        response = client.put("/users/1", follow_redirects=False)

        assert response.status_code == HTTP_302_FOUND


async def test_vary_header_added_once(inertia_plugin: InertiaPlugin) -> None:
    @get("/", component="Home")
    async def page() -> dict[str, Any]:
        return {}

    @get("/data")
    async def data() -> dict[str, Any]:
        return {}

    with create_test_client(route_handlers=[page, data], plugins=[inertia_plugin]) as client:
        for path in ("/", "/data"):
            response = client.get(path, headers={InertiaHeaders.ENABLED.value: "true"})
            values = [item.strip() for value in response.headers.get_list("vary") for item in value.split(",")]
            assert values.count(InertiaHeaders.ENABLED.value) == 1


async def test_vary_header_appended_to_existing_value(inertia_plugin: InertiaPlugin) -> None:
    @get("/", response_headers={"Vary": "Accept-Encoding"})
    async def handler() -> dict[str, Any]:
        return {}

    with create_test_client(route_handlers=[handler], plugins=[inertia_plugin]) as client:
        response = client.get("/", headers={InertiaHeaders.ENABLED.value: "true"})

        values = {item.strip() for value in response.headers.get_list("vary") for item in value.split(",")}
        assert values == {"Accept-Encoding", InertiaHeaders.ENABLED.value}
