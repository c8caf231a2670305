"""Tests for the request header builder and page assertions used in application tests."""

from typing import Any

import httpx
import pytest
from litestar import get
from litestar.handlers import HTTPRouteHandler
from litestar.testing import create_test_client  # pyright: ignore[reportUnknownVariableType]

from litestar_inertia import InertiaPlugin, InertiaRequest, MergeIntent, defer, flash, merge, once
from litestar_inertia.testing import (
    InertiaPageAssertions,
    InertiaRequestHeaders,
    assert_inertia,
    partial_reload_headers,
)

pytestmark = pytest.mark.anyio


@pytest.fixture
def feed() -> "HTTPRouteHandler":
    @get("/feed", component="Feed")
    async def handler(request: InertiaRequest[Any, Any, Any]) -> dict[str, Any]:
        flash(request, "success", "Loaded")
        return {
            "posts": merge([1, 2]),
            "messages": merge(["hi"]).prepend(),
            "settings": merge({"theme": "dark"}, mode="deep"),
            "stats": defer(lambda: {"views": 3}, group="sidebar"),
            "config": once({"locale": "en"}).as_("app-config"),
            "title": "Feed",
        }

    return handler


def test_header_builder() -> None:
    headers = (
        InertiaRequestHeaders()
        .with_version("1.0")
        .with_partial_data("posts", "title")
        .with_partial_except("stats")
        .for_component("Feed")
        .with_merge_intent(MergeIntent.PREPEND)
        .with_except_once_props("app-config")
        .with_reset("posts")
        .with_error_bag("createPost")
        .build()
    )

    assert headers == {
        "X-Inertia": "true",
        "X-Inertia-Version": "1.0",
        "X-Inertia-Partial-Data": "posts,title",
        "X-Inertia-Partial-Except": "stats",
        "X-Inertia-Partial-Component": "Feed",
        "X-Inertia-Infinite-Scroll-Merge-Intent": "prepend",
        "X-Inertia-Except-Once-Props": "app-config",
        "X-Inertia-Reset": "posts",
        "X-Inertia-Error-Bag": "createPost",
    }


def test_header_builder_keeps_extra_headers_and_can_skip_the_marker() -> None:
    headers = InertiaRequestHeaders({"Accept": "text/html"}, inertia=False).with_merge_intent("append").build()

    assert headers == {"Accept": "text/html", "X-Inertia-Infinite-Scroll-Merge-Intent": "append"}


def test_partial_reload_headers() -> None:
    assert partial_reload_headers("Feed", "posts", "title") == {
        "X-Inertia": "true",
        "X-Inertia-Partial-Component": "Feed",
        "X-Inertia-Partial-Data": "posts,title",
    }


async def test_assertions_on_first_visit(inertia_plugin: InertiaPlugin, feed: "HTTPRouteHandler") -> None:
    with create_test_client(route_handlers=[feed], plugins=[inertia_plugin]) as client:
        response = client.get("/feed", headers=InertiaRequestHeaders().with_version("1.0").build())

        (
            assert_inertia(response)
            .component("Feed")
            .url("/feed")
            .version("1.0")
            .has("posts")
            .missing("stats")
            .where_equals("title", "Feed")
            .where("posts", lambda posts: len(posts) == 2)
            .has_flash("success")
            .has_flash("success", "Loaded")
            .missing_flash("error")
            .has_deferred_prop("stats", group="sidebar")
            .has_merge_prop("posts")
            .has_prepend_prop("messages")
            .has_deep_merge_prop("settings")
            .has_once_prop("app-config")
        )


async def test_assertions_on_partial_reload(inertia_plugin: InertiaPlugin, feed: "HTTPRouteHandler") -> None:
    with create_test_client(route_handlers=[feed], plugins=[inertia_plugin]) as client:
        response = client.get("/feed", headers=partial_reload_headers("Feed", "stats", "config"))

        (
            assert_inertia(response)
            .where_equals("stats", {"views": 3})
            .has("config")
            .missing("posts")
            .missing("title")
            .has_once_prop("app-config")
        )

        headers = InertiaRequestHeaders().with_except_once_props("app-config").build()
        assert_inertia(client.get("/feed", headers=headers)).missing("config").has("title")


PAGE: "dict[str, Any]" = {
    "component": "Feed",
    "props": {"title": "Feed", "posts": [1]},
    "url": "/feed",
    "version": "1.0",
    "flash": {"success": "Saved"},
    "deferredProps": {"sidebar": ["stats"]},
    "mergeProps": ["posts"],
}


@pytest.mark.parametrize(
    ("check", "message"),
    [
        (lambda page: page.component("Home"), "Expected component 'Home'"),
        (lambda page: page.url("/other"), "Expected url"),
        (lambda page: page.has("users"), "Expected prop 'users' to exist"),
        (lambda page: page.missing("title"), "Expected prop 'title' to be missing"),
        (lambda page: page.where_equals("title", "Home"), "Expected prop 'title' to equal"),
        (lambda page: page.where("posts", lambda posts: not posts), "Predicate failed for prop 'posts'"),
        (lambda page: page.has_flash("error"), "Expected flash key 'error'"),
        (lambda page: page.has_flash("success", "Created"), "Expected flash 'success'"),
        (lambda page: page.missing_flash("success"), "to be missing"),
        (lambda page: page.has_deferred_prop("stats"), "deferred group 'default'"),
        (lambda page: page.has_prepend_prop("posts"), "to be a prepend prop"),
        (lambda page: page.has_once_prop("config"), "to be a once prop"),
    ],
)
def test_failed_assertions_raise(check: "Any", message: str) -> None:
    with pytest.raises(AssertionError, match=message):
        check(InertiaPageAssertions(PAGE))


def test_non_inertia_response_is_rejected() -> None:
    response = httpx.Response(200, json=PAGE)

    with pytest.raises(AssertionError, match="Expected an Inertia response"):
        assert_inertia(response)
