"""Tests for the HTTP SSR gateway."""

import json
import logging
from typing import Any

import httpx
import pytest
from anyio.from_thread import start_blocking_portal

from litestar_inertia import HttpSsrGateway, InertiaConfig, InertiaPlugin, InertiaSSRConfig, SsrGateway, SsrResponse

pytestmark = pytest.mark.anyio

PAGE: "dict[str, Any]" = {"component": "Home", "props": {"name": "Ada"}, "url": "/", "version": "1"}


def make_gateway(handler: "Any") -> HttpSsrGateway:
    return HttpSsrGateway("http://ssr.test/", client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


def test_urls_are_derived_from_base_url() -> None:
    gateway = HttpSsrGateway("http://127.0.0.1:13714/")

    assert gateway.render_url == "http://127.0.0.1:13714/render"
    assert gateway.health_url == "http://127.0.0.1:13714/health"
    assert isinstance(gateway, SsrGateway)


async def test_render_posts_page_and_parses_payload() -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"head": ["<title>Home</title>", "<meta name='x'>"], "body": "<div>Ada</div>"})

    result = await make_gateway(handler).render_async(PAGE)

    assert result == SsrResponse(head=["<title>Home</title>", "<meta name='x'>"], body="<div>Ada</div>")
    assert result.head_html == "<title>Home</title>\n<meta name='x'>"
    assert requests[0].method == "POST"
    assert str(requests[0].url) == "http://ssr.test/render"
    assert json.loads(requests[0].content) == PAGE


async def test_missing_head_defaults_to_empty() -> None:
    result = await make_gateway(lambda request: httpx.Response(200, json={"body": "<div/>"})).render_async(PAGE)

    assert result == SsrResponse(head=[], body="<div/>")


async def test_render_returns_none_when_unreachable(caplog: pytest.LogCaptureFixture) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        msg = "connection refused"
        raise httpx.ConnectError(msg, request=request)

    with caplog.at_level(logging.WARNING, logger="litestar_inertia"):
        result = await make_gateway(handler).render_async(PAGE)

    assert result is None
    assert "not reachable" in caplog.text


async def test_render_returns_none_on_http_error(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING, logger="litestar_inertia"):
        result = await make_gateway(lambda request: httpx.Response(500, text="boom")).render_async(PAGE)

    assert result is None
    assert "HTTP 500" in caplog.text


@pytest.mark.parametrize(
    "payload",
    [
        ["not", "a", "dict"],
        {"head": []},
        {"head": "<title/>", "body": ""},
        {"head": [1], "body": ""},
    ],
)
async def test_render_returns_none_on_invalid_payload(payload: Any) -> None:
    result = await make_gateway(lambda request: httpx.Response(200, json=payload)).render_async(PAGE)

    assert result is None


async def test_render_returns_none_on_non_json_body() -> None:
    result = await make_gateway(lambda request: httpx.Response(200, text="<html>")).render_async(PAGE)

    assert result is None


async def test_health_check() -> None:
    assert await make_gateway(lambda request: httpx.Response(200)).is_available_async() is True
    assert await make_gateway(lambda request: httpx.Response(503)).is_available_async() is False


async def test_health_check_unreachable() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        msg = "timed out"
        raise httpx.ConnectTimeout(msg, request=request)

    assert await make_gateway(handler).is_available_async() is False


def test_sync_render_through_portal() -> None:
    gateway = make_gateway(lambda request: httpx.Response(200, json={"head": [], "body": "<p>hi</p>"}))

    with start_blocking_portal() as portal:
        gateway.portal = portal
        assert gateway.render(PAGE) == SsrResponse(body="<p>hi</p>")
        assert gateway.is_available() is True


def test_plugin_builds_gateway_from_config() -> None:
    plugin = InertiaPlugin(InertiaConfig(ssr=InertiaSSRConfig(url="http://node:13714", timeout=1.5)))

    assert isinstance(plugin.ssr_gateway, HttpSsrGateway)
    assert plugin.ssr_gateway.render_url == "http://node:13714/render"
    assert plugin.ssr_gateway.timeout == 1.5


@pytest.mark.parametrize("ssr", [None, False, InertiaSSRConfig(enabled=False)])
def test_plugin_without_ssr(ssr: Any) -> None:
    assert InertiaPlugin(InertiaConfig(ssr=ssr)).ssr_gateway is None


def test_ssr_true_uses_defaults() -> None:
    config = InertiaConfig(ssr=True)

    assert config.ssr_config == InertiaSSRConfig()
