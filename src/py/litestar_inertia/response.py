import contextlib
import itertools
from collections.abc import Iterable, Mapping
from mimetypes import guess_type
from pathlib import PurePath
from typing import TYPE_CHECKING, Any, TypeVar, cast
from urllib.parse import quote, urlparse

from litestar import Litestar, MediaType, Request, Response
from litestar.datastructures.cookie import Cookie
from litestar.exceptions import ImproperlyConfiguredException
from litestar.response import Redirect
from litestar.response.base import ASGIResponse
from litestar.serialization import get_serializer
from litestar.status_codes import HTTP_200_OK, HTTP_303_SEE_OTHER, HTTP_307_TEMPORARY_REDIRECT, HTTP_409_CONFLICT
from litestar.utils.helpers import get_enum_string_value
from markupsafe import Markup

from litestar_inertia._utils import InertiaHeaders, get_headers
from litestar_inertia.flash import FlashStore
from litestar_inertia.plugin import InertiaPlugin
from litestar_inertia.request import InertiaContext, get_route_component
from litestar_inertia.shared import get_request_shared
from litestar_inertia.types import InertiaHeaderType, InertiaPage

if TYPE_CHECKING:
    from litestar.background_tasks import BackgroundTask, BackgroundTasks
    from litestar.connection.base import AuthT, StateT, UserT
    from litestar.types import ResponseCookies, ResponseHeaders, TypeEncodersMap

    from litestar_inertia.ssr import SsrResponse

__all__ = ("InertiaBack", "InertiaExternalRedirect", "InertiaRedirect", "InertiaResponse")

T = TypeVar("T")

CLEAR_HISTORY_SESSION_KEY = "_inertia_clear_history"


def _get_redirect_url(request: "Request[Any, Any, Any]", url: str | None) -> str:
    """Return a safe redirect URL, falling back to base_url when invalid.

    Args:
        request: The request object.
        url: Candidate redirect URL.

    Returns:
        A safe redirect URL (same-origin absolute, or relative), otherwise the request base URL.
    """
    base_url = str(request.base_url)

    if not url:
        return base_url

    parsed = urlparse(url)
    base = urlparse(base_url)

    if not parsed.scheme and not parsed.netloc:
        return url

    if parsed.scheme not in {"http", "https"}:
        return base_url

    if parsed.netloc != base.netloc:
        return base_url

    return url


class InertiaResponse(Response[T]):
    """Inertia Response.

    A mapping returned by the handler becomes the page props; any other value is
    passed as the ``content`` prop. The component comes from ``component`` or the
    route handler opts. Without a component the content is returned unchanged.
    """

    def __init__(
        self,
        content: T,
        *,
        component: "str | None" = None,
        template_name: "str | None" = None,
        template_str: "str | None" = None,
        background: "BackgroundTask | BackgroundTasks | None" = None,
        context: "dict[str, Any] | None" = None,
        cookies: "ResponseCookies | None" = None,
        encoding: "str" = "utf-8",
        headers: "ResponseHeaders | None" = None,
        media_type: "MediaType | str | None" = None,
        status_code: "int" = HTTP_200_OK,
        type_encoders: "TypeEncodersMap | None" = None,
        encrypt_history: "bool | None" = None,
        clear_history: bool = False,
    ) -> None:
        """Handle the rendering of a given template into a bytes string.

        Args:
            content: The page props, or a single value exposed as the ``content`` prop.
            component: The component to render. Defaults to the route handler opts.
            template_name: Path-like name for the template to be rendered, e.g. ``index.html``.
            template_str: A string representing the template, e.g. ``tmpl = "Hello <strong>World</strong>"``.
            background: A :class:`BackgroundTask <.background_tasks.BackgroundTask>` instance or
                :class:`BackgroundTasks <.background_tasks.BackgroundTasks>` to execute after the response is finished.
                Defaults to ``None``.
            context: A dictionary of key/value pairs to be passed to the temple engine's render method.
            cookies: A list of :class:`Cookie <.datastructures.Cookie>` instances to be set under the response
                ``Set-Cookie`` header.
            encoding: Content encoding
            headers: A string keyed dictionary of response headers. Header keys are insensitive.
            media_type: A string or member of the :class:`MediaType <.enums.MediaType>` enum. If not set, try to infer
                the media type based on the template name. If this fails, fall back to ``text/plain``.
            status_code: A value for the response HTTP status code.
            type_encoders: A mapping of types to callables that transform them into types supported for serialization.
            encrypt_history: Enable browser history encryption for this response (v2 feature).
                Combined with ``InertiaConfig.encrypt_history``.
                See: https://inertiajs.com/history-encryption
            clear_history: Clear previously encrypted history state (v2 feature).

        Raises:
            ValueError: If both template_name and template_str are provided.
        """
        if template_name and template_str:
            msg = "Either template_name or template_str must be provided, not both."
            raise ValueError(msg)
        self.content = content
        self.component = component
        self.background = background
        self.cookies: list[Cookie] = (
            [Cookie(key=key, value=value) for key, value in cookies.items()]
            if isinstance(cookies, Mapping)
            else list(cookies or [])
        )
        self.encoding = encoding
        self.headers: dict[str, Any] = (
            dict(headers) if isinstance(headers, Mapping) else {h.name: h.value for h in headers or {}}
        )
        self.media_type = media_type
        self.status_code = status_code
        self.response_type_encoders = {**(self.type_encoders or {}), **(type_encoders or {})}
        self.context = context or {}
        self.template_name = template_name
        self.template_str = template_str
        self.encrypt_history = encrypt_history
        self.clear_history = clear_history

    def _page_props(self) -> "Mapping[str, Any]":
        if self.content is None:
            return {}
        if isinstance(self.content, Mapping):
            return cast("Mapping[str, Any]", self.content)
        return {"content": self.content}

    def _request_shared_props(
        self, request: "Request[UserT, AuthT, StateT]", inertia_plugin: "InertiaPlugin"
    ) -> "dict[str, Any]":
        props: "dict[str, Any]" = {}
        if inertia_plugin.config.share is not None:
            props.update(inertia_plugin.config.share(request))
        props.update(get_request_shared(request))
        return props

    def _should_clear_history(self, request: "Request[UserT, AuthT, StateT]") -> bool:
        clear_history = self.clear_history
        with contextlib.suppress(AttributeError, ImproperlyConfiguredException):
            clear_history = bool(request.session.pop(CLEAR_HISTORY_SESSION_KEY, False)) or clear_history  # pyright: ignore[reportUnknownMemberType]
        return clear_history

    def build_page(
        self, request: "Request[UserT, AuthT, StateT]", component: str, inertia_plugin: "InertiaPlugin"
    ) -> InertiaPage:
        """Assemble the page for this response.

        Args:
            request: The request object.
            component: The component name.
            inertia_plugin: The Inertia plugin instance.

        Returns:
            The page.
        """
        return inertia_plugin.create_assembler().build(
            component,
            self._page_props(),
            InertiaContext.from_connection(request),
            flash=FlashStore.from_connection(request),
            request_shared=self._request_shared_props(request, inertia_plugin),
            clear_history=self._should_clear_history(request),
            encrypt_history=self.encrypt_history,
        )

    def create_template_context(
        self,
        request: "Request[UserT, AuthT, StateT]",
        page: "dict[str, Any]",
        ssr: "SsrResponse | None" = None,
        type_encoders: "TypeEncodersMap | None" = None,
    ) -> "dict[str, Any]":
        """Create a context object for the template.

        Args:
            request: A :class:`Request <.connection.Request>` instance.
            page: The serialised page object.
            ssr: Prerendered markup, when SSR is enabled and succeeded.
            type_encoders: A mapping of types to callables that transform them into types supported for serialization.

        Returns:
            A dictionary holding the template context
        """
        inertia_props = self.render(page, MediaType.JSON, get_serializer(type_encoders)).decode()
        return {
            **self.context,
            "inertia": Markup.escape(inertia_props),
            "page": page,
            "ssr_head": Markup(ssr.head_html) if ssr is not None else "",
            "ssr_body": Markup(ssr.body) if ssr is not None else "",
            "request": request,
        }

    def _render_template(
        self,
        request: "Request[UserT, AuthT, StateT]",
        page: "dict[str, Any]",
        type_encoders: "TypeEncodersMap | None",
        inertia_plugin: "InertiaPlugin",
    ) -> bytes:
        """Render the template to bytes.

        Args:
            request: The request object.
            page: The serialised page object.
            type_encoders: Type encoders for serialization.
            inertia_plugin: The Inertia plugin instance.

        Returns:
            The rendered template as bytes.

        Raises:
            ImproperlyConfiguredException: If the template engine is not configured.
        """
        template_engine = request.app.template_engine  # pyright: ignore[reportUnknownVariableType,reportUnknownMemberType]
        if not template_engine:
            msg = "Template engine is not configured"
            raise ImproperlyConfiguredException(msg)

        ssr = inertia_plugin.ssr_gateway.render(page) if inertia_plugin.ssr_gateway is not None else None
        context = self.create_template_context(request, page, ssr, type_encoders)
        if self.template_str is not None:
            return template_engine.render_string(self.template_str, context).encode(self.encoding)  # pyright: ignore[reportUnknownMemberType,reportUnknownVariableType,reportReturnType]

        template_name = self.template_name or inertia_plugin.config.root_template
        template = template_engine.get_template(template_name)  # pyright: ignore[reportUnknownMemberType,reportUnknownVariableType]
        return template.render(**context).encode(self.encoding)  # pyright: ignore[reportUnknownVariableType,reportUnknownMemberType,reportReturnType]

    def _determine_media_type(self, media_type: "MediaType | str | None") -> "MediaType | str":
        """Determine the media type for the response.

        Args:
            media_type: The provided media type or None.

        Returns:
            The determined media type.
        """
        if media_type:
            return media_type
        if self.template_name:
            suffixes = PurePath(self.template_name).suffixes
            for suffix in suffixes:
                if type_ := guess_type(f"name{suffix}")[0]:
                    return type_
            return MediaType.TEXT
        return MediaType.HTML

    def to_asgi_response(
        self,
        app: "Litestar | None",
        request: "Request[UserT, AuthT, StateT]",
        *,
        background: "BackgroundTask | BackgroundTasks | None" = None,
        cookies: "Iterable[Cookie] | None" = None,
        encoded_headers: "Iterable[tuple[bytes, bytes]] | None" = None,
        headers: "dict[str, str] | None" = None,
        is_head_response: "bool" = False,
        media_type: "MediaType | str | None" = None,
        status_code: "int | None" = None,
        type_encoders: "TypeEncodersMap | None" = None,
    ) -> "ASGIResponse":
        headers = {**headers, **self.headers} if headers is not None else self.headers
        cookies = self.cookies if cookies is None else itertools.chain(self.cookies, cookies)
        type_encoders = (
            {**type_encoders, **(self.response_type_encoders or {})} if type_encoders else self.response_type_encoders
        )

        component = self.component or get_route_component(request)
        if component is None:
            resolved_media_type = get_enum_string_value(self.media_type or media_type or MediaType.JSON)
            return ASGIResponse(
                background=self.background or background,
                body=self.render(self.content, resolved_media_type, get_serializer(type_encoders)),
                cookies=cookies,
                encoded_headers=encoded_headers,
                encoding=self.encoding,
                headers=headers,
                is_head_response=is_head_response,
                media_type=resolved_media_type,
                status_code=self.status_code or status_code,
            )

        inertia_plugin = request.app.plugins.get(InertiaPlugin)
        page = self.build_page(request, component, inertia_plugin).to_dict()

        if InertiaContext.from_connection(request).is_inertia:
            headers.update(get_headers(InertiaHeaderType(enabled=True, vary=True)))
            resolved_media_type = get_enum_string_value(self.media_type or media_type or MediaType.JSON)
            body = self.render(page, resolved_media_type, get_serializer(type_encoders))
        else:
            resolved_media_type = self._determine_media_type(media_type)
            body = self._render_template(request, page, type_encoders, inertia_plugin)

        return ASGIResponse(  # pyright: ignore[reportUnknownMemberType]
            background=self.background or background,
            body=body,
            cookies=cookies,
            encoded_headers=encoded_headers,
            encoding=self.encoding,
            headers=headers,
            is_head_response=is_head_response,
            media_type=resolved_media_type,
            status_code=self.status_code or status_code,
        )


class InertiaExternalRedirect(Response[Any]):
    """External redirect via Inertia protocol (409 + X-Inertia-Location).

    This response type triggers a client-side hard redirect in Inertia.js.
    Unlike InertiaRedirect, this does NOT validate the redirect URL as same-origin
    because external redirects are explicitly intended for cross-origin navigation
    (e.g., OAuth callbacks, external payment pages).
    """

    def __init__(self, request: "Request[Any, Any, Any]", redirect_to: "str", **kwargs: "Any") -> None:
        """Initialize external redirect with 409 status and X-Inertia-Location header.

        Args:
            request: The request object.
            redirect_to: The URL to redirect to (can be external).
            **kwargs: Additional keyword arguments passed to the Response constructor.
        """
        super().__init__(
            content=b"",
            status_code=HTTP_409_CONFLICT,
            headers=get_headers(InertiaHeaderType(location=quote(redirect_to, safe="/#%[]=:;$&()+,!?*@'~"))),
            **kwargs,
        )


class InertiaRedirect(Redirect):
    """Redirect to a specified URL with same-origin validation.

    If the URL is not same-origin, it falls back to the application's base URL.
    """

    def __init__(self, request: "Request[Any, Any, Any]", redirect_to: "str", **kwargs: "Any") -> None:
        """Initialize redirect with safe URL validation.

        Args:
            request: The request object.
            redirect_to: The URL to redirect to. Must be same-origin or relative.
            **kwargs: Additional keyword arguments passed to the Redirect constructor.
        """
        safe_url = _get_redirect_url(request, redirect_to)
        super().__init__(  # pyright: ignore[reportUnknownMemberType]
            path=safe_url,
            status_code=HTTP_307_TEMPORARY_REDIRECT if request.method == "GET" else HTTP_303_SEE_OTHER,
            **kwargs,
        )


class InertiaBack(Redirect):
    """Redirect back to the previous page using the Referer header.

    If the Referer is not same-origin or is missing, it falls back to the
    application's base URL.
    """

    def __init__(self, request: "Request[Any, Any, Any]", **kwargs: "Any") -> None:
        """Initialize back redirect with safe URL validation.

        Args:
            request: The request object.
            **kwargs: Additional keyword arguments passed to the Redirect constructor.
        """
        safe_url = _get_redirect_url(request, request.headers.get(InertiaHeaders.REFERER.value))
        super().__init__(  # pyright: ignore[reportUnknownMemberType]
            path=safe_url,
            status_code=HTTP_307_TEMPORARY_REDIRECT if request.method == "GET" else HTTP_303_SEE_OTHER,
            **kwargs,
        )
