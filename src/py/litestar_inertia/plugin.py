from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import httpx
from anyio.from_thread import start_blocking_portal
from litestar.plugins import InitPluginProtocol

from litestar_inertia.assembler import PageAssembler
from litestar_inertia.config import InertiaConfig
from litestar_inertia.shared import SharedProps
from litestar_inertia.ssr import HttpSsrGateway

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from anyio.from_thread import BlockingPortal
    from litestar import Litestar
    from litestar.config.app import AppConfig

    from litestar_inertia.ssr import SsrGateway

__all__ = ("InertiaPlugin",)


class InertiaPlugin(InitPluginProtocol):
    """Inertia plugin.

    This plugin configures Litestar for Inertia.js support, including:
    - InertiaRequest and InertiaResponse as default classes
    - InertiaMiddleware for version checks, redirects and flash data
    - The process-wide :class:`~litestar_inertia.shared.SharedProps` store
    - The SSR gateway when SSR is enabled

    BlockingPortal Behavior:
        Pages are assembled synchronously while the response is serialised, but
        prop callbacks may be ``async def`` functions. The plugin starts a
        BlockingPortal during its lifespan and every page build of the app uses
        it. Outside the lifespan a temporary portal is started per callback.

    SSR Client Pooling:
        When SSR is enabled, the plugin maintains a shared ``httpx.AsyncClient``
        for all SSR requests. The client is initialized during app lifespan and
        properly closed on shutdown.

    Example::

        from litestar_inertia import InertiaPlugin, InertiaConfig

        inertia = InertiaPlugin(InertiaConfig(version="1"))
        inertia.shared.share("app_name", "Acme")

        app = Litestar(
            plugins=[inertia],
            middleware=[ServerSideSessionConfig().middleware],
        )
    """

    __slots__ = ("_portal", "_ssr_client", "config", "shared", "ssr_gateway")

    def __init__(
        self,
        config: "InertiaConfig | None" = None,
        *,
        shared: "SharedProps | None" = None,
        ssr_gateway: "SsrGateway | None" = None,
    ) -> "None":
        """Initialize the plugin with Inertia configuration.

        Args:
            config: The Inertia configuration.
            shared: Shared props store. A new store is created when omitted.
            ssr_gateway: Custom SSR gateway. Built from ``config.ssr`` when omitted.
        """
        self.config = config if config is not None else InertiaConfig()
        self.shared = shared if shared is not None else SharedProps()
        if self.config.extra_static_page_props:
            self.shared.share(self.config.extra_static_page_props)
        ssr_config = self.config.ssr_config
        if ssr_gateway is None and ssr_config is not None:
            ssr_gateway = HttpSsrGateway(ssr_config.url, timeout=ssr_config.timeout)
        self.ssr_gateway = ssr_gateway
        self._ssr_client: "httpx.AsyncClient | None" = None
        self._portal: "BlockingPortal | None" = None  # pyright: ignore[reportInvalidTypeForm]

    @asynccontextmanager
    async def lifespan(self, app: "Litestar") -> "AsyncGenerator[None, None]":
        """Lifespan to ensure the event loop is available.

        Initializes:
        - BlockingPortal for async prop callbacks and SSR calls
        - Shared httpx.AsyncClient for SSR requests (connection pooling)

        Args:
            app: The :class:`Litestar <litestar.app.Litestar>` instance.

        Yields:
            An asynchronous context manager.
        """
        gateway = self.ssr_gateway if isinstance(self.ssr_gateway, HttpSsrGateway) else None
        if gateway is not None and gateway.client is None:
            limits = httpx.Limits(max_keepalive_connections=10, max_connections=20, keepalive_expiry=30.0)
            self._ssr_client = httpx.AsyncClient(limits=limits, timeout=httpx.Timeout(gateway.timeout))
            gateway.client = self._ssr_client

        try:
            with start_blocking_portal() as portal:
                self._portal = portal
                if gateway is not None:
                    gateway.portal = portal
                yield
        finally:
            self._portal = None
            if gateway is not None:
                gateway.portal = None
            if self._ssr_client is not None:
                if gateway is not None and gateway.client is self._ssr_client:
                    gateway.client = None
                await self._ssr_client.aclose()
                self._ssr_client = None

    @property
    def portal(self) -> "BlockingPortal":
        """Return the blocking portal used for async prop resolution.

        Returns:
            The BlockingPortal instance.

        Raises:
            RuntimeError: If accessed before app lifespan is active.
        """
        if self._portal is None:
            msg = "BlockingPortal not available. Ensure app lifespan is active."
            raise RuntimeError(msg)
        return self._portal

    @property
    def ssr_client(self) -> "httpx.AsyncClient | None":
        """Return the shared httpx.AsyncClient for SSR requests.

        Returns:
            The shared AsyncClient instance, or None if not initialized.
        """
        return self._ssr_client

    def create_assembler(self) -> "PageAssembler":
        """Return a page assembler bound to this plugin's shared props and settings.

        Returns:
            The page assembler.
        """
        return PageAssembler(
            self.shared,
            version=self.config.version,
            encrypt_history=self.config.encrypt_history,
            portal=self._portal,
        )

    def on_app_init(self, app_config: "AppConfig") -> "AppConfig":
        """Configure application for use with Inertia.

        Args:
            app_config: The :class:`AppConfig <litestar.config.app.AppConfig>` instance.

        Returns:
            The :class:`AppConfig <litestar.config.app.AppConfig>` instance.
        """

        from litestar_inertia.middleware import InertiaMiddleware
        from litestar_inertia.request import InertiaRequest
        from litestar_inertia.response import InertiaBack, InertiaExternalRedirect, InertiaRedirect, InertiaResponse

        app_config.request_class = InertiaRequest
        app_config.response_class = InertiaResponse
        app_config.middleware.append(InertiaMiddleware)
        app_config.signature_types.extend([
            InertiaRequest,
            InertiaResponse,
            InertiaBack,
            InertiaRedirect,
            InertiaExternalRedirect,
        ])
        app_config.lifespan.append(self.lifespan)  # pyright: ignore[reportUnknownMemberType]
        return app_config
