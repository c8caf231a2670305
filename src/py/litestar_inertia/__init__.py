from litestar_inertia import helpers
from litestar_inertia.__metadata__ import __version__
from litestar_inertia._utils import InertiaHeaders
from litestar_inertia.assembler import PageAssembler
from litestar_inertia.config import InertiaConfig, InertiaSSRConfig
from litestar_inertia.flash import FlashStore
from litestar_inertia.helpers import clear_history, flash, location, render, share
from litestar_inertia.middleware import InertiaMiddleware, adapt_redirect_status, get_version_mismatch_location
from litestar_inertia.plugin import InertiaPlugin
from litestar_inertia.props import (
    Capability,
    InertiaProp,
    OnceConfig,
    always,
    defer,
    lazy,
    merge,
    once,
    optional,
    scroll,
)
from litestar_inertia.request import InertiaContext, InertiaRequest
from litestar_inertia.response import InertiaBack, InertiaExternalRedirect, InertiaRedirect, InertiaResponse
from litestar_inertia.shared import SharedProps
from litestar_inertia.ssr import HttpSsrGateway, SsrGateway, SsrResponse
from litestar_inertia.types import (
    InertiaPage,
    MergeIntent,
    MergeMode,
    PageData,
    ScrollData,
    ScrollMetadata,
    SimplePageData,
)

__all__ = (
    "Capability",
    "FlashStore",
    "HttpSsrGateway",
    "InertiaBack",
    "InertiaConfig",
    "InertiaContext",
    "InertiaExternalRedirect",
    "InertiaHeaders",
    "InertiaMiddleware",
    "InertiaPage",
    "InertiaPlugin",
    "InertiaProp",
    "InertiaRedirect",
    "InertiaRequest",
    "InertiaResponse",
    "InertiaSSRConfig",
    "MergeIntent",
    "MergeMode",
    "OnceConfig",
    "PageAssembler",
    "PageData",
    "ScrollData",
    "ScrollMetadata",
    "SharedProps",
    "SimplePageData",
    "SsrGateway",
    "SsrResponse",
    "__version__",
    "adapt_redirect_status",
    "always",
    "clear_history",
    "defer",
    "flash",
    "get_version_mismatch_location",
    "helpers",
    "lazy",
    "location",
    "merge",
    "once",
    "optional",
    "render",
    "scroll",
    "share",
)
