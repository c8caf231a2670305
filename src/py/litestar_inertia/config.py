"""Inertia.js configuration classes."""

import os
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from litestar import Request

__all__ = ("TRUE_VALUES", "InertiaConfig", "InertiaSSRConfig")

TRUE_VALUES = {"True", "true", "1", "yes", "Y", "T"}


def empty_dict_factory() -> dict[str, Any]:
    """Return an empty ``dict[str, Any]``.

    Returns:
        An empty dictionary.
    """
    return {}


@dataclass
class InertiaSSRConfig:
    """Server-side rendering settings for Inertia.js.

    Inertia SSR runs a separate Node server that renders the initial HTML for an
    Inertia page object. Litestar posts the page payload to ``{url}/render`` and
    passes the returned head tags and body markup to the root template.

    Notes:
        - Failures to contact the SSR server are logged and the page is rendered
          without SSR content.
    """

    enabled: bool = True
    url: str = "http://127.0.0.1:13714"
    timeout: float = 2.0


@dataclass
class InertiaConfig:
    """Configuration for InertiaJS support.

    Attributes:
        version: Current asset version.
        root_template: Name of the root template to use.
        component_opt_keys: Identifiers for getting inertia component from route opts.
        encrypt_history: Encrypt browser history state for every page.
        extra_static_page_props: Static props added to every page response.
        share: Callable returning props shared with every page of one request.
        ssr: Server-side rendering settings.
    """

    version: "str | None" = field(default_factory=lambda: os.getenv("INERTIA_VERSION"))
    """Current asset version.

    Inertia clients that send a different ``X-Inertia-Version`` get a 409 response
    and reload the page. ``None`` disables the check.
    """
    root_template: str = "index.html"
    """Name of the root template to use.

    This must be a path that is found by the application template config
    """
    component_opt_keys: "tuple[str, ...]" = ("component", "page")
    """Identifiers to use on routes to get the inertia component to render.

    The first key found in the route handler opts will be used. This allows
    semantic flexibility - use "component" or "page" depending on preference.

    Example:
        # All equivalent:
        @get("/", component="Home")
        @get("/", page="Home")

        # Custom keys:
        InertiaConfig(component_opt_keys=("view", "component", "page"))
    """
    encrypt_history: bool = field(
        default_factory=lambda: os.getenv("INERTIA_ENCRYPT_HISTORY", "False") in TRUE_VALUES
    )
    """Enable browser history encryption globally (v2 feature).

    When True, all Inertia responses will include `encryptHistory: true`
    in the page object. Individual responses can also enable it.

    See: https://inertiajs.com/history-encryption
    """
    extra_static_page_props: "dict[str, Any]" = field(default_factory=empty_dict_factory)
    """A dictionary of values to automatically add in to page props on every response."""
    share: "Callable[[Request[Any, Any, Any]], Mapping[str, Any]] | None" = None
    """Props shared with every page of a single request.

    Called with the request each time a page is built. Keys returned here override
    global shared props and are overridden by the handler's own props.

    Example:
        InertiaConfig(share=lambda request: {"user": request.session.get("user")})
    """
    ssr: "InertiaSSRConfig | bool | None" = None
    """Enable server-side rendering (SSR) for Inertia responses.

    Supports:
        - True: enable with defaults -> ``InertiaSSRConfig()``
        - False/None: disabled -> ``None``
        - InertiaSSRConfig: use as-is
    """

    def __post_init__(self) -> None:
        """Normalize optional sub-configs."""
        if self.ssr is True:
            self.ssr = InertiaSSRConfig()
        elif self.ssr is False:
            self.ssr = None

    @property
    def ssr_config(self) -> "InertiaSSRConfig | None":
        """Return the SSR config when enabled, otherwise None.

        Returns:
            The resolved SSR config when enabled, otherwise None.
        """
        if isinstance(self.ssr, InertiaSSRConfig) and self.ssr.enabled:
            return self.ssr
        return None
