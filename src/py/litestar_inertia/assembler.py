"""Page assembly.

:class:`PageAssembler` turns a component name and a prop bag into an
:class:`~litestar_inertia.types.InertiaPage` for one request. It merges shared props,
decides which props the client gets, resolves callbacks and collects the protocol
metadata (deferred groups, merge lists and once-prop expiries).
"""

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, cast

from litestar_inertia._async_mixin import AsyncRenderMixin
from litestar_inertia.props import InertiaProp, is_inertia_prop
from litestar_inertia.types import InertiaPage, MergeMode, OncePropMetadata

if TYPE_CHECKING:
    from anyio.from_thread import BlockingPortal

    from litestar_inertia.flash import FlashStore
    from litestar_inertia.request import InertiaContext
    from litestar_inertia.shared import SharedProps

__all__ = ("PageAssembler", "validate_component")

logger = logging.getLogger("litestar_inertia")


def validate_component(component: "str | None") -> str:
    """Return the component name, rejecting blank names.

    Raises:
        ValueError: If the name is empty or whitespace.

    Returns:
        The component name.
    """
    if component is None or not component.strip():
        msg = "Component name must not be blank"
        raise ValueError(msg)
    return component


def _effective_once_key(key: str, prop: "InertiaProp[Any]") -> str:
    once_config = prop.once_config
    return once_config.key if once_config is not None and once_config.key else key


class PageAssembler(AsyncRenderMixin):
    """Build Inertia pages.

    Args:
        shared: Process-wide shared props, read once per page.
        version: Server asset version written to every page.
        encrypt_history: Default for the page ``encryptHistory`` flag.
        portal: Portal used to run ``async def`` callbacks. A temporary portal is
            started per callback when omitted.
    """

    __slots__ = ("encrypt_history", "portal", "shared", "version")

    def __init__(
        self,
        shared: "SharedProps | None" = None,
        *,
        version: "str | None" = None,
        encrypt_history: bool = False,
        portal: "BlockingPortal | None" = None,
    ) -> None:
        self.shared = shared
        self.version = version
        self.encrypt_history = encrypt_history
        self.portal = portal

    def build(
        self,
        component: str,
        props: "Mapping[str, Any] | None",
        context: "InertiaContext",
        *,
        flash: "FlashStore | None" = None,
        request_shared: "Mapping[str, Any] | None" = None,
        clear_history: bool = False,
        encrypt_history: "bool | None" = None,
    ) -> InertiaPage:
        """Assemble the page for one response.

        Props are merged in this order, later keys winning: global shared props,
        request-scoped shared props, then ``props``. Callback errors propagate and
        no page is produced.

        Args:
            component: Component name.
            props: Props passed by the handler.
            context: The request context.
            flash: The request's flash store. Reading it consumes this request's values.
            request_shared: Props shared for this request only.
            clear_history: Ask the client to clear its encrypted history.
            encrypt_history: Per-response override, combined with the assembler default.

        Returns:
            The page.
        """
        validate_component(component)
        merged: "dict[str, Any]" = {}
        if self.shared is not None:
            merged.update(self.shared.get_shared(self.portal))
        if request_shared:
            merged.update(request_shared)
        if props:
            merged.update(props)

        resolved: "dict[str, Any]" = {}
        deferred: "dict[str, list[str]]" = {}
        merge_props: "list[str]" = []
        prepend_props: "list[str]" = []
        deep_merge_props: "list[str]" = []
        once_props: "dict[str, OncePropMetadata]" = {}

        for key, value in merged.items():
            if not self.should_include(key, value, context):
                if is_inertia_prop(value) and value.defer_group is not None:
                    deferred.setdefault(value.defer_group, []).append(key)
                continue

            resolved[key] = self.resolve(value)
            if not is_inertia_prop(value):
                continue

            if (merge_mode := value.merge_mode) is not None:
                {
                    MergeMode.APPEND: merge_props,
                    MergeMode.PREPEND: prepend_props,
                    MergeMode.DEEP: deep_merge_props,
                }[merge_mode].append(key)
            if (once_config := value.once_config) is not None:
                once_props[_effective_once_key(key, value)] = OncePropMetadata(once_config.expires_at_millis())

        if deferred:
            logger.debug("Deferring props for %s: %s", component, deferred)

        return InertiaPage(
            component=component,
            props=resolved,
            url=context.url,
            version=self.version,
            clear_history=clear_history,
            encrypt_history=bool(encrypt_history) or self.encrypt_history,
            deferred_props=deferred or None,
            merge_props=merge_props or None,
            prepend_props=prepend_props or None,
            deep_merge_props=deep_merge_props or None,
            once_props=once_props or None,
            flash=(flash.get_flash() or None) if flash is not None else None,
        )

    @staticmethod
    def should_include(key: str, value: "Any", context: "InertiaContext") -> bool:
        """Decide whether a prop is part of this response.

        Checks run in order; the first one that decides wins:

        1. always-included props are included;
        2. on a partial reload, keys missing from a non-empty partial-data list are excluded;
        3. on a partial reload, keys in the partial-except list are excluded;
        4. lazy and deferred props are excluded unless the partial reload names them;
        5. once props the client already holds are excluded, unless marked fresh.

        Args:
            key: The prop name.
            value: The prop value.
            context: The request context.

        Returns:
            True when the prop is included.
        """
        prop = cast("InertiaProp[Any]", value) if is_inertia_prop(value) else None
        if prop is not None and prop.always_include:
            return True

        is_partial = context.is_partial_reload
        if is_partial and context.partial_data and key not in context.partial_data:
            return False
        if is_partial and key in context.partial_except:
            return False
        if prop is None:
            return True

        explicitly_requested = is_partial and key in context.partial_data
        if prop.ignore_first_load and not explicitly_requested:
            return False
        if prop.defer_group is not None and not explicitly_requested:
            return False

        once_config = prop.once_config
        if once_config is not None and not once_config.fresh:
            return _effective_once_key(key, prop) not in context.except_once_props
        return True

    def resolve(self, value: "Any") -> "Any":
        """Resolve a value recursively.

        Special props and callables are invoked and their result resolved again.
        Mappings keep their keys and lists and tuples keep their order. Nothing is
        cached: every occurrence of a callable is invoked.

        Args:
            value: The value to resolve.

        Returns:
            The resolved value.
        """
        if value is None or isinstance(value, (str, bytes)):
            return value
        if is_inertia_prop(value):
            return self.resolve(value.render(self.portal))
        if callable(value) and not isinstance(value, type):
            return self.resolve(self._invoke(value, self.portal))
        if isinstance(value, Mapping):
            return {k: self.resolve(v) for k, v in cast("Mapping[Any, Any]", value).items()}
        if isinstance(value, (list, tuple)):
            return type(value)(self.resolve(v) for v in value)  # pyright: ignore[reportUnknownArgumentType,reportUnknownVariableType]
        return value
