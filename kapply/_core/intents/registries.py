"""
A registry of the resource handlers, as looked up by the resources' kinds.

The handlers are registered by the kind & version of the resources
(as in the ``kind`` and ``apiVersion`` fields of the objects), either
explicitly with `HandlerRegistry.register`, or with the decorators::

    @kapply.register('ConfigMap', 'v1')
    class ConfigMapHandler(kapply.BaseResourceHandler):
        ...

Every registry serves the generic list containers (``kind: List``)
out of the box; the same-kind containers (e.g. ``PodList``) fall back
to it too, unless there is a dedicated handler for them.
"""
import logging
from typing import Any, Callable, Dict, Mapping, Optional, Type, TypeVar

from kapply._cogs.structs import bodies, references
from kapply._core.intents import errors, handlers

logger = logging.getLogger(__name__)

LIST_KEY = references.ResourceKey(kind='List', api_version='v1')

HandlerClsT = TypeVar('HandlerClsT', bound=Type[Any])


class HandlerRegistry:
    """
    A mapping of the resource kinds to their handlers.

    The registry is populated once (usually at import time) and is then
    only read by the operations; there is no locking for the modifications.
    A repeated registration of the same kind replaces the previous handler.
    """

    def __init__(self) -> None:
        super().__init__()
        self._handlers: Dict[references.ResourceKey, handlers.ResourceHandler] = {}
        self._handlers[LIST_KEY] = handlers.ListHandler(self)

    def __repr__(self) -> str:
        return f'<{self.__class__.__name__}: {sorted(str(key) for key in self._handlers)}>'

    def __len__(self) -> int:
        return len(self._handlers)

    def register(
            self,
            kind: str,
            api_version: str,
            handler: handlers.ResourceHandler,
    ) -> None:
        key = references.ResourceKey(kind=kind, api_version=api_version)
        if key in self._handlers:
            logger.debug(f"Handler for {key} is replaced with {handler!r}.")
        self._handlers[key] = handler

    def handler(
            self,
            kind: str,
            api_version: str,
    ) -> Callable[[HandlerClsT], HandlerClsT]:
        """
        A class decorator to register the handler's instance (made with no args).
        """
        def decorator(cls: HandlerClsT) -> HandlerClsT:
            self.register(kind, api_version, cls())
            return cls
        return decorator

    def has_handler(
            self,
            kind: str,
            api_version: str,
    ) -> bool:
        key = references.ResourceKey(kind=kind, api_version=api_version)
        return key in self._handlers

    def has_handler_for(
            self,
            body: Mapping[str, Any],
    ) -> bool:
        try:
            self.resolve_for(body)
        except errors.HandlerNotFoundError:
            return False
        else:
            return True

    def resolve(
            self,
            kind: str,
            api_version: str,
    ) -> handlers.ResourceHandler:
        key = references.ResourceKey(kind=kind, api_version=api_version)
        try:
            return self._handlers[key]
        except KeyError:
            raise errors.HandlerNotFoundError(f"No handler is registered for {key}.") from None

    def resolve_for(
            self,
            body: Mapping[str, Any],
    ) -> handlers.ResourceHandler:
        """
        Resolve the handler for a resource object by its own kind & version.
        """
        kind = body.get('kind') or ''
        api_version = body.get('apiVersion') or ''
        key = references.ResourceKey(kind=kind, api_version=api_version)
        if key in self._handlers:
            return self._handlers[key]
        elif bodies.is_list_container(body):
            return self._handlers[LIST_KEY]
        else:
            raise errors.HandlerNotFoundError(f"No handler is registered for {key}.")


_default_registry: Optional[HandlerRegistry] = None


def get_default_registry() -> HandlerRegistry:
    """
    Get the default registry to be used by the decorators and the operations
    unless the explicit registry is provided to them.
    """
    global _default_registry
    if _default_registry is None:
        _default_registry = HandlerRegistry()
    return _default_registry


def set_default_registry(registry: HandlerRegistry) -> None:
    """
    Set the default registry to be used by the decorators and the operations
    unless the explicit registry is provided to them.
    """
    global _default_registry
    _default_registry = registry


def register(
        kind: str,
        api_version: str,
        *,
        registry: Optional[HandlerRegistry] = None,
) -> Callable[[HandlerClsT], HandlerClsT]:
    """ ``@kapply.register()`` decorator for the handler classes. """
    real_registry = registry if registry is not None else get_default_registry()
    return real_registry.handler(kind, api_version)
