"""
The contract of the per-kind resource handlers, and the base implementations.

The engine knows nothing about how the resources are transported to/from
the API: every resource kind is served by a handler with the remote
primitives (create, replace, delete, reload, watch) and the waiting helpers.
The handlers are provided by the transport libraries or by the applications
and are registered in a registry by the kind & version of the resources.

All the handlers' arguments are keyword-only. The bodies are given in their
final state: the namespace is already resolved, the visitors are applied.
"""
import abc
import asyncio
from typing import Any, Callable, Iterable, List, Mapping, Optional, Tuple

from typing_extensions import Protocol

from kapply._cogs.structs import bodies, durations, readiness, references
from kapply._core.intents import errors

# A condition to wait for: gets a resource's current state, says if it is satisfied.
Predicate = Callable[[bodies.Body], bool]

# The listing/watching options as in the API: e.g. ``labelSelector``, ``fieldSelector``.
ListOptions = Mapping[str, str]

# A callback for the watch-events of a resource.
Watcher = Callable[[bodies.RawEventType, bodies.Body], Any]


class Watch(Protocol):
    """ A handle of an ongoing watch-stream; closing it stops the watching. """

    def close(self) -> None: ...


class ResourceHandler(Protocol):
    """
    The capabilities of a resource kind, as needed by the engine.

    The readiness is kind-specific: the kinds with no concept of readiness
    raise `ReadinessNotSupportedError` rather than wait forever.
    The waits raise `WaitTimeoutError` if the time is over.
    The remote errors are raised as `APIError` or its descendants; a conflict
    of a creation must be reported with the status 409.
    """

    async def create(
            self,
            *,
            namespace: references.Namespace,
            body: bodies.Body,
    ) -> bodies.Body: ...

    async def replace(
            self,
            *,
            namespace: references.Namespace,
            body: bodies.Body,
    ) -> bodies.Body: ...

    async def delete(
            self,
            *,
            namespace: references.Namespace,
            body: bodies.Body,
            propagation_policy: references.DeletionPropagation,
            grace_period: Optional[float] = None,
    ) -> bool: ...

    async def reload(
            self,
            *,
            namespace: references.Namespace,
            body: bodies.Body,
    ) -> Optional[bodies.Body]: ...

    def edit(
            self,
            body: bodies.Body,
    ) -> bodies.RawBody: ...

    async def watch(
            self,
            *,
            namespace: references.Namespace,
            body: bodies.Body,
            watcher: Watcher,
            resource_version: Optional[str] = None,
            options: Optional[ListOptions] = None,
    ) -> Watch: ...

    def is_ready(
            self,
            body: bodies.Body,
    ) -> bool: ...

    async def wait_until_ready(
            self,
            *,
            namespace: references.Namespace,
            body: bodies.Body,
            timeout: float,
            backoff: durations.Backoff,
    ) -> bodies.Body: ...

    async def wait_until_condition(
            self,
            *,
            namespace: references.Namespace,
            body: bodies.Body,
            predicate: Predicate,
            timeout: float,
            backoff: durations.Backoff,
            resource_version: Optional[str] = None,
    ) -> bodies.Body: ...


class HandlerResolver(Protocol):
    def resolve_for(self, body: Mapping[str, Any]) -> ResourceHandler: ...


class BaseResourceHandler(metaclass=abc.ABCMeta):
    """
    A base for the handlers: only the remote primitives must be implemented.

    The waits are implemented by polling the resource with `reload` with
    an exponential backoff until the condition is satisfied or the time is over.
    The transports with the watch-streams can override them to be more efficient.
    """

    @abc.abstractmethod
    async def create(
            self,
            *,
            namespace: references.Namespace,
            body: bodies.Body,
    ) -> bodies.Body:
        raise NotImplementedError

    @abc.abstractmethod
    async def replace(
            self,
            *,
            namespace: references.Namespace,
            body: bodies.Body,
    ) -> bodies.Body:
        raise NotImplementedError

    @abc.abstractmethod
    async def delete(
            self,
            *,
            namespace: references.Namespace,
            body: bodies.Body,
            propagation_policy: references.DeletionPropagation,
            grace_period: Optional[float] = None,
    ) -> bool:
        raise NotImplementedError

    @abc.abstractmethod
    async def reload(
            self,
            *,
            namespace: references.Namespace,
            body: bodies.Body,
    ) -> Optional[bodies.Body]:
        raise NotImplementedError

    def edit(
            self,
            body: bodies.Body,
    ) -> bodies.RawBody:
        return bodies.thaw(body)

    async def watch(
            self,
            *,
            namespace: references.Namespace,
            body: bodies.Body,
            watcher: Watcher,
            resource_version: Optional[str] = None,
            options: Optional[ListOptions] = None,
    ) -> Watch:
        raise NotImplementedError(f"Watching is not supported for {body.kind}.{body.api_version}")

    def is_ready(
            self,
            body: bodies.Body,
    ) -> bool:
        return readiness.is_ready(body)

    async def wait_until_ready(
            self,
            *,
            namespace: references.Namespace,
            body: bodies.Body,
            timeout: float,
            backoff: durations.Backoff,
    ) -> bodies.Body:
        self.is_ready(body)  # fail fast if the kind has no readiness at all.
        return await self.wait_until_condition(
            namespace=namespace,
            body=body,
            predicate=self.is_ready,
            timeout=timeout,
            backoff=backoff,
        )

    async def wait_until_condition(
            self,
            *,
            namespace: references.Namespace,
            body: bodies.Body,
            predicate: Predicate,
            timeout: float,
            backoff: durations.Backoff,
            resource_version: Optional[str] = None,
    ) -> bodies.Body:
        """
        Poll the resource until the condition is satisfied or the time is over.

        With the resource version, only the newer states can satisfy the
        condition: the states with exactly that version are not evaluated.
        The versions are opaque, so "newer" means "different".
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        last_seen = body
        delays = backoff.delays()
        while True:
            current = await self.reload(namespace=namespace, body=body)
            if current is not None:
                last_seen = current
                is_fresh = resource_version is None or current.resource_version != resource_version
                if is_fresh and predicate(current):
                    return current

            remaining = deadline - loop.time()
            if remaining <= 0:
                raise errors.WaitTimeoutError([last_seen], amount=timeout)
            await asyncio.sleep(min(next(delays), remaining))


class ListHandler(BaseResourceHandler):
    """
    The handler of the list containers (``kind: List``) as single objects.

    Every item is served by its own handler, as resolved by the item's kind.
    All the items' handlers are resolved before the first item is processed,
    so an unknown kind fails the whole list before anything is requested.
    The items are processed one by one in their order; the first failure
    stops the processing of the remaining items.
    """

    def __init__(self, resolver: HandlerResolver) -> None:
        super().__init__()
        self._resolver = resolver

    def _resolve_items(self, body: bodies.Body) -> List[Tuple[bodies.Body, ResourceHandler]]:
        return [(item, self._resolver.resolve_for(item)) for item in bodies.get_items(body)]

    async def create(
            self,
            *,
            namespace: references.Namespace,
            body: bodies.Body,
    ) -> bodies.Body:
        items: List[bodies.Body] = []
        for item, handler in self._resolve_items(body):
            items.append(await handler.create(namespace=item.namespace or namespace, body=item))
        return _make_list(body, items)

    async def replace(
            self,
            *,
            namespace: references.Namespace,
            body: bodies.Body,
    ) -> bodies.Body:
        items: List[bodies.Body] = []
        for item, handler in self._resolve_items(body):
            items.append(await handler.replace(namespace=item.namespace or namespace, body=item))
        return _make_list(body, items)

    async def delete(
            self,
            *,
            namespace: references.Namespace,
            body: bodies.Body,
            propagation_policy: references.DeletionPropagation,
            grace_period: Optional[float] = None,
    ) -> bool:
        for item, handler in self._resolve_items(body):
            deleted = await handler.delete(namespace=item.namespace or namespace, body=item,
                                           propagation_policy=propagation_policy,
                                           grace_period=grace_period)
            if not deleted:
                return False
        return True

    async def reload(
            self,
            *,
            namespace: references.Namespace,
            body: bodies.Body,
    ) -> Optional[bodies.Body]:
        items: List[bodies.Body] = []
        for item, handler in self._resolve_items(body):
            reloaded = await handler.reload(namespace=item.namespace or namespace, body=item)
            if reloaded is not None:
                items.append(reloaded)
        return _make_list(body, items)

    def is_ready(
            self,
            body: bodies.Body,
    ) -> bool:
        """
        A list is ready when all its items are ready; items with no readiness are ignored.
        """
        verdicts: List[bool] = []
        for item, handler in self._resolve_items(body):
            try:
                verdicts.append(handler.is_ready(item))
            except readiness.ReadinessNotSupportedError:
                pass
        if not verdicts:
            raise readiness.ReadinessNotSupportedError(f"No items of {body.kind} support readiness.")
        return all(verdicts)


def _make_list(container: bodies.Body, items: Iterable[bodies.Body]) -> bodies.Body:
    return bodies.Body({
        'apiVersion': container.get('apiVersion', 'v1'),
        'kind': container.get('kind', 'List'),
        'metadata': bodies.thaw(container.get('metadata', {})),
        'items': [bodies.thaw(item) for item in items],
    })
