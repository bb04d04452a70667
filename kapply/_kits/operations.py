"""
The operations: the immutable, reusable, shareable descriptions of the work.

An operation is made for one resource (`resource`) or for a batch of them
(`resource_list`), and is then configured by the chained derivations::

    op = kapply.resource_list(manifests).in_namespace('dev').deleting_existing()
    await op.apply()
    await op.wait_until_ready(30)

Every derivation returns a new operation with a new configuration; the
original operation is never changed, so it can be reused for other purposes
or shared between concurrent tasks. Nothing is requested from the cluster
until one of the verbs is awaited.

The single-resource operations are all-or-nothing: the first error of the
handler is escalated as is. The batch operations report the outcome
per resource (see the waiters for the details).
"""
import copy
import dataclasses
import datetime
from typing import List, Optional, Sequence, Tuple, TypeVar

from kapply._cogs.configs import configuration
from kapply._cogs.structs import batches, bodies, durations, readiness, references
from kapply._core.actions import applying, loggers, mutations
from kapply._core.engines import waiting
from kapply._core.intents import handlers, registries

OperationT = TypeVar('OperationT', bound='Operation')


@dataclasses.dataclass(frozen=True)
class OperationConfig:
    """
    The effective configuration of one operation, as derived by now.

    It is frozen: the derivations make new configs with ``dataclasses.replace``.
    """
    fallback_namespace: references.Namespace = None
    explicit_namespace: references.Namespace = None
    from_server: bool = False
    deleting_existing: bool = False
    cascading: bool = True
    grace_period: Optional[float] = None
    propagation_policy: Optional[references.DeletionPropagation] = None
    wait_retry_backoff: durations.Backoff = durations.Backoff(initial=0.005, multiplier=2.0)
    wait_concurrency_limit: Optional[int] = None
    visitors: Tuple[mutations.Visitor, ...] = ()

    @classmethod
    def from_settings(cls, settings: configuration.ClientSettings) -> "OperationConfig":
        return cls(
            fallback_namespace=settings.namespacing.default,
            cascading=settings.deleting.cascading,
            grace_period=settings.deleting.grace_period,
            propagation_policy=settings.deleting.propagation_policy,
            wait_retry_backoff=durations.Backoff(
                initial=settings.waiting.initial_backoff,
                multiplier=settings.waiting.backoff_multiplier,
                maximum=settings.waiting.max_backoff,
            ),
            wait_concurrency_limit=settings.waiting.concurrency_limit,
        )

    @property
    def effective_propagation_policy(self) -> references.DeletionPropagation:
        if self.propagation_policy is not None:
            return self.propagation_policy
        elif self.cascading:
            return references.DeletionPropagation.BACKGROUND
        else:
            return references.DeletionPropagation.ORPHAN


class Operation:
    """
    The common part of the single-resource & batch operations: the derivations.
    """

    def __init__(
            self,
            *,
            config: OperationConfig,
            registry: registries.HandlerRegistry,
    ) -> None:
        super().__init__()
        self._config = config
        self._registry = registry

    @property
    def config(self) -> OperationConfig:
        return self._config

    @property
    def registry(self) -> registries.HandlerRegistry:
        return self._registry

    @property
    def visitors(self) -> Tuple[mutations.Visitor, ...]:
        """ All the visitors to apply, with the namespace resolution as the last one. """
        namespace_visitor = mutations.namespace_resolver(
            explicit=self._config.explicit_namespace,
            fallback=self._config.fallback_namespace,
        )
        return self._config.visitors + (namespace_visitor,)

    def _derive(self: OperationT, **changes: object) -> OperationT:
        derived = copy.copy(self)
        derived._config = dataclasses.replace(self._config, **changes)
        return derived

    def in_namespace(self: OperationT, namespace: Optional[str]) -> OperationT:
        return self._derive(explicit_namespace=namespace or None)

    def from_server(self: OperationT, value: bool = True) -> OperationT:
        return self._derive(from_server=value)

    def deleting_existing(self: OperationT, value: bool = True) -> OperationT:
        return self._derive(deleting_existing=value)

    def accept(self: OperationT, *visitors: mutations.Visitor) -> OperationT:
        return self._derive(visitors=self._config.visitors + tuple(visitors))

    def with_grace_period(self: OperationT, seconds: Optional[float]) -> OperationT:
        return self._derive(grace_period=seconds)

    def with_propagation_policy(
            self: OperationT,
            policy: Optional[references.DeletionPropagation],
    ) -> OperationT:
        return self._derive(propagation_policy=policy)

    def cascading(self: OperationT, enabled: bool = True) -> OperationT:
        return self._derive(cascading=enabled)

    def with_wait_retry_backoff(
            self: OperationT,
            initial: float,
            unit: durations.TimeUnit = durations.TimeUnit.SECONDS,
            multiplier: float = 2.0,
    ) -> OperationT:
        backoff = dataclasses.replace(self._config.wait_retry_backoff,
                                      initial=unit.to_seconds(initial),
                                      multiplier=multiplier)
        return self._derive(wait_retry_backoff=backoff)


class ResourceOperation(Operation):
    """ An operation on one resource (which can be a list container too). """

    def __init__(self, item: bodies.Body, **kwargs: object) -> None:
        super().__init__(**kwargs)  # type: ignore
        self._item = item

    def __repr__(self) -> str:
        return f'<{self.__class__.__name__}: {self._item.kind} {self._item.name!r}>'

    @property
    def item(self) -> bodies.Body:
        return self._item

    def _edited(self) -> bodies.Body:
        return mutations.accept_visitors(self._item, self.visitors, registry=self._registry)

    async def _current(self) -> bodies.Body:
        body = await self.get()
        return body if body is not None else self._edited()

    async def get(self) -> Optional[bodies.Body]:
        return await applying.get(body=self._item, visitors=self.visitors, registry=self._registry,
                                  from_server=self._config.from_server)

    async def create_or_replace(self) -> bodies.Body:
        body = self._edited()
        return await applying.create_or_replace(
            body=body,
            handler=self._registry.resolve_for(body),
            deleting_existing=self._config.deleting_existing,
            propagation_policy=self._config.effective_propagation_policy,
            grace_period=self._config.grace_period,
            logger=loggers.ObjectLogger(body=body),
        )

    async def apply(self) -> bodies.Body:
        return await self.create_or_replace()

    async def create_or_replace_and(self) -> "ResourceOperation":
        """ Apply the resource and get an operation on its resulting state. """
        result = await self.create_or_replace()
        derived = copy.copy(self)
        derived._item = result
        return derived

    async def delete(self) -> bool:
        body = self._edited()
        return await applying.delete(
            body=body,
            handler=self._registry.resolve_for(body),
            propagation_policy=self._config.effective_propagation_policy,
            grace_period=self._config.grace_period,
            logger=loggers.ObjectLogger(body=body),
        )

    async def is_ready(self) -> bool:
        body = await self.get()
        if body is None:
            return False
        return self._registry.resolve_for(body).is_ready(body)

    async def wait_until_ready(
            self,
            amount: float,
            unit: durations.TimeUnit = durations.TimeUnit.SECONDS,
    ) -> bodies.Body:
        body = await self._current()
        handler = self._registry.resolve_for(body)
        return await handler.wait_until_ready(namespace=body.namespace, body=body,
                                              timeout=unit.to_seconds(amount),
                                              backoff=self._config.wait_retry_backoff)

    async def wait_until_condition(
            self,
            predicate: handlers.Predicate,
            amount: float,
            unit: durations.TimeUnit = durations.TimeUnit.SECONDS,
    ) -> bodies.Body:
        body = await self._current()
        handler = self._registry.resolve_for(body)
        return await handler.wait_until_condition(namespace=body.namespace, body=body,
                                                  predicate=predicate,
                                                  timeout=unit.to_seconds(amount),
                                                  backoff=self._config.wait_retry_backoff)

    async def wait_until_condition_since(
            self,
            predicate: handlers.Predicate,
            *,
            resource_version: Optional[str],
            timeout: datetime.timedelta,
    ) -> bodies.Body:
        body = await self._current()
        handler = self._registry.resolve_for(body)
        return await handler.wait_until_condition(namespace=body.namespace, body=body,
                                                  predicate=predicate,
                                                  timeout=timeout.total_seconds(),
                                                  backoff=self._config.wait_retry_backoff,
                                                  resource_version=resource_version)

    async def watch(
            self,
            watcher: handlers.Watcher,
            *,
            resource_version: Optional[str] = None,
            options: Optional[handlers.ListOptions] = None,
    ) -> handlers.Watch:
        body = self._edited()
        handler = self._registry.resolve_for(body)
        return await handler.watch(namespace=body.namespace, body=body, watcher=watcher,
                                   resource_version=resource_version, options=options)


class ResourceListOperation(Operation):
    """ An operation on a batch of resources, processed item by item. """

    def __init__(self, items: Sequence[bodies.Body], **kwargs: object) -> None:
        super().__init__(**kwargs)  # type: ignore
        self._items = tuple(items)

    def __repr__(self) -> str:
        return f'<{self.__class__.__name__}: {len(self._items)} items>'

    def __len__(self) -> int:
        return len(self._items)

    @property
    def items(self) -> Tuple[bodies.Body, ...]:
        return self._items

    def _edited(self) -> List[bodies.Body]:
        return mutations.accept_visitors_all(self._items, self.visitors, registry=self._registry)

    async def get(self) -> List[bodies.Body]:
        return await applying.get_all(objs=self._items, visitors=self.visitors,
                                      registry=self._registry, from_server=self._config.from_server)

    async def create_or_replace(self) -> List[bodies.Body]:
        return await applying.create_or_replace_all(
            objs=self._items,
            visitors=self.visitors,
            registry=self._registry,
            deleting_existing=self._config.deleting_existing,
            propagation_policy=self._config.effective_propagation_policy,
            grace_period=self._config.grace_period,
        )

    async def apply(self) -> List[bodies.Body]:
        return await self.create_or_replace()

    async def create_or_replace_and(self) -> "ResourceListOperation":
        """ Apply the resources and get an operation on their resulting states. """
        results = await self.create_or_replace()
        derived = copy.copy(self)
        derived._items = tuple(results)
        return derived

    async def delete(self) -> bool:
        return await applying.delete_all(
            objs=self._items,
            visitors=self.visitors,
            registry=self._registry,
            propagation_policy=self._config.effective_propagation_policy,
            grace_period=self._config.grace_period,
        )

    async def is_ready(self) -> bool:
        """
        Check if all the resources are ready; the ones with no readiness are ignored.
        """
        for body in await self.get():
            try:
                if not self._registry.resolve_for(body).is_ready(body):
                    return False
            except readiness.ReadinessNotSupportedError:
                pass
        return True

    async def wait_until_ready(
            self,
            amount: float,
            unit: durations.TimeUnit = durations.TimeUnit.SECONDS,
    ) -> List[bodies.Body]:
        return await waiting.wait_until_ready(
            objs=self._edited(),
            registry=self._registry,
            amount=amount,
            unit=unit,
            backoff=self._config.wait_retry_backoff,
            concurrency_limit=self._config.wait_concurrency_limit,
        )

    async def wait_until_condition(
            self,
            predicate: handlers.Predicate,
            amount: float,
            unit: durations.TimeUnit = durations.TimeUnit.SECONDS,
    ) -> List[bodies.Body]:
        return await waiting.wait_until_condition(
            objs=self._edited(),
            registry=self._registry,
            predicate=predicate,
            amount=amount,
            unit=unit,
            backoff=self._config.wait_retry_backoff,
            concurrency_limit=self._config.wait_concurrency_limit,
        )

    async def wait_until_condition_since(
            self,
            predicate: handlers.Predicate,
            *,
            resource_version: Optional[str],
            timeout: datetime.timedelta,
    ) -> List[bodies.Body]:
        return await waiting.wait_until_condition_since(
            objs=self._edited(),
            registry=self._registry,
            predicate=predicate,
            resource_version=resource_version,
            timeout=timeout,
            backoff=self._config.wait_retry_backoff,
            concurrency_limit=self._config.wait_concurrency_limit,
        )


def resource(
        item: batches.Manifest,
        *,
        namespace: Optional[str] = None,
        registry: Optional[registries.HandlerRegistry] = None,
        settings: Optional[configuration.ClientSettings] = None,
) -> ResourceOperation:
    """
    Make an operation on one resource: an object, a dict, or a manifest text.
    """
    real_registry = registry if registry is not None else registries.get_default_registry()
    real_settings = settings if settings is not None else configuration.ClientSettings()
    config = OperationConfig.from_settings(real_settings)
    operation = ResourceOperation(batches.as_body(item), config=config,
                                  registry=real_registry)
    return operation.in_namespace(namespace) if namespace else operation


def resource_list(
        items: batches.Manifests,
        *,
        namespace: Optional[str] = None,
        registry: Optional[registries.HandlerRegistry] = None,
        settings: Optional[configuration.ClientSettings] = None,
) -> ResourceListOperation:
    """
    Make an operation on many resources: in any form, possibly nested or in lists.
    """
    real_registry = registry if registry is not None else registries.get_default_registry()
    real_settings = settings if settings is not None else configuration.ClientSettings()
    config = OperationConfig.from_settings(real_settings)
    operation = ResourceListOperation(batches.as_bodies(items), config=config,
                                      registry=real_registry)
    return operation.in_namespace(namespace) if namespace else operation
