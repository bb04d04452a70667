"""
The remote actions on the resources: create-or-replace, delete, get.

The batches are processed sequentially, item by item, in their order.
A failure of an item stops the batch; the items processed by that time
stay as they are (there is no rollback). The results are logged per item,
so that the partially applied batches can be traced in the logs.
"""
import logging
from typing import Iterable, List, Optional, Sequence

from kapply._cogs.clients import errors as api_errors
from kapply._cogs.structs import bodies, references
from kapply._core.actions import loggers, mutations
from kapply._core.intents import errors, handlers, registries

logger = logging.getLogger(__name__)


async def create_or_replace(
        *,
        body: bodies.Body,
        handler: handlers.ResourceHandler,
        deleting_existing: bool,
        propagation_policy: references.DeletionPropagation,
        grace_period: Optional[float] = None,
        logger: loggers.ObjectLogger,
) -> bodies.Body:
    """
    Create a resource, or replace the existing one if it already exists.

    The creation goes with no resource version (the server sets it).
    If the resource exists (the server responds with the status 409),
    it is either deleted and created again (if ``deleting_existing``),
    or replaced in place with the resource version as it was originally
    provided (if any), so that the server could detect the lost updates.

    Any other failure of the creation is escalated as is.
    """
    namespace = body.namespace
    unversioned = bodies.with_resource_version(body, None)
    try:
        created = await handler.create(namespace=namespace, body=unversioned)
    except api_errors.APIError as e:
        if not e.is_conflict:
            raise
        logger.debug(f"Creation has conflicted with an existing resource: {e}")
    else:
        logger.info("Created.")
        return created

    if deleting_existing:
        deleted = await handler.delete(namespace=namespace, body=unversioned,
                                       propagation_policy=propagation_policy,
                                       grace_period=grace_period)
        if not deleted:
            ref = bodies.build_object_reference(body)
            raise errors.DeletionFailedError(f"Failed to delete the existing resource "
                                             f"to re-create it: {ref}")
        created = await handler.create(namespace=namespace, body=unversioned)
        logger.info("Deleted and re-created.")
        return created
    else:
        replaced = await handler.replace(namespace=namespace, body=body)
        logger.info("Replaced.")
        return replaced


async def create_or_replace_all(
        *,
        objs: Iterable[bodies.Body],
        visitors: Sequence[mutations.Visitor],
        registry: registries.HandlerRegistry,
        deleting_existing: bool,
        propagation_policy: references.DeletionPropagation,
        grace_period: Optional[float] = None,
) -> List[bodies.Body]:
    results: List[bodies.Body] = []
    for body in mutations.accept_visitors_all(objs, visitors, registry=registry):
        result = await create_or_replace(
            body=body,
            handler=registry.resolve_for(body),
            deleting_existing=deleting_existing,
            propagation_policy=propagation_policy,
            grace_period=grace_period,
            logger=loggers.ObjectLogger(body=body),
        )
        results.append(result)
    return results


async def delete(
        *,
        body: bodies.Body,
        handler: handlers.ResourceHandler,
        propagation_policy: references.DeletionPropagation,
        grace_period: Optional[float] = None,
        logger: loggers.ObjectLogger,
) -> bool:
    deleted = await handler.delete(namespace=body.namespace, body=body,
                                   propagation_policy=propagation_policy,
                                   grace_period=grace_period)
    if deleted:
        logger.info(f"Deleted with the {propagation_policy.value.lower()} propagation.")
    else:
        logger.warning("Not deleted.")
    return bool(deleted)


async def delete_all(
        *,
        objs: Sequence[bodies.Body],
        visitors: Sequence[mutations.Visitor],
        registry: registries.HandlerRegistry,
        propagation_policy: references.DeletionPropagation,
        grace_period: Optional[float] = None,
) -> bool:
    """
    Delete the resources, but only if all of them can be deleted at all.

    If any resource has no handler, nothing is deleted and the result is false.
    Otherwise, the resources are deleted one by one until the first one
    that is not deleted (the remaining ones are not touched then).
    """
    unknown = [body for body in objs if not registry.has_handler_for(body)]
    if unknown:
        refs = [dict(bodies.build_object_reference(body)) for body in unknown]
        logger.warning(f"Nothing is deleted: no handlers for some resources: {refs}")
        return False

    for body in mutations.accept_visitors_all(objs, visitors, registry=registry):
        deleted = await delete(
            body=body,
            handler=registry.resolve_for(body),
            propagation_policy=propagation_policy,
            grace_period=grace_period,
            logger=loggers.ObjectLogger(body=body),
        )
        if not deleted:
            return False
    return True


async def get(
        *,
        body: bodies.Body,
        visitors: Sequence[mutations.Visitor],
        registry: registries.HandlerRegistry,
        from_server: bool,
) -> Optional[bodies.Body]:
    """
    Get the resource either as configured locally, or as it exists remotely.

    The remote state gets the same visitors as the local one, so that the
    results are comparable. ``None`` means that there is no such resource.
    """
    edited = mutations.accept_visitors(body, visitors, registry=registry)
    if not from_server:
        return edited
    return await _reload(edited, visitors=visitors, registry=registry)


async def get_all(
        *,
        objs: Iterable[bodies.Body],
        visitors: Sequence[mutations.Visitor],
        registry: registries.HandlerRegistry,
        from_server: bool,
) -> List[bodies.Body]:
    """
    Get the resources; the ones that do not exist remotely are omitted.

    All the resources are visited before the first one is reloaded,
    so an unknown kind fails the batch before anything is requested.
    """
    edited = mutations.accept_visitors_all(objs, visitors, registry=registry)
    if not from_server:
        return edited

    results: List[bodies.Body] = []
    for body in edited:
        result = await _reload(body, visitors=visitors, registry=registry)
        if result is not None:
            results.append(result)
    return results


async def _reload(
        body: bodies.Body,
        *,
        visitors: Sequence[mutations.Visitor],
        registry: registries.HandlerRegistry,
) -> Optional[bodies.Body]:
    handler = registry.resolve_for(body)
    reloaded = await handler.reload(namespace=body.namespace, body=body)
    if reloaded is None:
        return None
    return mutations.accept_visitors(reloaded, visitors, registry=registry)
