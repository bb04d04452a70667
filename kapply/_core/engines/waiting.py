"""
Waiting for the batches of resources: for readiness, or for a condition.

Every resource of a batch is waited for in its own task, all concurrently
(or with a limited concurrency, if configured). The deadline is the same
for the whole batch: it is computed once, when the waiting starts, and all
the tasks are given the remaining time as their own timeouts.

When the deadline is reached, the tasks still running are cancelled and
awaited, so that nothing keeps polling the cluster after the waiting is over.
The outcome of every task is collected individually: a failure of one task
does not affect the other ones, and is reported per resource.

The results are always in the original order of the resources in the batch.
"""
import asyncio
import dataclasses
import datetime
import enum
import logging
from typing import Awaitable, Callable, List, Optional, Sequence, Tuple

from kapply._cogs.aiokits import aiotasks
from kapply._cogs.structs import bodies, durations, readiness
from kapply._core.actions import loggers
from kapply._core.intents import errors, handlers, registries

logger = logging.getLogger(__name__)


class Verdict(enum.Enum):
    MATCHED = 'matched'
    SKIPPED = 'skipped'          # no concept of readiness for the kind
    FAILED = 'failed'            # an error other than the timeout
    TIMED_OUT = 'timed-out'      # the handler's own timeout or the batch's deadline
    INTERRUPTED = 'interrupted'  # cancelled from outside


@dataclasses.dataclass(frozen=True)
class WaitOutcome:
    """
    The outcome of waiting for one resource.

    The body is the last known state: the matching one if matched,
    or the original one as provided for waiting otherwise.
    """
    body: bodies.Body
    verdict: Verdict
    error: Optional[BaseException] = None

    @property
    def matched(self) -> bool:
        return self.verdict is Verdict.MATCHED


Worker = Callable[[bodies.Body, handlers.ResourceHandler, float], Awaitable[WaitOutcome]]


async def wait_until_ready(
        *,
        objs: Sequence[bodies.Body],
        registry: registries.HandlerRegistry,
        amount: float,
        unit: durations.TimeUnit,
        backoff: durations.Backoff,
        concurrency_limit: Optional[int] = None,
) -> List[bodies.Body]:
    """
    Wait until all the resources are ready, or the time is over.

    The resources of the kinds with no concept of readiness are skipped:
    they are neither waited for nor returned. The resources that fail
    for other reasons are logged and excluded from the results too.
    Only the resources still not ready at the deadline make it fail.
    """
    async def worker(body: bodies.Body, handler: handlers.ResourceHandler, timeout: float) -> WaitOutcome:
        object_logger = loggers.ObjectLogger(body=body)
        try:
            ready = await handler.wait_until_ready(namespace=body.namespace, body=body,
                                                   timeout=timeout, backoff=backoff)
        except readiness.ReadinessNotSupportedError as e:
            object_logger.debug(f"Readiness is not applicable, skipping: {e}")
            return WaitOutcome(body=body, verdict=Verdict.SKIPPED, error=e)
        except errors.WaitTimeoutError as e:
            return WaitOutcome(body=body, verdict=Verdict.TIMED_OUT, error=e)
        except Exception as e:
            object_logger.warning(f"Not ready: {e!r}")
            return WaitOutcome(body=body, verdict=Verdict.FAILED, error=e)
        else:
            object_logger.debug("Ready.")
            return WaitOutcome(body=ready, verdict=Verdict.MATCHED)

    timeout = unit.to_seconds(amount)
    outcomes = await run_workers(objs=objs, registry=registry, worker=worker, timeout=timeout,
                                 concurrency_limit=concurrency_limit, title="readiness")
    stuck = [outcome.body for outcome in outcomes if outcome.verdict is Verdict.TIMED_OUT]
    if stuck:
        raise errors.WaitTimeoutError(stuck, amount=amount, unit=unit)
    return [outcome.body for outcome in outcomes if outcome.matched]


async def wait_until_condition(
        *,
        objs: Sequence[bodies.Body],
        registry: registries.HandlerRegistry,
        predicate: handlers.Predicate,
        amount: float,
        unit: durations.TimeUnit,
        backoff: durations.Backoff,
        concurrency_limit: Optional[int] = None,
) -> List[bodies.Body]:
    """
    Wait until all the resources satisfy the condition, or the time is over.

    It succeeds only if every resource of the batch has satisfied it;
    otherwise, it fails with all the resources that have not.
    """
    async def worker(body: bodies.Body, handler: handlers.ResourceHandler, timeout: float) -> WaitOutcome:
        return await _wait_for_condition(body=body, handler=handler, timeout=timeout, backoff=backoff,
                                         predicate=predicate)

    timeout = unit.to_seconds(amount)
    outcomes = await run_workers(objs=objs, registry=registry, worker=worker, timeout=timeout,
                                 concurrency_limit=concurrency_limit, title="condition")
    matched, unmatched = partition(outcomes)
    if len(matched) != len(objs):
        raise errors.WaitTimeoutError(unmatched, amount=amount, unit=unit)
    return matched


async def wait_until_condition_since(
        *,
        objs: Sequence[bodies.Body],
        registry: registries.HandlerRegistry,
        predicate: handlers.Predicate,
        resource_version: Optional[str],
        timeout: datetime.timedelta,
        backoff: durations.Backoff,
        concurrency_limit: Optional[int] = None,
) -> List[bodies.Body]:
    """
    Wait until all the resources satisfy the condition in their newer states.

    The states with the given resource version (if any) are not evaluated,
    so only the changes after that version can satisfy the condition.
    The interruptions and failures of individual resources are not escalated:
    such resources are reported as not matched, as the ones timed out.
    """
    async def worker(body: bodies.Body, handler: handlers.ResourceHandler, timeout: float) -> WaitOutcome:
        try:
            return await _wait_for_condition(body=body, handler=handler, timeout=timeout,
                                             backoff=backoff, predicate=predicate,
                                             resource_version=resource_version)
        except asyncio.CancelledError as e:
            return WaitOutcome(body=body, verdict=Verdict.INTERRUPTED, error=e)

    seconds = timeout.total_seconds()
    outcomes = await run_workers(objs=objs, registry=registry, worker=worker, timeout=seconds,
                                 concurrency_limit=concurrency_limit, title="condition")
    matched, unmatched = partition(outcomes)
    if unmatched:
        raise errors.WaitTimeoutError(unmatched, amount=seconds * 1000,
                                      unit=durations.TimeUnit.MILLISECONDS)
    return matched


async def _wait_for_condition(
        *,
        body: bodies.Body,
        handler: handlers.ResourceHandler,
        timeout: float,
        backoff: durations.Backoff,
        predicate: handlers.Predicate,
        resource_version: Optional[str] = None,
) -> WaitOutcome:
    object_logger = loggers.ObjectLogger(body=body)
    try:
        result = await handler.wait_until_condition(namespace=body.namespace, body=body,
                                                    predicate=predicate, timeout=timeout,
                                                    backoff=backoff, resource_version=resource_version)
    except errors.WaitTimeoutError as e:
        return WaitOutcome(body=body, verdict=Verdict.TIMED_OUT, error=e)
    except Exception as e:
        object_logger.warning(f"Not matched: {e!r}")
        return WaitOutcome(body=body, verdict=Verdict.FAILED, error=e)
    else:
        object_logger.debug("The condition is satisfied.")
        return WaitOutcome(body=result, verdict=Verdict.MATCHED)


async def run_workers(
        *,
        objs: Sequence[bodies.Body],
        registry: registries.HandlerRegistry,
        worker: Worker,
        timeout: float,
        concurrency_limit: Optional[int] = None,
        title: str,
) -> List[WaitOutcome]:
    """
    Run the workers for all the resources concurrently with a shared deadline.

    The handlers are resolved before any worker starts, so an unknown kind
    fails the whole batch before anything is requested from the cluster.
    The workers that are still running at the deadline are cancelled;
    their resources are reported as timed out. The outcomes are in the order
    of the resources as given.
    """
    resolved = [(body, registry.resolve_for(body)) for body in objs]
    if not resolved:
        return []

    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    semaphore = asyncio.Semaphore(concurrency_limit) if concurrency_limit else None

    async def guarded(body: bodies.Body, handler: handlers.ResourceHandler) -> WaitOutcome:
        if semaphore is None:
            return await worker(body, handler, deadline - loop.time())
        async with semaphore:
            return await worker(body, handler, deadline - loop.time())

    tasks = [asyncio.create_task(guarded(body, handler), name=f"waiting for {title} of {body.key}")
             for body, handler in resolved]
    try:
        await aiotasks.wait(tasks, timeout=deadline - loop.time())
    finally:
        await aiotasks.stop([task for task in tasks if not task.done()],
                            title=f"{title} waiting", quiet=True, logger=logger)

    outcomes: List[WaitOutcome] = []
    for (body, _), task in zip(resolved, tasks):
        result, exc = aiotasks.result_or_error(task)
        if isinstance(result, WaitOutcome):
            outcomes.append(result)
        elif isinstance(exc, asyncio.CancelledError):
            outcomes.append(WaitOutcome(body=body, verdict=Verdict.TIMED_OUT, error=exc))
        else:
            outcomes.append(WaitOutcome(body=body, verdict=Verdict.FAILED, error=exc))
    return outcomes


def partition(
        outcomes: Sequence[WaitOutcome],
) -> Tuple[List[bodies.Body], List[bodies.Body]]:
    """
    Split the outcomes into the matched & unmatched resources, keeping the order.
    """
    matched = [outcome.body for outcome in outcomes if outcome.matched]
    unmatched = [outcome.body for outcome in outcomes if not outcome.matched]
    return matched, unmatched
