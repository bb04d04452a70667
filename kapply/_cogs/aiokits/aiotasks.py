"""
Helpers for orchestrating asyncio tasks.

These utilities only support tasks, not more generic futures, coroutines,
or other awaitables. In most case where we use it, we need specifically tasks,
as we not only wait for them, but also cancel them.

Anyway, ``asyncio`` wraps all awaitables and coroutines into tasks on almost
all function calls with multiple awaiables (e.g. :func:`asyncio.wait`),
so there is no added overhead; instead, the implicit overhead is made explicit.
"""
import asyncio
from typing import TYPE_CHECKING, Any, Collection, Optional, Set, Tuple

from kapply._cogs.helpers import typedefs

# A workaround for a difference in tasks at runtime and type-checking time.
# Otherwise, at runtime: TypeError: 'type' object is not subscriptable.
if TYPE_CHECKING:
    Task = asyncio.Task[Any]
else:
    Task = asyncio.Task


async def wait(
        tasks: Collection[Task],
        *,
        timeout: Optional[float] = None,
        return_when: Any = asyncio.ALL_COMPLETED,
) -> Tuple[Set[Task], Set[Task]]:
    """
    A safer version of :func:`asyncio.wait` -- does not fail on an empty list.

    Negative timeouts (e.g. for the deadlines already passed) are treated as
    zero: the tasks that are done by now are reported as such, nothing more.
    """
    if not tasks:
        return set(), set()
    timeout = max(0.0, timeout) if timeout is not None else None
    done, pending = await asyncio.wait(tasks, timeout=timeout, return_when=return_when)
    return done, pending


async def stop(
        tasks: Collection[Task],
        *,
        title: str,
        quiet: bool = False,
        logger: Optional[typedefs.Logger] = None,
) -> Tuple[Set[Task], Set[Task]]:
    """
    Cancel the tasks and wait for them to finish.

    The stopping itself does not have timeouts. It always ends either with
    the tasks stopped/exited, or with the stopping routine itself cancelled.
    In the latter case, the tasks are still cancelled, just not awaited.

    By default, the stopping is logged. In the quiet mode, only the cases
    with actually pending tasks are logged.
    """
    captitle = title.capitalize()

    if not tasks:
        if logger is not None and not quiet:
            logger.debug(f"{captitle} tasks stopping is skipped: no tasks given.")
        return set(), set()

    for task in tasks:
        task.cancel()

    # If the waiting (current) task is cancelled before the wait is over,
    # the sub-tasks are cancelled anyway, but not awaited: it is urgent, it seems.
    try:
        done, pending = await wait(tasks)
    except asyncio.CancelledError:
        pending = {task for task in tasks if not task.done()}
        if logger is not None:
            logger.debug(f"{captitle} tasks are not stopped: cancelled at stopping; "
                         f"tasks left: {pending!r}")
        raise
    else:
        if logger is not None and (not quiet or pending):
            logger.debug(f"{captitle} tasks are stopped; tasks left: {pending!r}")
    return done, pending


def result_or_error(
        task: Task,
) -> Tuple[Any, Optional[BaseException]]:
    """
    Get the result of a done task or the error it has failed with.

    The cancellations are reported as errors too, not raised: the task
    is cancelled, not the current one (which retrieves the result).
    """
    if task.cancelled():
        return None, asyncio.CancelledError()
    exc = task.exception()
    if exc is not None:
        return None, exc
    return task.result(), None
