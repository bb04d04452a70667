"""
Errors of the operations, as seen by the callers.

The remote API errors are not here: they are raised by the handlers
(see :mod:`kapply._cogs.clients.errors`) and are escalated as is, except
for the conflicts, which are recovered by the create-or-replace algorithm.
"""
from typing import Iterable, List

from kapply._cogs.structs import bodies, durations


class HandlerNotFoundError(LookupError):
    """ No handler is registered for the resource's kind & version. """


class DeletionFailedError(Exception):
    """ An existing resource could not be deleted before re-creating it. """


class WaitTimeoutError(TimeoutError):
    """
    Some resources did not satisfy the condition within the given time.

    The error carries the resources which are still pending or have failed
    (in their last known state), but not the ones that have satisfied it.
    The amount & unit are the ones used for waiting, as they were provided.
    """

    def __init__(
            self,
            resources: Iterable[bodies.Body],
            amount: float,
            unit: durations.TimeUnit = durations.TimeUnit.SECONDS,
    ) -> None:
        self.resources: List[bodies.Body] = list(resources)
        self.amount = amount
        self.unit = unit
        refs = ', '.join(_describe(body) for body in self.resources)
        super().__init__(f"Timed out waiting for {len(self.resources)} resource(s) "
                         f"after {amount:g} {unit.name.lower()}: {refs}")


def _describe(body: bodies.Body) -> str:
    name = f'{body.namespace}/{body.name}' if body.namespace else f'{body.name}'
    return f'{body.kind} {name}'
