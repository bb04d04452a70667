"""
All configuration flags, options, settings to fine-tune the operations.

All settings are grouped semantically just for convenience
(instead of a flat mega-object with all the values in it).

The settings are the defaults for the newly constructed operations.
They are copied into the operations' own immutable configuration
at construction time, so the settings can be safely changed later:
the existing operations keep their values, only the new ones are affected.

.. note::

    In this library, they are called *"settings"* (plural).
    Combined, they form a *"configuration"* (singular).

    Some of the settings are flags, some are scalars, some are optional,
    some are not (but all of them have reasonable defaults).
"""
import dataclasses
from typing import Optional

from kapply._cogs.structs import references


@dataclasses.dataclass
class NamespacingSettings:

    default: references.NamespaceName = references.NamespaceName('default')
    """
    The fallback namespace for the objects with no namespace of their own.

    It is used only if there is no explicit namespace for the operation,
    and only for the objects which have no namespace in their metadata.
    """


@dataclasses.dataclass
class WaitingSettings:

    initial_backoff: float = 0.005
    """
    How long to wait (in seconds) before the first re-check of a condition
    when the resources are polled by the handlers.
    """

    backoff_multiplier: float = 2.0
    """
    How much longer every next re-check waits compared to the previous one.
    """

    max_backoff: Optional[float] = 10.0
    """
    The longest interval (in seconds) between the re-checks, if set.
    """

    concurrency_limit: Optional[int] = None
    """
    How many resources of one batch are waited for concurrently.

    ``None`` (the default) means no limit: one worker per resource.
    With a limit, the remaining resources start waiting when the previous
    ones are done; the deadline is anyway the same for the whole batch.
    """


@dataclasses.dataclass
class DeletingSettings:

    cascading: bool = True
    """
    Should the dependents be deleted together with their owners (if the
    propagation policy is not set explicitly): in the background if so,
    or left orphaned if not.
    """

    propagation_policy: Optional[references.DeletionPropagation] = None
    """
    An explicit propagation policy for the deletions. Overrides the cascading.
    """

    grace_period: Optional[float] = None
    """
    The deletion grace period (in seconds). ``None`` is for the server's default.
    """


@dataclasses.dataclass
class ClientSettings:
    namespacing: NamespacingSettings = dataclasses.field(default_factory=NamespacingSettings)
    waiting: WaitingSettings = dataclasses.field(default_factory=WaitingSettings)
    deleting: DeletingSettings = dataclasses.field(default_factory=DeletingSettings)
