"""
References to the resource kinds and namespaces, as used for dispatching.

A resource kind is addressed by its ``kind`` and ``apiVersion`` fields
exactly as they are written in the objects' bodies, not by the API groups
and plurals of the URLs: the wire-level addressing belongs to the handlers.
"""
import dataclasses
import enum
from typing import NewType, Optional

# A specific really existing addressable namespace (at least, the one assumed to be so).
# Made as a NewType for stricter type-checking to avoid collisions with other strings.
NamespaceName = NewType('NamespaceName', str)

# A namespace reference usable in the API calls. `None` means cluster-wide API calls.
Namespace = Optional[NamespaceName]


@dataclasses.dataclass(frozen=True)
class ResourceKey:
    """
    A key of a resource kind for the handlers' lookup.

    The ``apiVersion`` is used as is, with the group if any: e.g. ``v1``
    for the core kinds, or ``apps/v1`` for the deployments, etc.
    """
    kind: str
    api_version: str

    def __str__(self) -> str:
        return f'{self.kind}.{self.api_version}'

    @property
    def group(self) -> str:
        group, _, version = self.api_version.rpartition('/')
        return group

    @property
    def version(self) -> str:
        group, _, version = self.api_version.rpartition('/')
        return version


class DeletionPropagation(str, enum.Enum):
    """ How the dependents are treated when their owner is deleted. """
    ORPHAN = 'Orphan'
    BACKGROUND = 'Background'
    FOREGROUND = 'Foreground'

    def __str__(self) -> str:
        return self.value
