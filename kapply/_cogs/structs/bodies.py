"""
All the structures coming from/to the cluster's API.

The usage of these classes is spread over the codebase, so they are extracted
into a separate module of such type definitions.

For strict type-checking, they are detailed to the per-field level
(e.g. `TypedDict` instead of just ``Mapping[Any, Any]``) --
as used by the library. The callers can use arbitrary fields at runtime,
which are not declared in the type definitions at type-checking time.

.. note::

    There is a strict separation of the resource objects as the library
    keeps them and as the handlers & visitors get them for modifications:

    The kept objects are the read-only `Body` wrappers. Every object owns
    a private deep copy of its raw data, so neither the callers nor other
    objects can change it once the object is constructed.

    The modifiable objects are the plain "raw" dicts (`RawBody`), which are
    deep copies of the kept objects (see `thaw`). They are modified in place
    and then "frozen" back into new `Body` objects. The old ones stay intact.
"""
import collections.abc
import copy
from typing import Any, List, Mapping, Optional, Sequence, Union, cast

from typing_extensions import Literal, TypedDict

from kapply._cogs.structs import dicts, references

Labels = Mapping[str, str]
Annotations = Mapping[str, str]

#
# Everything marked "raw" is a plain unwrapped unprocessed data as JSON-decoded
# from the API, or as parsed from the manifests, or as prepared for the API.
#

RawEventType = Literal['ADDED', 'MODIFIED', 'DELETED', 'BOOKMARK', 'ERROR']


class RawMeta(TypedDict, total=False):
    uid: str
    name: str
    generateName: str
    namespace: str
    labels: Labels
    annotations: Annotations
    finalizers: List[str]
    resourceVersion: str
    deletionTimestamp: str
    creationTimestamp: str
    ownerReferences: List[Mapping[str, Any]]


class RawBody(TypedDict, total=False):
    apiVersion: str
    kind: str
    metadata: RawMeta
    spec: Mapping[str, Any]
    status: Mapping[str, Any]


class RawEvent(TypedDict, total=True):
    type: RawEventType
    object: RawBody


#
# Enhanced dict-wrappers for easier typed access to well-known typed fields.
# Despite they are just MappingViews with no extensions, they are separated
# for stricter typing of arguments.
#


class Meta(dicts.MappingView[str, Any]):

    def __init__(self, __src: "Body") -> None:
        super().__init__(__src, 'metadata')
        self._labels: dicts.MappingView[str, str] = dicts.MappingView(self, 'labels')
        self._annotations: dicts.MappingView[str, str] = dicts.MappingView(self, 'annotations')

    @property
    def labels(self) -> Labels:
        return self._labels

    @property
    def annotations(self) -> Annotations:
        return self._annotations

    @property
    def uid(self) -> Optional[str]:
        return cast(Optional[str], self.get('uid'))

    @property
    def name(self) -> Optional[str]:
        return cast(Optional[str], self.get('name'))

    @property
    def namespace(self) -> references.Namespace:
        return cast(references.Namespace, self.get('namespace') or None)

    @property
    def resource_version(self) -> Optional[str]:
        return cast(Optional[str], self.get('resourceVersion'))


class Spec(dicts.MappingView[str, Any]):
    def __init__(self, __src: "Body") -> None:
        super().__init__(__src, 'spec')


class Status(dicts.MappingView[str, Any]):
    def __init__(self, __src: "Body") -> None:
        super().__init__(__src, 'status')


class Body(dicts.MappingView[str, Any]):
    """
    A read-only resource object with its own private copy of the data.
    """

    def __init__(self, __src: Mapping[str, Any]) -> None:
        super().__init__(thaw(__src))
        self._meta = Meta(self)
        self._spec = Spec(self)
        self._status = Status(self)

    @property
    def metadata(self) -> Meta:
        return self._meta

    @property
    def meta(self) -> Meta:
        return self._meta

    @property
    def spec(self) -> Spec:
        return self._spec

    @property
    def status(self) -> Status:
        return self._status

    @property
    def kind(self) -> Optional[str]:
        return cast(Optional[str], self.get('kind'))

    @property
    def api_version(self) -> Optional[str]:
        return cast(Optional[str], self.get('apiVersion'))

    @property
    def name(self) -> Optional[str]:
        return self._meta.name

    @property
    def namespace(self) -> references.Namespace:
        return self._meta.namespace

    @property
    def resource_version(self) -> Optional[str]:
        return self._meta.resource_version

    @property
    def key(self) -> references.ResourceKey:
        return references.ResourceKey(kind=self.kind or '', api_version=self.api_version or '')


def thaw(
        body: Union[Mapping[str, Any], Body],
) -> RawBody:
    """
    Make an independent modifiable copy of a body: all levels, all the way down.

    The mappings of any kind (including the views) become plain dicts,
    the sequences become plain lists, the scalars are copied as is.
    """
    return cast(RawBody, _thawed(body))


def _thawed(value: Any) -> Any:
    if isinstance(value, collections.abc.Mapping):
        return {key: _thawed(val) for key, val in value.items()}
    elif isinstance(value, (str, bytes)):
        return value
    elif isinstance(value, collections.abc.Sequence):
        return [_thawed(val) for val in value]
    else:
        return copy.deepcopy(value)


def with_resource_version(
        body: Body,
        resource_version: Optional[str],
) -> Body:
    """
    Build a new body with the resource version replaced or removed (if ``None``).

    For the list containers, the removal goes to all the items too,
    since the items are what is actually sent to the server.
    """
    raw = thaw(body)
    if resource_version is None:
        dicts.remove(raw, 'metadata.resourceVersion')
        if is_list_container(raw):
            for item in raw['items']:  # type: ignore
                dicts.remove(item, 'metadata.resourceVersion')
    else:
        dicts.ensure(raw, 'metadata.resourceVersion', resource_version)
    return Body(raw)


def is_list_container(
        body: Mapping[str, Any],
) -> bool:
    """
    Check if the object is a list of other objects rather than a resource itself.

    The ``kind: List`` is the generic container of the mixed resources.
    The ``kind: ...List`` (e.g. ``PodList``) are containers of the same-kind
    resources, as returned from the list-API calls. Both have the ``items``.
    """
    kind = body.get('kind')
    items = body.get('items')
    return (isinstance(kind, str) and kind.endswith('List') and
            isinstance(items, collections.abc.Sequence) and not isinstance(items, str))


def get_items(
        body: Mapping[str, Any],
) -> Sequence[Body]:
    """
    Get the items of a list container as resource objects.

    The same-kind lists (e.g. ``PodList``) usually omit the kind & version
    in the items, so they are restored from the container's ones.
    """
    container_kind = cast(str, body.get('kind', ''))
    item_kind = container_kind[:-4] if container_kind != 'List' else None
    items: List[Body] = []
    for item in body.get('items', []):
        if isinstance(item, collections.abc.Mapping):
            raw = thaw(item)
            if item_kind:
                raw.setdefault('kind', item_kind)
                if 'apiVersion' in body:
                    raw.setdefault('apiVersion', body['apiVersion'])
            items.append(Body(raw))
    return items


#
# Other API types, which are not body parts.
#

class ObjectReference(TypedDict, total=False):
    apiVersion: str
    kind: str
    namespace: Optional[str]
    name: str
    uid: str


class OwnerReference(TypedDict, total=False):
    controller: bool
    blockOwnerDeletion: bool
    apiVersion: str
    kind: str
    name: str
    uid: str


def build_object_reference(
        body: Mapping[str, Any],
) -> ObjectReference:
    """
    Construct an object reference for the logs and the errors.

    Keep in mind that some fields can be absent: e.g. ``namespace``
    for cluster resources, or ``uid`` for objects not yet created, etc.
    """
    ref = dict(
        apiVersion=body.get('apiVersion'),
        kind=body.get('kind'),
        name=body.get('metadata', {}).get('name'),
        uid=body.get('metadata', {}).get('uid'),
        namespace=body.get('metadata', {}).get('namespace'),
    )
    return cast(ObjectReference, {key: val for key, val in ref.items() if val})


def build_owner_reference(
        body: Mapping[str, Any],
) -> OwnerReference:
    """
    Construct an owner reference object for the parent-children relationships.

    The structure needed to link the children objects to the current object as a parent.
    See https://kubernetes.io/docs/concepts/workloads/controllers/garbage-collection/
    """
    ref = dict(
        controller=True,
        blockOwnerDeletion=True,
        apiVersion=body.get('apiVersion'),
        kind=body.get('kind'),
        name=body.get('metadata', {}).get('name'),
        uid=body.get('metadata', {}).get('uid'),
    )
    return cast(OwnerReference, {key: val for key, val in ref.items() if val})
