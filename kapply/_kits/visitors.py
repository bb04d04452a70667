"""
The ready-made visitors to build the resource hierarchies and to mark them.

Each function makes a visitor for ``Operation.accept(...)``::

    kapply.resource_list(children).accept(
        kapply.owned_by(parent),
        kapply.labelled({'app': 'demo'}),
    ).apply()

By default, the existing values in the resources are kept,
and only the missing ones are added; ``forced=True`` overwrites them.
"""
from typing import Any, Mapping, Optional, Union

from kapply._cogs.structs import bodies
from kapply._core.actions import mutations


def labelled(
        labels: Mapping[str, Union[None, str]],
        *,
        forced: bool = False,
) -> mutations.Visitor:
    """
    Apply the labels to the resources.
    """
    def visit(raw: bodies.RawBody) -> None:
        obj_labels = raw.setdefault('metadata', {}).setdefault('labels', {})
        for key, val in labels.items():
            if forced:
                obj_labels[key] = val  # type: ignore
            else:
                obj_labels.setdefault(key, val)  # type: ignore
    return visit


def annotated(
        annotations: Mapping[str, Union[None, str]],
        *,
        forced: bool = False,
) -> mutations.Visitor:
    """
    Apply the annotations to the resources.
    """
    def visit(raw: bodies.RawBody) -> None:
        obj_annotations = raw.setdefault('metadata', {}).setdefault('annotations', {})
        for key, val in annotations.items():
            if forced:
                obj_annotations[key] = val  # type: ignore
            else:
                obj_annotations.setdefault(key, val)  # type: ignore
    return visit


def named(
        name: str,
        *,
        forced: bool = False,
        strict: bool = False,
) -> mutations.Visitor:
    """
    Adjust the names or prefixes of the resources.

    In strict mode, the provided name is used as is. It can be helpful
    if the resource is referred by that name in other resources.

    In non-strict mode (the default), the resource uses the provided name
    as a prefix, while the suffix is added by the server.

    If the resources already have their own names, the naming is not applied,
    and the existing names are used as is.
    """
    def visit(raw: bodies.RawBody) -> None:
        meta = raw.setdefault('metadata', {})
        noname = not set(meta) & {'name', 'generateName'}
        if forced or noname:
            if strict:
                meta['name'] = name
                meta.pop('generateName', None)
            else:
                meta['generateName'] = f'{name}-'
                meta.pop('name', None)
    return visit


def in_namespace(
        namespace: Optional[str],
        *,
        forced: bool = False,
) -> mutations.Visitor:
    """
    Adjust the namespace of the resources, if they have none.

    Keep in mind that the operation's own namespace resolution goes after
    all the visitors, so an explicit namespace of the operation wins anyway.
    """
    def visit(raw: bodies.RawBody) -> None:
        if forced or raw.get('metadata', {}).get('namespace') is None:
            raw.setdefault('metadata', {})['namespace'] = namespace  # type: ignore
    return visit


def owned_by(
        owner: Mapping[str, Any],
) -> mutations.Visitor:
    """
    Append an owner reference to the resources, if it is not yet there.

    The dependents are then deleted together with their owner
    by the cluster's garbage collector (unless orphaned).
    """
    owner_ref = bodies.build_owner_reference(owner)
    if 'uid' not in owner_ref:
        raise ValueError("The owner has no uid; it must exist in the cluster to own anything.")

    def visit(raw: bodies.RawBody) -> None:
        refs = raw.setdefault('metadata', {}).setdefault('ownerReferences', [])
        if not any(ref.get('uid') == owner_ref['uid'] for ref in refs):
            refs.append(dict(owner_ref))
    return visit
