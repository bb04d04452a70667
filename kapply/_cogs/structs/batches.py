"""
Normalisation of the callers' input into the resource objects.

The callers can provide the resources in many forms: as the objects,
as the raw dicts, as the YAML/JSON manifests (possibly multi-document),
as the list containers, or as any (nested) iterables of all of the above.
The engine only works with the flat sequences of `bodies.Body` objects.
"""
import collections.abc
from typing import Any, Iterable, List, Mapping, Sequence, Union

import yaml

from kapply._cogs.structs import bodies, dicts

# Anything that can be normalised into the bodies. Nesting is not restricted at runtime.
Manifest = Union[str, bytes, Mapping[str, Any], bodies.Body]
Manifests = Union[Manifest, Iterable[Manifest]]


def parse_manifests(
        text: Union[str, bytes],
) -> Sequence[Mapping[str, Any]]:
    """
    Parse a YAML (or JSON, as a subset of YAML) text with one or many documents.

    Empty documents (e.g. after a trailing ``---``) are skipped.
    """
    return [doc for doc in yaml.safe_load_all(text) if doc is not None]


def as_bodies(
        objs: Manifests,
) -> List[bodies.Body]:
    """
    Flatten the input into the list of resource objects in their original order.

    The list containers are replaced with their items. The values that are
    not the resources (e.g. scalars in the YAML documents) are ignored.
    """
    result: List[bodies.Body] = []
    for obj in dicts.walk(objs):
        if isinstance(obj, (str, bytes)):
            result.extend(as_bodies(parse_manifests(obj)))
        elif isinstance(obj, collections.abc.Mapping) and bodies.is_list_container(obj):
            result.extend(bodies.get_items(obj))
        elif isinstance(obj, bodies.Body):
            result.append(obj)
        elif isinstance(obj, collections.abc.Mapping):
            result.append(bodies.Body(obj))
    return result


def as_body(
        obj: Manifest,
) -> bodies.Body:
    """
    Convert the input into exactly one resource object (maybe a list container).

    Unlike `as_bodies`, the list containers are kept as is: they are processed
    by their own dedicated handler as single objects.
    """
    if isinstance(obj, (str, bytes)):
        docs = parse_manifests(obj)
        if len(docs) != 1:
            raise ValueError(f"Expected exactly one resource in the manifest, got {len(docs)}.")
        obj = docs[0]
    if isinstance(obj, bodies.Body):
        return obj
    elif isinstance(obj, collections.abc.Mapping):
        return bodies.Body(obj)
    else:
        raise TypeError(f"A resource must be a mapping or a manifest text, got {type(obj)}.")
