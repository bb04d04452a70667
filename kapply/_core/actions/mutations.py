"""
The visitors: the modifications of the resources before they are sent.

A visitor is a callable that gets a raw modifiable body of a resource
and modifies it in place. The visitors are applied to the copies made by
the resources' handlers (see `ResourceHandler.edit`), never to the originals:
the results are new frozen bodies, the inputs stay intact.

The list containers are not visited themselves; their items are.
"""
from typing import Callable, Iterable, Iterator, List

from kapply._cogs.structs import bodies, references
from kapply._core.intents import registries

Visitor = Callable[[bodies.RawBody], None]


def accept_visitors(
        body: bodies.Body,
        visitors: Iterable[Visitor],
        *,
        registry: registries.HandlerRegistry,
) -> bodies.Body:
    """
    Apply the visitors in their order to a resource (or to the items of a list).

    The handler of the resource is resolved first, so an unknown kind
    fails with `HandlerNotFoundError` before anything is visited or sent.
    """
    handler = registry.resolve_for(body)
    staging = handler.edit(body)
    visitors = list(visitors)
    for visitor in visitors:
        for raw in _iter_visitable(staging):
            visitor(raw)
    return bodies.Body(staging)


def accept_visitors_all(
        objs: Iterable[bodies.Body],
        visitors: Iterable[Visitor],
        *,
        registry: registries.HandlerRegistry,
) -> List[bodies.Body]:
    visitors = list(visitors)
    return [accept_visitors(body, visitors, registry=registry) for body in objs]


def _iter_visitable(raw: bodies.RawBody) -> Iterator[bodies.RawBody]:
    if bodies.is_list_container(raw):
        for item in raw.get('items', []):  # type: ignore
            yield item
    else:
        yield raw


def namespace_resolver(
        *,
        explicit: references.Namespace,
        fallback: references.Namespace,
) -> Visitor:
    """
    The namespace visitor, which is always the last one in every operation.

    An explicit namespace overrides the resource's own one; otherwise,
    the resource's own namespace is kept; otherwise, the fallback is used.
    With neither, the resource is left with no namespace (cluster-scoped).
    """
    def resolve_namespace(raw: bodies.RawBody) -> None:
        if explicit:
            raw.setdefault('metadata', {})['namespace'] = explicit
        elif not raw.get('metadata', {}).get('namespace') and fallback:
            raw.setdefault('metadata', {})['namespace'] = fallback
    return resolve_namespace
