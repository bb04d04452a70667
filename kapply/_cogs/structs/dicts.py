"""
Helpers for the nested fields of the resources, addressed by dotted paths.

The paths are strings like ``"metadata.labels"``; an empty path (or ``None``)
means the object itself. There is no escaping of dots: the resources' own
field names never contain them on the levels accessed here.
"""
import collections.abc
from typing import Any, Generic, Iterable, Iterator, Mapping, MutableMapping, \
                   Optional, Tuple, TypeVar, Union

_T = TypeVar('_T')
_K = TypeVar('_K')
_V = TypeVar('_V')

_MISSING = object()


def _split(path: Optional[str]) -> Tuple[str, ...]:
    return tuple(path.split('.')) if path else ()


def resolve(
        d: Optional[Mapping[Any, Any]],
        path: Optional[str],
        default: Any = _MISSING,
) -> Any:
    """
    Get a nested field of a resource.

    With a default, the absent fields and the non-mapping parents (e.g. the
    hand-written ``status: null``) give the default. With no default,
    the absent keys raise ``KeyError`` and the non-mappings ``TypeError``.
    """
    return _resolve_keys(d, _split(path), default)


def _resolve_keys(d: Any, keys: Tuple[Any, ...], default: Any) -> Any:
    current = d
    for key in keys:
        if not isinstance(current, collections.abc.Mapping):
            if default is not _MISSING:
                return default
            raise TypeError(f"Cannot get {key!r} from a non-mapping: {current!r}")
        if key not in current:
            if default is not _MISSING:
                return default
            raise KeyError(key)
        current = current[key]
    return current


def ensure(
        d: MutableMapping[Any, Any],
        path: str,
        value: Any,
) -> None:
    """
    Set a nested field, creating the missing parents as empty dicts.
    """
    *parents, last = _split(path) or ('',)
    if not last:
        raise ValueError("Cannot set the object itself; the field path is empty.")
    current = d
    for key in parents:
        current = current.setdefault(key, {})
    current[last] = value


def remove(
        d: MutableMapping[Any, Any],
        path: str,
) -> None:
    """
    Remove a nested field if it is there; the absent ones are not an error.
    """
    *parents, last = _split(path) or ('',)
    if not last:
        raise ValueError("Cannot remove the object itself; the field path is empty.")
    parent = _resolve_keys(d, tuple(parents), None)
    if isinstance(parent, collections.abc.MutableMapping):
        parent.pop(last, None)


def walk(
        objs: Union[_T, Iterable[_T], Iterable[Union[_T, Iterable[_T]]]],
) -> Iterator[_T]:
    """
    Flatten the objects nested in lists/tuples/iterables of any depth.

    The mappings and the texts are iterable too, but they are the objects
    themselves here, so they are yielded as is.
    """
    if objs is None:
        return
    elif isinstance(objs, (collections.abc.Mapping, str, bytes)):
        yield objs  # type: ignore
    elif isinstance(objs, collections.abc.Iterable):
        for obj in objs:
            yield from walk(obj)
    else:
        yield objs


class MappingView(Mapping[_K, _V], Generic[_K, _V]):
    """
    A live read-only view of a nested field, even if it does not exist yet.

    The absent field looks like an empty mapping, so ``body.status.get(...)``
    works on new resources with no ``status`` at all, and nothing is added
    to the underlying data by looking into it.
    """

    def __init__(self, __src: Mapping[Any, Any], __path: Optional[str] = None) -> None:
        super().__init__()
        self._src = __src
        self._keys = _split(__path)

    def __repr__(self) -> str:
        return repr(dict(self))

    def __len__(self) -> int:
        return len(self._resolved())

    def __iter__(self) -> Iterator[Any]:
        return iter(self._resolved())

    def __getitem__(self, item: _K) -> _V:
        return self._resolved()[item]  # type: ignore

    def _resolved(self) -> Mapping[Any, Any]:
        value = _resolve_keys(self._src, self._keys, {})
        return value if isinstance(value, collections.abc.Mapping) else {}
