import itertools
from typing import Any, Dict, List, Optional, Tuple

import pytest

import kapply


class FakeHandler(kapply.BaseResourceHandler):
    """
    An in-memory "cluster" for one or a few kinds, with all the calls recorded.

    The resources are kept by their kind, namespace, name. Every change bumps
    the resource version, as the real servers do (the values are opaque).
    """

    def __init__(self) -> None:
        super().__init__()
        self.store: Dict[Tuple[Any, Any, Any], Dict[str, Any]] = {}
        self.calls: List[Tuple[str, kapply.Body]] = []
        self.deletable = True
        self._versions = itertools.count(1)

    def calls_of(self, verb: str) -> List[kapply.Body]:
        return [body for call, body in self.calls if call == verb]

    def put(self, raw: Dict[str, Any], namespace: Optional[str] = None) -> kapply.Body:
        """ Put the resource into the store directly, as if it exists in the cluster. """
        stored = kapply.thaw(raw)
        if namespace is not None:
            stored.setdefault('metadata', {})['namespace'] = namespace
        stored.setdefault('metadata', {})['resourceVersion'] = str(next(self._versions))
        body = kapply.Body(stored)
        self.store[self._key(body.namespace, body)] = stored
        return kapply.Body(stored)

    def _key(self, namespace: kapply.Namespace, body: kapply.Body) -> Tuple[Any, Any, Any]:
        return (body.kind, namespace, body.name)

    async def create(self, *, namespace, body):
        self.calls.append(('create', body))
        key = self._key(namespace, body)
        if key in self.store:
            raise kapply.APIConflictError({'message': 'already exists'}, status=409)
        return self.put(dict(body), namespace=namespace)

    async def replace(self, *, namespace, body):
        self.calls.append(('replace', body))
        key = self._key(namespace, body)
        if key not in self.store:
            raise kapply.APINotFoundError({'message': 'not found'}, status=404)
        return self.put(dict(body), namespace=namespace)

    async def delete(self, *, namespace, body, propagation_policy, grace_period=None):
        self.calls.append(('delete', body))
        if not self.deletable:
            return False
        return self.store.pop(self._key(namespace, body), None) is not None

    async def reload(self, *, namespace, body):
        self.calls.append(('reload', body))
        stored = self.store.get(self._key(namespace, body))
        return kapply.Body(stored) if stored is not None else None


@pytest.fixture()
def handler() -> FakeHandler:
    return FakeHandler()


@pytest.fixture()
def registry(handler) -> kapply.HandlerRegistry:
    registry = kapply.HandlerRegistry()
    registry.register('ConfigMap', 'v1', handler)
    registry.register('Deployment', 'apps/v1', handler)
    registry.register('Pod', 'v1', handler)
    return registry


@pytest.fixture()
def settings() -> kapply.ClientSettings:
    settings = kapply.ClientSettings()
    settings.waiting.initial_backoff = 0.001
    settings.waiting.max_backoff = 0.01
    return settings


@pytest.fixture(autouse=True)
def _isolated_default_registry():
    kapply.set_default_registry(kapply.HandlerRegistry())
    yield
    kapply.set_default_registry(kapply.HandlerRegistry())


def make_configmap(name: str, namespace: Optional[str] = None, **meta: Any) -> Dict[str, Any]:
    metadata: Dict[str, Any] = dict(name=name, **meta)
    if namespace is not None:
        metadata['namespace'] = namespace
    return {'apiVersion': 'v1', 'kind': 'ConfigMap', 'metadata': metadata, 'data': {'x': 'y'}}


def make_deployment(name: str, namespace: str = 'ns', *, replicas: int = 1, ready: bool) -> Dict[str, Any]:
    return {
        'apiVersion': 'apps/v1',
        'kind': 'Deployment',
        'metadata': {'name': name, 'namespace': namespace},
        'spec': {'replicas': replicas},
        'status': {'replicas': replicas, 'availableReplicas': replicas if ready else 0},
    }


@pytest.fixture()
def configmap_factory():
    return make_configmap


@pytest.fixture()
def deployment_factory():
    return make_deployment
