"""
Readiness of the well-known resource kinds, as judged by their status only.

Only some kinds have the concept of readiness: e.g., a deployment is ready
when all its replicas are available. Most other kinds (config maps, secrets,
custom resources) are "ready" as soon as they exist, so there is nothing
to wait for -- and waiting for them is reported as not supported.
"""
from typing import Any, Callable, Mapping

from kapply._cogs.structs import bodies, dicts


class ReadinessNotSupportedError(Exception):
    """ The resource kind has no concept of readiness; there is nothing to wait for. """


def is_ready(body: Mapping[str, Any]) -> bool:
    """
    Check if the resource is ready; raise if its kind has no readiness at all.
    """
    kind = body.get('kind')
    try:
        checker = _CHECKERS[kind]  # type: ignore
    except KeyError:
        ref = bodies.build_object_reference(body)
        raise ReadinessNotSupportedError(f"{kind} does not support readiness: {ref}") from None
    return checker(body)


def _has_true_condition(body: Mapping[str, Any], condition_type: str) -> bool:
    conditions = dicts.resolve(body, 'status.conditions', None) or []
    return any(condition.get('type') == condition_type and condition.get('status') == 'True'
               for condition in conditions)


def _desired_replicas(body: Mapping[str, Any]) -> int:
    replicas = dicts.resolve(body, 'spec.replicas', None)
    return 1 if replicas is None else int(replicas)


def _is_deployment_ready(body: Mapping[str, Any]) -> bool:
    desired = _desired_replicas(body)
    replicas = dicts.resolve(body, 'status.replicas', None) or 0
    available = dicts.resolve(body, 'status.availableReplicas', None) or 0
    return replicas == desired and available >= desired


def _is_replicated_ready(body: Mapping[str, Any]) -> bool:
    desired = _desired_replicas(body)
    ready = dicts.resolve(body, 'status.readyReplicas', None) or 0
    return ready >= desired


def _is_pod_ready(body: Mapping[str, Any]) -> bool:
    return _has_true_condition(body, 'Ready')


def _is_endpoints_ready(body: Mapping[str, Any]) -> bool:
    subsets = body.get('subsets') or []
    return any(subset.get('addresses') for subset in subsets)


_CHECKERS: Mapping[str, Callable[[Mapping[str, Any]], bool]] = {
    'Deployment': _is_deployment_ready,
    'DeploymentConfig': _is_deployment_ready,
    'ReplicaSet': _is_replicated_ready,
    'ReplicationController': _is_replicated_ready,
    'StatefulSet': _is_replicated_ready,
    'Pod': _is_pod_ready,
    'Node': _is_pod_ready,
    'Endpoints': _is_endpoints_ready,
}
