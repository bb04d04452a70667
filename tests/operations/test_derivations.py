import dataclasses

import pytest

import kapply
from kapply._cogs.structs.durations import Backoff, TimeUnit


@pytest.fixture()
def op(registry, settings, configmap_factory):
    return kapply.resource(configmap_factory('a'), registry=registry, settings=settings)


def test_configs_are_frozen():
    config = kapply.OperationConfig()
    with pytest.raises(AttributeError):
        config.from_server = True  # type: ignore


def test_configs_come_from_settings(settings):
    settings.namespacing.default = 'fallback'
    settings.deleting.grace_period = 30
    settings.waiting.concurrency_limit = 5
    config = kapply.OperationConfig.from_settings(settings)
    assert config.fallback_namespace == 'fallback'
    assert config.grace_period == 30
    assert config.wait_concurrency_limit == 5
    assert config.wait_retry_backoff == Backoff(initial=0.001, multiplier=2.0, maximum=0.01)


def test_settings_changed_later_do_not_affect_operations(registry, settings, configmap_factory):
    op = kapply.resource(configmap_factory('a'), registry=registry, settings=settings)
    settings.namespacing.default = 'changed'
    assert op.config.fallback_namespace == 'default'


@pytest.mark.parametrize('derive, field, value', [
    (lambda op: op.in_namespace('ns1'), 'explicit_namespace', 'ns1'),
    (lambda op: op.in_namespace(''), 'explicit_namespace', None),
    (lambda op: op.from_server(), 'from_server', True),
    (lambda op: op.deleting_existing(), 'deleting_existing', True),
    (lambda op: op.cascading(False), 'cascading', False),
    (lambda op: op.with_grace_period(10), 'grace_period', 10),
    (lambda op: op.with_propagation_policy(kapply.DeletionPropagation.FOREGROUND),
     'propagation_policy', kapply.DeletionPropagation.FOREGROUND),
])
def test_derivations_do_not_change_the_original(op, derive, field, value):
    original = op.config
    derived = derive(op)
    assert derived is not op
    assert type(derived) is type(op)
    assert getattr(derived.config, field) == value
    assert op.config is original
    assert derived.item is op.item
    assert derived.registry is op.registry


def test_derivations_change_only_their_own_fields(op):
    derived = op.from_server()
    assert derived.config == dataclasses.replace(op.config, from_server=True)


def test_visitors_are_accumulated(op):
    visitor1 = kapply.labelled({'a': 'b'})
    visitor2 = kapply.annotated({'c': 'd'})
    derived1 = op.accept(visitor1)
    derived2 = derived1.accept(visitor2)
    assert op.config.visitors == ()
    assert derived1.config.visitors == (visitor1,)
    assert derived2.config.visitors == (visitor1, visitor2)


def test_namespace_resolution_is_the_last_visitor(op):
    overwriting = kapply.in_namespace('user', forced=True)
    derived = op.accept(overwriting).in_namespace('explicit')
    assert len(derived.visitors) == 2
    assert derived.visitors[0] is overwriting
    raw = {'metadata': {}}
    for visitor in derived.visitors:
        visitor(raw)
    assert raw['metadata']['namespace'] == 'explicit'


def test_namespace_resolution_runs_with_no_visitors(op):
    assert len(op.visitors) == 1


def test_retry_backoff_derivation(op):
    derived = op.with_wait_retry_backoff(50, TimeUnit.MILLISECONDS, multiplier=3.0)
    assert derived.config.wait_retry_backoff.initial == pytest.approx(0.05)
    assert derived.config.wait_retry_backoff.multiplier == 3.0
    assert derived.config.wait_retry_backoff.maximum == op.config.wait_retry_backoff.maximum


@pytest.mark.parametrize('cascading, policy, expected', [
    (True, None, kapply.DeletionPropagation.BACKGROUND),
    (False, None, kapply.DeletionPropagation.ORPHAN),
    (True, kapply.DeletionPropagation.FOREGROUND, kapply.DeletionPropagation.FOREGROUND),
    (False, kapply.DeletionPropagation.FOREGROUND, kapply.DeletionPropagation.FOREGROUND),
])
def test_effective_propagation_policy(cascading, policy, expected):
    config = kapply.OperationConfig(cascading=cascading, propagation_policy=policy)
    assert config.effective_propagation_policy is expected


def test_factories_parse_manifest_texts(registry):
    op = kapply.resource("kind: ConfigMap\napiVersion: v1\nmetadata: {name: a}\n", registry=registry)
    assert op.item.name == 'a'


def test_factories_use_the_default_registry(registry, configmap_factory):
    kapply.set_default_registry(registry)
    op = kapply.resource(configmap_factory('a'))
    assert op.registry is registry


def test_factories_apply_the_namespace(registry, configmap_factory):
    op = kapply.resource_list([configmap_factory('a')], namespace='ns1', registry=registry)
    assert op.config.explicit_namespace == 'ns1'


def test_list_factories_flatten_the_inputs(registry, configmap_factory):
    text = "kind: ConfigMap\napiVersion: v1\nmetadata: {name: b}\n---\nkind: ConfigMap\napiVersion: v1\nmetadata: {name: c}\n"
    op = kapply.resource_list([configmap_factory('a'), text], registry=registry)
    assert len(op) == 3
    assert [item.name for item in op.items] == ['a', 'b', 'c']


def test_single_factories_reject_multiple_documents(registry):
    with pytest.raises(ValueError):
        kapply.resource("kind: A\n---\nkind: B\n", registry=registry)
