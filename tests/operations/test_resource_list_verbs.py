import datetime

import pytest

import kapply


@pytest.fixture()
def op(registry, settings, configmap_factory, deployment_factory):
    return kapply.resource_list([
        configmap_factory('cm'),
        deployment_factory('dep', ready=False),
    ], registry=registry, settings=settings)


async def test_apply_all(op, handler):
    results = await op.apply()
    assert [result.name for result in results] == ['cm', 'dep']
    assert set(handler.store) == {('ConfigMap', 'default', 'cm'), ('Deployment', 'ns', 'dep')}


async def test_apply_all_in_the_explicit_namespace(op, handler):
    await op.in_namespace('ns1').apply()
    assert {namespace for _, namespace, _ in handler.store} == {'ns1'}


async def test_apply_and_continue_with_the_results(op, handler):
    applied = await op.create_or_replace_and()
    assert len(applied) == len(op) == 2
    assert all(item.resource_version is not None for item in applied.items)
    assert all(item.resource_version is None for item in op.items)


async def test_get_all_from_the_server(op, handler, configmap_factory):
    handler.put(configmap_factory('cm', 'default'))
    results = await op.from_server().get()
    assert [result.name for result in results] == ['cm']


async def test_delete_all(op, handler):
    await op.apply()
    assert await op.delete() is True
    assert not handler.store


async def test_delete_all_reports_the_failures(op, handler):
    assert await op.delete() is False


async def test_readiness_ignores_the_kinds_without_it(op, handler, deployment_factory):
    handler.put(deployment_factory('dep', ready=True))
    assert await op.is_ready() is False
    assert await op.from_server().is_ready() is True
    handler.put(deployment_factory('dep', ready=False))
    assert await op.from_server().is_ready() is False


async def test_readiness_of_all_ready(registry, handler, deployment_factory):
    for name in ['a', 'b']:
        handler.put(deployment_factory(name, ready=True))
    op = kapply.resource_list([deployment_factory(name, ready=True) for name in ['a', 'b']],
                              registry=registry)
    assert await op.is_ready() is True


async def test_waiting_for_readiness_skips_the_kinds_without_it(op, handler, deployment_factory):
    handler.put(deployment_factory('dep', ready=True))
    results = await op.wait_until_ready(1)
    assert [result.kind for result in results] == ['Deployment']


async def test_waiting_for_readiness_reports_the_stuck_resources(op, handler, deployment_factory):
    handler.put(deployment_factory('dep', ready=False))
    with pytest.raises(kapply.WaitTimeoutError) as err:
        await op.wait_until_ready(30, kapply.TimeUnit.MILLISECONDS)
    assert [body.name for body in err.value.resources] == ['dep']


async def test_waiting_for_readiness_with_limited_concurrency(registry, settings, handler, deployment_factory):
    settings.waiting.concurrency_limit = 1
    for name in ['a', 'b', 'c']:
        handler.put(deployment_factory(name, ready=True))
    op = kapply.resource_list([deployment_factory(name, ready=False) for name in ['a', 'b', 'c']],
                              registry=registry, settings=settings)
    results = await op.wait_until_ready(1)
    assert [result.name for result in results] == ['a', 'b', 'c']


async def test_waiting_for_a_condition(op, handler):
    await op.apply()
    results = await op.wait_until_condition(lambda body: body.name is not None, 1)
    assert [result.name for result in results] == ['cm', 'dep']


async def test_waiting_for_a_condition_since_a_version(op, handler):
    await op.apply()
    with pytest.raises(kapply.WaitTimeoutError) as err:
        await op.wait_until_condition_since(lambda body: False, resource_version=None,
                                            timeout=datetime.timedelta(milliseconds=20))
    assert len(err.value.resources) == 2
