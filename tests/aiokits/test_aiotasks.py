import asyncio
import logging

from kapply._cogs.aiokits.aiotasks import result_or_error, stop, wait


async def sleeper(delay, result=None):
    await asyncio.sleep(delay)
    return result


async def failer(exc):
    raise exc


async def test_waiting_for_nothing():
    done, pending = await wait([])
    assert not done
    assert not pending


async def test_waiting_with_a_timeout():
    task1 = asyncio.create_task(sleeper(0, 'fast'))
    task2 = asyncio.create_task(sleeper(10, 'slow'))
    done, pending = await wait([task1, task2], timeout=0.1)
    assert done == {task1}
    assert pending == {task2}
    task2.cancel()


async def test_waiting_with_an_expired_deadline():
    task = asyncio.create_task(sleeper(10))
    done, pending = await wait([task], timeout=-5)
    assert done == set()
    assert pending == {task}
    task.cancel()


async def test_stopping_nothing():
    done, pending = await stop([], title='sample')
    assert not done
    assert not pending


async def test_stopping_cancels_and_awaits(caplog):
    caplog.set_level(0)
    task1 = asyncio.create_task(sleeper(10))
    task2 = asyncio.create_task(sleeper(10))
    done, pending = await stop([task1, task2], title='sample', logger=logging.getLogger())
    assert done == {task1, task2}
    assert not pending
    assert task1.cancelled()
    assert task2.cancelled()
    assert "Sample tasks are stopped" in caplog.text


async def test_results_of_succeeded_tasks():
    task = asyncio.create_task(sleeper(0, 'hello'))
    await wait([task])
    assert result_or_error(task) == ('hello', None)


async def test_errors_of_failed_tasks():
    error = ValueError('boo')
    task = asyncio.create_task(failer(error))
    await wait([task])
    assert result_or_error(task) == (None, error)


async def test_cancellations_are_errors_not_raised():
    task = asyncio.create_task(sleeper(10))
    await stop([task], title='sample')
    result, exc = result_or_error(task)
    assert result is None
    assert isinstance(exc, asyncio.CancelledError)
