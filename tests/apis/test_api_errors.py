import json

import aiohttp
import pytest

from kapply._cogs.clients.errors import APIConflictError, APIError, APIForbiddenError, \
                                        APINotFoundError, APIUnauthorizedError, \
                                        check_response, make_error

STATUS = {
    'apiVersion': 'v1',
    'kind': 'Status',
    'status': 'Failure',
    'message': 'configmaps "name1" already exists',
    'reason': 'AlreadyExists',
    'code': 409,
    'details': {'name': 'name1', 'kind': 'configmaps'},
}


@pytest.fixture()
def response_factory(mocker):
    def factory(status, payload=None, json_error=None):
        response = mocker.Mock(status=status)
        response.json = mocker.AsyncMock(return_value=payload, side_effect=json_error)
        response.raise_for_status = mocker.Mock(
            side_effect=aiohttp.ClientResponseError(mocker.Mock(), (), status=status)
            if status >= 400 else None)
        return response
    return factory


@pytest.mark.parametrize('status, cls', [
    (401, APIUnauthorizedError),
    (403, APIForbiddenError),
    (404, APINotFoundError),
    (409, APIConflictError),
    (400, APIError),
    (500, APIError),
])
def test_error_classes_by_status(status, cls):
    error = make_error(None, status=status)
    assert type(error) is cls
    assert error.status == status


def test_conflicts_are_detected_by_status_only():
    assert make_error(None, status=409).is_conflict
    assert APIError(None, status=409).is_conflict
    assert not APIError(None, status=500).is_conflict


def test_error_payload_fields():
    error = make_error(STATUS, status=409)
    assert error.code == 409
    assert error.message == 'configmaps "name1" already exists'
    assert error.details == {'name': 'name1', 'kind': 'configmaps'}


def test_error_without_payload():
    error = make_error(None, status=500)
    assert error.code is None
    assert error.message is None
    assert error.details is None


@pytest.mark.parametrize('status', [200, 201, 204])
async def test_successful_responses_pass(response_factory, status):
    response = response_factory(status, {})
    await check_response(response)
    assert not response.raise_for_status.called


async def test_status_payload_is_kept(response_factory):
    response = response_factory(409, STATUS)
    with pytest.raises(APIConflictError) as err:
        await check_response(response)
    assert err.value.status == 409
    assert err.value.message == STATUS['message']
    assert isinstance(err.value.__cause__, aiohttp.ClientResponseError)


async def test_non_status_payload_is_hidden(response_factory):
    response = response_factory(403, {'kind': 'Secret', 'data': {'password': 'x'}})
    with pytest.raises(APIForbiddenError) as err:
        await check_response(response)
    assert err.value.message is None
    assert err.value.details is None


async def test_unparseable_payload_is_ignored(response_factory):
    response = response_factory(500, json_error=json.JSONDecodeError('msg', 'doc', 0))
    with pytest.raises(APIError) as err:
        await check_response(response)
    assert err.value.status == 500
    assert err.value.message is None
