"""
Remote API errors, as raised by the resource handlers.

The handlers can use any transport to talk to the API: the one included
for convenience is ``aiohttp``; others can be plugged in via the handlers.
We cannot rely on any transport's exceptions all over the engine. Hence,
we have our own hierarchy of exceptions for the remote API errors.

Low-level errors, such as the network connectivity issues, SSL/HTTPS issues,
etc, are escalated from the transport as is, since they are related not
to the domain of the API, but rather to the networking and encryption.

Some selected reasons of the API errors are made into their own classes,
so that they could be intercepted and handled in the engine. The engine
itself only cares about the conflicts (HTTP 409): they trigger the replacing
or re-creation of the existing resources. All other errors are fatal.
The conflicts are detected by the status code, so that the handlers
could raise the base class with the proper status too.
"""
import collections.abc
import json
from typing import Collection, Optional

import aiohttp
from typing_extensions import Literal, TypedDict

CONFLICT_STATUS = 409


class RawStatusCause(TypedDict):
    field: str
    reason: str
    message: str


class RawStatusDetails(TypedDict):
    name: str
    uid: str
    retryAfterSeconds: int
    kind: str
    group: str
    causes: Collection[RawStatusCause]


class RawStatus(TypedDict):
    apiVersion: str
    kind: Literal["Status"]
    code: int
    status: Literal["Success", "Failure"]
    reason: str
    message: str
    details: RawStatusDetails


class APIError(Exception):

    def __init__(
            self,
            payload: Optional[RawStatus],
            *,
            status: int,
    ) -> None:
        message = payload.get('message') if payload else None
        super().__init__(message, payload)
        self._status = status
        self._payload = payload

    @property
    def status(self) -> int:
        return self._status

    @property
    def code(self) -> Optional[int]:
        return self._payload.get('code') if self._payload else None

    @property
    def message(self) -> Optional[str]:
        return self._payload.get('message') if self._payload else None

    @property
    def details(self) -> Optional[RawStatusDetails]:
        return self._payload.get('details') if self._payload else None

    @property
    def is_conflict(self) -> bool:
        return self._status == CONFLICT_STATUS


class APIUnauthorizedError(APIError):
    pass


class APIForbiddenError(APIError):
    pass


class APINotFoundError(APIError):
    pass


class APIConflictError(APIError):
    pass


def make_error(
        payload: Optional[RawStatus],
        *,
        status: int,
) -> APIError:
    """ Build the most specific error for the HTTP status. """
    cls = (
        APIUnauthorizedError if status == 401 else
        APIForbiddenError if status == 403 else
        APINotFoundError if status == 404 else
        APIConflictError if status == CONFLICT_STATUS else
        APIError
    )
    return cls(payload, status=status)


async def check_response(
        response: aiohttp.ClientResponse,
) -> None:
    """
    Check for specialised API errors, and raise with extended information.
    """
    if response.status >= 400:

        # Read the response's body before it is closed by raise_for_status().
        payload: Optional[RawStatus]
        try:
            payload = await response.json()
        except (json.JSONDecodeError, aiohttp.ContentTypeError, aiohttp.ClientConnectionError):
            payload = None

        # Better be safe: who knows which sensitive information can be dumped unless kind==Status.
        if not isinstance(payload, collections.abc.Mapping) or payload.get('kind') != 'Status':
            payload = None

        # Raise the library-specific error while keeping the original error in scope.
        # This call also closes the response's body, so it cannot be read afterwards.
        try:
            response.raise_for_status()
        except aiohttp.ClientResponseError as e:
            raise make_error(payload, status=response.status) from e
