#  Copyright © 2025 Bentley Systems, Incorporated
#  Licensed under the Apache License, Version 2.0 (the "License");
#  you may not use this file except in compliance with the License.
#  You may obtain a copy of the License at
#      http://www.apache.org/licenses/LICENSE-2.0
#  Unless required by applicable law or agreed to in writing, software
#  distributed under the License is distributed on an "AS IS" BASIS,
#  WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
#  See the License for the specific language governing permissions and
#  limitations under the License.

from __future__ import annotations

import copy
from collections.abc import Sequence
from typing import TYPE_CHECKING, ClassVar

if TYPE_CHECKING:
    from .data import HTTPHeaderDict

__all__ = [
    "ArmClientException",
    "ArmExceptionGroup",
    "AuthenticationError",
    "BadRequestError",
    "ClientTypeError",
    "ClientValueError",
    "ConflictError",
    "DecodeError",
    "ForbiddenError",
    "GoneError",
    "HttpResponseError",
    "NotFoundError",
    "RetryError",
    "TransportError",
    "UnauthorizedError",
]


class ArmClientException(Exception):
    """The base exception class for all resource-management client exceptions."""


class ArmExceptionGroup(ArmClientException):
    """A minimal exception group that wraps the exceptions in the sequence excs. The msg parameter must be a string."""

    def __new__(cls, msg: str, excs: Sequence[Exception]):
        grp = super().__new__(cls)
        grp._msg = msg
        grp._excs = tuple(excs)
        return grp

    def __init__(self, msg: str, excs: Sequence[Exception]) -> None:
        super().__init__(msg, tuple(excs))

    @property
    def message(self) -> str:
        """The msg argument to the constructor. This is a read-only attribute."""
        return self._msg

    @property
    def exceptions(self) -> tuple[Exception, ...]:
        """A tuple of the exceptions in the excs sequence given to the constructor. This is a read-only attribute."""
        return copy.copy(self._excs)

    def __str__(self) -> str:
        excs = self.exceptions
        n_sub_excs = len(excs)
        tb_lines = [
            f"{self.__class__.__name__}: {self.message} ({n_sub_excs} sub-exception{'' if n_sub_excs == 1 else 's'})"
        ]
        for i, exc in enumerate(excs):
            tb_lines.append(f"+---------------- {i + 1} ----------------")
            tb_lines.append(f"| {type(exc).__name__}:")
            for exc_line in str(exc).split("\n"):
                tb_lines.append(f"| {exc_line}")
        return "\n".join(tb_lines)


class RetryError(ArmExceptionGroup):
    """Custom exception group for wrapping exceptions from multiple retry attempts."""


class _WrappedError(ArmClientException):
    """Wrapper for standard exceptions that occur while preparing requests or parsing service responses."""

    def __init__(self, msg: str, caused_by: Exception | None = None):
        """
        :param msg: The exception message.
        :param caused_by: The original error.
        """
        self.caused_by = caused_by
        full_msg = msg
        if caused_by:
            full_msg = f"{msg}: {str(caused_by)}"
        super(_WrappedError, self).__init__(full_msg)


class TransportError(_WrappedError):
    """Wraps errors raised by the underlying HTTP transport."""


class AuthenticationError(_WrappedError):
    """Raised when the credential provider could not produce an access token.

    Authentication errors are fatal to the current request, and are never retried by the client.
    """


class DecodeError(_WrappedError, ValueError):
    """Raised when a response with a success status code has a body that does not match the expected type."""


class ClientTypeError(_WrappedError, TypeError):
    """Raised when an operation or function is applied to an object of inappropriate type.
    The associated value is a string giving details about the type mismatch.
    """

    def __init__(
        self,
        msg: str,
        caused_by: Exception | None = None,
        valid_classes: tuple[type, ...] | None = None,
    ):
        """
        :param msg: The exception message.
        :param caused_by: The original error.
        :param valid_classes: The classes that current item should be an instance of.
        """
        super(ClientTypeError, self).__init__(msg, caused_by)
        self.valid_classes = valid_classes


class ClientValueError(_WrappedError, ValueError):
    """Raised when an operation or function receives an argument that has the right type but an inappropriate value,
    and the situation is not described by a more precise exception such as IndexError.
    """


class HttpResponseError(ArmClientException):
    """Raised when the service responds with a status code that the operation does not expect.

    Subclasses may define the class attribute `STATUS_CODE`, which is used to map a status code to a more specific
    error type, so that common failures can be handled consistently regardless of the operation.
    """

    __GENERALIZED_TYPES: ClassVar[dict[int, type[HttpResponseError]]] = {}

    STATUS_CODE: ClassVar[int | None] = None

    def __init__(
        self,
        status: int,
        reason: str | None = None,
        error_code: str | None = None,
        content: object | None = None,
        headers: HTTPHeaderDict | None = None,
    ) -> None:
        """
        :param status: HTTP status code.
        :param reason: Reason.
        :param error_code: The structured service error code, if it was parsed from the response.
        :param content: Deserialized content from the response.
        :param headers: Response headers.
        """
        super().__init__(status, reason, error_code)
        self.status = status
        self.reason = reason
        self.error_code = error_code
        self.content = content
        self.headers = headers

    @classmethod
    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        if (status_code := cls.STATUS_CODE) is not None:
            HttpResponseError.__GENERALIZED_TYPES[status_code] = cls

    @staticmethod
    def from_status_code(status_code: int) -> type[HttpResponseError]:
        """Get the error type that corresponds to a status code.

        :param status_code: The status code of the error response.

        :return: The generalized implementation for the status code, or HttpResponseError if there is none.
        """
        return HttpResponseError.__GENERALIZED_TYPES.get(status_code, HttpResponseError)

    def __str__(self) -> str:
        error_message = f"({self.status})"
        if reason := self.reason:
            error_message += f" {reason}"
        if error_code := self.error_code:
            error_message += f"\nCode: {error_code}"
        if content := self.content:
            error_message += f"\n{content}"
        return error_message


class BadRequestError(HttpResponseError):
    """The service cannot process the request due to a client error (400 - Bad Request)."""

    STATUS_CODE = 400


class UnauthorizedError(HttpResponseError):
    """The client must authenticate to get a response (401 - Unauthorized)."""

    STATUS_CODE = 401


class ForbiddenError(HttpResponseError):
    """The client does not have access rights to the content (403 - Forbidden)."""

    STATUS_CODE = 403


class NotFoundError(HttpResponseError):
    """The service could not find the requested resource (404 - Not Found)."""

    STATUS_CODE = 404


class ConflictError(HttpResponseError):
    """The request conflicts with the current state of the resource (409 - Conflict)."""

    STATUS_CODE = 409


class GoneError(HttpResponseError):
    """The requested resource is deleted (410 - Gone)."""

    STATUS_CODE = 410
