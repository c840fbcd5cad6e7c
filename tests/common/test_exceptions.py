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

import unittest

from parameterized import parameterized

from arm.common.exceptions import (
    ArmClientException,
    AuthenticationError,
    BadRequestError,
    ConflictError,
    DecodeError,
    ForbiddenError,
    GoneError,
    HttpResponseError,
    NotFoundError,
    RetryError,
    TransportError,
    UnauthorizedError,
)


class TestHttpResponseError(unittest.TestCase):
    @parameterized.expand(
        [
            (400, BadRequestError),
            (401, UnauthorizedError),
            (403, ForbiddenError),
            (404, NotFoundError),
            (409, ConflictError),
            (410, GoneError),
            (418, HttpResponseError),
            (500, HttpResponseError),
        ]
    )
    def test_from_status_code(self, status: int, expected: type[HttpResponseError]) -> None:
        self.assertIs(expected, HttpResponseError.from_status_code(status))

    def test_str(self) -> None:
        error = NotFoundError(404, "Not Found", "ResourceNotFound", {"error": {"code": "ResourceNotFound"}})
        self.assertEqual("(404) Not Found\nCode: ResourceNotFound\n{'error': {'code': 'ResourceNotFound'}}", str(error))

    def test_str_without_details(self) -> None:
        self.assertEqual("(500)", str(HttpResponseError(500)))

    def test_hierarchy(self) -> None:
        self.assertIsInstance(GoneError(410), ArmClientException)
        self.assertNotIsInstance(HttpResponseError(500), DecodeError)


class TestWrappedErrors(unittest.TestCase):
    def test_caused_by(self) -> None:
        cause = ConnectionResetError("reset by peer")
        error = TransportError("Could not complete HTTP request", caused_by=cause)
        self.assertIs(cause, error.caused_by)
        self.assertEqual("Could not complete HTTP request: reset by peer", str(error))

    def test_decode_error_is_value_error(self) -> None:
        self.assertIsInstance(DecodeError("bad body"), ValueError)
        self.assertNotIsInstance(DecodeError("bad body"), HttpResponseError)

    def test_authentication_error(self) -> None:
        self.assertEqual("No token", str(AuthenticationError("No token")))


class TestRetryError(unittest.TestCase):
    def test_exceptions(self) -> None:
        errors = [TimeoutError("first"), ConnectionError("second")]
        group = RetryError("Retry failed", errors)
        self.assertEqual("Retry failed", group.message)
        self.assertEqual(tuple(errors), group.exceptions)
        self.assertIn("(2 sub-exceptions)", str(group))
        self.assertIn("| ConnectionError:", str(group))
