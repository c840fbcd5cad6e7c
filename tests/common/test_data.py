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

from arm.common import HTTPHeaderDict, RequestDescriptor, RequestMethod


class TestHTTPHeaderDict(unittest.TestCase):
    def test_case_insensitive(self) -> None:
        headers = HTTPHeaderDict({"content-type": "application/json"})
        self.assertEqual("application/json", headers["Content-Type"])
        self.assertIn("CONTENT-TYPE", headers)

    def test_repeated_fields_are_combined(self) -> None:
        headers = HTTPHeaderDict([("Accept", "a"), ("accept", "b")])
        self.assertEqual("a,b", headers["Accept"])

    def test_repr_hides_authorization(self) -> None:
        headers = HTTPHeaderDict({"Authorization": "Bearer secret", "Accept": "*/*"})
        self.assertNotIn("secret", repr(headers))
        self.assertIn("*/*", repr(headers))


class TestRequestDescriptor(unittest.TestCase):
    def setUp(self) -> None:
        self.descriptor = RequestDescriptor(
            method=RequestMethod.POST,
            path="/widgets:query",
            path_params={"id": "a"},
            query_params={"top": 10},
            persistent_query={"api-version": "2021-08-15"},
            headers={"x-ms-client-request-id": "1"},
            body={"filter": "x"},
        )

    def test_first_page(self) -> None:
        self.assertFalse(self.descriptor.is_continuation)

    def test_continue_at(self) -> None:
        continuation = self.descriptor.continue_at("/widgets:query?token=2")
        self.assertTrue(continuation.is_continuation)
        self.assertEqual("/widgets:query?token=2", continuation.url)
        self.assertEqual(RequestMethod.POST, continuation.method)
        self.assertEqual({"x-ms-client-request-id": "1"}, continuation.headers)
        self.assertEqual({"api-version": "2021-08-15"}, continuation.persistent_query)
        self.assertEqual({}, continuation.query_params)
        self.assertIsNone(continuation.body)

    def test_descriptor_is_unchanged(self) -> None:
        self.descriptor.continue_at("/next")
        self.descriptor.with_query(top=None)
        self.assertIsNone(self.descriptor.url)
        self.assertEqual({"top": 10}, self.descriptor.query_params)
        self.assertEqual({"filter": "x"}, self.descriptor.body)

    def test_with_query(self) -> None:
        updated = self.descriptor.with_query(top=None, skip=5, filter=None)
        self.assertEqual({"skip": 5}, updated.query_params)

    def test_with_headers(self) -> None:
        updated = self.descriptor.with_headers(**{"If-Match": "*"})
        self.assertEqual({"x-ms-client-request-id": "1", "If-Match": "*"}, updated.headers)

    def test_with_body(self) -> None:
        self.assertIsNone(self.descriptor.with_body(None).body)
