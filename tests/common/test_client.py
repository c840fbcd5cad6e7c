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

from arm.aio import AioTransport
from arm.common.client import DEFAULT_ENDPOINT, Client, ClientBuilder
from arm.common.exceptions import ClientValueError
from arm.common.test_tools import TestCredential, TestTransport
from arm.common.utils import BackoffLinear


class TestClientBuilder(unittest.TestCase):
    def setUp(self) -> None:
        self.credential = TestCredential()

    def test_defaults(self) -> None:
        client = ClientBuilder(self.credential).build()
        self.assertEqual("https://management.azure.com", DEFAULT_ENDPOINT)
        self.assertEqual(DEFAULT_ENDPOINT, client.endpoint)
        self.assertEqual(("https://management.azure.com/",), client.scopes)
        self.assertIs(self.credential, client.credential)
        self.assertIsInstance(client.transport, AioTransport)
        self.assertEqual(3, client.transport.max_attempts)

    def test_endpoint_override(self) -> None:
        client = Client.builder(self.credential).endpoint("https://management.example.com/").build()
        self.assertEqual("https://management.example.com", client.endpoint)
        self.assertEqual(("https://management.example.com/",), client.scopes)
        self.assertEqual("https://management.example.com/", client.connector.base_url)

    def test_explicit_scopes(self) -> None:
        client = ClientBuilder(self.credential).scopes(["a", "b"]).build()
        self.assertEqual(("a", "b"), client.scopes)

    def test_single_scope_string(self) -> None:
        client = ClientBuilder(self.credential).scopes("https://ml.example/.default").build()
        self.assertEqual(("https://ml.example/.default",), client.scopes)

    def test_retry_and_user_agent(self) -> None:
        client = ClientBuilder(self.credential).retry(5, BackoffLinear(1)).user_agent("my-app/1.0").build()
        self.assertEqual(5, client.transport.max_attempts)
        self.assertEqual("my-app/1.0", client.transport.user_agent)

    def test_custom_transport(self) -> None:
        transport = TestTransport()
        client = ClientBuilder(self.credential).transport(transport).build()
        self.assertIs(transport, client.transport)
        self.assertIs(transport, client.connector.transport)

    def test_no_network_activity(self) -> None:
        transport = TestTransport()
        ClientBuilder(self.credential).transport(transport).build()
        transport.open.assert_not_called()
        transport.assert_no_requests()
        self.credential.get_token.assert_not_called()

    def test_invalid_configuration(self) -> None:
        with self.assertRaises(ClientValueError):
            ClientBuilder(None)
        with self.assertRaises(ClientValueError):
            ClientBuilder(self.credential).endpoint("management.azure.com")
        with self.assertRaises(ClientValueError):
            ClientBuilder(self.credential).scopes([])
        with self.assertRaises(ClientValueError):
            ClientBuilder(self.credential).retry(0)

    def test_client_is_immutable(self) -> None:
        client = ClientBuilder(self.credential).build()
        with self.assertRaises(AttributeError):
            client.endpoint = "https://other.example"
        with self.assertRaises(AttributeError):
            client.other = 1


class TestClient(unittest.IsolatedAsyncioTestCase):
    async def test_context_manager(self) -> None:
        transport = TestTransport()
        async with ClientBuilder(TestCredential()).transport(transport).build() as client:
            self.assertIsInstance(client, Client)
            transport.open.assert_awaited_once()
            transport.close.assert_not_called()
        transport.close.assert_awaited_once()
