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

import logging
import unittest
from unittest import mock

import aiohttp
from aiohttp import ClientResponse, ClientSession, ClientTimeout, TCPConnector
from parameterized import parameterized

from arm.aio import AioTransport
from arm.common import HTTPHeaderDict, RequestMethod
from arm.common.exceptions import RetryError, TransportError
from arm.common.utils import BackoffLinear
from arm.logging import getLogger

getLogger("aio.transport").setLevel(logging.DEBUG)

URL = "https://unittest.localhost/widgets"


def _mock_response(status: int = 200, body: bytes = b"", headers: dict | None = None) -> mock.AsyncMock:
    mock_response = mock.AsyncMock(spec=ClientResponse)
    mock_response.status = status
    mock_response.read.return_value = body
    mock_response.reason = "OK"
    mock_response.headers = headers or {}
    return mock_response


class MockSession(mock.AsyncMock):
    def __init__(self) -> None:
        super().__init__(spec_set=ClientSession)
        self.set_response(_mock_response())

    def set_response(self, response: mock.AsyncMock) -> None:
        mock_request_ctx = mock.AsyncMock()
        mock_request_ctx.__aenter__.return_value = response
        self.request.return_value = mock_request_ctx

    @classmethod
    def klass(cls) -> mock.Mock:
        return mock.Mock(return_value=cls())


class MockConnector(mock.AsyncMock):
    def __init__(self) -> None:
        super().__init__(spec_set=TCPConnector)

    @classmethod
    def klass(cls) -> mock.Mock:
        return mock.Mock(return_value=cls())


@mock.patch("aiohttp.TCPConnector", new_callable=MockConnector.klass)
@mock.patch("aiohttp.ClientSession", new_callable=MockSession.klass)
class TestAioTransport(unittest.IsolatedAsyncioTestCase):
    async def test_open(self, mock_session_klass: mock.Mock, mock_connector_klass: mock.Mock) -> None:
        """Test that the session is only created when the transport is opened."""
        transport = AioTransport("test-client", num_pools=4, close_grace_period_ms=0)
        mock_session_klass.assert_not_called()

        with self.assertRaises(TransportError) as ctx:
            await transport.request(RequestMethod.GET, URL)
        self.assertIsNone(ctx.exception.caused_by)

        async with transport:
            mock_connector_klass.assert_called_once_with(ssl=None, limit=4)
            mock_session_klass.assert_called_once_with(
                connector=mock_connector_klass.return_value, skip_auto_headers=["Accept", "Accept-Encoding"]
            )
            await transport.request(RequestMethod.GET, URL)
            mock_session_klass.return_value.request.assert_called_once()

    async def test_verify_ssl(self, mock_session_klass: mock.Mock, mock_connector_klass: mock.Mock) -> None:
        async with AioTransport("test-client", verify_ssl=False, close_grace_period_ms=0):
            mock_connector_klass.assert_called_once_with(ssl=False, limit=4)

    async def test_reference_counting(self, mock_session_klass: mock.Mock, mock_connector_klass: mock.Mock) -> None:
        """Test that the session is shared by nested opens, and closed by the last close."""
        mock_session: MockSession = mock_session_klass.return_value
        transport = AioTransport("test-client", close_grace_period_ms=0)

        await transport.open()
        await transport.open()
        mock_session_klass.assert_called_once()
        self.assertTrue(transport.is_open)

        await transport.close()
        mock_session.close.assert_not_called()
        await transport.request(RequestMethod.GET, URL)

        await transport.close()
        mock_session.close.assert_called_once()
        self.assertFalse(transport.is_open)
        with self.assertRaises(TransportError):
            await transport.request(RequestMethod.GET, URL)

    async def test_request(self, mock_session_klass: mock.Mock, mock_connector_klass: mock.Mock) -> None:
        mock_session: MockSession = mock_session_klass.return_value
        mock_session.set_response(
            _mock_response(status=201, body=b'{"id": "a"}', headers={"content-type": "application/json"})
        )

        async with AioTransport("test-client", close_grace_period_ms=0) as transport:
            response = await transport.request(
                RequestMethod.PUT,
                URL,
                headers=HTTPHeaderDict({"Authorization": "Bearer token", "Content-Type": "application/json"}),
                body='{"id": "a"}',
            )

        self.assertEqual(201, response.status)
        self.assertEqual(b'{"id": "a"}', response.data)
        self.assertEqual("application/json", response.getheader("Content-Type"))
        mock_session.request.assert_called_once_with(
            "PUT",
            URL,
            headers={
                "Authorization": "Bearer token",
                "Content-Type": "application/json",
                "User-Agent": "test-client",
            },
            data='{"id": "a"}',
            timeout=None,
            proxy=None,
            allow_redirects=False,
        )

    async def test_user_agent_is_not_replaced(
        self, mock_session_klass: mock.Mock, mock_connector_klass: mock.Mock
    ) -> None:
        mock_session: MockSession = mock_session_klass.return_value
        async with AioTransport("test-client", close_grace_period_ms=0) as transport:
            await transport.request(RequestMethod.GET, URL, headers=HTTPHeaderDict({"User-Agent": "custom"}))
        self.assertEqual({"User-Agent": "custom"}, mock_session.request.call_args.kwargs["headers"])

    async def test_retries(self, mock_session_klass: mock.Mock, mock_connector_klass: mock.Mock) -> None:
        """Test that connection failures are retried, and reported once all attempts have failed."""
        mock_session: MockSession = mock_session_klass.return_value
        mock_session.request.side_effect = aiohttp.ClientConnectionError("connection refused")

        async with AioTransport("test-client", max_attempts=3, backoff_method=BackoffLinear(0)) as transport:
            with self.assertRaises(TransportError) as ctx:
                await transport.request(RequestMethod.GET, URL)

        cause = ctx.exception.caused_by
        self.assertIsInstance(cause, RetryError)
        self.assertEqual(3, len(cause.exceptions))
        self.assertEqual(3, mock_session.request.call_count)

    async def test_recovers_after_retry(self, mock_session_klass: mock.Mock, mock_connector_klass: mock.Mock) -> None:
        mock_session: MockSession = mock_session_klass.return_value
        mock_request_ctx = mock.AsyncMock()
        mock_request_ctx.__aenter__.return_value = _mock_response(status=200)
        mock_session.request.side_effect = [TimeoutError(), mock_request_ctx]

        async with AioTransport("test-client", backoff_method=BackoffLinear(0)) as transport:
            response = await transport.request(RequestMethod.GET, URL)

        self.assertEqual(200, response.status)
        self.assertEqual(2, mock_session.request.call_count)

    async def test_other_client_errors_are_not_retried(
        self, mock_session_klass: mock.Mock, mock_connector_klass: mock.Mock
    ) -> None:
        mock_session: MockSession = mock_session_klass.return_value
        error = aiohttp.ClientPayloadError("Response payload is not completed")
        mock_session.request.side_effect = error

        async with AioTransport("test-client", backoff_method=BackoffLinear(0)) as transport:
            with self.assertRaises(TransportError) as ctx:
                await transport.request(RequestMethod.GET, URL)

        self.assertIs(error, ctx.exception.caused_by)
        self.assertEqual(1, mock_session.request.call_count)

    async def test_close_without_open(self, mock_session_klass: mock.Mock, mock_connector_klass: mock.Mock) -> None:
        transport = AioTransport("test-client", close_grace_period_ms=0)
        with self.assertLogs("arm.aio.transport", level="WARNING"):
            await transport.close()
        self.assertFalse(transport.is_open)
        mock_session_klass.assert_not_called()

    async def test_properties(self, mock_session_klass: mock.Mock, mock_connector_klass: mock.Mock) -> None:
        transport = AioTransport("test-client", max_attempts=7)
        self.assertEqual("test-client", transport.user_agent)
        self.assertEqual(7, transport.max_attempts)


class TestAioTransportTimeout(unittest.IsolatedAsyncioTestCase):
    @parameterized.expand(
        [
            (1, None, ClientTimeout(total=1)),
            (1.5, None, ClientTimeout(total=1.5)),
            (4, 1, ClientTimeout(sock_connect=4, sock_read=1)),
        ]
    )
    @mock.patch("aiohttp.TCPConnector", new_callable=MockConnector.klass)
    @mock.patch("aiohttp.ClientSession", new_callable=MockSession.klass)
    async def test_timeout(
        self,
        connect_timeout: float,
        read_timeout: float | None,
        expected: ClientTimeout,
        mock_session_klass: mock.Mock,
        mock_connector_klass: mock.Mock,
    ) -> None:
        mock_session: MockSession = mock_session_klass.return_value
        request_timeout = connect_timeout if read_timeout is None else (connect_timeout, read_timeout)
        async with AioTransport("test-client", close_grace_period_ms=0) as transport:
            await transport.request(RequestMethod.GET, URL, request_timeout=request_timeout)
        self.assertEqual(expected, mock_session.request.call_args.kwargs["timeout"])
