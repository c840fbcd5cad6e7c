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

import asyncio
from types import TracebackType

import aiohttp
from aiohttp.client_exceptions import ClientError
from aiohttp.typedefs import StrOrURL

from arm.common.data import HTTPHeaderDict, HTTPResponse, RequestMethod
from arm.common.exceptions import TransportError
from arm.common.interfaces import ITransport
from arm.common.utils import BackoffIncremental, BackoffMethod, Retry
from arm.logging import getLogger

from ._helpers import Session, SessionConfig

__all__ = ["AioTransport"]

logger = getLogger("aio.transport")

_Timeout = int | float | tuple[int | float, int | float] | None


def _client_timeout(request_timeout: _Timeout) -> aiohttp.ClientTimeout | None:
    match request_timeout:
        case int() | float():
            return aiohttp.ClientTimeout(total=request_timeout)
        case (connect, read):
            return aiohttp.ClientTimeout(sock_connect=connect, sock_read=read)
        case _:
            return None


class AioTransport(ITransport):
    """The default transport pipeline, built on aiohttp.

    A request whose connection fails is sent again, up to `max_attempts` times in total, with a backoff between
    attempts. Any response that is received is returned as is; the status code is classified by the caller.

    The transport may be opened any number of times, by any number of clients. The session is created on the first
    open and closed on the matching last close.
    """

    def __init__(
        self,
        user_agent: str,
        max_attempts: int = 3,
        backoff_method: BackoffMethod = BackoffIncremental(2),
        num_pools: int = 4,
        verify_ssl: bool = True,
        proxy: StrOrURL | None = None,
        close_grace_period_ms: int = 250,
    ):
        """
        :param user_agent: The `User-Agent` of requests that do not set one.
        :param max_attempts: Total number of attempts for a request whose connection fails.
        :param backoff_method: The delay between attempts.
        :param num_pools: Maximum number of simultaneous connections.
        :param verify_ssl: Verify SSL certificates. Only disable this against a local test endpoint.
        :param proxy: Proxy server to use for requests.
        :param close_grace_period_ms: Time to wait for connections to shut down after the session is closed.
        """
        self.__config = SessionConfig(
            user_agent=user_agent,
            num_pools=num_pools,
            verify_ssl=verify_ssl,
            retry=Retry(logger=logger, max_attempts=max_attempts, backoff_method=backoff_method),
            proxy=proxy,
            close_grace_period_ms=close_grace_period_ms,
        )
        self.__session: Session | None = None
        self.__handles = 0
        self.__lock = asyncio.Lock()

    @property
    def user_agent(self) -> str:
        return self.__config.user_agent

    @property
    def max_attempts(self) -> int:
        return self.__config.retry.max_attempts

    @property
    def is_open(self) -> bool:
        return self.__session is not None

    async def open(self) -> None:
        async with self.__lock:
            if self.__session is None:
                self.__session = self.__config.create_session()
                logger.debug("Opened new aiohttp session")
            self.__handles += 1

    async def close(self) -> None:
        async with self.__lock:
            if self.__handles == 0:
                logger.warning("Transport closed more times than it was opened")
                return
            self.__handles -= 1
            if self.__handles == 0 and self.__session is not None:
                session, self.__session = self.__session, None
                await session.close()
                logger.debug("Closed aiohttp session")

    async def __aenter__(self) -> AioTransport:
        await self.open()
        return self

    async def __aexit__(
        self, exc_type: type[Exception] | None, exc_val: Exception | None, exc_tb: TracebackType | None
    ) -> None:
        await self.close()

    async def request(
        self,
        method: RequestMethod,
        url: str,
        headers: HTTPHeaderDict | None = None,
        body: str | bytes | None = None,
        request_timeout: _Timeout = None,
    ) -> HTTPResponse:
        session = self.__session
        if session is None:
            raise TransportError(
                "Cannot make a request before the transport has been opened, or after it has been closed."
            )

        headers = HTTPHeaderDict(headers or {})
        headers.setdefault("User-Agent", self.__config.user_agent)

        try:
            response = await session.send(str(method), url, headers, body, _client_timeout(request_timeout))
        except (ClientError, TimeoutError) as e:
            raise TransportError(msg="Could not complete HTTP request", caused_by=e)

        request_id = response.getheader("x-ms-request-id")
        logger.debug(f"{method} {url} -> {response.status} (x-ms-request-id: {request_id})")
        return response
