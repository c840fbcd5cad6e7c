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
from dataclasses import dataclass

import aiohttp
from aiohttp.client_exceptions import ClientConnectionError
from aiohttp.typedefs import StrOrURL

from arm.common.data import HTTPHeaderDict, HTTPResponse
from arm.common.exceptions import RetryError, TransportError
from arm.common.utils import Retry

__all__ = ["Session", "SessionConfig"]

# Failures where the request never reached the service, so sending it again cannot apply it twice.
RETRYABLE_ERRORS = (ClientConnectionError, asyncio.TimeoutError)


@dataclass(frozen=True, kw_only=True)
class SessionConfig:
    """Everything needed to create a session. Held by the transport for its whole lifetime."""

    user_agent: str
    num_pools: int
    verify_ssl: bool
    retry: Retry
    proxy: StrOrURL | None
    close_grace_period_ms: int

    def create_session(self) -> Session:
        connector = aiohttp.TCPConnector(ssl=None if self.verify_ssl else False, limit=self.num_pools)
        session = aiohttp.ClientSession(connector=connector, skip_auto_headers=["Accept", "Accept-Encoding"])
        return Session(session, self)


class Session:
    """One aiohttp session, created when the transport is first opened and discarded when it is last closed."""

    def __init__(self, session: aiohttp.ClientSession, config: SessionConfig) -> None:
        self.__session: aiohttp.ClientSession | None = session
        self.__config = config

    @property
    def closed(self) -> bool:
        return self.__session is None

    async def close(self) -> None:
        session, self.__session = self.__session, None
        if session is None:
            return
        await session.close()

        # aiohttp needs a moment to shut down SSL connections.
        # https://docs.aiohttp.org/en/stable/client_advanced.html#graceful-shutdown
        await asyncio.sleep(self.__config.close_grace_period_ms / 1000)

    async def send(
        self,
        method: str,
        url: str,
        headers: HTTPHeaderDict,
        body: str | bytes | None,
        timeout: aiohttp.ClientTimeout | None,
    ) -> HTTPResponse:
        """Send a request, sending it again if the connection could not be established.

        Redirects are not followed, because the authorization header must not be sent to another host.

        :return: The response, with the body read in full.

        :raise TransportError: If every attempt failed to connect, or the session has been closed.
        """
        if self.__session is None:
            raise TransportError("Cannot make a request after the transport has been closed.")

        try:
            async for attempt in self.__config.retry:
                with attempt.suppress_errors(RETRYABLE_ERRORS):
                    return await self.__send_once(method, url, dict(headers), body, timeout)
        except RetryError as error:
            raise TransportError("Reached maximum number of retries", caused_by=error).with_traceback(
                error.__traceback__
            )
        raise TransportError("Request was not attempted")

    async def __send_once(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        body: str | bytes | None,
        timeout: aiohttp.ClientTimeout | None,
    ) -> HTTPResponse:
        async with self.__session.request(
            method,
            url,
            headers=headers,
            data=body,
            timeout=timeout,
            proxy=self.__config.proxy,
            allow_redirects=False,
        ) as resp:
            return HTTPResponse(
                status=resp.status,
                data=await resp.read(),
                reason=resp.reason,
                headers=HTTPHeaderDict(list(resp.headers.items())),
            )
