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
import contextlib
import logging
from abc import ABC, abstractmethod
from collections.abc import Iterator

from ..exceptions import RetryError

__all__ = [
    "BackoffExponential",
    "BackoffIncremental",
    "BackoffLinear",
    "BackoffMethod",
    "Retry",
    "RetryAttempt",
]


class BackoffMethod(ABC):
    """Abstract base class for backoff methods.

    Backoff methods are stateless, so one instance may be shared by any number of transports.
    """

    def __init__(self, backoff_factor: int | float, max_delay: int | float = -1) -> None:
        """
        :param backoff_factor: Scales the delay between attempts.
        :param max_delay: Upper bound for a single delay. Negative values disable the bound.
        """
        self._backoff_factor = backoff_factor
        self._max_delay = max_delay

    @abstractmethod
    def _calculate_backoff_time(self, attempt_number: int) -> int | float: ...

    def get_backoff_time(self, attempt_number: int) -> int | float:
        """Get the delay to wait after a failed attempt.

        :param attempt_number: The 1-based number of the attempt that failed.

        :returns: The delay in seconds.
        """
        t = self._calculate_backoff_time(attempt_number)
        return t if self._max_delay < 0 else min(t, self._max_delay)


class BackoffLinear(BackoffMethod):
    """Constant retry delay."""

    def _calculate_backoff_time(self, attempt_number: int) -> int | float:
        return self._backoff_factor


class BackoffIncremental(BackoffMethod):
    """Retry delay that grows linearly with the number of attempts."""

    def _calculate_backoff_time(self, attempt_number: int) -> int | float:
        return self._backoff_factor * attempt_number


class BackoffExponential(BackoffMethod):
    """Retry delay that doubles with every attempt."""

    def _calculate_backoff_time(self, attempt_number: int) -> int | float:
        return self._backoff_factor * (2**attempt_number)


class RetryAttempt:
    """A single attempt, handed out by iterating over a `Retry` object.

    Errors raised inside `suppress_errors()` mark the attempt as failed, and cause another attempt to be made unless the
    maximum number of attempts has been reached. An attempt without suppressed errors has succeeded.
    """

    def __init__(self, iterator: _RetryIterator, number: int) -> None:
        self.__iterator = iterator
        self.__number = number
        self.__exception: Exception | None = None

    @contextlib.contextmanager
    def suppress_errors(self, excs: type[Exception] | tuple[type[Exception], ...] = Exception) -> Iterator[None]:
        """Suppress errors raised during this attempt.

        :param excs: The exception types that are retryable. Other exceptions propagate immediately.
        """
        try:
            yield
        except excs as exc:
            self.set_exception(exc)

    def set_exception(self, exc: Exception) -> None:
        """Mark this attempt as failed.

        :param exc: The error that caused the failure.

        :raises RetryError: If this was the last allowed attempt.
        """
        self.__exception = exc
        self.__iterator.add_error(self, exc)

    @property
    def number(self) -> int:
        """The 1-based number of this attempt."""
        return self.__number

    @property
    def exception(self) -> Exception | None:
        """The error raised during this attempt, if any."""
        return self.__exception

    @property
    def succeeded(self) -> bool:
        return self.__exception is None

    @property
    def failed(self) -> bool:
        return self.__exception is not None

    def __str__(self) -> str:
        return f"Attempt #{self.__number}"


class _RetryIterator:
    def __init__(self, logger: logging.Logger, max_attempts: int, backoff_method: BackoffMethod) -> None:
        self.__logger = logger
        self.__max_attempts = max_attempts
        self.__backoff_method = backoff_method
        self.__current: RetryAttempt | None = None
        self.__errors: list[Exception] = []

    def add_error(self, attempt: RetryAttempt, error: Exception) -> None:
        self.__logger.error(f"{attempt} failed: {error}")
        self.__errors.append(error)
        if attempt.number >= self.__max_attempts:
            raise RetryError("Retry failed", self.__errors)

    def __aiter__(self) -> _RetryIterator:
        return self

    async def __anext__(self) -> RetryAttempt:
        if self.__current is None:
            self.__current = RetryAttempt(self, 1)
            return self.__current

        if self.__current.succeeded:
            raise StopAsyncIteration

        delay = self.__backoff_method.get_backoff_time(self.__current.number)
        self.__logger.debug(f"Waiting {delay}s before the next attempt")
        await asyncio.sleep(delay)
        self.__current = RetryAttempt(self, self.__current.number + 1)
        return self.__current


class Retry:
    """Retry configuration, iterated to make attempts.

    A single Retry object can be used for any number of requests, because it only holds configuration.

    Usage::
        retry = Retry(logger=logging.getLogger(__name__), max_attempts=3, backoff_method=BackoffLinear(1))
        async for attempt in retry:
            with attempt.suppress_errors(ConnectionError):
                return await send()
    """

    def __init__(
        self,
        logger: logging.Logger,
        max_attempts: int = 3,
        backoff_method: BackoffMethod = BackoffExponential(backoff_factor=2),
    ) -> None:
        """
        :param logger: Logger used to report failed attempts.
        :param max_attempts: Maximum number of attempts, including the first one.
        :param backoff_method: Backoff method to apply between attempts.
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be greater than 0")
        self.__logger = logger
        self.__max_attempts = max_attempts
        self.__backoff_method = backoff_method

    @property
    def max_attempts(self) -> int:
        return self.__max_attempts

    def __aiter__(self) -> _RetryIterator:
        return _RetryIterator(self.__logger, self.__max_attempts, self.__backoff_method)
