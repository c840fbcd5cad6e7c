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

import os
from datetime import datetime, timezone
from pathlib import Path

import dotenv
from dateutil.parser import parse

from arm import logging
from arm.common.exceptions import AuthenticationError
from arm.common.interfaces import ITokenCredential

from .data import AccessToken

__all__ = [
    "EnvironmentTokenCredential",
    "StaticTokenCredential",
]

logger = logging.getLogger("identity")

DEFAULT_TOKEN_VARIABLE = "ARM_ACCESS_TOKEN"
DEFAULT_EXPIRY_VARIABLE = "ARM_ACCESS_TOKEN_EXPIRES_ON"


class StaticTokenCredential(ITokenCredential):
    """A credential that always returns the same, previously acquired, access token.

    The token is returned for any scopes. Once the token has expired, every call fails with `AuthenticationError`.
    """

    def __init__(self, token: str | AccessToken, expires_on: datetime | None = None) -> None:
        """
        :param token: The secret value of the token, or an AccessToken.
        :param expires_on: The expiry time of the token. Ignored if `token` is an AccessToken.
        """
        if isinstance(token, AccessToken):
            self.__token = token
        else:
            self.__token = AccessToken(token=token, expires_on=expires_on)

    async def get_token(self, scopes: str) -> AccessToken:
        if self.__token.is_expired:
            raise AuthenticationError(f"The access token expired at {self.__token.expires_on.isoformat()}")
        return self.__token


class EnvironmentTokenCredential(ITokenCredential):
    """A credential that reads an access token from the environment.

    The token is read on every call, so that an external process may rotate it. Process environment variables take
    precedence over values in the optional `.env` file.
    """

    def __init__(
        self,
        variable: str = DEFAULT_TOKEN_VARIABLE,
        expiry_variable: str = DEFAULT_EXPIRY_VARIABLE,
        env_file: str | os.PathLike | None = None,
    ) -> None:
        """
        :param variable: Name of the variable that holds the token secret.
        :param expiry_variable: Name of the variable that holds the token expiry, as an ISO 8601 timestamp or a unix
            timestamp. The variable is optional.
        :param env_file: Optional path to a `.env` file to read variables from.
        """
        self._variable = variable
        self._expiry_variable = expiry_variable
        self._env_file = Path(env_file) if env_file is not None else None

    def _read(self, key: str) -> str | None:
        if (value := os.environ.get(key)) is not None:
            return value
        if self._env_file is not None and self._env_file.is_file():
            return dotenv.dotenv_values(self._env_file, encoding="utf-8").get(key)
        return None

    @staticmethod
    def _parse_expiry(value: str) -> datetime:
        try:
            return datetime.fromtimestamp(float(value), tz=timezone.utc)
        except ValueError:
            pass
        expires_on = parse(value)
        if expires_on.tzinfo is None:
            expires_on = expires_on.replace(tzinfo=timezone.utc)
        return expires_on

    async def get_token(self, scopes: str) -> AccessToken:
        logger.debug(f"Reading access token from {self._variable}")
        secret = self._read(self._variable)
        if not secret:
            raise AuthenticationError(f"Environment variable {self._variable} is not set")

        expires_on = None
        if raw_expiry := self._read(self._expiry_variable):
            try:
                expires_on = self._parse_expiry(raw_expiry)
            except (ValueError, OverflowError) as e:
                raise AuthenticationError(f"Invalid token expiry in {self._expiry_variable}", caused_by=e)

        token = AccessToken(token=secret, expires_on=expires_on)
        if token.is_expired:
            raise AuthenticationError(f"The access token in {self._variable} has expired")
        return token
