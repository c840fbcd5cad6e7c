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

from collections.abc import Sequence

from arm import logging
from arm.common.data import HTTPHeaderDict
from arm.common.exceptions import AuthenticationError
from arm.common.interfaces import IAuthorizer, ITokenCredential

__all__ = ["BearerTokenAuthorizer"]

logger = logging.getLogger("identity")


class BearerTokenAuthorizer(IAuthorizer):
    """An authorizer that acquires a bearer token from a credential provider for every request.

    Tokens are never cached by the authorizer. Failures of the credential provider are raised as
    `AuthenticationError` and are not retried.
    """

    def __init__(self, credential: ITokenCredential, scopes: Sequence[str]) -> None:
        """
        :param credential: The credential provider.
        :param scopes: The scopes to request. They are joined with single spaces into one scope argument.
        """
        if len(scopes) == 0:
            raise ValueError("At least one scope must be provided")
        self._credential = credential
        self._scopes = tuple(scopes)

    @property
    def scopes(self) -> tuple[str, ...]:
        return self._scopes

    async def get_default_headers(self) -> HTTPHeaderDict:
        scope = " ".join(self._scopes)
        logger.debug(f"Acquiring access token for {scope!r}")
        try:
            token = await self._credential.get_token(scope)
        except AuthenticationError:
            raise
        except Exception as e:
            raise AuthenticationError("Could not acquire an access token", caused_by=e) from e
        return HTTPHeaderDict({"Authorization": f"Bearer {token.token}"})
