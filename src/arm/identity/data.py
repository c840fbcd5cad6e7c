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

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

__all__ = ["AccessToken"]


def _utcnow() -> datetime:
    """Get the current UTC time.

    :return: The current UTC time.
    """
    return datetime.now(timezone.utc)


class AccessToken(BaseModel):
    """A bearer token produced by a credential provider."""

    model_config = ConfigDict(frozen=True)

    token: str = Field(repr=False)
    """The secret value of the token."""

    expires_on: Optional[datetime] = None
    """The time at which the token expires, or None if the token lifetime is unknown."""

    @property
    def ttl(self) -> int | None:
        """The time-to-live (TTL) of this access token in seconds, or None if the token lifetime is unknown.

        If the token is expired, the TTL will be 0.
        """
        if self.expires_on is None:
            return None
        ttl = self.expires_on - _utcnow()
        return max(round(ttl.total_seconds()), 0)

    @property
    def is_expired(self) -> bool:
        """Whether this access token has expired.

        If the token lifetime is unknown, this property is always False.
        """
        if (expiry := self.expires_on) is not None:
            return _utcnow() > expiry
        else:
            return False
