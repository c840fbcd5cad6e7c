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

import copy
import dataclasses
import enum
from collections.abc import ItemsView, Iterator, KeysView, Mapping, MutableMapping, Sequence, ValuesView
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

__all__ = [
    "ArmModel",
    "EmptyResponse",
    "HTTPHeaderDict",
    "HTTPResponse",
    "PageModel",
    "RequestDescriptor",
    "RequestMethod",
]


class RequestMethod(str, enum.Enum):
    """HTTP request method."""

    GET = "GET"
    """HTTP [`GET`](https://developer.mozilla.org/en-US/docs/Web/HTTP/Methods/GET)"""

    HEAD = "HEAD"
    """HTTP [`HEAD`](https://developer.mozilla.org/en-US/docs/Web/HTTP/Methods/HEAD)"""

    POST = "POST"
    """HTTP [`POST`](https://developer.mozilla.org/en-US/docs/Web/HTTP/Methods/POST)"""

    PUT = "PUT"
    """HTTP [`PUT`](https://developer.mozilla.org/en-US/docs/Web/HTTP/Methods/PUT)"""

    DELETE = "DELETE"
    """HTTP [`DELETE`](https://developer.mozilla.org/en-US/docs/Web/HTTP/Methods/DELETE)"""

    OPTIONS = "OPTIONS"
    """HTTP [`OPTIONS`](https://developer.mozilla.org/en-US/docs/Web/HTTP/Methods/OPTIONS)"""

    PATCH = "PATCH"
    """HTTP [`PATCH`](https://developer.mozilla.org/en-US/docs/Web/HTTP/Methods/PATCH)"""

    def __str__(self) -> str:
        return self.value


class HTTPHeaderDict(MutableMapping[str, str]):
    def __init__(self, seq: Mapping[str, str] | Sequence[tuple[str, str]] | None = None, **kwargs: str) -> None:
        self.__values: dict[str, str] = {}
        self.update(seq, **kwargs)

    def update(self, seq: Mapping[str, str] | Sequence[tuple[str, str]] | None = None, **kwargs: str) -> None:
        if isinstance(seq, Mapping):
            self.__update_from_mapping(seq)
        elif isinstance(seq, Sequence):
            self.__update_from_sequence(seq)

        self.__update_from_mapping(kwargs)

    def __update_from_mapping(self, mapping: Mapping[str, str]) -> None:
        for key, value in mapping.items():
            self.__setitem__(key, value)

    def __update_from_sequence(self, seq: Sequence[tuple[str, str]]) -> None:
        for key, value in seq:
            self.__setitem__(key, value)

    def __setitem__(self, key: str, value: str) -> None:
        lookup = key.title()
        if lookup in self.__values and lookup != "Set-Cookie":
            # RFC 7230 section 3.2.2: repeated fields are combined into one comma-separated value, in order.
            # Set-Cookie cannot be combined and is handled as a special case.
            # https://www.rfc-editor.org/rfc/rfc7230#section-3.2.2
            self.__values[lookup] += "," + value
        else:
            self.__values[lookup] = value

    def __delitem__(self, key: str) -> None:
        del self.__values[key.title()]

    def __getitem__(self, key: str) -> str:
        return self.__values[key.title()]

    def __len__(self) -> int:
        return len(self.__values)

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys())

    def __contains__(self, item: str) -> bool:
        return item.title() in self.__values

    def __repr__(self) -> str:
        repr_data = {}
        for key, value in self.items():
            if key in ("Authorization", "Proxy-Authorization", "Cookie", "Set-Cookie"):
                # Do not expose sensitive information.
                value = "*****"
            repr_data[key] = value

        return f"{self.__class__.__name__}({repr_data!r})"

    def items(self) -> ItemsView[str, str]:
        return ItemsView(self)

    def keys(self) -> KeysView[str]:
        return KeysView(self.__values)

    def values(self) -> ValuesView[str]:
        return ValuesView(self.__values)

    def copy(self) -> HTTPHeaderDict:
        return copy.deepcopy(self)


@dataclass(frozen=True, kw_only=True)
class EmptyResponse:
    status: int
    reason: str | None = None
    headers: HTTPHeaderDict = field(default_factory=HTTPHeaderDict)

    def getheaders(self) -> HTTPHeaderDict:
        return self.headers.copy()

    def getheader(self, key: str, default: str | None = None) -> str:
        return self.headers.get(key, default)


@dataclass(frozen=True, kw_only=True)
class HTTPResponse(EmptyResponse):
    data: bytes


@dataclass(frozen=True, kw_only=True)
class RequestDescriptor:
    """The method, target and body of a single HTTP request, prior to authentication.

    Descriptors are plain records. Operations differ only in the data they put here, and derived descriptors are created
    with `dataclasses.replace` rather than by mutating an existing descriptor.
    """

    method: RequestMethod
    """HTTP request method."""

    path: str = ""
    """Resource path template, relative to the client endpoint, e.g. `/subscriptions/{subscriptionId}/...`."""

    path_params: Mapping[str, Any] = field(default_factory=dict)
    """Values that replace `{name}` placeholders in the path template."""

    query_params: Mapping[str, Any] = field(default_factory=dict)
    """Optional query parameters supplied by the caller. Parameters with a value of None are omitted."""

    persistent_query: Mapping[str, str] = field(default_factory=dict)
    """Query parameters that must be present on every request of the operation, such as `api-version`."""

    headers: Mapping[str, str] = field(default_factory=dict)
    """Operation specific request headers."""

    body: object | None = None
    """JSON body, as a pydantic model or JSON-compatible object."""

    url: str | None = None
    """A server supplied link that replaces the path and query of the request, used for continuation pages."""

    @property
    def is_continuation(self) -> bool:
        """Whether this descriptor targets a server supplied link."""
        return self.url is not None

    def with_query(self, **params: Any) -> RequestDescriptor:
        """Create a copy of this descriptor with additional query parameters.

        :param params: The query parameters to set. A value of None removes the parameter.

        :return: The new descriptor.
        """
        query = {**self.query_params, **params}
        return dataclasses.replace(self, query_params={k: v for k, v in query.items() if v is not None})

    def with_headers(self, **headers: str) -> RequestDescriptor:
        """Create a copy of this descriptor with additional request headers."""
        return dataclasses.replace(self, headers={**self.headers, **headers})

    def with_body(self, body: object | None) -> RequestDescriptor:
        """Create a copy of this descriptor with a different JSON body."""
        return dataclasses.replace(self, body=body)

    def continue_at(self, link: str) -> RequestDescriptor:
        """Create the descriptor for a continuation page.

        The continuation link fully replaces the path and query of the original request. Query parameters and the body
        supplied for the first page are not sent again, because the link is expected to be self-sufficient.

        :param link: The continuation link supplied by the server, relative or absolute.

        :return: The continuation descriptor.
        """
        return dataclasses.replace(self, url=link, path_params={}, query_params={}, body=None)


class ArmModel(BaseModel):
    """Base class for wire models.

    Fields use snake_case names in Python and the service's camelCase names on the wire. Unknown fields are retained,
    so that a model can be re-encoded without losing information.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    def to_wire(self) -> dict[str, Any]:
        """Encode the model as it was received, using wire names and omitting fields that were never set.

        Values are re-encoded from their decoded form, so the text may differ from the received body where the decoded
        value has more than one wire form: datetimes with a UTC offset are encoded with a `Z` suffix, and a page `value`
        of null is encoded as an empty list.
        """
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)


_T = TypeVar("_T")


class PageModel(ArmModel, Generic[_T]):
    """One page of a list response.

    The items are in `value`, and `next_link` is the continuation cursor used to fetch the next page. A missing or empty
    cursor means that this is the last page.

    A `value` of null is read as an empty page, and is encoded as `[]` by `to_wire()`.
    """

    value: list[_T] = Field(default_factory=list)
    """The items in the page."""

    next_link: str | None = Field(default=None, alias="nextLink")
    """The link to the next page, if any."""

    @field_validator("value", mode="before")
    @classmethod
    def _null_as_empty(cls, v: Any) -> Any:
        return [] if v is None else v

    def continuation(self) -> str | None:
        """Get the continuation cursor of this page, or None if this is the last page."""
        return self.next_link or None

    def items(self) -> list[_T]:
        """Get the items in this page."""
        return list(self.value)
