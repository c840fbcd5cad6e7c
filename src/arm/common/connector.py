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

import datetime
import functools
import json
import re
from collections.abc import Mapping
from enum import Enum
from inspect import isclass
from types import GenericAlias, NoneType, TracebackType
from typing import Any, TypeVar
from urllib.parse import parse_qsl, quote, urlencode, urljoin, urlsplit, urlunsplit
from uuid import UUID

from dateutil.parser import parse
from pydantic import BaseModel, ValidationError

from arm import logging

from .data import EmptyResponse, HTTPHeaderDict, HTTPResponse, RequestDescriptor, RequestMethod
from .exceptions import ClientTypeError, DecodeError, HttpResponseError
from .interfaces import IAuthorizer, ITransport

logger = logging.getLogger("connector")

__all__ = ["APIConnector"]

T = TypeVar("T")

_BODY_FRAME_METHODS = frozenset({RequestMethod.POST, RequestMethod.PUT, RequestMethod.PATCH, RequestMethod.DELETE})


def manage_transport(func):  # No type annotation to prevent hiding the signature of the decorated function.
    @functools.wraps(func)
    async def wrapper(self: APIConnector, *args: Any, **kwargs: Any) -> Any:
        # ITransport implementations are reentrant, so the transport can be opened here even if the caller already
        # holds it open.
        async with self:
            try:
                return await func(self, *args, **kwargs)
            except Exception:
                logger.debug("An error occurred while calling the API.", exc_info=True)
                raise

    return wrapper


class APIConnector:
    """Sends authenticated requests to one API endpoint, and classifies and decodes the responses.

    A connector performs exactly one network round trip per call. It does not retry; retries, if any, happen inside the
    transport. A fresh set of authorization headers is requested from the authorizer for every request.
    """

    def __init__(
        self,
        base_url: str,
        transport: ITransport,
        authorizer: IAuthorizer,
        additional_headers: Mapping[str, Any] | None = None,
    ) -> None:
        """
        :param base_url: The endpoint of the API.
        :param transport: The transport to use for sending requests.
        :param authorizer: The authorizer to use for authenticating requests.
        :param additional_headers: Additional headers to include in each request.
        """
        self._base_url = base_url.rstrip("/")
        self._transport = transport
        self._authorizer = authorizer
        self._additional_headers = dict(additional_headers or {})

    @property
    def base_url(self) -> str:
        """The base_url of the connected API."""
        return self._base_url + "/"

    @property
    def transport(self) -> ITransport:
        """The transport used to send requests."""
        return self._transport

    async def open(self) -> None:
        """Open the HTTP transport."""
        await self._transport.open()

    async def close(self) -> None:
        """Close the HTTP transport."""
        await self._transport.close()

    async def __aenter__(self) -> APIConnector:
        await self.open()
        return self

    async def __aexit__(
        self, exc_type: type[Exception] | None, exc_val: Exception | None, exc_tb: TracebackType | None
    ) -> None:
        await self.close()

    async def call_api(
        self,
        method: RequestMethod,
        resource_path: str,
        path_params: Mapping[str, Any] | None = None,
        query_params: Mapping[str, Any] | None = None,
        header_params: Mapping[str, Any] | None = None,
        body: object | None = None,
        response_types_map: Mapping[str, type[T]] | None = None,
        request_timeout: int | float | tuple[int | float, int | float] | None = None,
    ) -> T:
        """Call the API with the given parameters and deserialize the response.

        This is a convenience wrapper around `execute()` for requests that are not described by a RequestDescriptor.
        """
        descriptor = RequestDescriptor(
            method=method,
            path=resource_path,
            path_params=path_params or {},
            query_params=query_params or {},
            headers=header_params or {},
            body=body,
        )
        return await self.execute(descriptor, response_types_map, request_timeout=request_timeout)

    @manage_transport
    async def execute(
        self,
        descriptor: RequestDescriptor,
        response_types_map: Mapping[str, type[T]] | None = None,
        parse_error_code: bool = True,
        request_timeout: int | float | tuple[int | float, int | float] | None = None,
    ) -> T:
        """Send a single authenticated request and decode the response.

        Errors raised by `ITransport.request` are not handled by this method.

        :param descriptor: The request to send.
        :param response_types_map: Mapping of expected response status codes to response data types, e.g.
            `{"200": Model}`. The response is deserialized to the corresponding type. Any status code that is not in
            the mapping is an error.
        :param parse_error_code: Whether to read the structured service error code from an error response.
        :param request_timeout: Timeout setting for this request. If one number is provided, it will be the
            total request timeout. It can also be a pair (tuple) of (connection, read) timeouts.

        :return: The deserialized response, in the format determined by the response types map.

        :raise AuthenticationError: If an access token could not be acquired.
        :raise TransportError: If the transport could not complete the request.
        :raise HttpResponseError: If the status code is not in `response_types_map`.
        :raise DecodeError: If the body of an expected response could not be decoded.
        """
        request_url = self.resolve_url(descriptor)

        headers = await self._authorizer.get_default_headers()
        # Later layers replace earlier ones, instead of being combined with them.
        for layer in (self._additional_headers, descriptor.headers):
            for key, value in layer.items():
                headers.pop(key, None)
                headers[key] = str(value)

        body = None
        if descriptor.body is not None:
            body = json.dumps(self._sanitize_for_serialization(descriptor.body))
            headers.setdefault("Content-Type", "application/json")
        elif descriptor.method in _BODY_FRAME_METHODS:
            headers.pop("Content-Length", None)
            headers["Content-Length"] = "0"

        logger.debug(f"Making {descriptor.method} request to {request_url}")
        response = await self._transport.request(
            method=descriptor.method,
            url=request_url,
            headers=headers,
            body=body,
            request_timeout=request_timeout,
        )

        if response_types_map is None or str(response.status) not in response_types_map:
            raise self._classify_error(response, parse_error_code)

        return self._deserialize(response, response_types_map[str(response.status)])

    def resolve_url(self, descriptor: RequestDescriptor) -> str:
        """Resolve the full URL of a request.

        A descriptor for a first page is resolved from its path template, path parameters and query parameters. A
        continuation descriptor is resolved by joining its link against the base URL with the path cleared; the link
        replaces the original path and query entirely, except that missing persistent query parameters are added.

        :param descriptor: The request descriptor.

        :return: The full request URL.
        """
        if descriptor.is_continuation:
            scheme, netloc, _, _, _ = urlsplit(self._base_url)
            resource_url = urljoin(urlunsplit((scheme, netloc, "/", "", "")), descriptor.url)
            if descriptor.persistent_query:
                parts = urlsplit(resource_url)
                present = {key for key, _ in parse_qsl(parts.query, keep_blank_values=True)}
                missing = [(key, value) for key, value in descriptor.persistent_query.items() if key not in present]
                if missing:
                    query = "&".join(filter(None, [parts.query, urlencode(missing)]))
                    resource_url = urlunsplit(parts._replace(query=query))
            return resource_url

        resource_url = self._base_url + "/" + descriptor.path.lstrip("/")
        for key, value in descriptor.path_params.items():
            resource_url = resource_url.replace(f"{{{key}}}", quote(str(self._sanitize_for_serialization(value))))

        query = list(descriptor.persistent_query.items())
        query.extend(
            (key, self._format_query_value(value)) for key, value in descriptor.query_params.items() if value is not None
        )
        if query:
            resource_url += "?" + urlencode(query)
        return resource_url

    @classmethod
    def _format_query_value(cls, value: Any) -> str:
        value = cls._sanitize_for_serialization(value)
        if isinstance(value, bool):
            return "true" if value else "false"
        elif isinstance(value, (list, tuple)):
            return ",".join(cls._format_query_value(v) for v in value)
        return str(value)

    @staticmethod
    def _parse_error_code(response: HTTPResponse, content: object) -> str | None:
        if (error_code := response.getheader("x-ms-error-code")) is not None:
            return error_code
        if isinstance(content, Mapping):
            error = content.get("error")
            if isinstance(error, Mapping) and isinstance(error.get("code"), str):
                return error["code"]
            if isinstance(content.get("code"), str):
                return content["code"]
        return None

    @classmethod
    def _classify_error(cls, response: HTTPResponse, parse_error_code: bool) -> HttpResponseError:
        """Build the error for a response whose status code the operation does not expect.

        Only the status code decides that a response is an error. The body is decoded on a best effort basis, to carry
        it on the error and, optionally, to read the structured error code.
        """
        try:
            content = cls._decode_text(response)
        except DecodeError:
            content = response.data.decode("utf-8", errors="replace")
        if content:
            try:
                content = json.loads(content)
            except ValueError:
                pass  # Not JSON, keep the text.

        error_code = cls._parse_error_code(response, content) if parse_error_code else None
        error_type = HttpResponseError.from_status_code(response.status)
        logger.debug(f"Unexpected response status {response.status}, error code {error_code!r}")
        return error_type(
            status=response.status,
            reason=response.reason,
            error_code=error_code,
            content=content or None,
            headers=response.headers,
        )

    @classmethod
    def _sanitize_for_serialization(cls, obj: Any | None) -> Any | None:
        """Builds a JSON object for serialization.

        Enums are replaced by their values, dates and datetimes by ISO 8601 strings, UUIDs by strings, and pydantic
        models by their wire representation. Lists, tuples and dicts are sanitized recursively.

        :param obj: The data to serialize.

        :return: The serialized form of data.
        """
        if obj is None:
            return None
        if isinstance(obj, Enum):
            return cls._sanitize_for_serialization(obj.value)
        elif isinstance(obj, (str, int, float, bool)):
            return obj
        elif isinstance(obj, (datetime.date, datetime.datetime)):
            return obj.isoformat()
        elif isinstance(obj, UUID):
            return str(obj)
        elif isinstance(obj, list):
            return [cls._sanitize_for_serialization(sub_obj) for sub_obj in obj]
        elif isinstance(obj, tuple):
            return tuple(cls._sanitize_for_serialization(sub_obj) for sub_obj in obj)

        if isinstance(obj, Mapping):
            obj_dict = obj
        elif isinstance(obj, BaseModel):
            obj_dict = obj.model_dump(mode="json", by_alias=True, exclude_unset=True)
        else:
            raise ClientTypeError(
                msg=f"{type(obj)} could not be serialized.",
                valid_classes=(NoneType, str, int, float, bool, list, tuple, dict, BaseModel),
            )

        return {str(key): cls._sanitize_for_serialization(val) for key, val in obj_dict.items()}

    @staticmethod
    def _decode_text(response: HTTPResponse) -> str:
        match = None
        content_type = response.getheader("content-type")
        if content_type is not None:
            match = re.search(r"charset=([a-zA-Z\-\d]+)[\s;]?", content_type)
        encoding = match.group(1) if match else "utf-8"
        try:
            return response.data.decode(encoding)
        except (UnicodeDecodeError, LookupError) as e:
            raise DecodeError("Could not decode response body", caused_by=e)

    @classmethod
    def _deserialize(cls, response: HTTPResponse, response_type: type[T] | None) -> T:
        """Deserialize the body of an expected response.

        :param response: The response.
        :param response_type: Target type. Can be HTTPResponse, EmptyResponse, bytes, a primitive, a pydantic model,
            list[T] or dict[str, T]. None returns the decoded JSON, or text if the body is not JSON.

        :return: The deserialized object.

        :raise DecodeError: If the body does not match the target type.
        """
        if response_type is not None and isclass(response_type) and issubclass(response_type, HTTPResponse):
            return response
        if response_type is bytes:
            return response.data

        text = cls._decode_text(response)

        if response_type is EmptyResponse:
            if text != "":
                raise DecodeError(f"Unexpected content with '{response.status}' status code")
            return EmptyResponse(status=response.status, reason=response.reason, headers=response.getheaders())

        if response_type is str:
            return text

        try:
            data = json.loads(text)
        except ValueError as e:
            if response_type is None:
                return text
            raise DecodeError("Response body is not valid JSON", caused_by=e)

        if response_type is None:
            return data

        try:
            return cls.__deserialize(data, response_type)
        except DecodeError:
            raise
        except (ValidationError, TypeError, ValueError) as e:
            raise DecodeError("Could not deserialize result", caused_by=e)

    @classmethod
    def __deserialize(cls, data: Any, response_type: type[T]) -> T:
        if data is None:
            if isclass(response_type) and issubclass(response_type, BaseModel):
                raise DecodeError(f"Expected an object for {response_type.__name__}, got null")
            return None

        if isinstance(response_type, GenericAlias):  # list[T], dict[str, T].
            return cls.__deserialize_generic(data, response_type)
        elif response_type is datetime.datetime:
            return cls.__deserialize_datetime(data)
        elif response_type is datetime.date:
            return cls.__deserialize_datetime(data).date()
        elif response_type in {int, float, bool, dict, list}:
            if not isinstance(data, response_type):
                raise DecodeError(f"Expected {response_type.__name__}, got {type(data).__name__}")
            return data
        elif isclass(response_type) and issubclass(response_type, BaseModel):
            return response_type.model_validate(data)
        else:
            raise DecodeError(f"Could not parse content as {response_type!r}.")

    @staticmethod
    def __deserialize_datetime(string: str) -> datetime.datetime:
        try:
            return parse(string)
        except (ValueError, OverflowError, TypeError) as e:
            raise DecodeError("Could not deserialize datetime", caused_by=e)

    @classmethod
    def __deserialize_generic(cls, data: Any, klass: GenericAlias) -> list | dict[str, Any]:
        if klass.__origin__ is list and isinstance(data, list):
            (inner_klass,) = klass.__args__
            return [cls.__deserialize(sub_data, inner_klass) for sub_data in data]

        elif klass.__origin__ is dict and klass.__args__[0] is str and isinstance(data, dict):
            _, value_klass = klass.__args__
            return {str(key): cls.__deserialize(value, value_klass) for key, value in data.items()}

        else:
            raise DecodeError(f"Could not deserialize '{type(data).__name__}' as '{klass}'.")
