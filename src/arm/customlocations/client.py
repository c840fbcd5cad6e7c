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

from typing import Any

from arm.common.client import Client
from arm.common.data import EmptyResponse, RequestDescriptor, RequestMethod
from arm.common.pager import ItemIterator

from .data import (
    CustomLocation,
    CustomLocationListResult,
    CustomLocationOperation,
    CustomLocationOperationsList,
    CustomLocationProperties,
    EnabledResourceType,
    EnabledResourceTypesListResult,
    Identity,
    PatchableCustomLocations,
)

__all__ = ["API_VERSION", "CustomLocationsClient"]

API_VERSION = "2021-08-15"

_PROVIDER = "/providers/Microsoft.ExtendedLocation"
_SUBSCRIPTION = "/subscriptions/{subscriptionId}"
_RESOURCE_GROUP = _SUBSCRIPTION + "/resourceGroups/{resourceGroupName}"
_CUSTOM_LOCATION = _RESOURCE_GROUP + _PROVIDER + "/customLocations/{resourceName}"


class CustomLocationsClient:
    """Client for the custom locations resource provider (`Microsoft.ExtendedLocation`)."""

    def __init__(self, client: Client) -> None:
        """
        :param client: The shared client to send requests with.
        """
        self._client = client

    @staticmethod
    def _descriptor(method: RequestMethod, path: str, **path_params: Any) -> RequestDescriptor:
        return RequestDescriptor(
            method=method,
            path=path,
            path_params=path_params,
            persistent_query={"api-version": API_VERSION},
        )

    def list_operations(self) -> ItemIterator[CustomLocationOperation]:
        """List the operations supported by the resource provider."""
        descriptor = self._descriptor(RequestMethod.GET, _PROVIDER + "/operations")
        return self._client.request(descriptor).items(CustomLocationOperationsList)

    def list_by_subscription(self, subscription_id: str) -> ItemIterator[CustomLocation]:
        """List the custom locations in a subscription.

        :param subscription_id: The ID of the subscription.

        :return: An iterator over the custom locations, across all pages.
        """
        descriptor = self._descriptor(
            RequestMethod.GET, _SUBSCRIPTION + _PROVIDER + "/customLocations", subscriptionId=subscription_id
        )
        return self._client.request(descriptor).items(CustomLocationListResult)

    def list_by_resource_group(self, subscription_id: str, resource_group_name: str) -> ItemIterator[CustomLocation]:
        """List the custom locations in a resource group.

        :param subscription_id: The ID of the subscription.
        :param resource_group_name: The name of the resource group.

        :return: An iterator over the custom locations, across all pages.
        """
        descriptor = self._descriptor(
            RequestMethod.GET,
            _RESOURCE_GROUP + _PROVIDER + "/customLocations",
            subscriptionId=subscription_id,
            resourceGroupName=resource_group_name,
        )
        return self._client.request(descriptor).items(CustomLocationListResult)

    async def get(self, subscription_id: str, resource_group_name: str, resource_name: str) -> CustomLocation:
        """Get a custom location.

        :param subscription_id: The ID of the subscription.
        :param resource_group_name: The name of the resource group.
        :param resource_name: The name of the custom location.

        :return: The custom location.

        :raise NotFoundError: If the custom location does not exist.
        """
        descriptor = self._descriptor(
            RequestMethod.GET,
            _CUSTOM_LOCATION,
            subscriptionId=subscription_id,
            resourceGroupName=resource_group_name,
            resourceName=resource_name,
        )
        return await self._client.request(descriptor, {"200": CustomLocation}).send()

    async def create_or_update(
        self, subscription_id: str, resource_group_name: str, resource_name: str, parameters: CustomLocation
    ) -> CustomLocation:
        """Create a custom location, or replace an existing one.

        :param subscription_id: The ID of the subscription.
        :param resource_group_name: The name of the resource group.
        :param resource_name: The name of the custom location.
        :param parameters: The custom location to create.

        :return: The custom location, as accepted by the service.
        """
        descriptor = self._descriptor(
            RequestMethod.PUT,
            _CUSTOM_LOCATION,
            subscriptionId=subscription_id,
            resourceGroupName=resource_group_name,
            resourceName=resource_name,
        ).with_body(parameters)
        return await self._client.request(descriptor, {"200": CustomLocation, "201": CustomLocation}).send()

    async def update(
        self,
        subscription_id: str,
        resource_group_name: str,
        resource_name: str,
        tags: dict[str, str] | None = None,
        identity: Identity | None = None,
        properties: CustomLocationProperties | None = None,
    ) -> CustomLocation:
        """Update the tags, identity or properties of a custom location. Fields that are None are left unchanged."""
        patch = PatchableCustomLocations.model_validate(
            {
                key: value
                for key, value in (("tags", tags), ("identity", identity), ("properties", properties))
                if value is not None
            }
        )
        descriptor = self._descriptor(
            RequestMethod.PATCH,
            _CUSTOM_LOCATION,
            subscriptionId=subscription_id,
            resourceGroupName=resource_group_name,
            resourceName=resource_name,
        ).with_body(patch)
        return await self._client.request(descriptor, {"200": CustomLocation}).send()

    async def delete(self, subscription_id: str, resource_group_name: str, resource_name: str) -> EmptyResponse:
        """Delete a custom location.

        :return: The response, which is 202 if the deletion is still in progress.
        """
        descriptor = self._descriptor(
            RequestMethod.DELETE,
            _CUSTOM_LOCATION,
            subscriptionId=subscription_id,
            resourceGroupName=resource_group_name,
            resourceName=resource_name,
        )
        return await self._client.request(
            descriptor, {"200": EmptyResponse, "202": EmptyResponse, "204": EmptyResponse}
        ).send()

    def list_enabled_resource_types(
        self, subscription_id: str, resource_group_name: str, resource_name: str
    ) -> ItemIterator[EnabledResourceType]:
        """List the resource types that are enabled on a custom location."""
        descriptor = self._descriptor(
            RequestMethod.GET,
            _CUSTOM_LOCATION + "/enabledResourceTypes",
            subscriptionId=subscription_id,
            resourceGroupName=resource_group_name,
            resourceName=resource_name,
        )
        return self._client.request(descriptor).items(EnabledResourceTypesListResult)
