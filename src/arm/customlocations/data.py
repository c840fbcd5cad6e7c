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

import enum
from datetime import datetime
from typing import Optional

from pydantic import Field

from arm.common.data import ArmModel, PageModel

__all__ = [
    "CustomLocation",
    "CustomLocationListResult",
    "CustomLocationOperation",
    "CustomLocationOperationsList",
    "CustomLocationProperties",
    "EnabledResourceType",
    "EnabledResourceTypeProperties",
    "EnabledResourceTypesListResult",
    "HostType",
    "Identity",
    "PatchableCustomLocations",
]


class HostType(str, enum.Enum):
    KUBERNETES = "Kubernetes"


class ResourceIdentityType(str, enum.Enum):
    SYSTEM_ASSIGNED = "SystemAssigned"
    NONE = "None"


class SystemData(ArmModel):
    """Metadata pertaining to creation and last modification of the resource."""

    created_by: Optional[str] = Field(default=None, alias="createdBy")
    created_by_type: Optional[str] = Field(default=None, alias="createdByType")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    last_modified_by: Optional[str] = Field(default=None, alias="lastModifiedBy")
    last_modified_by_type: Optional[str] = Field(default=None, alias="lastModifiedByType")
    last_modified_at: Optional[datetime] = Field(default=None, alias="lastModifiedAt")


class Identity(ArmModel):
    """Identity for the resource."""

    principal_id: Optional[str] = Field(default=None, alias="principalId")
    tenant_id: Optional[str] = Field(default=None, alias="tenantId")
    type: Optional[ResourceIdentityType] = None


class Authentication(ArmModel):
    """Credentials used by the custom location to access the cluster."""

    type: Optional[str] = None
    value: Optional[str] = Field(default=None, repr=False)


class CustomLocationProperties(ArmModel):
    authentication: Optional[Authentication] = None
    cluster_extension_ids: list[str] = Field(default_factory=list, alias="clusterExtensionIds")
    display_name: Optional[str] = Field(default=None, alias="displayName")
    host_resource_id: Optional[str] = Field(default=None, alias="hostResourceId")
    host_type: Optional[HostType] = Field(default=None, alias="hostType")
    namespace: Optional[str] = None
    provisioning_state: Optional[str] = Field(default=None, alias="provisioningState")


class CustomLocation(ArmModel):
    """A custom location, which maps a namespace of a Kubernetes cluster into a resource group."""

    id: Optional[str] = None
    name: Optional[str] = None
    type: Optional[str] = None
    location: str
    tags: dict[str, str] = Field(default_factory=dict)
    identity: Optional[Identity] = None
    properties: Optional[CustomLocationProperties] = None
    system_data: Optional[SystemData] = Field(default=None, alias="systemData")


class PatchableCustomLocations(ArmModel):
    """The fields of a custom location that can be updated in place."""

    identity: Optional[Identity] = None
    properties: Optional[CustomLocationProperties] = None
    tags: Optional[dict[str, str]] = None


class CustomLocationListResult(PageModel[CustomLocation]):
    pass


class OperationDisplay(ArmModel):
    description: Optional[str] = None
    operation: Optional[str] = None
    provider: Optional[str] = None
    resource: Optional[str] = None


class CustomLocationOperation(ArmModel):
    """An operation supported by the resource provider."""

    is_data_action: Optional[bool] = Field(default=None, alias="isDataAction")
    name: Optional[str] = None
    origin: Optional[str] = None
    display: Optional[OperationDisplay] = None


class CustomLocationOperationsList(PageModel[CustomLocationOperation]):
    pass


class TypesMetadata(ArmModel):
    api_version: Optional[str] = Field(default=None, alias="apiVersion")
    resource_provider_namespace: Optional[str] = Field(default=None, alias="resourceProviderNamespace")
    resource_type: Optional[str] = Field(default=None, alias="resourceType")


class EnabledResourceTypeProperties(ArmModel):
    cluster_extension_id: Optional[str] = Field(default=None, alias="clusterExtensionId")
    extension_type: Optional[str] = Field(default=None, alias="extensionType")
    types_metadata: list[TypesMetadata] = Field(default_factory=list, alias="typesMetadata")


class EnabledResourceType(ArmModel):
    """A resource type that is enabled on a custom location by one of its cluster extensions."""

    id: Optional[str] = None
    name: Optional[str] = None
    type: Optional[str] = None
    properties: Optional[EnabledResourceTypeProperties] = None
    system_data: Optional[SystemData] = Field(default=None, alias="systemData")


class EnabledResourceTypesListResult(PageModel[EnabledResourceType]):
    pass
