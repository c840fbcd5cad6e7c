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

from datetime import datetime
from typing import Any, Optional

from pydantic import Field

from arm.common.data import ArmModel, PageModel

__all__ = [
    "Artifact",
    "ArtifactDetails",
    "Asset",
    "DatasetReference",
    "Model",
    "PaginatedArtifactList",
    "PaginatedAssetList",
    "PaginatedModelList",
    "PaginatedRunList",
    "QueryParams",
    "Run",
]


class ArtifactDetails(ArmModel):
    id: Optional[str] = None
    prefix: Optional[str] = None


class Asset(ArmModel):
    """A named collection of artifacts, with tags and properties."""

    id: Optional[str] = None
    name: str
    description: Optional[str] = None
    artifacts: list[ArtifactDetails] = Field(default_factory=list)
    kv_tags: Optional[dict[str, Any]] = Field(default=None, alias="kvTags")
    properties: Optional[dict[str, Any]] = None
    runid: Optional[str] = None
    meta: Optional[dict[str, Any]] = None
    created_time: Optional[datetime] = Field(default=None, alias="createdTime")


class DatasetReference(ArmModel):
    id: Optional[str] = None
    name: Optional[str] = None


class Model(ArmModel):
    """A registered model."""

    id: Optional[str] = None
    name: str
    framework: Optional[str] = None
    framework_version: Optional[str] = Field(default=None, alias="frameworkVersion")
    version: Optional[int] = None
    datasets: list[DatasetReference] = Field(default_factory=list)
    url: str
    mime_type: str = Field(alias="mimeType")
    description: Optional[str] = None
    created_time: Optional[datetime] = Field(default=None, alias="createdTime")
    modified_time: Optional[datetime] = Field(default=None, alias="modifiedTime")
    unpack: Optional[bool] = None
    parent_model_id: Optional[str] = Field(default=None, alias="parentModelId")
    run_id: Optional[str] = Field(default=None, alias="runId")
    experiment_name: Optional[str] = Field(default=None, alias="experimentName")
    kv_tags: Optional[dict[str, Any]] = Field(default=None, alias="kvTags")
    properties: Optional[dict[str, Any]] = None


class Run(ArmModel):
    """A run of an experiment. Fields that are not listed here are kept as extra fields."""

    run_id: Optional[str] = Field(default=None, alias="runId")
    run_number: Optional[int] = Field(default=None, alias="runNumber")
    root_run_id: Optional[str] = Field(default=None, alias="rootRunId")
    parent_run_id: Optional[str] = Field(default=None, alias="parentRunId")
    experiment_id: Optional[str] = Field(default=None, alias="experimentId")
    created_utc: Optional[datetime] = Field(default=None, alias="createdUtc")
    user_id: Optional[str] = Field(default=None, alias="userId")
    status: Optional[str] = None
    start_time_utc: Optional[datetime] = Field(default=None, alias="startTimeUtc")
    end_time_utc: Optional[datetime] = Field(default=None, alias="endTimeUtc")
    name: Optional[str] = None
    description: Optional[str] = None
    hidden: Optional[bool] = None
    run_type: Optional[str] = Field(default=None, alias="runType")
    target: Optional[str] = None
    tags: Optional[dict[str, Any]] = None
    properties: Optional[dict[str, Any]] = None


class Artifact(ArmModel):
    """A file produced or uploaded in the context of a workspace. Artifacts are grouped by origin and container."""

    artifact_id: Optional[str] = Field(default=None, alias="artifactId")
    origin: str
    container: str
    path: str
    etag: Optional[str] = None
    created_time: Optional[datetime] = Field(default=None, alias="createdTime")


class QueryParams(ArmModel):
    """The body of a query request."""

    filter: Optional[str] = None
    continuation_token: Optional[str] = Field(default=None, alias="continuationToken")
    order_by: Optional[str] = Field(default=None, alias="orderBy")
    top: Optional[int] = None


class PaginatedAssetList(PageModel[Asset]):
    pass


class PaginatedModelList(PageModel[Model]):
    pass


class PaginatedRunList(PageModel[Run]):
    continuation_token: Optional[str] = Field(default=None, alias="continuationToken")


class PaginatedArtifactList(PageModel[Artifact]):
    continuation_token: Optional[str] = Field(default=None, alias="continuationToken")
