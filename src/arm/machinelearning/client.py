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
    Artifact,
    Asset,
    Model,
    PaginatedArtifactList,
    PaginatedAssetList,
    PaginatedModelList,
    PaginatedRunList,
    QueryParams,
    Run,
)

__all__ = ["WorkspaceResourcesClient"]

_WORKSPACE = (
    "subscriptions/{subscriptionId}/resourceGroups/{resourceGroupName}"
    "/providers/Microsoft.MachineLearningServices/workspaces/{workspaceName}"
)
_MODEL_MANAGEMENT = "/modelmanagement/v1.0/" + _WORKSPACE
_HISTORY = "/history/v1.0/" + _WORKSPACE
_ARTIFACT = "/artifact/v2.0/" + _WORKSPACE


class WorkspaceResourcesClient:
    """Client for the assets, models, runs and artifacts of one machine learning workspace.

    The service prefix and its version are part of each path, so these operations do not send an `api-version`.
    """

    def __init__(self, client: Client, subscription_id: str, resource_group_name: str, workspace_name: str) -> None:
        """
        :param client: The shared client to send requests with. Its endpoint is the regional workspace endpoint.
        :param subscription_id: The ID of the subscription.
        :param resource_group_name: The name of the resource group.
        :param workspace_name: The name of the workspace.
        """
        self._client = client
        self._workspace = {
            "subscriptionId": subscription_id,
            "resourceGroupName": resource_group_name,
            "workspaceName": workspace_name,
        }

    def _descriptor(self, method: RequestMethod, path: str, **path_params: Any) -> RequestDescriptor:
        return RequestDescriptor(method=method, path=path, path_params={**self._workspace, **path_params})

    def list_assets(
        self,
        run_id: str | None = None,
        name: str | None = None,
        count: int | None = None,
        skip_token: str | None = None,
        tags: str | None = None,
        properties: str | None = None,
        type_: str | None = None,
        order_by: str | None = None,
    ) -> ItemIterator[Asset]:
        """List the assets in the workspace.

        The filters only apply to the first request. Following pages are fetched from the link returned by the service.

        :param run_id: Only return assets created by this run.
        :param name: Only return assets with this name.
        :param count: The maximum number of assets per page.
        :param skip_token: A continuation token, to start from a page other than the first.
        :param tags: Only return assets with these tags, e.g. `key=value`.
        :param properties: Only return assets with these properties, e.g. `key=value`.
        :param type_: Only return assets of this type.
        :param order_by: The sort order, e.g. `CreatedAtDesc`.

        :return: An iterator over the assets, across all pages.
        """
        builder = self._client.request(self._descriptor(RequestMethod.GET, _MODEL_MANAGEMENT + "/assets"))
        builder.query(
            runId=run_id,
            name=name,
            count=count,
            **{"$skipToken": skip_token},
            tag=tags,
            properties=properties,
            type=type_,
            orderby=order_by,
        )
        return builder.items(PaginatedAssetList)

    async def get_asset(self, asset_id: str) -> Asset:
        """Get an asset by ID.

        :raise NotFoundError: If the asset does not exist.
        """
        descriptor = self._descriptor(RequestMethod.GET, _MODEL_MANAGEMENT + "/assets/{id}", id=asset_id)
        return await self._client.request(descriptor, {"200": Asset}).send()

    async def delete_asset(self, asset_id: str) -> None:
        """Delete an asset by ID."""
        descriptor = self._descriptor(RequestMethod.DELETE, _MODEL_MANAGEMENT + "/assets/{id}", id=asset_id)
        await self._client.request(descriptor, {"200": EmptyResponse, "204": EmptyResponse}).send()

    def list_models(
        self,
        name: str | None = None,
        framework: str | None = None,
        description: str | None = None,
        count: int | None = None,
        skip_token: str | None = None,
        tags: str | None = None,
        order_by: str | None = None,
    ) -> ItemIterator[Model]:
        """List the registered models in the workspace.

        :return: An iterator over the models, across all pages.
        """
        builder = self._client.request(self._descriptor(RequestMethod.GET, _MODEL_MANAGEMENT + "/models"))
        builder.query(
            name=name,
            framework=framework,
            description=description,
            count=count,
            **{"$skipToken": skip_token},
            tag=tags,
            orderBy=order_by,
        )
        return builder.items(PaginatedModelList)

    def query_runs(
        self,
        experiment_name: str,
        filter: str | None = None,
        order_by: str | None = None,
        top: int | None = None,
    ) -> ItemIterator[Run]:
        """Query the runs of an experiment.

        The query is sent as the JSON body of the first request. Following pages are fetched from the link returned by
        the service, with the same method and no body.

        :param experiment_name: The name of the experiment.
        :param filter: A filter expression, e.g. `Status eq 'Completed'`.
        :param order_by: The sort order, e.g. `CreatedUtc desc`.
        :param top: The maximum number of runs per page.

        :return: An iterator over the runs, across all pages.
        """
        body = QueryParams(filter=filter, order_by=order_by, top=top)
        descriptor = self._descriptor(
            RequestMethod.POST,
            _HISTORY + "/experiments/{experimentName}/runs:query",
            experimentName=experiment_name,
        ).with_body(body.model_dump(mode="json", by_alias=True, exclude_none=True))
        return self._client.request(descriptor).items(PaginatedRunList)

    def list_artifacts(self, origin: str, container: str, path: str | None = None) -> ItemIterator[Artifact]:
        """List the artifacts in a container.

        :param origin: The origin of the artifacts, e.g. `ExperimentRun`.
        :param container: The name of the container.
        :param path: Only return artifacts under this path prefix.

        :return: An iterator over the artifacts, across all pages.
        """
        descriptor = self._descriptor(
            RequestMethod.GET, _ARTIFACT + "/artifacts/{origin}/{container}", origin=origin, container=container
        ).with_query(path=path)
        return self._client.request(descriptor).items(PaginatedArtifactList)
