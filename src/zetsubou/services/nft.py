from __future__ import annotations

from typing import Any, List, Mapping

from zetsubou.exceptions import ZetsubouError
from zetsubou.models import (
    CreateGenerationOptions,
    CreateLayerOptions,
    CreateProjectOptions,
    NFTGeneration,
    NFTLayer,
    NFTLimits,
    NFTProject,
    ProjectUpdate,
)
from zetsubou.services.base import BaseService


def _check_success(data: Mapping[str, Any], action: str) -> Mapping[str, Any]:
    """NFT endpoints answer 200 with ``success: false`` on logical failures."""
    if not data or not data.get("success"):
        error_data = dict(data or {})
        raise ZetsubouError(error_data.get("error") or f"Failed to {action}", error_data)
    return data


class NFTService(BaseService):
    """NFT collection projects, layers and generations."""

    async def list_projects(self, include_archived: bool = False) -> List[NFTProject]:
        data = await self.client.get(
            "/api/v2/nft/projects", params={"include_archived": include_archived}
        )
        return NFTProject.from_list(_check_success(data, "list projects").get("projects"))

    async def get_project(self, project_id: str) -> NFTProject:
        data = await self.client.get(f"/api/v2/nft/projects/{project_id}")
        return NFTProject.from_dict(_check_success(data, "get project")["project"])

    async def create_project(self, options: CreateProjectOptions) -> NFTProject:
        data = await self.client.post("/api/v2/nft/projects", options.to_payload())
        return NFTProject.from_dict(_check_success(data, "create project")["project"])

    async def update_project(self, project_id: str, updates: ProjectUpdate) -> NFTProject:
        data = await self.client.patch(f"/api/v2/nft/projects/{project_id}", updates.to_payload())
        return NFTProject.from_dict(_check_success(data, "update project")["project"])

    async def delete_project(self, project_id: str, permanent: bool = False) -> None:
        """Archive a project, or remove it for good with ``permanent=True``."""
        data = await self.client.delete(
            f"/api/v2/nft/projects/{project_id}", params={"permanent": permanent}
        )
        _check_success(data, "delete project")

    async def list_layers(self, project_id: str, include_traits: bool = True) -> List[NFTLayer]:
        data = await self.client.get(
            f"/api/v2/nft/projects/{project_id}/layers",
            params={"include_traits": include_traits},
        )
        return NFTLayer.from_list(_check_success(data, "list layers").get("layers"))

    async def create_layer(self, project_id: str, options: CreateLayerOptions) -> NFTLayer:
        data = await self.client.post(
            f"/api/v2/nft/projects/{project_id}/layers", options.to_payload()
        )
        return NFTLayer.from_dict(_check_success(data, "create layer")["layer"])

    async def create_generation(
        self, project_id: str, options: CreateGenerationOptions
    ) -> NFTGeneration:
        data = await self.client.post(
            f"/api/v2/nft/projects/{project_id}/generate", options.to_payload()
        )
        return NFTGeneration.from_dict(_check_success(data, "create generation")["generation"])

    async def get_generation(self, generation_id: str) -> NFTGeneration:
        data = await self.client.get(f"/api/v2/nft/generations/{generation_id}")
        return NFTGeneration.from_dict(_check_success(data, "get generation")["generation"])

    async def list_generations(self, project_id: str) -> List[NFTGeneration]:
        data = await self.client.get(f"/api/v2/nft/projects/{project_id}/generations")
        return NFTGeneration.from_list(_check_success(data, "list generations").get("generations"))

    async def get_limits(self) -> NFTLimits:
        data = _check_success(await self.client.get("/api/v2/nft/limits"), "get limits")
        return NFTLimits(
            tier=data.get("tier", ""),
            limits=dict(data.get("limits") or {}),
            usage=dict(data.get("usage") or {}),
        )
