from __future__ import annotations

from typing import Any, Dict, List, Optional

from zetsubou.models import SharedFolder, SharedFolderDetail, Shortcut, VFSNode
from zetsubou.services.base import BaseService, FileInput, prepare_upload

IMAGE_MIME_TYPES = ("image/jpeg", "image/png", "image/gif", "image/webp", "image/bmp")

VIDEO_MIME_TYPES = ("video/mp4", "video/avi", "video/mov", "video/webm", "video/mkv")

DEFAULT_SEARCH_LIMIT = 100


class VFSService(BaseService):
    """Virtual file system: nodes, folders, uploads and shared folders."""

    async def list_nodes(
        self,
        parent_id: Optional[str] = None,
        type: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> List[VFSNode]:
        params = {"parent_id": parent_id, "type": type, "limit": limit, "offset": offset}
        data = await self.client.get("/api/v2/vfs/nodes", params=params)
        return VFSNode.from_list(data.get("nodes"))

    async def get_node(self, node_id: str) -> VFSNode:
        data = await self.client.get(f"/api/v2/vfs/nodes/{node_id}")
        return VFSNode.from_dict(data["node"])

    async def upload_file(
        self, file: FileInput, parent_id: Optional[str] = None, encrypt: bool = False
    ) -> VFSNode:
        """Upload a file into the VFS.

        Args:
            file: A path, bytes, a binary file object or a ``(filename, content[, type])`` tuple.
            parent_id (str, optional): Folder to upload into. Defaults to the root.
            encrypt (bool, optional): Ask the server to encrypt the file at rest.
        """
        form = {"encrypt": "true" if encrypt else "false"}
        if parent_id:
            form["parent_id"] = parent_id
        data = await self.client.post(
            "/api/v2/vfs/upload", data=form, files={"file": prepare_upload(file)}
        )
        return VFSNode.from_dict(data["node"])

    async def download_file(self, node_id: str) -> bytes:
        return await self.client.get(f"/api/v2/vfs/nodes/{node_id}/download", response_type="bytes")

    async def create_folder(self, name: str, parent_id: Optional[str] = None) -> VFSNode:
        payload: Dict[str, Any] = {"name": name}
        if parent_id:
            payload["parent_id"] = parent_id
        data = await self.client.post("/api/v2/vfs/folders", payload)
        return VFSNode.from_dict(data["folder"])

    async def update_node(
        self, node_id: str, name: Optional[str] = None, parent_id: Optional[str] = None
    ) -> VFSNode:
        """Rename and/or move a node. Only the given fields are sent."""
        updates = {k: v for k, v in {"name": name, "parent_id": parent_id}.items() if v is not None}
        if not updates:
            raise ValueError("update_node needs a name or a parent_id")
        data = await self.client.patch(f"/api/v2/vfs/nodes/{node_id}", updates)
        return VFSNode.from_dict(data["node"])

    async def delete_node(self, node_id: str) -> bool:
        data = await self.client.delete(f"/api/v2/vfs/nodes/{node_id}")
        return bool(data.get("success"))

    async def get_folder_contents(self, folder_id: str) -> List[VFSNode]:
        return await self.list_nodes(parent_id=folder_id)

    async def search_files(
        self,
        name_pattern: Optional[str] = None,
        mime_type: Optional[str] = None,
        limit: int = DEFAULT_SEARCH_LIMIT,
    ) -> List[VFSNode]:
        """Find files by case-insensitive name substring and/or exact MIME type.

        The API has no search endpoint, so up to ``limit`` nodes are listed
        and filtered locally.
        """
        nodes = await self.list_nodes(limit=limit)
        pattern = name_pattern.lower() if name_pattern else None
        return [
            node
            for node in nodes
            if node.is_file
            and (pattern is None or pattern in node.name.lower())
            and (mime_type is None or node.mime_type == mime_type)
        ]

    async def get_files_by_type(
        self, mime_type: str, limit: int = DEFAULT_SEARCH_LIMIT
    ) -> List[VFSNode]:
        return await self.search_files(mime_type=mime_type, limit=limit)

    async def get_images(self, limit: int = DEFAULT_SEARCH_LIMIT) -> List[VFSNode]:
        return await self._files_with_mime_types(IMAGE_MIME_TYPES, limit)

    async def get_videos(self, limit: int = DEFAULT_SEARCH_LIMIT) -> List[VFSNode]:
        return await self._files_with_mime_types(VIDEO_MIME_TYPES, limit)

    async def _files_with_mime_types(self, mime_types, limit: int) -> List[VFSNode]:
        files = await self.list_nodes(type="file", limit=limit)
        return [node for node in files if node.mime_type in mime_types]

    async def list_shared_folders(self) -> List[SharedFolder]:
        data = await self.client.get("/api/v2/shared-folders")
        return SharedFolder.from_list(data.get("folders"))

    async def get_shared_folder(self, folder_id: str) -> SharedFolderDetail:
        return SharedFolderDetail.from_dict(await self.client.get(f"/api/v2/shared-folders/{folder_id}"))

    async def create_shortcut(
        self, folder_id: str, name: Optional[str] = None, parent_id: Optional[str] = None
    ) -> Shortcut:
        """Add a shortcut to a folder shared with you into your own VFS."""
        data = await self.client.post(
            f"/api/v2/shared-folders/{folder_id}/shortcut",
            {k: v for k, v in {"name": name, "parent_id": parent_id}.items() if v is not None},
        )
        return Shortcut.from_dict(data["shortcut"])
