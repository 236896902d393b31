from __future__ import annotations

import json
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from zetsubou.models import ChainStep, Job, Tool
from zetsubou.services.base import BaseService, FileInput, prepare_upload


class ToolsService(BaseService):
    """Tool listing, execution and tool chains."""

    async def list(self) -> List[Tool]:
        data = await self.client.get("/api/v2/tools")
        return Tool.from_list(data.get("tools"))

    async def get(self, tool_id: str) -> Tool:
        return Tool.from_dict(await self.client.get(f"/api/v2/tools/{tool_id}"))

    async def execute(
        self,
        tool_id: str,
        files: Sequence[FileInput],
        options: Optional[Mapping[str, Any]] = None,
        audio_files: Optional[Sequence[FileInput]] = None,
    ) -> Job:
        """Run a tool on one or more files.

        Args:
            tool_id (str): Tool identifier, e.g. ``bg-remover``.
            files: Input files, sent as ``file_0``, ``file_1``, ...
            options (dict, optional): Tool options. Keys are defined per tool.
            audio_files: Extra audio inputs, sent as ``audio_0``, ``audio_1``, ...

        Returns:
            Job: The queued job. Use ``client.jobs.wait_for_completion`` to wait for it.

        Raises:
            ValueError: If neither ``files`` nor ``audio_files`` holds an input.
        """
        return await self._submit(f"/api/v2/tools/{tool_id}/execute", files, options, audio_files)

    async def batch_execute(
        self,
        tool_id: str,
        files: Sequence[FileInput],
        options: Optional[Mapping[str, Any]] = None,
        audio_files: Optional[Sequence[FileInput]] = None,
    ) -> Job:
        """Run a tool in batch mode. Takes the same arguments as :meth:`execute`."""
        return await self._submit(f"/api/v2/tools/{tool_id}/batch", files, options, audio_files)

    async def _submit(
        self,
        path: str,
        files: Sequence[FileInput],
        options: Optional[Mapping[str, Any]],
        audio_files: Optional[Sequence[FileInput]],
    ) -> Job:
        parts: List[Tuple[str, Tuple[str, Any, str]]] = [
            (f"file_{i}", prepare_upload(file, f"file_{i}")) for i, file in enumerate(files)
        ]
        parts.extend(
            (f"audio_{i}", prepare_upload(file, f"audio_{i}"))
            for i, file in enumerate(audio_files or [])
        )
        if not parts:
            raise ValueError("At least one input file is required")
        form: Dict[str, str] = {}
        if options:
            form["options"] = json.dumps(dict(options))
        data = await self.client.post(path, data=form or None, files=parts)
        return Job.from_dict(data["job"])

    async def create_chain(
        self, name: str, steps: Sequence[ChainStep], description: Optional[str] = None
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"name": name, "steps": [step.to_payload() for step in steps]}
        if description:
            payload["description"] = description
        return await self.client.post("/api/v2/chains", payload)

    async def list_chains(self) -> List[Dict[str, Any]]:
        data = await self.client.get("/api/v2/chains")
        return list(data.get("chains") or [])

    async def get_chain(self, chain_id: int) -> Dict[str, Any]:
        return await self.client.get(f"/api/v2/chains/{chain_id}")
