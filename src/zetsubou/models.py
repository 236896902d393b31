"""Typed shapes for API payloads.

Every response model is a frozen dataclass built with ``from_dict``. Keys the
model does not declare are kept in ``extra`` so fields added by the API are
never lost.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Type, TypeVar

M = TypeVar("M", bound="ApiModel")


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO 8601 timestamp from the API, tolerating a trailing ``Z``."""
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    text = str(value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def _drop_none(values: Mapping[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in values.items() if v is not None}


def _as_dict(value: Optional[Mapping[str, Any]]) -> Optional[Dict[str, Any]]:
    return dict(value) if value is not None else None


@dataclass(frozen=True)
class ApiModel:
    """Base for response models."""

    @classmethod
    def from_dict(cls: Type[M], data: Mapping[str, Any]) -> M:
        known = {f.name for f in dataclasses.fields(cls) if f.init and f.name != "extra"}
        kwargs = {k: v for k, v in data.items() if k in known}
        extra = {k: v for k, v in data.items() if k not in known}
        return cls(**kwargs, extra=extra)  # type: ignore[call-arg]

    @classmethod
    def from_list(cls: Type[M], items: Optional[List[Mapping[str, Any]]]) -> List[M]:
        return [cls.from_dict(item) for item in items or []]


class JobStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED, JobStatus.CANCELLED)


@dataclass(frozen=True)
class Tool(ApiModel):
    id: str
    name: str = ""
    description: str = ""
    category: str = ""
    input_type: str = ""
    output_type: str = ""
    required_tier: str = ""
    accessible: bool = False
    options: Dict[str, Any] = field(default_factory=dict)
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Job(ApiModel):
    """Snapshot of a server-side job at the time it was fetched."""

    id: str
    status: JobStatus
    tool_id: Optional[str] = None
    progress: float = 0
    error: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    inputs: List[str] = field(default_factory=list)
    outputs: List[str] = field(default_factory=list)
    options: Dict[str, Any] = field(default_factory=dict)
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Job":
        values = dict(data)
        values["status"] = JobStatus(values.get("status", JobStatus.PENDING.value))
        values["progress"] = values.get("progress") or 0
        for name in ("created_at", "updated_at", "completed_at"):
            values[name] = parse_timestamp(values.get(name))
        for name in ("inputs", "outputs"):
            values[name] = list(values.get(name) or [])
        values["options"] = dict(values.get("options") or {})
        return super().from_dict(values)

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal


@dataclass(frozen=True)
class VFSNode(ApiModel):
    id: str
    name: str
    type: str = "file"
    size_bytes: int = 0
    mime_type: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    parent_id: Optional[str] = None
    is_encrypted: bool = False
    download_url: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_file(self) -> bool:
        return self.type == "file"

    @property
    def is_folder(self) -> bool:
        return self.type == "folder"


@dataclass(frozen=True)
class ChatMessage(ApiModel):
    id: int
    role: str
    content: str
    timestamp: Optional[str] = None
    uuid: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ChatConversation(ApiModel):
    uuid: str
    title: str = ""
    model: str = ""
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    message_count: int = 0
    id: Optional[int] = None
    last_message: Optional[ChatMessage] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ChatConversation":
        values = dict(data)
        if values.get("last_message"):
            values["last_message"] = ChatMessage.from_dict(values["last_message"])
        return super().from_dict(values)


@dataclass(frozen=True)
class Webhook(ApiModel):
    id: int
    url: str
    events: List[str] = field(default_factory=list)
    enabled: bool = True
    success_count: int = 0
    failure_count: int = 0
    last_delivery_at: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Account(ApiModel):
    user_id: int
    username: str
    email: str = ""
    tier: str = ""
    created_at: Optional[str] = None
    subscription: Dict[str, Any] = field(default_factory=dict)
    usage: Dict[str, Any] = field(default_factory=dict)
    features: Dict[str, Any] = field(default_factory=dict)
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class StorageQuota(ApiModel):
    tier: str = ""
    quota_bytes: int = 0
    used_bytes: int = 0
    available_bytes: int = 0
    usage_percent: float = 0
    file_count: int = 0
    folder_count: int = 0
    breakdown: Dict[str, Dict[str, int]] = field(default_factory=dict)
    largest_files: List[Dict[str, Any]] = field(default_factory=list)
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class SharedFolder(ApiModel):
    id: str
    name: str
    path: str = ""
    size_bytes: int = 0
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    permission: str = "viewer"
    share_id: Optional[str] = None
    owner: Dict[str, Any] = field(default_factory=dict)
    share_type: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class SharedFolderDetail(ApiModel):
    folder: VFSNode
    permission: str = "viewer"
    is_shared: bool = True
    owner: Dict[str, Any] = field(default_factory=dict)
    files: List[VFSNode] = field(default_factory=list)
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SharedFolderDetail":
        values = dict(data)
        values["folder"] = VFSNode.from_dict(values["folder"])
        values["files"] = VFSNode.from_list(values.get("files"))
        return super().from_dict(values)


@dataclass(frozen=True)
class Shortcut(ApiModel):
    id: str
    name: str
    type: str = "shortcut"
    path: str = ""
    target_folder_id: Optional[str] = None
    created_at: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)


# NFT models


@dataclass(frozen=True)
class NFTLayerTrait(ApiModel):
    id: str
    name: str
    rarity_weight: float = 0
    rarity_locked: bool = False
    vfs_node_id: Optional[str] = None
    display_value: Optional[str] = None
    created_at: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class NFTLayer(ApiModel):
    id: str
    name: str
    order_index: int = 0
    is_required: bool = True
    blend_mode: str = "normal"
    opacity: float = 1.0
    layer_rarity_weight: Optional[float] = None
    layer_rarity_mode: Optional[str] = None
    traits: List[NFTLayerTrait] = field(default_factory=list)
    trait_count: Optional[int] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "NFTLayer":
        values = dict(data)
        values["traits"] = NFTLayerTrait.from_list(values.get("traits"))
        return super().from_dict(values)


@dataclass(frozen=True)
class NFTGeneration(ApiModel):
    id: str
    project_id: str
    total_pieces: int
    status: str
    created_at: Optional[str] = None
    started_at: Optional[str] = None
    completed_at: Optional[str] = None
    error_message: Optional[str] = None
    vfs_build_folder_id: Optional[str] = None
    vfs_images_folder_id: Optional[str] = None
    vfs_metadata_folder_id: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class NFTProject(ApiModel):
    id: str
    name: str
    collection_config: Dict[str, Any] = field(default_factory=dict)
    description: Optional[str] = None
    generation_config: Optional[Dict[str, Any]] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    is_archived: bool = False
    thumbnail_url: Optional[str] = None
    layers: List[NFTLayer] = field(default_factory=list)
    layer_count: Optional[int] = None
    generations: List[NFTGeneration] = field(default_factory=list)
    generation_count: Optional[int] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "NFTProject":
        values = dict(data)
        values["layers"] = NFTLayer.from_list(values.get("layers"))
        values["generations"] = NFTGeneration.from_list(values.get("generations"))
        return super().from_dict(values)


@dataclass(frozen=True)
class NFTLimits(ApiModel):
    tier: str
    limits: Dict[str, Any] = field(default_factory=dict)
    usage: Dict[str, Any] = field(default_factory=dict)
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class GraphQLResponse:
    data: Optional[Any] = None
    errors: List[Dict[str, Any]] = field(default_factory=list)
    extensions: Dict[str, Any] = field(default_factory=dict)


# Request options. ``extra`` carries keys the SDK does not model yet.


@dataclass(frozen=True)
class ChainStep:
    tool_id: str
    options: Optional[Mapping[str, Any]] = None

    def to_payload(self) -> Dict[str, Any]:
        return _drop_none({"tool_id": self.tool_id, "options": _as_dict(self.options)})


@dataclass(frozen=True)
class CreateLayerOptions:
    name: str
    order_index: Optional[int] = None
    is_required: Optional[bool] = None
    blend_mode: Optional[str] = None
    opacity: Optional[float] = None
    extra: Mapping[str, Any] = field(default_factory=dict)

    def to_payload(self) -> Dict[str, Any]:
        payload = _drop_none(
            {
                "name": self.name,
                "order_index": self.order_index,
                "is_required": self.is_required,
                "blend_mode": self.blend_mode,
                "opacity": self.opacity,
            }
        )
        return {**self.extra, **payload}


@dataclass(frozen=True)
class CreateProjectOptions:
    name: str
    collection_config: Mapping[str, Any]
    description: Optional[str] = None
    generation_config: Optional[Mapping[str, Any]] = None
    layers: Optional[List[CreateLayerOptions]] = None
    extra: Mapping[str, Any] = field(default_factory=dict)

    def to_payload(self) -> Dict[str, Any]:
        payload = _drop_none(
            {
                "name": self.name,
                "collection_config": dict(self.collection_config),
                "description": self.description,
                "generation_config": _as_dict(self.generation_config),
                "layers": [layer.to_payload() for layer in self.layers]
                if self.layers is not None
                else None,
            }
        )
        return {**self.extra, **payload}


@dataclass(frozen=True)
class ProjectUpdate:
    name: Optional[str] = None
    description: Optional[str] = None
    collection_config: Optional[Mapping[str, Any]] = None
    generation_config: Optional[Mapping[str, Any]] = None
    is_archived: Optional[bool] = None
    extra: Mapping[str, Any] = field(default_factory=dict)

    def to_payload(self) -> Dict[str, Any]:
        payload = _drop_none(
            {
                "name": self.name,
                "description": self.description,
                "collection_config": _as_dict(self.collection_config),
                "generation_config": _as_dict(self.generation_config),
                "is_archived": self.is_archived,
            }
        )
        return {**self.extra, **payload}


@dataclass(frozen=True)
class CreateGenerationOptions:
    total_pieces: int
    config_overrides: Optional[Mapping[str, Any]] = None
    extra: Mapping[str, Any] = field(default_factory=dict)

    def to_payload(self) -> Dict[str, Any]:
        payload = _drop_none(
            {"total_pieces": self.total_pieces, "config_overrides": _as_dict(self.config_overrides)}
        )
        return {**self.extra, **payload}
