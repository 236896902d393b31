from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from zetsubou.models import ChatConversation, ChatMessage
from zetsubou.services.base import BaseService

ExportFormat = Literal["json", "md", "html", "pdf"]

DEFAULT_MODEL = "llama3.2"

AVAILABLE_MODELS = ("llama3.2", "qwen2.5-vl", "glm-4.6:cloud", "auto")

_EXPORT_RESPONSE_TYPES = {"json": "json", "md": "text", "html": "text", "pdf": "bytes"}


class ChatService(BaseService):
    async def list_conversations(
        self, limit: Optional[int] = None, offset: Optional[int] = None
    ) -> List[ChatConversation]:
        data = await self.client.get(
            "/api/v2/chat/conversations", params={"limit": limit, "offset": offset}
        )
        return ChatConversation.from_list(data.get("conversations"))

    async def create_conversation(
        self, title: str, model: str = DEFAULT_MODEL, system_prompt: Optional[str] = None
    ) -> ChatConversation:
        payload: Dict[str, Any] = {"title": title, "model": model}
        if system_prompt:
            payload["system_prompt"] = system_prompt
        data = await self.client.post("/api/v2/chat/conversations", payload)
        return ChatConversation.from_dict(data["conversation"])

    async def get_conversation(self, conversation_uuid: str) -> ChatConversation:
        return ChatConversation.from_dict(
            await self.client.get(f"/api/v2/chat/conversations/{conversation_uuid}")
        )

    async def delete_conversation(self, conversation_uuid: str) -> bool:
        data = await self.client.delete(f"/api/v2/chat/conversations/{conversation_uuid}")
        return bool(data.get("success"))

    async def get_messages(self, conversation_uuid: str) -> List[ChatMessage]:
        data = await self.client.get(f"/api/v2/chat/conversations/{conversation_uuid}/messages")
        return ChatMessage.from_list(data.get("messages"))

    async def send_message(self, conversation_uuid: str, content: str) -> ChatMessage:
        data = await self.client.post(
            f"/api/v2/chat/conversations/{conversation_uuid}/messages", {"content": content}
        )
        return ChatMessage.from_dict(data["message"])

    async def export_conversation(self, conversation_uuid: str, format: ExportFormat = "json") -> Any:
        """Export a conversation.

        Returns:
            The decoded JSON document for ``json``, a string for ``md`` and
            ``html``, and raw bytes for ``pdf``.

        Raises:
            ValueError: For an unknown format.
        """
        if format not in _EXPORT_RESPONSE_TYPES:
            raise ValueError(f"Unsupported export format: {format}")
        return await self.client.get(
            f"/api/v2/chat/conversations/{conversation_uuid}/export",
            params={"format": format},
            response_type=_EXPORT_RESPONSE_TYPES[format],  # type: ignore[arg-type]
        )

    @staticmethod
    def get_available_models() -> List[str]:
        return list(AVAILABLE_MODELS)

    async def create_and_send_message(
        self,
        title: str,
        content: str,
        model: str = DEFAULT_MODEL,
        system_prompt: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Start a conversation and post its first message.

        Returns:
            dict: ``{"conversation": ChatConversation, "message": ChatMessage}``
        """
        conversation = await self.create_conversation(title, model, system_prompt)
        message = await self.send_message(conversation.uuid, content)
        return {"conversation": conversation, "message": message}

    async def get_conversation_history(
        self, conversation_uuid: str, limit: int = 50, offset: int = 0
    ) -> Dict[str, Any]:
        messages = await self.get_messages(conversation_uuid)
        return {
            "messages": messages[offset : offset + limit],
            "total": len(messages),
            "has_more": offset + limit < len(messages),
        }

    async def search_conversations(self, query: str, limit: int = 1000) -> List[ChatConversation]:
        """Case-insensitive search over conversation titles and last messages."""
        needle = query.lower()
        conversations = await self.list_conversations(limit=limit)
        return [
            conv
            for conv in conversations
            if needle in conv.title.lower()
            or (conv.last_message is not None and needle in conv.last_message.content.lower())
        ]
