from __future__ import annotations

import hashlib
import hmac
import json
import logging
from typing import Any, Dict, List, Optional, Sequence, Union

from zetsubou.exceptions import ZetsubouWebhookError
from zetsubou.models import Webhook
from zetsubou.services.base import BaseService

logger = logging.getLogger(__name__)

JOB_EVENTS = ("job.completed", "job.failed", "job.cancelled")

FILE_EVENTS = ("file.uploaded", "file.downloaded")

STORAGE_EVENTS = ("storage.quota_warning", "storage.quota_exceeded")

SIGNATURE_PREFIX = "sha256="


class WebhooksService(BaseService):
    """Webhook registrations and verification of incoming deliveries."""

    async def list(self) -> List[Webhook]:
        data = await self.client.get("/api/v2/webhooks")
        return Webhook.from_list(data.get("webhooks"))

    async def create(
        self, url: str, events: Sequence[str], secret: Optional[str] = None
    ) -> Webhook:
        payload: Dict[str, Any] = {"url": url, "events": list(events)}
        if secret is not None:
            payload["secret"] = secret
        data = await self.client.post("/api/v2/webhooks", payload)
        return Webhook.from_dict(data["webhook"])

    async def get(self, webhook_id: int) -> Webhook:
        data = await self.client.get(f"/api/v2/webhooks/{webhook_id}")
        return Webhook.from_dict(data["webhook"])

    async def update(
        self,
        webhook_id: int,
        *,
        url: Optional[str] = None,
        events: Optional[Sequence[str]] = None,
        secret: Optional[str] = None,
        enabled: Optional[bool] = None,
    ) -> Webhook:
        """Update a webhook. Only the given fields are sent."""
        payload = {
            "url": url,
            "events": list(events) if events is not None else None,
            "secret": secret,
            "enabled": enabled,
        }
        data = await self.client.put(
            f"/api/v2/webhooks/{webhook_id}", {k: v for k, v in payload.items() if v is not None}
        )
        return Webhook.from_dict(data["webhook"])

    async def delete(self, webhook_id: int) -> bool:
        data = await self.client.delete(f"/api/v2/webhooks/{webhook_id}")
        return bool(data.get("success"))

    async def test(self, webhook_id: int) -> bool:
        """Ask the server to send a test delivery."""
        data = await self.client.post(f"/api/v2/webhooks/{webhook_id}/test")
        return bool(data.get("success"))

    async def get_stats(self, webhook_id: int, days: Optional[int] = None) -> Dict[str, Any]:
        return await self.client.get(f"/api/v2/webhooks/{webhook_id}/stats", params={"days": days})

    async def get_available_events(self) -> Dict[str, str]:
        data = await self.client.get("/api/v2/webhooks/events")
        return dict(data.get("events") or {})

    async def create_job_webhook(self, url: str, secret: Optional[str] = None) -> Webhook:
        return await self.create(url, JOB_EVENTS, secret)

    async def create_file_webhook(self, url: str, secret: Optional[str] = None) -> Webhook:
        return await self.create(url, FILE_EVENTS, secret)

    async def create_storage_webhook(self, url: str, secret: Optional[str] = None) -> Webhook:
        return await self.create(url, STORAGE_EVENTS, secret)

    async def create_all_events_webhook(self, url: str, secret: Optional[str] = None) -> Webhook:
        events = await self.get_available_events()
        return await self.create(url, list(events), secret)

    async def enable(self, webhook_id: int) -> Webhook:
        return await self.update(webhook_id, enabled=True)

    async def disable(self, webhook_id: int) -> Webhook:
        return await self.update(webhook_id, enabled=False)

    async def update_url(self, webhook_id: int, url: str) -> Webhook:
        return await self.update(webhook_id, url=url)

    async def update_events(self, webhook_id: int, events: Sequence[str]) -> Webhook:
        return await self.update(webhook_id, events=events)

    async def update_secret(self, webhook_id: int, secret: str) -> Webhook:
        return await self.update(webhook_id, secret=secret)

    @staticmethod
    def compute_signature(payload: Union[bytes, str], secret: str) -> str:
        """Hex HMAC-SHA256 of the raw delivery body, keyed with the webhook secret."""
        body = payload.encode("utf-8") if isinstance(payload, str) else payload
        return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()

    @staticmethod
    def verify_signature(payload: Union[bytes, str], signature: str, secret: str) -> bool:
        """Check a delivery signature in constant time.

        ``signature`` is the hex digest, optionally prefixed with ``sha256=``.
        """
        if not signature or not secret:
            return False
        if signature.startswith(SIGNATURE_PREFIX):
            signature = signature[len(SIGNATURE_PREFIX) :]
        expected = WebhooksService.compute_signature(payload, secret)
        return hmac.compare_digest(expected.encode(), signature.strip().lower().encode("utf-8"))

    @staticmethod
    def construct_event(payload: Union[bytes, str], signature: str, secret: str) -> Dict[str, Any]:
        """Verify a delivery and decode its JSON body.

        Raises:
            ZetsubouWebhookError: If the signature does not match or the body is not a JSON object.
        """
        if not WebhooksService.verify_signature(payload, signature, secret):
            logger.warning("Rejected webhook delivery with an invalid signature")
            raise ZetsubouWebhookError("Invalid webhook signature")
        try:
            event = json.loads(payload)
        except ValueError as e:
            raise ZetsubouWebhookError(f"Invalid webhook payload: {e}") from e
        if not isinstance(event, dict):
            raise ZetsubouWebhookError("Invalid webhook payload: expected a JSON object")
        return event
