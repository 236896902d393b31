from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Sequence

from zetsubou.models import Account, StorageQuota, parse_timestamp
from zetsubou.services.base import BaseService

STORAGE_WARNING_PERCENT = 80

STORAGE_NEARLY_FULL_PERCENT = 90

STORAGE_CRITICAL_PERCENT = 95

API_KEY_EXPIRY_WARNING = timedelta(days=30)


class AccountService(BaseService):
    """Account details, API keys, storage quota and billing."""

    async def get_account(self) -> Account:
        return Account.from_dict(await self.client.get("/api/v2/account"))

    async def get_storage_quota(self) -> StorageQuota:
        return StorageQuota.from_dict(await self.client.get("/api/v2/storage/quota"))

    async def get_usage_stats(
        self, period: Optional[str] = None, tool_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """Usage totals. ``period`` is one of ``7d``, ``30d``, ``90d`` or ``1y``."""
        return await self.client.get(
            "/api/v2/account/usage", params={"period": period, "tool_id": tool_id}
        )

    async def list_api_keys(self) -> List[Dict[str, Any]]:
        data = await self.client.get("/api/v2/account/api-keys")
        return list(data.get("api_keys") or [])

    async def create_api_key(
        self,
        name: str,
        scopes: Sequence[str],
        expires_at: Optional[str] = None,
        drive_bypass: Optional[bool] = None,
    ) -> Dict[str, Any]:
        """Create an API key. The returned ``key`` is only shown once."""
        payload: Dict[str, Any] = {"name": name, "scopes": list(scopes)}
        if expires_at is not None:
            payload["expires_at"] = expires_at
        if drive_bypass is not None:
            payload["drive_bypass"] = drive_bypass
        return await self.client.post("/api/v2/account/api-keys", payload)

    async def delete_api_key(self, key_id: int) -> bool:
        data = await self.client.delete(f"/api/v2/account/api-keys/{key_id}")
        return bool(data.get("success"))

    async def get_tier_info(self) -> Dict[str, Any]:
        account = await self.get_account()
        return {
            "tier": account.tier,
            "subscription": account.subscription,
            "features": account.features,
        }

    async def get_available_tools(self) -> List[str]:
        account = await self.get_account()
        return list(account.features.get("tools") or [])

    async def get_rate_limits(self) -> Dict[str, Any]:
        account = await self.get_account()
        return {
            "max_concurrent_jobs": account.features.get("max_concurrent_jobs"),
            "rate_limit_per_minute": account.features.get("rate_limit_per_minute"),
        }

    async def get_storage_usage_percentage(self) -> float:
        quota = await self.get_storage_quota()
        return quota.usage_percent

    async def is_storage_quota_warning(self, threshold: float = STORAGE_WARNING_PERCENT) -> bool:
        return await self.get_storage_usage_percentage() >= threshold

    async def get_largest_files(self, limit: int = 10) -> List[Dict[str, Any]]:
        quota = await self.get_storage_quota()
        return quota.largest_files[:limit]

    async def get_storage_breakdown(self) -> Dict[str, Dict[str, int]]:
        quota = await self.get_storage_quota()
        return quota.breakdown

    async def get_account_summary(self) -> Dict[str, Any]:
        """Fetch account, quota, usage, tier and rate limit information concurrently."""
        account, quota, usage, tier_info, rate_limits = await asyncio.gather(
            self.get_account(),
            self.get_storage_quota(),
            self.get_usage_stats(),
            self.get_tier_info(),
            self.get_rate_limits(),
        )
        return {
            "account": account,
            "quota": quota,
            "usage": usage,
            "tier_info": tier_info,
            "rate_limits": rate_limits,
        }

    async def has_tool_access(self, tool_id: str) -> bool:
        return tool_id in await self.get_available_tools()

    async def get_health_status(self) -> Dict[str, Any]:
        """Summarise storage pressure and expiring API keys.

        Returns:
            dict: ``status`` (``healthy``, ``warning`` or ``critical``),
            ``issues`` and ``recommendations``.
        """
        issues: List[str] = []
        recommendations: List[str] = []

        usage_percent = await self.get_storage_usage_percentage()
        if usage_percent >= STORAGE_NEARLY_FULL_PERCENT:
            issues.append("Storage quota nearly exceeded")
            recommendations.append("Consider upgrading your plan or cleaning up old files")
        elif usage_percent >= STORAGE_WARNING_PERCENT:
            issues.append("Storage quota warning")
            recommendations.append("Monitor your storage usage")

        deadline = datetime.now(timezone.utc) + API_KEY_EXPIRY_WARNING
        expiring = 0
        for key in await self.list_api_keys():
            expires_at = parse_timestamp(key.get("expires_at"))
            if expires_at is None:
                continue
            if expires_at.tzinfo is None:
                expires_at = expires_at.replace(tzinfo=timezone.utc)
            if expires_at <= deadline:
                expiring += 1
        if expiring:
            issues.append(f"{expiring} API key(s) expiring soon")
            recommendations.append("Renew or create new API keys")

        status = "healthy"
        if issues:
            status = "critical" if usage_percent >= STORAGE_CRITICAL_PERCENT else "warning"
        return {"status": status, "issues": issues, "recommendations": recommendations}

    async def get_wallet_info(self) -> Dict[str, Any]:
        return await self.client.get("/api/billing/wallet/info")
