"""Profile synchronization use case.

After a service has been attached to profiles, the controller has to
push the new configuration out to the access points. This tries one
batch call first; if the controller rejects the batch, every profile is
synced on its own, concurrently, so one bad profile cannot hold back the
rest.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional

from ...api.resilience import with_fallback, with_timeout
from ..domain.entities import SyncResult
from ..domain.ports import IWirelessControllerPort

logger = logging.getLogger(__name__)


def failure_message(error: Exception) -> str:
    """Readable message for a per-item failure."""
    return getattr(error, "message", None) or str(error) or error.__class__.__name__


class SyncProfilesUseCase:
    """Synchronize profiles, falling back to one call per profile."""

    def __init__(
        self,
        controller: IWirelessControllerPort,
        call_timeout: Optional[float] = None,
    ):
        self.controller = controller
        self.call_timeout = call_timeout

    async def execute(
        self,
        profile_ids: list[str],
        profile_names: Optional[dict[str, str]] = None,
    ) -> list[SyncResult]:
        """Sync the given profiles.

        Args:
            profile_ids: Profiles to sync
            profile_names: Optional id -> display name for the results

        Returns:
            One SyncResult per id, in input order. Never raises for
            controller failures.
        """
        if not profile_ids:
            return []

        names = profile_names or {}
        logger.info(f"Syncing {len(profile_ids)} profile(s)")

        results = await with_fallback(
            self._sync_batch,
            self._sync_individually,
            list(profile_ids),
            names,
        )

        failed = sum(1 for r in results if not r.success)
        if failed:
            logger.warning(f"Sync finished with {failed}/{len(results)} failure(s)")
        else:
            logger.info(f"Synced {len(results)} profile(s)")
        return results

    async def _sync_batch(
        self,
        profile_ids: list[str],
        names: dict[str, str],
    ) -> list[SyncResult]:
        await with_timeout(
            self.controller.sync_multiple_profiles,
            self.call_timeout,
            profile_ids,
        )
        synced_at = datetime.now(timezone.utc)
        return [
            SyncResult(
                profile_id=pid,
                profile_name=names.get(pid, pid),
                success=True,
                synced_at=synced_at,
            )
            for pid in profile_ids
        ]

    async def _sync_individually(
        self,
        profile_ids: list[str],
        names: dict[str, str],
    ) -> list[SyncResult]:
        logger.info(f"Falling back to per-profile sync for {len(profile_ids)} profile(s)")
        return list(
            await asyncio.gather(*(self._sync_one(pid, names) for pid in profile_ids))
        )

    async def _sync_one(self, profile_id: str, names: dict[str, str]) -> SyncResult:
        name = names.get(profile_id, profile_id)
        try:
            await with_timeout(self.controller.sync_profile, self.call_timeout, profile_id)
        except Exception as e:
            logger.error(f"Failed to sync profile {profile_id}: {e}")
            return SyncResult(
                profile_id=profile_id,
                profile_name=name,
                success=False,
                error=failure_message(e),
            )
        return SyncResult(
            profile_id=profile_id,
            profile_name=name,
            success=True,
            synced_at=datetime.now(timezone.utc),
        )
