"""Profile discovery use case.

Walks site -> device groups -> profiles on the controller and returns
every profile reachable from the requested sites, each tagged with the
device group and site it was found under.

Failure isolation:
- A site whose device groups cannot be fetched contributes no profiles.
- A device group whose profiles cannot be fetched contributes no profiles;
  the other groups at that site are still read.
Neither case raises; both are logged.

Sites are discovered one after another by default. With
discovery_concurrency > 1 they are read in concurrent batches of that
size; the result is identical, only faster.
"""

import logging
from typing import Optional

from ...api.resilience import process_in_batches
from ..domain.entities import (
    DeploymentMode,
    DiscoveryResult,
    Profile,
    SiteDeploymentConfig,
)
from ..domain.ports import IWirelessControllerPort
from .site_names import SiteNameCache

logger = logging.getLogger(__name__)


def deduplicate_profiles(profiles: list[Profile]) -> list[Profile]:
    """Keep the first occurrence of each profile id, preserving order."""
    seen: dict[str, Profile] = {}
    for profile in profiles:
        if profile.id not in seen:
            seen[profile.id] = profile
    return list(seen.values())


class ProfileDiscovery:
    """Discover the profiles reachable from a set of sites."""

    def __init__(
        self,
        controller: IWirelessControllerPort,
        discovery_concurrency: int = 1,
    ):
        self.controller = controller
        self.discovery_concurrency = max(1, discovery_concurrency)

    async def discover(self, site_ids: list[str]) -> DiscoveryResult:
        """Discover profiles per site.

        Returns:
            DiscoveryResult keyed by every input site id in input order
            (empty list for sites that failed or have no profiles), plus
            the number of device groups read.
        """
        result = DiscoveryResult()
        if not site_ids:
            return result

        logger.info(f"Discovering profiles for {len(site_ids)} site(s)")

        outcomes = await process_in_batches(
            list(site_ids),
            self._discover_site,
            batch_size=self.discovery_concurrency,
        )
        for site_id, (profiles, group_count) in zip(site_ids, outcomes):
            result.profiles_by_site[site_id] = profiles
            result.device_groups_found += group_count

        total = sum(len(p) for p in result.profiles_by_site.values())
        logger.info(
            f"Discovery complete: {total} profile(s) in "
            f"{result.device_groups_found} device group(s)"
        )
        return result

    async def discover_profiles_for_sites(self, site_ids: list[str]) -> dict[str, list[Profile]]:
        """Map each site id to the profiles found under it."""
        return (await self.discover(site_ids)).profiles_by_site

    async def preview_profiles_for_sites(self, site_ids: list[str]) -> list[Profile]:
        """Read-only list of the distinct profiles the sites would reach."""
        discovery = await self.discover(site_ids)
        return deduplicate_profiles(discovery.flatten())

    async def seed_site_configs(
        self,
        site_ids: list[str],
        site_names: Optional[SiteNameCache] = None,
    ) -> list[SiteDeploymentConfig]:
        """Starting configs for a site-centric deployment.

        Every site starts in ALL_PROFILES_AT_SITE with its discovered
        profiles attached and its display name resolved.
        """
        discovery = await self.discover(site_ids)
        names = await site_names.resolve_many(site_ids) if site_names else {}
        return [
            SiteDeploymentConfig(
                site_id=site_id,
                site_name=names.get(site_id, site_id),
                deployment_mode=DeploymentMode.ALL_PROFILES_AT_SITE,
                profiles=profiles,
            )
            for site_id, profiles in discovery.profiles_by_site.items()
        ]

    async def _discover_site(self, site_id: str) -> tuple[list[Profile], int]:
        try:
            groups = await self.controller.get_device_groups_by_site(site_id)
        except Exception as e:
            logger.error(f"Failed to fetch device groups for site {site_id}: {e}")
            return [], 0

        profiles: list[Profile] = []
        for group in groups:
            try:
                group_profiles = await self.controller.get_profiles_by_device_group(group.id)
            except Exception as e:
                logger.error(
                    f"Failed to fetch profiles for device group {group.id} "
                    f"(site {site_id}): {e}"
                )
                continue
            profiles.extend(p.enriched(group.id, site_id) for p in group_profiles)

        logger.debug(
            f"Site {site_id}: {len(profiles)} profile(s) across {len(groups)} group(s)"
        )
        return profiles, len(groups)
