"""Site display-name resolution with an explicitly owned cache.

The cache lives as long as whoever created it (the FastAPI app, a CLI
run, a test) and is handed to the code that needs names. Nothing is
stored at module level.
"""

import logging

from ..domain.ports import IWirelessControllerPort

logger = logging.getLogger(__name__)


class SiteNameCache:
    """Memoizes site id -> display name lookups against the controller.

    A site the controller does not know resolves to its id and is cached.
    A lookup that fails also resolves to the id but is not cached, so a
    later call can try again.
    """

    def __init__(self, controller: IWirelessControllerPort):
        self.controller = controller
        self._names: dict[str, str] = {}

    async def resolve(self, site_id: str) -> str:
        if site_id in self._names:
            return self._names[site_id]

        try:
            site = await self.controller.get_site_by_id(site_id)
        except Exception as e:
            logger.warning(f"Could not resolve name for site {site_id}: {e}")
            return site_id

        name = site.name if site and site.name else site_id
        self._names[site_id] = name
        return name

    async def resolve_many(self, site_ids: list[str]) -> dict[str, str]:
        return {site_id: await self.resolve(site_id) for site_id in site_ids}

    def remember(self, site_id: str, name: str) -> None:
        """Seed the cache with a name already known to the caller."""
        if name:
            self._names[site_id] = name

    def clear(self) -> None:
        self._names.clear()

    def __contains__(self, site_id: str) -> bool:
        return site_id in self._names

    def __len__(self) -> int:
        return len(self._names)
