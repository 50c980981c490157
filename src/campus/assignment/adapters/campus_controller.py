"""Campus controller adapter.

This adapter implements IWirelessControllerPort on top of CampusClient,
translating between the controller's /management REST API and domain
entities.

Unlike result-returning adapters, every method here lets controller
errors propagate: the use cases decide whether a failure is per-item
or aborts the workflow.
"""

import logging
from typing import Optional

from ...api.client import CampusClient
from ...api.exceptions import NotFoundError
from ..domain.entities import DeviceGroup, Profile, Service, ServiceRequest, Site
from ..domain.ports import IWirelessControllerPort
from .field_mapper import ControllerFieldMapper

logger = logging.getLogger(__name__)

SERVICES_PATH = "/management/v1/services"
DEVICE_GROUPS_BY_SITE_PATH = "/management/v1/devicegroups/{site_id}"
PROFILES_PATH = "/management/v1/profiles"
PROFILE_SERVICES_PATH = "/management/v1/profiles/{profile_id}/services"
PROFILES_SYNC_PATH = "/management/v1/profiles/sync"
PROFILE_SYNC_PATH = "/management/v1/profiles/{profile_id}/sync"
SITE_PATH = "/management/v1/sites/{site_id}"


class CampusControllerAdapter(IWirelessControllerPort):
    """Adapter exposing the controller operations the workflows use."""

    def __init__(
        self,
        client: CampusClient,
        mapper: Optional[ControllerFieldMapper] = None,
    ):
        """Initialize with an open CampusClient.

        Args:
            client: Client inside its async context
            mapper: Payload mapper (defaults to ControllerFieldMapper)
        """
        self.client = client
        self.mapper = mapper or ControllerFieldMapper()

    async def create_service(self, request: ServiceRequest) -> Service:
        payload = self.mapper.service_payload(request)
        logger.info(f"Creating service '{request.name}' (ssid={request.ssid})")
        raw = await self.client.post(SERVICES_PATH, payload)
        return self.mapper.map_service(raw or {}, request)

    async def get_device_groups_by_site(self, site_id: str) -> list[DeviceGroup]:
        raw = await self.client.get(DEVICE_GROUPS_BY_SITE_PATH.format(site_id=site_id))
        groups = [
            self.mapper.map_device_group(item, site_id)
            for item in self.mapper.unwrap_list(raw)
        ]
        logger.debug(f"Site {site_id}: {len(groups)} device group(s)")
        return groups

    async def get_profiles_by_device_group(self, device_group_id: str) -> list[Profile]:
        raw = await self.client.get(
            PROFILES_PATH,
            params={"deviceGroupId": device_group_id},
        )
        return [self.mapper.map_profile(item) for item in self.mapper.unwrap_list(raw)]

    async def assign_service_to_profile(self, service_id: str, profile_id: str) -> None:
        await self.client.post(
            PROFILE_SERVICES_PATH.format(profile_id=profile_id),
            {"serviceId": service_id},
        )

    async def sync_multiple_profiles(self, profile_ids: list[str]) -> None:
        await self.client.post(PROFILES_SYNC_PATH, {"profileIds": list(profile_ids)})

    async def sync_profile(self, profile_id: str) -> None:
        await self.client.post(PROFILE_SYNC_PATH.format(profile_id=profile_id))

    async def get_site_by_id(self, site_id: str) -> Optional[Site]:
        try:
            raw = await self.client.get(SITE_PATH.format(site_id=site_id))
        except NotFoundError:
            logger.warning(f"Site {site_id} not found on controller")
            return None
        if not raw:
            return None
        return self.mapper.map_site(raw, site_id=site_id)
