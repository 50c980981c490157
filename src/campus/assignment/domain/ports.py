"""Port interfaces for WLAN auto-assignment.

These are abstract interfaces (ports) that define how the domain
interacts with the wireless controller. Concrete implementations
(adapters) are provided in the adapters module.

This follows the Hexagonal Architecture pattern.
"""

from abc import ABC, abstractmethod
from typing import Optional

from .entities import DeviceGroup, Profile, Service, ServiceRequest, Site


class IWirelessControllerPort(ABC):
    """Port for the controller operations the assignment workflows need.

    Every method may raise; the workflows decide which failures are
    per-item and which abort the run.
    """

    @abstractmethod
    async def create_service(self, request: ServiceRequest) -> Service:
        """Create a WLAN on the controller.

        Args:
            request: The WLAN definition

        Returns:
            The created Service, carrying a stable id
        """
        ...

    @abstractmethod
    async def get_device_groups_by_site(self, site_id: str) -> list[DeviceGroup]:
        """List the device groups that belong to a site.

        Args:
            site_id: Controller site id

        Returns:
            Device groups at the site (possibly empty)
        """
        ...

    @abstractmethod
    async def get_profiles_by_device_group(self, device_group_id: str) -> list[Profile]:
        """List the profiles attached to a device group.

        Args:
            device_group_id: Controller device group id

        Returns:
            Profiles of the group, not yet tagged with group or site
        """
        ...

    @abstractmethod
    async def assign_service_to_profile(self, service_id: str, profile_id: str) -> None:
        """Attach a service to a profile.

        Raises:
            Exception: With a readable message when the controller refuses
        """
        ...

    @abstractmethod
    async def sync_multiple_profiles(self, profile_ids: list[str]) -> None:
        """Push configuration for several profiles in one call.

        Raises:
            Exception: If the batch as a whole failed
        """
        ...

    @abstractmethod
    async def sync_profile(self, profile_id: str) -> None:
        """Push configuration for a single profile."""
        ...

    @abstractmethod
    async def get_site_by_id(self, site_id: str) -> Optional[Site]:
        """Look up a site.

        Returns:
            The Site, or None if the controller does not know it
        """
        ...
