"""Shared fixtures for the WLAN assignment tests."""

import asyncio
from typing import Optional

import pytest

from campus.api.exceptions import ServerError
from campus.assignment.domain.entities import (
    DeviceGroup,
    Profile,
    Service,
    ServiceRequest,
    Site,
)
from campus.assignment.domain.ports import IWirelessControllerPort


class MockController(IWirelessControllerPort):
    """In-memory controller that records every call.

    Topology is site_id -> {group_id: [profile ids]}. Profile names are
    "Name-<id>" unless given explicitly.
    """

    def __init__(self, topology: Optional[dict] = None, site_names: Optional[dict] = None):
        self.topology = topology or {}
        self.site_names = site_names or {}
        self.profile_names: dict[str, str] = {}

        # Failure injection
        self.failing_sites: set[str] = set()
        self.failing_groups: set[str] = set()
        self.failing_assignments: set[str] = set()
        self.failing_syncs: set[str] = set()
        self.batch_sync_fails = False
        self.create_fails = False
        self.site_lookup_fails = False
        self.assign_delay = 0.0

        # Recorded calls
        self.events: list[tuple] = []
        self.created: list[ServiceRequest] = []
        self.assigned: list[tuple[str, str]] = []
        self.batch_syncs: list[list[str]] = []
        self.single_syncs: list[str] = []
        self.site_lookups: list[str] = []

        self._in_flight = 0
        self.max_in_flight = 0
        # In-flight count seen as each assignment starts
        self.start_levels: list[int] = []

    async def create_service(self, request: ServiceRequest) -> Service:
        self.events.append(("create_service", request.ssid))
        if self.create_fails:
            raise ServerError("Service creation failed", status_code=500)
        self.created.append(request)
        return Service(id="svc-1", name=request.name, ssid=request.ssid)

    async def get_device_groups_by_site(self, site_id: str) -> list[DeviceGroup]:
        self.events.append(("get_device_groups_by_site", site_id))
        if site_id in self.failing_sites:
            raise ServerError(f"Site {site_id} unavailable", status_code=503)
        return [
            DeviceGroup(id=group_id, site_id=site_id, profile_ids=list(profile_ids))
            for group_id, profile_ids in self.topology.get(site_id, {}).items()
        ]

    async def get_profiles_by_device_group(self, device_group_id: str) -> list[Profile]:
        self.events.append(("get_profiles_by_device_group", device_group_id))
        if device_group_id in self.failing_groups:
            raise ServerError(f"Group {device_group_id} unavailable", status_code=500)
        for groups in self.topology.values():
            if device_group_id in groups:
                return [
                    Profile(id=pid, name=self.profile_names.get(pid, f"Name-{pid}"))
                    for pid in groups[device_group_id]
                ]
        return []

    async def assign_service_to_profile(self, service_id: str, profile_id: str) -> None:
        self.events.append(("assign_service_to_profile", profile_id))
        self._in_flight += 1
        self.start_levels.append(self._in_flight)
        self.max_in_flight = max(self.max_in_flight, self._in_flight)
        try:
            await asyncio.sleep(self.assign_delay)
            if profile_id in self.failing_assignments:
                raise ServerError(f"Profile {profile_id} rejected the service", status_code=500)
            self.assigned.append((service_id, profile_id))
        finally:
            self._in_flight -= 1

    async def sync_multiple_profiles(self, profile_ids: list[str]) -> None:
        self.events.append(("sync_multiple_profiles", tuple(profile_ids)))
        self.batch_syncs.append(list(profile_ids))
        if self.batch_sync_fails:
            raise ServerError("Batch sync failed", status_code=500)

    async def sync_profile(self, profile_id: str) -> None:
        self.events.append(("sync_profile", profile_id))
        self.single_syncs.append(profile_id)
        if profile_id in self.failing_syncs:
            raise ServerError(f"Sync failed for {profile_id}", status_code=500)

    async def get_site_by_id(self, site_id: str) -> Optional[Site]:
        self.site_lookups.append(site_id)
        if self.site_lookup_fails:
            raise ServerError("Site lookup failed", status_code=500)
        if site_id not in self.site_names:
            return None
        return Site(id=site_id, name=self.site_names[site_id])

    def called(self, method: str) -> list[tuple]:
        return [e for e in self.events if e[0] == method]


@pytest.fixture
def controller():
    """Two sites sharing profile p2 through different groups."""
    return MockController(
        topology={
            "site-a": {"g1": ["p1", "p2"]},
            "site-b": {"g2": ["p2", "p3"]},
        },
        site_names={"site-a": "Building A", "site-b": "Building B"},
    )


@pytest.fixture
def wide_controller():
    """One site with ten profiles p1..p10 in a single group."""
    return MockController(
        topology={"site-a": {"g1": [f"p{i}" for i in range(1, 11)]}},
        site_names={"site-a": "Building A"},
    )


@pytest.fixture
def service_request():
    return ServiceRequest(
        name="Staff",
        ssid="Staff",
        passphrase="correct horse",
        sites=["site-a", "site-b"],
    )


@pytest.fixture
def empty_controller():
    return MockController()
