"""Tests for CampusControllerAdapter.

Note: These tests mock CampusClient rather than making real API calls.
"""
from unittest.mock import AsyncMock, MagicMock

import pytest

from campus.api.client import CampusClient
from campus.api.exceptions import NotFoundError, ServerError
from campus.assignment.adapters import CampusControllerAdapter
from campus.assignment.domain.entities import ServiceRequest


@pytest.fixture
def mock_client():
    client = MagicMock(spec=CampusClient)
    client.get = AsyncMock()
    client.post = AsyncMock()
    return client


@pytest.fixture
def adapter(mock_client):
    return CampusControllerAdapter(mock_client)


class TestCampusControllerAdapter:
    """Tests for the controller adapter."""

    @pytest.mark.asyncio
    async def test_create_service(self, adapter, mock_client):
        mock_client.post.return_value = {"id": "svc-9", "serviceName": "Staff"}
        request = ServiceRequest(name="Staff", ssid="Staff", passphrase="pw")

        service = await adapter.create_service(request)

        assert service.id == "svc-9"
        assert service.name == "Staff"
        endpoint, body = mock_client.post.call_args.args
        assert endpoint == "/management/v1/services"
        assert body["ssid"] == "Staff"

    @pytest.mark.asyncio
    async def test_create_service_error_propagates(self, adapter, mock_client):
        mock_client.post.side_effect = ServerError("boom", status_code=500)

        with pytest.raises(ServerError):
            await adapter.create_service(ServiceRequest(name="x", ssid="x", security="open"))

    @pytest.mark.asyncio
    async def test_get_device_groups_by_site(self, adapter, mock_client):
        mock_client.get.return_value = {"data": [{"id": "g1"}, {"id": "g2"}]}

        groups = await adapter.get_device_groups_by_site("site-a")

        assert [g.id for g in groups] == ["g1", "g2"]
        assert all(g.site_id == "site-a" for g in groups)
        mock_client.get.assert_awaited_once_with("/management/v1/devicegroups/site-a")

    @pytest.mark.asyncio
    async def test_get_profiles_by_device_group(self, adapter, mock_client):
        mock_client.get.return_value = [{"id": "p1", "profileName": "Lobby"}]

        profiles = await adapter.get_profiles_by_device_group("g1")

        assert profiles[0].id == "p1"
        assert profiles[0].name == "Lobby"
        mock_client.get.assert_awaited_once_with(
            "/management/v1/profiles",
            params={"deviceGroupId": "g1"},
        )

    @pytest.mark.asyncio
    async def test_empty_list_response(self, adapter, mock_client):
        mock_client.get.return_value = None
        assert await adapter.get_profiles_by_device_group("g1") == []

    @pytest.mark.asyncio
    async def test_assign_service_to_profile(self, adapter, mock_client):
        await adapter.assign_service_to_profile("svc-1", "p1")

        mock_client.post.assert_awaited_once_with(
            "/management/v1/profiles/p1/services",
            {"serviceId": "svc-1"},
        )

    @pytest.mark.asyncio
    async def test_sync_multiple_profiles(self, adapter, mock_client):
        await adapter.sync_multiple_profiles(["p1", "p2"])

        mock_client.post.assert_awaited_once_with(
            "/management/v1/profiles/sync",
            {"profileIds": ["p1", "p2"]},
        )

    @pytest.mark.asyncio
    async def test_sync_profile(self, adapter, mock_client):
        await adapter.sync_profile("p1")
        mock_client.post.assert_awaited_once_with("/management/v1/profiles/p1/sync")

    @pytest.mark.asyncio
    async def test_get_site_by_id(self, adapter, mock_client):
        mock_client.get.return_value = {"id": "site-a", "siteName": "HQ"}

        site = await adapter.get_site_by_id("site-a")

        assert site.name == "HQ"

    @pytest.mark.asyncio
    async def test_unknown_site_is_none(self, adapter, mock_client):
        mock_client.get.side_effect = NotFoundError("Site", "site-x")
        assert await adapter.get_site_by_id("site-x") is None
