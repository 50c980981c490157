"""Field mapper for translating controller payloads into domain entities.

The controller is inconsistent about naming: profiles may carry `name`
or `profileName`, sites `name` or `siteName`, services `name` or
`serviceName`, and list endpoints sometimes return a bare array and
sometimes wrap it. All of that is resolved here so nothing else has to
know about it.
"""

from typing import Any, Optional

from ..domain.entities import DeviceGroup, Profile, Service, ServiceRequest, Site

# Envelope keys seen on controller list responses
LIST_ENVELOPE_KEYS = ("data", "items", "deviceGroups", "profiles", "results")


class ControllerFieldMapper:
    """Maps controller API payloads to and from domain entities."""

    @staticmethod
    def unwrap_list(payload: Any) -> list[dict[str, Any]]:
        """Return the list inside a list response, or [] if there is none."""
        if payload is None:
            return []
        if isinstance(payload, list):
            return payload
        if isinstance(payload, dict):
            for key in LIST_ENVELOPE_KEYS:
                value = payload.get(key)
                if isinstance(value, list):
                    return value
        return []

    @staticmethod
    def _first(raw: dict[str, Any], *keys: str) -> Optional[Any]:
        for key in keys:
            value = raw.get(key)
            if value:
                return value
        return None

    def map_site(self, raw: dict[str, Any], site_id: Optional[str] = None) -> Site:
        """Map a site payload. The name falls back to the id."""
        sid = str(raw.get("id") or site_id or "")
        return Site(
            id=sid,
            name=self._first(raw, "name", "siteName") or sid,
        )

    def map_device_group(self, raw: dict[str, Any], site_id: str) -> DeviceGroup:
        """Map a device group payload owned by `site_id`."""
        return DeviceGroup(
            id=str(raw["id"]),
            site_id=str(raw.get("siteId") or site_id),
            name=self._first(raw, "name", "groupName"),
            device_count=int(raw.get("deviceCount") or 0),
            ap_serial_numbers=list(raw.get("apSerialNumbers") or []),
            profile_ids=[str(p) for p in raw.get("profiles") or []],
        )

    def map_profile(self, raw: dict[str, Any]) -> Profile:
        """Map a profile payload. The name falls back to `profileName`."""
        return Profile(
            id=str(raw["id"]),
            name=self._first(raw, "name", "profileName"),
            device_group_id=raw.get("deviceGroupId"),
        )

    def map_service(self, raw: dict[str, Any], request: ServiceRequest) -> Service:
        """Map a created-service payload, filling gaps from the request."""
        return Service(
            id=str(raw["id"]),
            name=self._first(raw, "serviceName", "name") or request.name,
            ssid=raw.get("ssid") or request.ssid,
            security=raw.get("security") or request.security.value,
            band=raw.get("band") or request.band.value,
            enabled=raw.get("enabled", request.enabled),
            vlan=raw.get("vlan", request.vlan),
            sites=list(raw.get("sites") or request.sites),
            description=raw.get("description", request.description),
        )

    def service_payload(self, request: ServiceRequest) -> dict[str, Any]:
        """Build the create-service request body.

        Optional fields are left out rather than sent as null.
        """
        body: dict[str, Any] = {
            "name": request.name,
            "serviceName": request.name,
            "ssid": request.ssid,
            "security": request.security.value,
            "band": request.band.value,
            "enabled": request.enabled,
            "sites": list(request.sites),
        }
        if request.passphrase:
            body["passphrase"] = request.passphrase
        if request.vlan is not None:
            body["vlan"] = request.vlan
        if request.description:
            body["description"] = request.description
        return body
