"""Domain entities for WLAN auto-assignment.

These are pure domain objects with no infrastructure dependencies.
They represent the core concepts of the "create a WLAN and push it to
every profile at these sites" workflow.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Optional


class SecurityType(str, Enum):
    """WLAN security modes supported by the controller."""

    OPEN = "open"
    WPA2_PSK = "wpa2-psk"
    WPA3_SAE = "wpa3-sae"
    WPA2_ENTERPRISE = "wpa2-enterprise"


class Band(str, Enum):
    """Radio bands a WLAN can be broadcast on."""

    BAND_2_4GHZ = "2.4GHz"
    BAND_5GHZ = "5GHz"
    DUAL = "dual"


class DeploymentMode(str, Enum):
    """How a site's discovered profiles are narrowed for deployment."""

    ALL_PROFILES_AT_SITE = "ALL_PROFILES_AT_SITE"
    INCLUDE_ONLY = "INCLUDE_ONLY"  # Only the operator-picked profiles
    EXCLUDE_SOME = "EXCLUDE_SOME"  # Everything except the picked profiles

    @classmethod
    def parse(cls, value) -> Optional["DeploymentMode"]:
        """Return the matching mode, or None for an unrecognized value."""
        try:
            return cls(value)
        except ValueError:
            return None


@dataclass
class Site:
    """A physical or logical location that owns device groups."""

    id: str
    name: str


@dataclass
class DeviceGroup:
    """A set of access points at one site that share profiles."""

    id: str
    site_id: str
    name: Optional[str] = None
    device_count: int = 0
    ap_serial_numbers: list[str] = field(default_factory=list)
    profile_ids: list[str] = field(default_factory=list)


@dataclass
class Profile:
    """A configuration profile that services are attached to.

    After discovery, `device_group_id` and `site_name` record where the
    profile was found. `site_name` holds the originating site id.
    """

    id: str
    name: Optional[str] = None
    device_group_id: Optional[str] = None
    site_name: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.name or self.id

    def enriched(self, device_group_id: str, site_id: str) -> "Profile":
        """Copy of this profile tagged with the group and site it came from."""
        return replace(self, device_group_id=device_group_id, site_name=site_id)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "device_group_id": self.device_group_id,
            "site_name": self.site_name,
        }


@dataclass
class ServiceRequest:
    """Definition of the WLAN to create.

    `sites` lists the site ids whose profiles should receive the WLAN.
    """

    name: str
    ssid: str
    security: SecurityType = SecurityType.WPA2_PSK
    passphrase: Optional[str] = None
    vlan: Optional[int] = None
    band: Band = Band.DUAL
    enabled: bool = True
    sites: list[str] = field(default_factory=list)
    description: Optional[str] = None

    def __post_init__(self):
        self.security = SecurityType(self.security)
        self.band = Band(self.band)

    def validate(self) -> list[str]:
        """Return every problem that would make the controller reject this WLAN."""
        errors = []
        if not self.ssid or not self.ssid.strip():
            errors.append("SSID is required")
        if self.security != SecurityType.OPEN and not (
            self.passphrase and self.passphrase.strip()
        ):
            errors.append("Passphrase is required for secured networks")
        if self.vlan is not None and not 1 <= self.vlan <= 4094:
            errors.append(f"VLAN {self.vlan} is outside 1-4094")
        return errors


@dataclass
class Service:
    """A WLAN created on the controller."""

    id: str
    name: str
    ssid: str
    security: Optional[str] = None
    band: Optional[str] = None
    enabled: bool = True
    vlan: Optional[int] = None
    sites: list[str] = field(default_factory=list)
    description: Optional[str] = None


@dataclass
class SiteDeploymentConfig:
    """Per-site policy for which discovered profiles get the WLAN.

    Only the list that matches `deployment_mode` is meaningful:
    `included_profiles` for INCLUDE_ONLY, `excluded_profiles` for
    EXCLUDE_SOME. Use `with_mode` and `with_selection` to change a config
    so the other list is always cleared.
    """

    site_id: str
    site_name: str
    deployment_mode: DeploymentMode = DeploymentMode.ALL_PROFILES_AT_SITE
    included_profiles: list[str] = field(default_factory=list)
    excluded_profiles: list[str] = field(default_factory=list)
    profiles: list[Profile] = field(default_factory=list)

    def with_mode(self, mode: DeploymentMode) -> "SiteDeploymentConfig":
        """Switch mode, keeping only the selection that still applies."""
        mode = DeploymentMode(mode)
        return replace(
            self,
            deployment_mode=mode,
            included_profiles=(
                list(self.included_profiles) if mode == DeploymentMode.INCLUDE_ONLY else []
            ),
            excluded_profiles=(
                list(self.excluded_profiles) if mode == DeploymentMode.EXCLUDE_SOME else []
            ),
        )

    def with_selection(self, profile_ids: list[str]) -> "SiteDeploymentConfig":
        """Set the picked profiles for the current mode.

        Raises:
            ValueError: If the mode does not take a selection
        """
        if self.deployment_mode == DeploymentMode.INCLUDE_ONLY:
            return replace(self, included_profiles=list(profile_ids), excluded_profiles=[])
        if self.deployment_mode == DeploymentMode.EXCLUDE_SOME:
            return replace(self, included_profiles=[], excluded_profiles=list(profile_ids))
        raise ValueError(f"{self.deployment_mode} does not take a profile selection")

    def with_profiles(self, profiles: list[Profile]) -> "SiteDeploymentConfig":
        """Attach freshly discovered profiles, keeping the selection."""
        return replace(self, profiles=list(profiles))


@dataclass
class EffectiveProfileSet:
    """The concrete profile ids a site will receive."""

    site_id: str
    site_name: str
    deployment_mode: DeploymentMode
    profile_ids: list[str] = field(default_factory=list)
    total_discovered: int = 0
    excluded_count: int = 0

    @property
    def count(self) -> int:
        return len(self.profile_ids)

    def to_dict(self) -> dict:
        return {
            "site_id": self.site_id,
            "site_name": self.site_name,
            "deployment_mode": getattr(self.deployment_mode, "value", self.deployment_mode),
            "profile_ids": self.profile_ids,
            "count": self.count,
            "total_discovered": self.total_discovered,
            "excluded_count": self.excluded_count,
        }


@dataclass
class ValidationResult:
    """Result of validating a site deployment config."""

    valid: bool
    errors: list[str] = field(default_factory=list)


@dataclass
class DiscoveryResult:
    """Profiles found per site, in input site order."""

    profiles_by_site: dict[str, list[Profile]] = field(default_factory=dict)
    device_groups_found: int = 0

    def flatten(self) -> list[Profile]:
        return [p for profiles in self.profiles_by_site.values() for p in profiles]


@dataclass
class AssignmentOptions:
    """Switches for the assignment workflows."""

    dry_run: bool = False
    skip_sync: bool = False


@dataclass
class AssignmentResult:
    """Outcome of attaching the WLAN to one profile."""

    profile_id: str
    profile_name: str
    success: bool
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "profile_id": self.profile_id,
            "profile_name": self.profile_name,
            "success": self.success,
            "error": self.error,
        }


@dataclass
class SyncResult:
    """Outcome of pushing one profile's configuration to its devices."""

    profile_id: str
    profile_name: str
    success: bool
    error: Optional[str] = None
    synced_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "profile_id": self.profile_id,
            "profile_name": self.profile_name,
            "success": self.success,
            "error": self.error,
            "synced_at": self.synced_at.isoformat() if self.synced_at else None,
        }


def _failure_summary(assignments: list[AssignmentResult]) -> Optional[list[str]]:
    failed = sum(1 for a in assignments if not a.success)
    if failed:
        return [f"{failed} profile(s) failed to assign"]
    return None


@dataclass
class AutoAssignmentResponse:
    """Aggregated outcome of the simple "all profiles at every site" workflow.

    `success` is True iff no assignment failed; sync is best-effort and
    never changes it. `profiles_assigned` counts successful assignments.
    """

    service_id: str
    sites_processed: int
    device_groups_found: int
    profiles_assigned: int
    assignments: list[AssignmentResult] = field(default_factory=list)
    sync_results: Optional[list[SyncResult]] = None
    success: bool = True
    errors: Optional[list[str]] = None

    @classmethod
    def aggregate(
        cls,
        service_id: str,
        sites_processed: int,
        device_groups_found: int,
        assignments: list[AssignmentResult],
        sync_results: Optional[list[SyncResult]] = None,
        dry_run: bool = False,
    ) -> "AutoAssignmentResponse":
        errors = _failure_summary(assignments)
        return cls(
            service_id=service_id,
            sites_processed=sites_processed,
            device_groups_found=device_groups_found,
            profiles_assigned=0 if dry_run else sum(1 for a in assignments if a.success),
            assignments=assignments,
            sync_results=sync_results,
            success=errors is None,
            errors=errors,
        )

    @property
    def failed_count(self) -> int:
        return sum(1 for a in self.assignments if not a.success)

    def summary(self) -> str:
        return (
            f"{self.profiles_assigned} of {len(self.assignments)} profile(s) assigned "
            f"across {self.sites_processed} site(s)"
        )

    def to_dict(self) -> dict:
        return {
            "service_id": self.service_id,
            "sites_processed": self.sites_processed,
            "device_groups_found": self.device_groups_found,
            "profiles_assigned": self.profiles_assigned,
            "assignments": [a.to_dict() for a in self.assignments],
            "sync_results": (
                [s.to_dict() for s in self.sync_results]
                if self.sync_results is not None
                else None
            ),
            "success": self.success,
            "errors": self.errors,
        }


@dataclass
class SiteCentricDeploymentResponse:
    """Aggregated outcome of a deployment with per-site policies."""

    service_id: str
    profiles_assigned: int
    sites_processed: int
    effective_sets: list[EffectiveProfileSet] = field(default_factory=list)
    assignments: list[AssignmentResult] = field(default_factory=list)
    sync_results: Optional[list[SyncResult]] = None
    success: bool = True
    errors: Optional[list[str]] = None

    @property
    def failed_count(self) -> int:
        return sum(1 for a in self.assignments if not a.success)

    def summary(self) -> str:
        return (
            f"{self.profiles_assigned} of {len(self.assignments)} profile(s) assigned "
            f"across {self.sites_processed} site(s)"
        )

    def to_dict(self) -> dict:
        return {
            "service_id": self.service_id,
            "profiles_assigned": self.profiles_assigned,
            "sites_processed": self.sites_processed,
            "effective_sets": [s.to_dict() for s in self.effective_sets],
            "assignments": [a.to_dict() for a in self.assignments],
            "sync_results": (
                [s.to_dict() for s in self.sync_results]
                if self.sync_results is not None
                else None
            ),
            "success": self.success,
            "errors": self.errors,
        }
