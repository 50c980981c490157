"""Pydantic schemas for API request/response validation."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from ..domain.entities import (
    AssignmentResult,
    AutoAssignmentResponse,
    EffectiveProfileSet,
    Profile,
    ServiceRequest,
    SiteCentricDeploymentResponse,
    SiteDeploymentConfig,
    SyncResult,
)


class SecurityTypeDTO(str, Enum):
    """WLAN security modes."""

    OPEN = "open"
    WPA2_PSK = "wpa2-psk"
    WPA3_SAE = "wpa3-sae"
    WPA2_ENTERPRISE = "wpa2-enterprise"


class BandDTO(str, Enum):
    """Radio bands."""

    BAND_2_4GHZ = "2.4GHz"
    BAND_5GHZ = "5GHz"
    DUAL = "dual"


class DeploymentModeDTO(str, Enum):
    """Per-site deployment policy."""

    ALL_PROFILES_AT_SITE = "ALL_PROFILES_AT_SITE"
    INCLUDE_ONLY = "INCLUDE_ONLY"
    EXCLUDE_SOME = "EXCLUDE_SOME"


# ========== Requests ==========


class ServiceRequestDTO(BaseModel):
    """WLAN definition submitted by the operator."""

    name: Optional[str] = Field(None, description="Service name (defaults to the SSID)")
    ssid: str
    security: SecurityTypeDTO = SecurityTypeDTO.WPA2_PSK
    passphrase: Optional[str] = None
    vlan: Optional[int] = None
    band: BandDTO = BandDTO.DUAL
    enabled: bool = True
    sites: list[str] = Field(default_factory=list, description="Target site ids")
    description: Optional[str] = None

    def to_domain(self) -> ServiceRequest:
        return ServiceRequest(
            name=self.name or self.ssid,
            ssid=self.ssid,
            security=self.security.value,
            passphrase=self.passphrase,
            vlan=self.vlan,
            band=self.band.value,
            enabled=self.enabled,
            sites=list(self.sites),
            description=self.description,
        )


class ProfileDTO(BaseModel):
    """A discovered profile."""

    id: str
    name: Optional[str] = None
    device_group_id: Optional[str] = None
    site_name: Optional[str] = None

    @classmethod
    def from_entity(cls, profile: Profile) -> "ProfileDTO":
        return cls(**profile.to_dict())

    def to_domain(self) -> Profile:
        return Profile(
            id=self.id,
            name=self.name,
            device_group_id=self.device_group_id,
            site_name=self.site_name,
        )


class SiteDeploymentConfigDTO(BaseModel):
    """Per-site deployment policy."""

    site_id: str
    site_name: Optional[str] = None
    deployment_mode: DeploymentModeDTO = DeploymentModeDTO.ALL_PROFILES_AT_SITE
    included_profiles: list[str] = Field(default_factory=list)
    excluded_profiles: list[str] = Field(default_factory=list)
    profiles: list[ProfileDTO] = Field(
        default_factory=list,
        description="Discovered profiles (only used for /effective-set)",
    )

    @classmethod
    def from_entity(cls, config: SiteDeploymentConfig) -> "SiteDeploymentConfigDTO":
        return cls(
            site_id=config.site_id,
            site_name=config.site_name,
            deployment_mode=DeploymentModeDTO(config.deployment_mode.value),
            included_profiles=list(config.included_profiles),
            excluded_profiles=list(config.excluded_profiles),
            profiles=[ProfileDTO.from_entity(p) for p in config.profiles],
        )

    def to_domain(self) -> SiteDeploymentConfig:
        return SiteDeploymentConfig(
            site_id=self.site_id,
            site_name=self.site_name or self.site_id,
            deployment_mode=self.deployment_mode.value,
            included_profiles=list(self.included_profiles),
            excluded_profiles=list(self.excluded_profiles),
            profiles=[p.to_domain() for p in self.profiles],
        )


class AssignmentOptionsDTO(BaseModel):
    """Workflow switches."""

    dry_run: bool = False
    skip_sync: bool = False


class AutoAssignRequest(BaseModel):
    """Request for the all-profiles-at-every-site workflow."""

    service: ServiceRequestDTO
    options: AssignmentOptionsDTO = Field(default_factory=AssignmentOptionsDTO)


class SiteCentricRequest(BaseModel):
    """Request for a deployment with per-site policies."""

    service: ServiceRequestDTO
    site_assignments: list[SiteDeploymentConfigDTO] = Field(default_factory=list)
    options: AssignmentOptionsDTO = Field(default_factory=AssignmentOptionsDTO)


class SitesRequest(BaseModel):
    """A list of site ids."""

    site_ids: list[str] = Field(default_factory=list)


# ========== Responses ==========


class AssignmentResultDTO(BaseModel):
    """Outcome for one profile."""

    profile_id: str
    profile_name: str
    success: bool
    error: Optional[str] = None

    @classmethod
    def from_entity(cls, result: AssignmentResult) -> "AssignmentResultDTO":
        return cls(**result.to_dict())


class SyncResultDTO(BaseModel):
    """Sync outcome for one profile."""

    profile_id: str
    profile_name: str
    success: bool
    error: Optional[str] = None
    synced_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, result: SyncResult) -> "SyncResultDTO":
        return cls(
            profile_id=result.profile_id,
            profile_name=result.profile_name,
            success=result.success,
            error=result.error,
            synced_at=result.synced_at,
        )


class EffectiveProfileSetDTO(BaseModel):
    """Profiles one site will receive."""

    site_id: str
    site_name: str
    deployment_mode: str
    profile_ids: list[str] = Field(default_factory=list)
    count: int = 0
    total_discovered: int = 0
    excluded_count: int = 0

    @classmethod
    def from_entity(cls, effective: EffectiveProfileSet) -> "EffectiveProfileSetDTO":
        return cls(**effective.to_dict())


class AutoAssignmentResponseDTO(BaseModel):
    """Aggregated outcome of the simple workflow."""

    service_id: str
    sites_processed: int
    device_groups_found: int
    profiles_assigned: int
    assignments: list[AssignmentResultDTO] = Field(default_factory=list)
    sync_results: Optional[list[SyncResultDTO]] = None
    success: bool
    errors: Optional[list[str]] = None
    summary: str = ""

    @classmethod
    def from_entity(cls, response: AutoAssignmentResponse) -> "AutoAssignmentResponseDTO":
        return cls(
            service_id=response.service_id,
            sites_processed=response.sites_processed,
            device_groups_found=response.device_groups_found,
            profiles_assigned=response.profiles_assigned,
            assignments=[AssignmentResultDTO.from_entity(a) for a in response.assignments],
            sync_results=(
                [SyncResultDTO.from_entity(s) for s in response.sync_results]
                if response.sync_results is not None
                else None
            ),
            success=response.success,
            errors=response.errors,
            summary=response.summary(),
        )


class SiteCentricResponseDTO(BaseModel):
    """Aggregated outcome of a site-centric deployment."""

    service_id: str
    profiles_assigned: int
    sites_processed: int
    effective_sets: list[EffectiveProfileSetDTO] = Field(default_factory=list)
    assignments: list[AssignmentResultDTO] = Field(default_factory=list)
    sync_results: Optional[list[SyncResultDTO]] = None
    success: bool
    errors: Optional[list[str]] = None
    summary: str = ""

    @classmethod
    def from_entity(cls, response: SiteCentricDeploymentResponse) -> "SiteCentricResponseDTO":
        return cls(
            service_id=response.service_id,
            profiles_assigned=response.profiles_assigned,
            sites_processed=response.sites_processed,
            effective_sets=[EffectiveProfileSetDTO.from_entity(e) for e in response.effective_sets],
            assignments=[AssignmentResultDTO.from_entity(a) for a in response.assignments],
            sync_results=(
                [SyncResultDTO.from_entity(s) for s in response.sync_results]
                if response.sync_results is not None
                else None
            ),
            success=response.success,
            errors=response.errors,
            summary=response.summary(),
        )


class PreviewResponse(BaseModel):
    """Distinct profiles a deployment would reach."""

    site_ids: list[str] = Field(default_factory=list)
    profiles: list[ProfileDTO] = Field(default_factory=list)
    total: int = 0


class DiscoverResponse(BaseModel):
    """Starting per-site configs with discovered profiles."""

    site_configs: list[SiteDeploymentConfigDTO] = Field(default_factory=list)


class EffectiveSetResponse(BaseModel):
    """Live feedback for one site config."""

    effective_set: EffectiveProfileSetDTO
    valid: bool
    errors: list[str] = Field(default_factory=list)


class WorkflowErrorDTO(BaseModel):
    """Pre-flight rejection details."""

    message: str
    errors: list[str] = Field(default_factory=list)
    site_errors: dict[str, list[str]] = Field(default_factory=dict)
