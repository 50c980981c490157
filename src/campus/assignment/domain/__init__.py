"""Domain layer for WLAN auto-assignment.

Contains:
- Entities: Core business objects
- Effective set calculation: Pure per-site policy resolution
- Ports: Interface definitions for infrastructure adapters
"""

from .effective_set import calculate_effective_set, validate_site_assignment
from .entities import (
    AssignmentOptions,
    AssignmentResult,
    AutoAssignmentResponse,
    Band,
    DeploymentMode,
    DeviceGroup,
    DiscoveryResult,
    EffectiveProfileSet,
    Profile,
    SecurityType,
    Service,
    ServiceRequest,
    Site,
    SiteCentricDeploymentResponse,
    SiteDeploymentConfig,
    SyncResult,
    ValidationResult,
)
from .ports import IWirelessControllerPort

__all__ = [
    # Entities
    "Site",
    "DeviceGroup",
    "Profile",
    "SecurityType",
    "Band",
    "DeploymentMode",
    "ServiceRequest",
    "Service",
    "SiteDeploymentConfig",
    "EffectiveProfileSet",
    "ValidationResult",
    "DiscoveryResult",
    "AssignmentOptions",
    "AssignmentResult",
    "SyncResult",
    "AutoAssignmentResponse",
    "SiteCentricDeploymentResponse",
    # Effective set
    "calculate_effective_set",
    "validate_site_assignment",
    # Ports
    "IWirelessControllerPort",
]
