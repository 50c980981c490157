"""Use cases for WLAN auto-assignment.

Each use case represents a single operator action and orchestrates
domain logic without knowing about infrastructure details.
"""

from .auto_assign import DRY_RUN_NOTE, WLANAssignmentUseCase
from .discover_profiles import ProfileDiscovery, deduplicate_profiles
from .site_names import SiteNameCache
from .sync_profiles import SyncProfilesUseCase

__all__ = [
    "WLANAssignmentUseCase",
    "DRY_RUN_NOTE",
    "ProfileDiscovery",
    "deduplicate_profiles",
    "SiteNameCache",
    "SyncProfilesUseCase",
]
