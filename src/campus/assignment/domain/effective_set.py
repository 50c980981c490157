"""Effective profile set calculation for per-site deployment policies.

Both functions are pure: they look only at the config and the profiles
handed to them, so they can back live form feedback as well as the
deployment workflow itself.
"""

from typing import Optional

from .entities import (
    DeploymentMode,
    EffectiveProfileSet,
    Profile,
    SiteDeploymentConfig,
    ValidationResult,
)

INCLUDE_NOTHING_ERROR = "must select at least one profile to include"
EXCLUDE_EVERYTHING_ERROR = "cannot exclude all profiles - this site would receive no deployment"
UNKNOWN_MODE_ERROR = "unknown deployment mode"


def calculate_effective_set(
    config: SiteDeploymentConfig,
    profiles: Optional[list[Profile]] = None,
) -> EffectiveProfileSet:
    """Resolve which of a site's profiles receive the WLAN.

    Args:
        config: The site's deployment policy
        profiles: Discovered profiles for the site. Defaults to the
            profiles carried on the config.

    Returns:
        EffectiveProfileSet whose ids are unique and keep the first
        discovered order. Ids in `included_profiles` that were not
        discovered are dropped. An unrecognized mode yields an empty set;
        `validate_site_assignment` reports it.
    """
    if profiles is None:
        profiles = config.profiles
    discovered = list(dict.fromkeys(p.id for p in profiles))
    mode = DeploymentMode.parse(config.deployment_mode)

    if mode == DeploymentMode.ALL_PROFILES_AT_SITE:
        selected = discovered
    elif mode == DeploymentMode.INCLUDE_ONLY:
        wanted = set(config.included_profiles)
        selected = [pid for pid in discovered if pid in wanted]
    elif mode == DeploymentMode.EXCLUDE_SOME:
        unwanted = set(config.excluded_profiles)
        selected = [pid for pid in discovered if pid not in unwanted]
    else:
        selected = []

    return EffectiveProfileSet(
        site_id=config.site_id,
        site_name=config.site_name,
        deployment_mode=mode or config.deployment_mode,
        profile_ids=selected,
        total_discovered=len(discovered),
        excluded_count=len(discovered) - len(selected),
    )


def validate_site_assignment(config: SiteDeploymentConfig) -> ValidationResult:
    """Check a site config for policies that cannot be deployed.

    All problems are collected so a caller can show them together.
    ALL_PROFILES_AT_SITE is always valid, whatever its lists contain.
    """
    errors = []
    mode = DeploymentMode.parse(config.deployment_mode)

    if mode is None:
        errors.append(UNKNOWN_MODE_ERROR)

    elif mode == DeploymentMode.INCLUDE_ONLY:
        if not config.included_profiles:
            errors.append(INCLUDE_NOTHING_ERROR)

    elif mode == DeploymentMode.EXCLUDE_SOME:
        discovered = {p.id for p in config.profiles}
        if discovered and discovered <= set(config.excluded_profiles):
            errors.append(EXCLUDE_EVERYTHING_ERROR)

    return ValidationResult(valid=not errors, errors=errors)
