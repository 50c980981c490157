"""WLAN auto-assignment use case.

Creates a WLAN (a controller "service") and attaches it to every profile
reachable from the selected sites, in one of two ways:

SIMPLE PATH: create_wlan_with_auto_assignment
├── Validate the WLAN definition (raise, nothing created)
├── Create the service (errors propagate, no retry at this level)
├── Discover profiles for every site, flatten, deduplicate
├── Assign the service to each profile (batched, see below)
└── Sync the successfully assigned profiles (best-effort)

SITE-CENTRIC PATH: create_wlan_with_site_centric_deployment
├── Validate the WLAN definition
├── Discover profiles for the configured sites (read-only)
├── Validate EVERY site config against its fresh profiles
│   └── Any invalid site aborts before anything is created
├── Create the service
├── Resolve each site's effective profile set, union across sites
├── Assign (batched)
└── Sync (best-effort)

Batched assignment:
- Profiles are assigned in batches (default 5). Batches run one after
  another; the profiles inside a batch run concurrently.
- Each call is bounded by the configured call timeout.
- A failed profile becomes a failed AssignmentResult. It never stops the
  rest of its batch or later batches.
- Results come back in the order the profiles were given.

Outcome:
- success is True iff no assignment failed. Sync failures are reported
  in sync_results but never change it.
- profiles_assigned counts successful assignments only (0 on a dry run).
"""

import logging
from typing import Optional

from ...api.exceptions import ServiceRequestValidationError, SiteConfigurationError
from ...api.resilience import process_in_batches, with_timeout
from ..config import AssignmentConfig
from ..domain.effective_set import calculate_effective_set, validate_site_assignment
from ..domain.entities import (
    AssignmentOptions,
    AssignmentResult,
    AutoAssignmentResponse,
    DeploymentMode,
    EffectiveProfileSet,
    Profile,
    ServiceRequest,
    SiteCentricDeploymentResponse,
    SiteDeploymentConfig,
    SyncResult,
)
from ..domain.ports import IWirelessControllerPort
from .discover_profiles import ProfileDiscovery, deduplicate_profiles
from .site_names import SiteNameCache
from .sync_profiles import SyncProfilesUseCase, failure_message

logger = logging.getLogger(__name__)

DRY_RUN_NOTE = "Dry run - not executed"


class WLANAssignmentUseCase:
    """Create a WLAN and push it to the profiles of the selected sites."""

    def __init__(
        self,
        controller: IWirelessControllerPort,
        config: Optional[AssignmentConfig] = None,
        site_names: Optional[SiteNameCache] = None,
    ):
        """Initialize the use case.

        Args:
            controller: Port to the wireless controller
            config: Batch size, call timeout and discovery concurrency
            site_names: Cache used to name sites that have no config of
                their own in a site-centric deployment
        """
        self.controller = controller
        self.config = config or AssignmentConfig()
        self.site_names = site_names
        self.discovery = ProfileDiscovery(
            controller,
            discovery_concurrency=self.config.discovery_concurrency,
        )
        self.sync = SyncProfilesUseCase(controller, call_timeout=self.config.call_timeout)

    # ----------------------------------------
    # Simple path
    # ----------------------------------------

    async def create_wlan_with_auto_assignment(
        self,
        service_request: ServiceRequest,
        options: Optional[AssignmentOptions] = None,
    ) -> AutoAssignmentResponse:
        """Create a WLAN and assign it to every profile at every site.

        Raises:
            ServiceRequestValidationError: If the WLAN definition is incomplete
            CampusError: If the controller fails to create the service
        """
        options = options or AssignmentOptions()
        self._check_request(service_request)

        service = await self.controller.create_service(service_request)
        logger.info(f"Created service {service.id} ('{service.name}')")

        discovery = await self.discovery.discover(service_request.sites)
        profiles = deduplicate_profiles(discovery.flatten())
        logger.info(
            f"Found {len(profiles)} unique profile(s) across "
            f"{len(service_request.sites)} site(s)"
        )

        assignments, sync_results = await self._assign_and_sync(service.id, profiles, options)

        response = AutoAssignmentResponse.aggregate(
            service_id=service.id,
            sites_processed=len(service_request.sites),
            device_groups_found=discovery.device_groups_found,
            assignments=assignments,
            sync_results=sync_results,
            dry_run=options.dry_run,
        )
        logger.info(f"Auto-assignment complete: {response.summary()}")
        return response

    # ----------------------------------------
    # Site-centric path
    # ----------------------------------------

    async def create_wlan_with_site_centric_deployment(
        self,
        service_request: ServiceRequest,
        site_assignments: list[SiteDeploymentConfig],
        options: Optional[AssignmentOptions] = None,
    ) -> SiteCentricDeploymentResponse:
        """Create a WLAN and deploy it according to per-site policies.

        Sites listed in `service_request.sites` without a config of their
        own are deployed to all of their profiles.

        Raises:
            ServiceRequestValidationError: If the WLAN definition is incomplete
                or no site was selected
            SiteConfigurationError: If any site config is invalid
            CampusError: If the controller fails to create the service
        """
        options = options or AssignmentOptions()
        self._check_request(service_request)

        configs = await self._complete_site_configs(service_request, site_assignments)
        if not configs:
            raise ServiceRequestValidationError(["At least one site must be selected"])

        site_ids = [c.site_id for c in configs]
        discovery = await self.discovery.discover(site_ids)
        configs = [c.with_profiles(discovery.profiles_by_site.get(c.site_id, [])) for c in configs]

        site_errors = {}
        for config in configs:
            validation = validate_site_assignment(config)
            if not validation.valid:
                site_errors[config.site_id] = validation.errors
        if site_errors:
            logger.warning(f"Rejected deployment: {len(site_errors)} invalid site config(s)")
            raise SiteConfigurationError(site_errors)

        service = await self.controller.create_service(service_request)
        logger.info(f"Created service {service.id} ('{service.name}')")

        effective_sets: list[EffectiveProfileSet] = []
        targets: dict[str, Profile] = {}
        for config in configs:
            effective = calculate_effective_set(config, config.profiles)
            effective_sets.append(effective)
            by_id = {p.id: p for p in config.profiles}
            for pid in effective.profile_ids:
                if pid not in targets:
                    targets[pid] = by_id[pid]
            logger.info(
                f"Site {config.site_name}: {effective.count}/{effective.total_discovered} "
                f"profile(s) ({effective.deployment_mode})"
            )

        profiles = list(targets.values())
        assignments, sync_results = await self._assign_and_sync(service.id, profiles, options)

        failed = sum(1 for a in assignments if not a.success)
        response = SiteCentricDeploymentResponse(
            service_id=service.id,
            profiles_assigned=0 if options.dry_run else len(assignments) - failed,
            sites_processed=len(configs),
            effective_sets=effective_sets,
            assignments=assignments,
            sync_results=sync_results,
            success=failed == 0,
            errors=[f"{failed} profile(s) failed to assign"] if failed else None,
        )
        logger.info(f"Site-centric deployment complete: {response.summary()}")
        return response

    # ----------------------------------------
    # Read-only
    # ----------------------------------------

    async def preview_profiles_for_sites(self, site_ids: list[str]) -> list[Profile]:
        """Profiles a deployment to these sites would reach."""
        return await self.discovery.preview_profiles_for_sites(site_ids)

    # ----------------------------------------
    # Assignment
    # ----------------------------------------

    async def assign_to_profiles(
        self,
        service_id: str,
        profiles: list[Profile],
    ) -> list[AssignmentResult]:
        """Attach a service to profiles in sequential concurrent batches.

        Returns:
            One AssignmentResult per profile, in input order
        """
        if not profiles:
            return []

        total_batches = (len(profiles) + self.config.batch_size - 1) // self.config.batch_size

        def log_batch(batch_number: int, results: list[AssignmentResult]) -> None:
            failed = sum(1 for r in results if not r.success)
            logger.info(
                f"Batch {batch_number}/{total_batches}: "
                f"{len(results) - failed} assigned, {failed} failed"
            )

        async def assign(profile: Profile) -> AssignmentResult:
            return await self._assign_one(service_id, profile)

        return await process_in_batches(
            profiles,
            assign,
            batch_size=self.config.batch_size,
            on_batch_complete=log_batch,
        )

    async def _assign_one(self, service_id: str, profile: Profile) -> AssignmentResult:
        try:
            await with_timeout(
                self.controller.assign_service_to_profile,
                self.config.call_timeout,
                service_id,
                profile.id,
            )
        except Exception as e:
            logger.error(f"Failed to assign service {service_id} to profile {profile.id}: {e}")
            return AssignmentResult(
                profile_id=profile.id,
                profile_name=profile.display_name,
                success=False,
                error=failure_message(e),
            )
        return AssignmentResult(
            profile_id=profile.id,
            profile_name=profile.display_name,
            success=True,
        )

    # ----------------------------------------
    # Helpers
    # ----------------------------------------

    async def _assign_and_sync(
        self,
        service_id: str,
        profiles: list[Profile],
        options: AssignmentOptions,
    ) -> tuple[list[AssignmentResult], Optional[list[SyncResult]]]:
        if options.dry_run:
            logger.info(f"Dry run: skipping assignment of {len(profiles)} profile(s)")
            return [
                AssignmentResult(
                    profile_id=p.id,
                    profile_name=p.display_name,
                    success=True,
                    error=DRY_RUN_NOTE,
                )
                for p in profiles
            ], None

        assignments = await self.assign_to_profiles(service_id, profiles)

        succeeded = [a for a in assignments if a.success]
        if options.skip_sync or not succeeded:
            return assignments, None

        sync_results = await self.sync.execute(
            [a.profile_id for a in succeeded],
            {a.profile_id: a.profile_name for a in succeeded},
        )
        return assignments, sync_results

    def _check_request(self, service_request: ServiceRequest) -> None:
        errors = service_request.validate()
        if errors:
            logger.warning(f"Rejected WLAN definition: {'; '.join(errors)}")
            raise ServiceRequestValidationError(errors)

    async def _complete_site_configs(
        self,
        service_request: ServiceRequest,
        site_assignments: list[SiteDeploymentConfig],
    ) -> list[SiteDeploymentConfig]:
        configs: dict[str, SiteDeploymentConfig] = {}
        for config in site_assignments:
            configs.setdefault(config.site_id, config)

        for site_id in service_request.sites:
            if site_id in configs:
                continue
            name = await self.site_names.resolve(site_id) if self.site_names else site_id
            configs[site_id] = SiteDeploymentConfig(
                site_id=site_id,
                site_name=name,
                deployment_mode=DeploymentMode.ALL_PROFILES_AT_SITE,
            )
        return list(configs.values())
