"""FastAPI router for WLAN auto-assignment endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException

from ...api.error_sanitizer import sanitize_error_message
from ...api.exceptions import (
    CampusError,
    ServiceRequestValidationError,
    SiteConfigurationError,
    WorkflowError,
)
from ..domain.effective_set import calculate_effective_set, validate_site_assignment
from ..domain.entities import AssignmentOptions
from ..use_cases import ProfileDiscovery, SiteNameCache, WLANAssignmentUseCase
from .dependencies import (
    get_assignment_use_case,
    get_profile_discovery,
    get_site_name_cache,
    verify_api_key,
)
from .schemas import (
    AutoAssignmentResponseDTO,
    AutoAssignRequest,
    DiscoverResponse,
    EffectiveProfileSetDTO,
    EffectiveSetResponse,
    PreviewResponse,
    ProfileDTO,
    SiteCentricRequest,
    SiteCentricResponseDTO,
    SiteDeploymentConfigDTO,
    SitesRequest,
    WorkflowErrorDTO,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/wlans", tags=["WLAN Assignment"])


def _workflow_error(e: WorkflowError) -> HTTPException:
    """422 carrying every pre-flight problem."""
    site_errors = getattr(e, "site_errors", {})
    body = WorkflowErrorDTO(
        message=sanitize_error_message(e.message),
        errors=[sanitize_error_message(err) for err in e.errors],
        site_errors={
            site_id: [sanitize_error_message(err) for err in errors]
            for site_id, errors in site_errors.items()
        },
    )
    return HTTPException(status_code=422, detail=body.model_dump())


def _controller_error(e: CampusError) -> HTTPException:
    """502 for a controller failure that aborted the workflow."""
    status_code = 504 if e.code == "TIMEOUT_ERROR" else 502
    return HTTPException(
        status_code=status_code,
        detail=sanitize_error_message(e.message, "Controller error"),
    )


@router.post("/auto-assign", response_model=AutoAssignmentResponseDTO)
async def auto_assign(
    request: AutoAssignRequest,
    use_case: WLANAssignmentUseCase = Depends(get_assignment_use_case),
    _auth: bool = Depends(verify_api_key),
):
    """Create a WLAN and assign it to every profile at the selected sites.

    Partial success is a normal outcome: check `success` and the per-profile
    `assignments` rather than the HTTP status.
    """
    options = AssignmentOptions(
        dry_run=request.options.dry_run,
        skip_sync=request.options.skip_sync,
    )
    try:
        response = await use_case.create_wlan_with_auto_assignment(
            request.service.to_domain(),
            options,
        )
    except ServiceRequestValidationError as e:
        raise _workflow_error(e)
    except CampusError as e:
        logger.error(f"Auto-assignment aborted: {e}")
        raise _controller_error(e)

    return AutoAssignmentResponseDTO.from_entity(response)


@router.post("/site-centric", response_model=SiteCentricResponseDTO)
async def site_centric_deploy(
    request: SiteCentricRequest,
    use_case: WLANAssignmentUseCase = Depends(get_assignment_use_case),
    _auth: bool = Depends(verify_api_key),
):
    """Create a WLAN and deploy it with a policy per site.

    Every site config is validated before anything is created; a single
    invalid site rejects the whole request with 422.
    """
    options = AssignmentOptions(
        dry_run=request.options.dry_run,
        skip_sync=request.options.skip_sync,
    )
    try:
        response = await use_case.create_wlan_with_site_centric_deployment(
            request.service.to_domain(),
            [c.to_domain() for c in request.site_assignments],
            options,
        )
    except (ServiceRequestValidationError, SiteConfigurationError) as e:
        raise _workflow_error(e)
    except CampusError as e:
        logger.error(f"Site-centric deployment aborted: {e}")
        raise _controller_error(e)

    return SiteCentricResponseDTO.from_entity(response)


@router.post("/preview", response_model=PreviewResponse)
async def preview_profiles(
    request: SitesRequest,
    discovery: ProfileDiscovery = Depends(get_profile_discovery),
    _auth: bool = Depends(verify_api_key),
):
    """List the distinct profiles a deployment to these sites would reach."""
    profiles = await discovery.preview_profiles_for_sites(request.site_ids)
    return PreviewResponse(
        site_ids=request.site_ids,
        profiles=[ProfileDTO.from_entity(p) for p in profiles],
        total=len(profiles),
    )


@router.post("/discover", response_model=DiscoverResponse)
async def discover_site_configs(
    request: SitesRequest,
    discovery: ProfileDiscovery = Depends(get_profile_discovery),
    site_names: SiteNameCache = Depends(get_site_name_cache),
    _auth: bool = Depends(verify_api_key),
):
    """Starting per-site configs (all profiles) with their discovered profiles."""
    configs = await discovery.seed_site_configs(request.site_ids, site_names)
    return DiscoverResponse(
        site_configs=[SiteDeploymentConfigDTO.from_entity(c) for c in configs],
    )


@router.post("/effective-set", response_model=EffectiveSetResponse)
async def effective_set(
    config: SiteDeploymentConfigDTO,
    _auth: bool = Depends(verify_api_key),
):
    """Resolve and validate one site config without touching the controller."""
    domain_config = config.to_domain()
    effective = calculate_effective_set(domain_config, domain_config.profiles)
    validation = validate_site_assignment(domain_config)
    return EffectiveSetResponse(
        effective_set=EffectiveProfileSetDTO.from_entity(effective),
        valid=validation.valid,
        errors=validation.errors,
    )
