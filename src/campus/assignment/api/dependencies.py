"""FastAPI dependency injection for the WLAN assignment API.

Lifecycle Management:
- Controller client: Initialized at startup, shared across requests
- Site name cache: Held on app.state by the lifespan, lives as long as the client
- Both are released at application shutdown

Security:
- API key authentication required for all endpoints (except /health)
- Set API_KEY environment variable to enable authentication
- DISABLE_AUTH=true turns authentication off (development only)
"""

import logging
import os
import secrets
from typing import Optional

from fastapi import Depends, HTTPException, Request, Security, status
from fastapi.security import APIKeyHeader

from ..adapters import CampusControllerAdapter
from ..config import AssignmentConfig
from ..domain.ports import IWirelessControllerPort
from ..use_cases import ProfileDiscovery, SiteNameCache, WLANAssignmentUseCase

logger = logging.getLogger(__name__)

# ========== API Key Authentication ==========

api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


async def verify_api_key(
    api_key: Optional[str] = Security(api_key_header),
) -> bool:
    """Verify the API key from the request header.

    Security model:
    - If DISABLE_AUTH=true (dev mode): authentication is disabled
    - Otherwise: API_KEY is required (fail-closed)

    Raises:
        HTTPException: 401 if API key is missing or invalid, 500 if the
            server has no API_KEY configured
    """
    if os.getenv("DISABLE_AUTH", "").lower() == "true":
        logger.warning(
            "Authentication disabled (DISABLE_AUTH=true). Only use this in development!"
        )
        return True

    expected_key = os.getenv("API_KEY", "")

    if not expected_key:
        logger.error(
            "API_KEY not set - rejecting request. "
            "Set API_KEY environment variable or DISABLE_AUTH=true for development."
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Server misconfiguration: API_KEY not set",
        )

    if not api_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing API key. Provide X-API-Key header.",
            headers={"WWW-Authenticate": "ApiKey"},
        )

    if not secrets.compare_digest(api_key, expected_key):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API key",
            headers={"WWW-Authenticate": "ApiKey"},
        )

    return True


# ========== Global State ==========

_campus_client = None
_token_manager = None
_controller: Optional[IWirelessControllerPort] = None
_assignment_config: Optional[AssignmentConfig] = None


async def init_campus_client():
    """Initialize the controller client and the objects that share it.

    Should be called on application startup.
    """
    global _campus_client, _token_manager, _controller, _assignment_config

    from ...api.auth import TokenManager
    from ...api.client import CampusClient

    _assignment_config = AssignmentConfig.from_env()
    _token_manager = TokenManager()
    _campus_client = CampusClient(_token_manager)
    await _campus_client.__aenter__()

    _controller = CampusControllerAdapter(_campus_client)

    logger.info(f"Campus client initialized ({_campus_client.base_url})")


async def close_campus_client():
    """Close the controller client.

    Should be called on application shutdown.
    """
    global _campus_client, _token_manager, _controller

    if _campus_client:
        await _campus_client.__aexit__(None, None, None)
        _campus_client = None

    _token_manager = None
    _controller = None

    logger.info("Campus client closed")


def get_campus_client_status() -> Optional[dict]:
    """Circuit breaker status of the shared client, if it is running."""
    if _campus_client is None:
        return None
    return _campus_client.circuit_status


# ========== Dependency Functions ==========


def get_controller() -> IWirelessControllerPort:
    """Get the shared controller adapter."""
    if _controller is None:
        raise RuntimeError(
            "Campus client not initialized. Call init_campus_client() first."
        )
    return _controller


def get_site_name_cache(request: Request) -> SiteNameCache:
    """Get the site name cache the application lifespan put on app.state."""
    site_names = getattr(request.app.state, "site_names", None)
    if site_names is None:
        raise RuntimeError(
            "Site name cache not initialized. Set app.state.site_names at startup."
        )
    return site_names


def get_assignment_config() -> AssignmentConfig:
    """Get the workflow configuration."""
    return _assignment_config or AssignmentConfig()


def get_profile_discovery(
    controller: IWirelessControllerPort = Depends(get_controller),
    config: AssignmentConfig = Depends(get_assignment_config),
) -> ProfileDiscovery:
    return ProfileDiscovery(controller, discovery_concurrency=config.discovery_concurrency)


def get_assignment_use_case(
    controller: IWirelessControllerPort = Depends(get_controller),
    config: AssignmentConfig = Depends(get_assignment_config),
    site_names: SiteNameCache = Depends(get_site_name_cache),
) -> WLANAssignmentUseCase:
    return WLANAssignmentUseCase(controller, config=config, site_names=site_names)
