"""API layer for WLAN auto-assignment.

Contains:
- FastAPI router with endpoints
- Pydantic schemas for request/response validation
"""

from .router import router
from .schemas import (
    AutoAssignmentResponseDTO,
    AutoAssignRequest,
    EffectiveSetResponse,
    PreviewResponse,
    ServiceRequestDTO,
    SiteCentricRequest,
    SiteCentricResponseDTO,
    SiteDeploymentConfigDTO,
)

__all__ = [
    "router",
    "ServiceRequestDTO",
    "SiteDeploymentConfigDTO",
    "AutoAssignRequest",
    "AutoAssignmentResponseDTO",
    "SiteCentricRequest",
    "SiteCentricResponseDTO",
    "PreviewResponse",
    "EffectiveSetResponse",
]
