"""Resource counters shared with realtime subscribers."""

from fastapi import APIRouter, Depends

from versatileshare.application.use_cases.notifications import record_resource_view
from versatileshare.domain.entities import User
from versatileshare.interfaces.api.dependencies import (
    RealtimeServices,
    get_current_user,
    get_realtime_services,
)
from versatileshare.interfaces.api.schemas import ResourceViews

router = APIRouter(prefix="/resources", tags=["resources"])


@router.post("/{resource_id}/views", response_model=ResourceViews, response_model_by_alias=True)
async def register_view(
    resource_id: int,
    services: RealtimeServices = Depends(get_realtime_services),
    current_user: User = Depends(get_current_user),
) -> ResourceViews:
    """Count a view and return the authoritative total."""

    views = await record_resource_view(
        services.registry, services.resources, resource_id=resource_id
    )
    return ResourceViews(resource_id=resource_id, views=views)
