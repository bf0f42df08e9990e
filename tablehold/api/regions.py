"""Regions API endpoints."""

from fastapi import APIRouter

from tablehold.api.dependencies import RegionServiceDep
from tablehold.schemas.region import RegionResponse

router = APIRouter()


@router.get(
    "",
    response_model=list[RegionResponse],
    summary="List active regions",
)
async def list_active_regions(
    region_service: RegionServiceDep,
) -> list[RegionResponse]:
    """Active regions ordered by name."""
    regions = await region_service.list_active()
    return [RegionResponse.model_validate(r) for r in regions]


@router.get(
    "/{region_id}",
    response_model=RegionResponse,
    summary="Get region details",
)
async def get_region(
    region_id: str,
    region_service: RegionServiceDep,
) -> RegionResponse:
    region = await region_service.get_by_id(region_id)
    return RegionResponse.model_validate(region)
