"""Region schemas."""

from pydantic import Field

from tablehold.schemas.common import BaseSchema


class RegionResponse(BaseSchema):
    """Schema for region response."""

    id: str
    name: str
    display_name: str
    capacity_per_table: int = Field(..., ge=1)
    table_count: int = Field(..., ge=1)
    allow_children: bool
    allow_smoking: bool
    is_active: bool
