"""Region catalog service."""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tablehold.exceptions import NotFoundError
from tablehold.models.region import Region

logger = logging.getLogger(__name__)


DEFAULT_REGIONS = [
    {
        "name": "MAIN_HALL",
        "display_name": "Main Hall",
        "capacity_per_table": 12,
        "table_count": 2,
        "allow_children": True,
        "allow_smoking": False,
    },
    {
        "name": "BAR",
        "display_name": "Bar",
        "capacity_per_table": 4,
        "table_count": 4,
        "allow_children": False,
        "allow_smoking": False,
    },
    {
        "name": "RIVERSIDE",
        "display_name": "Riverside",
        "capacity_per_table": 8,
        "table_count": 3,
        "allow_children": True,
        "allow_smoking": False,
    },
    {
        "name": "RIVERSIDE_SMOKING",
        "display_name": "Riverside Smoking",
        "capacity_per_table": 6,
        "table_count": 5,
        "allow_children": False,
        "allow_smoking": True,
    },
]


def eligibility_reason(
    region: Region,
    party_size: int,
    children_count: int,
    wants_smoking: bool,
) -> str | None:
    """
    Explain why a party cannot be seated in ``region``.

    Returns None when the party is eligible. Smoking is an exact match:
    smoking parties need a smoking region and non-smoking parties are kept
    out of smoking regions.
    """
    if not region.is_active:
        return f"{region.display_name} is currently not available."

    if party_size > region.capacity_per_table:
        return (
            f"{region.display_name} can accommodate maximum "
            f"{region.capacity_per_table} people per table. "
            f"Your party size is {party_size}."
        )

    if children_count > 0 and not region.allow_children:
        return f"{region.display_name} does not allow children."

    if wants_smoking and not region.allow_smoking:
        return (
            f"{region.display_name} does not allow smoking. "
            "Please choose a smoking area."
        )

    if not wants_smoking and region.allow_smoking:
        return (
            f"{region.display_name} is a smoking area. "
            "Please choose a non-smoking area."
        )

    return None


def total_capacity(region: Region) -> int:
    """Total guests the region can seat at once."""
    return region.table_count * region.capacity_per_table


class RegionService:
    """Service for region catalog operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_active(self) -> list[Region]:
        """Get all active regions ordered by name."""
        result = await self.db.execute(
            select(Region).where(Region.is_active.is_(True)).order_by(Region.name)
        )
        return list(result.scalars().all())

    async def get_by_id(self, region_id: str) -> Region:
        """Get region by ID."""
        region = await self.db.get(Region, region_id)
        if region is None:
            raise NotFoundError(f"Region with ID {region_id} not found")
        return region

    async def get_by_name(self, name: str) -> Region:
        """Get region by its stable name."""
        result = await self.db.execute(select(Region).where(Region.name == name))
        region = result.scalar_one_or_none()
        if region is None:
            raise NotFoundError(f"Region with name {name} not found")
        return region

    async def filter_eligible(
        self,
        party_size: int,
        has_children: bool,
        wants_smoking: bool,
    ) -> list[Region]:
        """Active regions that can seat the given party."""
        regions = await self.list_active()
        children_count = 1 if has_children else 0
        return [
            region
            for region in regions
            if eligibility_reason(region, party_size, children_count, wants_smoking)
            is None
        ]

    async def seed_default_regions(self) -> list[Region]:
        """
        Insert the default regions that are missing.

        Existing regions are left untouched, so seeding twice is harmless.

        Returns:
            The regions created by this call.
        """
        result = await self.db.execute(select(Region.name))
        existing = set(result.scalars().all())

        created = []
        for data in DEFAULT_REGIONS:
            if data["name"] in existing:
                continue
            region = Region(**data, is_active=True)
            self.db.add(region)
            created.append(region)

        if created:
            await self.db.commit()
            logger.info(
                "Seeded regions: %s", ", ".join(r.name for r in created)
            )

        return created
