import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("CREATE_TABLES", "false")

from datetime import date, datetime, timedelta  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from tablehold.clock import Clock  # noqa: E402
from tablehold.config import Settings  # noqa: E402
from tablehold.models import Base, ConfirmedReservation, Hold, Region  # noqa: E402
from tablehold.notifier import ChangeNotifier  # noqa: E402
from tablehold.services.availability_service import AvailabilityService  # noqa: E402
from tablehold.services.hold_service import HoldService  # noqa: E402
from tablehold.services.reservation_service import ReservationService  # noqa: E402


DAY = date(2025, 7, 25)
FIRST_DAY = date(2025, 7, 24)
LAST_DAY = date(2025, 7, 31)

MAIN_HALL = "region-main-hall"
BAR = "region-bar"
RIVERSIDE = "region-riverside"
SMOKING = "region-riverside-smoking"


class FakeClock(Clock):
    """Clock that only moves when told to."""

    def __init__(self, start: datetime):
        self.current = start

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


class InMemoryRedis:
    """
    Redis double covering the commands the occupancy lock uses.

    The registered script is the owner-checked release.
    """

    def __init__(self):
        self.store: dict[str, str] = {}

    async def set(self, key, value, nx=False, ex=None):
        if nx and key in self.store:
            return None
        self.store[key] = value
        return True

    async def get(self, key):
        return self.store.get(key)

    async def exists(self, key):
        return int(key in self.store)

    def register_script(self, script):
        async def release(keys, args):
            if self.store.get(keys[0]) == args[0]:
                del self.store[keys[0]]
                return 1
            return 0

        return release


@pytest.fixture
def settings() -> Settings:
    return Settings(
        DATABASE_URL="sqlite+aiosqlite:///:memory:",
        DATE_RANGE_START=FIRST_DAY,
        DATE_RANGE_END=LAST_DAY,
        HOLD_DURATION_MINUTES=5,
        MIN_PARTY_SIZE=1,
        MAX_PARTY_SIZE=12,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2025, 7, 20, 12, 0, 0))


@pytest.fixture
def notifier(clock) -> ChangeNotifier:
    return ChangeNotifier(clock)


@pytest.fixture
def redis_client() -> InMemoryRedis:
    return InMemoryRedis()


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'tablehold.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def regions(db) -> dict[str, Region]:
    rows = [
        Region(
            id=MAIN_HALL,
            name="MAIN_HALL",
            display_name="Main Hall",
            capacity_per_table=12,
            table_count=2,
            allow_children=True,
            allow_smoking=False,
            is_active=True,
        ),
        Region(
            id=BAR,
            name="BAR",
            display_name="Bar",
            capacity_per_table=4,
            table_count=1,
            allow_children=False,
            allow_smoking=False,
            is_active=True,
        ),
        Region(
            id=RIVERSIDE,
            name="RIVERSIDE",
            display_name="Riverside",
            capacity_per_table=8,
            table_count=3,
            allow_children=True,
            allow_smoking=False,
            is_active=True,
        ),
        Region(
            id=SMOKING,
            name="RIVERSIDE_SMOKING",
            display_name="Riverside Smoking",
            capacity_per_table=6,
            table_count=2,
            allow_children=False,
            allow_smoking=True,
            is_active=True,
        ),
    ]
    db.add_all(rows)
    await db.commit()
    return {region.id: region for region in rows}


@pytest.fixture
def availability_service(db, settings, clock) -> AvailabilityService:
    return AvailabilityService(db, settings, clock)


@pytest.fixture
def hold_service(db, redis_client, notifier, settings, clock) -> HoldService:
    return HoldService(db, redis_client, notifier, settings, clock)


@pytest.fixture
def reservation_service(db, redis_client, notifier, settings, clock) -> ReservationService:
    return ReservationService(db, redis_client, notifier, settings, clock)


async def add_hold(
    db,
    clock,
    *,
    day=DAY,
    time_slot="19:00",
    region_id=MAIN_HALL,
    token="session-x",
    expires_in_minutes=5,
) -> Hold:
    hold = Hold(
        reservation_date=day,
        time_slot=time_slot,
        region_id=region_id,
        hold_token=token,
        hold_expires_at=clock.now() + timedelta(minutes=expires_in_minutes),
    )
    db.add(hold)
    await db.commit()
    return hold


async def add_confirmed(
    db,
    *,
    day=DAY,
    time_slot="19:00",
    region_id=MAIN_HALL,
    email="guest@example.com",
    party_size=2,
) -> ConfirmedReservation:
    reservation = ConfirmedReservation(
        reservation_date=day,
        time_slot=time_slot,
        region_id=region_id,
        customer_name="Guest",
        email=email,
        phone="+15550001111",
        party_size=party_size,
        children_count=0,
        smoking_requested=False,
        celebration_flag=False,
    )
    db.add(reservation)
    await db.commit()
    return reservation
