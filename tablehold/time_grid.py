"""Fixed grid of bookable start times and the overlap rules between them."""

from datetime import date, timedelta

from tablehold.config import Settings
from tablehold.exceptions import InvalidInputError


class TimeGrid:
    """
    Bookable start times for a single service day.

    A reservation starting at slot ``s`` occupies ``slots_per_reservation``
    consecutive grid units, so it collides with any reservation whose start
    index lies within ``slots_per_reservation - 1`` of ``s``.
    """

    def __init__(
        self,
        time_slots: list[str],
        slot_interval_minutes: int,
        reservation_duration_minutes: int,
        date_range_start: date,
        date_range_end: date,
    ):
        if not time_slots:
            raise ValueError("Time grid needs at least one slot")
        if slot_interval_minutes <= 0:
            raise ValueError("Slot interval must be positive")
        if reservation_duration_minutes % slot_interval_minutes != 0:
            raise ValueError(
                "Reservation duration must be a whole number of slot intervals"
            )
        starts = [slot_to_minutes(slot) for slot in time_slots]
        for earlier, later in zip(starts, starts[1:]):
            if later - earlier != slot_interval_minutes:
                raise ValueError(
                    f"Time slots must be ascending and {slot_interval_minutes} minutes apart"
                )
        if date_range_end < date_range_start:
            raise ValueError("Date range end precedes its start")

        self.time_slots = tuple(time_slots)
        self.slot_interval_minutes = slot_interval_minutes
        self.reservation_duration_minutes = reservation_duration_minutes
        self.slots_per_reservation = reservation_duration_minutes // slot_interval_minutes
        if self.slots_per_reservation < 1:
            raise ValueError("Reservation must span at least one slot")
        self.date_range_start = date_range_start
        self.date_range_end = date_range_end
        self._index = {slot: i for i, slot in enumerate(self.time_slots)}

    @classmethod
    def from_settings(cls, settings: Settings) -> "TimeGrid":
        return cls(
            time_slots=settings.TIME_SLOTS,
            slot_interval_minutes=settings.SLOT_INTERVAL_MINUTES,
            reservation_duration_minutes=settings.RESERVATION_DURATION_MINUTES,
            date_range_start=settings.DATE_RANGE_START,
            date_range_end=settings.DATE_RANGE_END,
        )

    def slot_index(self, time_slot: str) -> int:
        """Position of ``time_slot`` in the grid."""
        try:
            return self._index[time_slot]
        except KeyError:
            raise InvalidInputError(
                f"Invalid time slot {time_slot!r}. "
                f"Must be one of: {', '.join(self.time_slots)}"
            ) from None

    def overlapping_slots(self, time_slot: str) -> list[str]:
        """
        All start times whose reservation interval intersects ``time_slot``'s.

        The slot itself is always included.
        """
        index = self.slot_index(time_slot)
        reach = self.slots_per_reservation - 1
        start = max(0, index - reach)
        end = min(len(self.time_slots) - 1, index + reach)
        return list(self.time_slots[start : end + 1])

    def is_date_in_range(self, day: date) -> bool:
        return self.date_range_start <= day <= self.date_range_end

    def validate_date(self, day: date) -> date:
        if not self.is_date_in_range(day):
            raise InvalidInputError(
                f"Date must be between {self.date_range_start.isoformat()} "
                f"and {self.date_range_end.isoformat()}"
            )
        return day

    def validate_slot(self, time_slot: str) -> str:
        self.slot_index(time_slot)
        return time_slot

    def validate(self, day: date, time_slot: str) -> None:
        """Raise InvalidInputError unless both date and slot are bookable."""
        self.validate_date(day)
        self.validate_slot(time_slot)

    def adjacent_dates(self, day: date) -> tuple[date, date]:
        """The previous and next calendar day."""
        return day - timedelta(days=1), day + timedelta(days=1)

    def end_time(self, time_slot: str) -> str:
        """Clock time at which a reservation starting at ``time_slot`` ends."""
        self.slot_index(time_slot)
        end = slot_to_minutes(time_slot) + self.reservation_duration_minutes
        return f"{end // 60:02d}:{end % 60:02d}"


def slot_to_minutes(time_slot: str) -> int:
    """Minutes since midnight for an ``HH:MM`` string."""
    hours, minutes = time_slot.split(":")
    return int(hours) * 60 + int(minutes)


def parse_date(value: str) -> date:
    """Parse an ISO ``YYYY-MM-DD`` calendar date."""
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        raise InvalidInputError(f"Invalid date format: {value!r}") from None

