"""Clock abstraction used for hold expiry and occupancy checks."""

from datetime import datetime, timezone


class Clock:
    """Source of the current time.

    Timestamps are naive UTC, matching how they are stored in the
    ``DateTime`` columns.
    """

    def now(self) -> datetime:
        return datetime.now(timezone.utc).replace(tzinfo=None)


system_clock = Clock()
