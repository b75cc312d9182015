# utils/clock.py
from datetime import datetime, timedelta, timezone

EPOCH = datetime(1970, 1, 1)


def to_millis(dt: datetime) -> int:
    """Epoch milliseconds for a naive UTC datetime."""
    return (dt - EPOCH) // timedelta(milliseconds=1)


class SystemClock:
    # Naive UTC, which is what the database columns hold
    def now(self) -> datetime:
        return datetime.now(timezone.utc).replace(tzinfo=None)

    def now_millis(self) -> int:
        return to_millis(self.now())
