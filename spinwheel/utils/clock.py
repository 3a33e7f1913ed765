# spinwheel/utils/clock.py
from datetime import datetime, timezone


def utcnow() -> datetime:
    # naive UTC, matching what the DateTime columns store
    return datetime.now(timezone.utc).replace(tzinfo=None)


def now_ms() -> int:
    return int(datetime.now(timezone.utc).timestamp() * 1000)


def iso_utc(dt: datetime | None) -> str | None:
    if dt is None:
        return None
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt.isoformat(timespec="milliseconds") + "Z"
