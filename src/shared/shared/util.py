import uuid
from datetime import datetime, timezone


def new_id() -> str:
    return str(uuid.uuid4())


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def timestamp_slug(moment: datetime) -> str:
    """ISO-8601 UTC timestamp usable as a storage key component (no ':' or '.')."""
    iso = moment.astimezone(timezone.utc).isoformat(timespec="microseconds")
    iso = iso.replace("+00:00", "Z")
    return iso.replace(":", "-").replace(".", "-")
