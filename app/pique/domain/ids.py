"""Identifier and timestamp helpers.

Entities created locally receive a temporary (placeholder) id until the
remote service returns the authoritative one.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

TEMP_ID_PREFIX = "temp_"


def new_temp_id() -> str:
    """Generate a placeholder id for an entity not yet created remotely."""
    return f"{TEMP_ID_PREFIX}{uuid.uuid4().hex}"


def new_id() -> str:
    return uuid.uuid4().hex


def is_temp_id(entity_id: Optional[str]) -> bool:
    return bool(entity_id) and entity_id.startswith(TEMP_ID_PREFIX)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp, passing datetimes and None through."""
    if value is None or isinstance(value, datetime):
        return value
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None
