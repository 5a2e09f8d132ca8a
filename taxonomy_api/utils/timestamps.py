"""
Timezone-aware timestamps
"""
from datetime import datetime, timezone


def utc_now() -> datetime:
    """Current time in UTC with tzinfo attached"""
    return datetime.now(timezone.utc)
