from datetime import UTC, datetime

from availability_engine.core.db import get_session

__all__ = ["get_now", "get_session"]


def get_now() -> datetime:
    """Current instant (aware UTC); overridden in tests to pin the clock."""
    return datetime.now(UTC)
