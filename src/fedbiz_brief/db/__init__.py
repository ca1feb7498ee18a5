# ABOUTME: Database module initialization.
# ABOUTME: Exports core database components for the persistence layer.

from fedbiz_brief.db.models import (
    ActivityLog,
    Base,
    DailyBrief,
    NewsItem,
    Opportunity,
    Subscriber,
)
from fedbiz_brief.db.session import get_session, init_db

__all__ = [
    "ActivityLog",
    "Base",
    "DailyBrief",
    "NewsItem",
    "Opportunity",
    "Subscriber",
    "get_session",
    "init_db",
]
