# ABOUTME: Main package for the fedbiz_brief federal contracting daily brief system.
# ABOUTME: Exports configuration and the core brief data models.

from fedbiz_brief.config import get_settings
from fedbiz_brief.models import (
    BriefDocument,
    BriefSection,
    ContentItem,
    ReliabilityTier,
    Solicitation,
)

__all__ = [
    "get_settings",
    "BriefDocument",
    "BriefSection",
    "ContentItem",
    "ReliabilityTier",
    "Solicitation",
]
