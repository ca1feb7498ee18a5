# ABOUTME: Pydantic models for brief data structures.
# ABOUTME: Defines ContentItem, Solicitation, BriefSection, BriefDocument and send/build statistics.

from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ReliabilityTier(str, Enum):
    """Confidence classification of an ingested news item."""

    CONFIRMED = "confirmed"
    DEVELOPING = "developing"
    SIGNAL = "signal"


class ContentItem(BaseModel):
    """News item as stored by the fetch jobs."""

    model_config = ConfigDict(frozen=True)

    title: str
    body: str = ""
    url: str = ""
    source: str = ""
    published_at: datetime
    program_code: str | None = None
    base_tier: ReliabilityTier | None = None


class Solicitation(BaseModel):
    """Normalized federal contract opportunity."""

    model_config = ConfigDict(frozen=True)

    opp_no: str
    title: str
    agency: str = ""
    status: str = "open"
    close_date: date | None = None
    url: str = ""
    program_code: str | None = None
    meta: dict[str, object] = Field(default_factory=dict)


class Program(BaseModel):
    """Active contract vehicle as exposed by the program registry."""

    code: str
    name: str
    keywords: list[str] = []


class BriefSection(BaseModel):
    """One rendered section of the daily brief."""

    title: str
    content: str
    tags: list[str] = []
    item_count: int = 0
    signals_and_rumors: str = ""


class BriefDocument(BaseModel):
    """The daily aggregated intelligence brief."""

    id: int | None = None
    title: str
    brief_date: date
    content: str
    sections: list[BriefSection] = []
    tags: list[str] = []
    created_at: datetime | None = None
    sent_at: datetime | None = None
    recipient_count: int = 0

    @property
    def total_items(self) -> int:
        return sum(section.item_count for section in self.sections)


class Subscriber(BaseModel):
    """Brief recipient."""

    email: str
    name: str = ""
    active: bool = True

    @property
    def display_name(self) -> str:
        return self.name or self.email.split("@", 1)[0]


class SendResult(BaseModel):
    """Outcome of one delivery attempt."""

    subscriber: Subscriber
    success: bool
    error: str | None = None


class SendStats(BaseModel):
    """Aggregate counts for one send run."""

    brief_id: int | None = None
    sent: int = 0
    failed: int = 0
    total: int = 0
    errors: list[str] = []


class BuildResult(BaseModel):
    """Outcome of one build run."""

    brief_id: int | None = None
    skipped: bool = False
    sections: int = 0
    total_items: int = 0


class IngestStats(BaseModel):
    """Aggregate counts for one solicitation ingest run."""

    processed: int = 0
    new: int = 0
    updated: int = 0
    expired: int = 0
    errors: list[str] = []
