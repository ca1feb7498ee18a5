# ABOUTME: Repository classes for database access patterns.
# ABOUTME: Provides BriefRepository plus the news, opportunity, subscriber and activity log stores.

from collections.abc import Sequence
from datetime import date, timedelta

from sqlalchemy import or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from fedbiz_brief.config import Settings, get_settings
from fedbiz_brief.db.models import ActivityLog, DailyBrief, NewsItem, Opportunity, utcnow
from fedbiz_brief.db.models import Subscriber as SubscriberORM
from fedbiz_brief.errors import DuplicateBriefError, PersistenceError
from fedbiz_brief.models import (
    BriefDocument,
    BriefSection,
    ContentItem,
    ReliabilityTier,
    Solicitation,
    Subscriber,
)


def _to_tier(value: str | None) -> ReliabilityTier | None:
    try:
        return ReliabilityTier(value) if value else None
    except ValueError:
        return None


class BriefRepository:
    """Persistence facade for daily briefs.

    Rows are append-only once saved; mark_sent is the only mutation.
    "Today" is the given day, else the current day in the configured timezone.
    """

    def __init__(
        self, session: Session, today: date | None = None, settings: Settings | None = None
    ):
        self.session = session
        self.today = today
        self.settings = settings

    def _today(self) -> date:
        if self.today is not None:
            return self.today
        return (self.settings or get_settings()).local_today()

    def exists_for_date(self, brief_date: date) -> bool:
        """Check whether a brief has already been built for the given day."""
        try:
            result = self.session.execute(
                select(DailyBrief.id).where(DailyBrief.brief_date == brief_date).limit(1)
            )
            return result.scalar_one_or_none() is not None
        except SQLAlchemyError as e:
            raise PersistenceError(f"Cannot check brief existence: {e}") from e

    def exists_for_today(self) -> bool:
        return self.exists_for_date(self._today())

    def save(self, document: BriefDocument) -> int:
        """Insert a brief and return its ID.

        Raises:
            DuplicateBriefError: A brief already exists for document.brief_date.
            PersistenceError: Any other storage failure.
        """
        row = DailyBrief(
            brief_date=document.brief_date,
            title=document.title,
            content=document.content,
            sections=[section.model_dump(mode="json") for section in document.sections],
            tags=list(document.tags),
            created_at=document.created_at or utcnow(),
            recipient_count=0,
        )
        try:
            self.session.add(row)
            self.session.flush()
        except IntegrityError as e:
            self.session.rollback()
            raise DuplicateBriefError(
                f"Brief for {document.brief_date.isoformat()} already exists"
            ) from e
        except SQLAlchemyError as e:
            raise PersistenceError(f"Cannot save brief: {e}") from e
        return row.id

    def get_by_id(self, brief_id: int) -> BriefDocument | None:
        row = self.session.get(DailyBrief, brief_id)
        return self._to_document(row) if row else None

    def get_unsent_for_date(self, brief_date: date) -> BriefDocument | None:
        """Get the unsent brief for the given day, if any."""
        try:
            result = self.session.execute(
                select(DailyBrief)
                .where(DailyBrief.brief_date == brief_date)
                .where(DailyBrief.sent_at.is_(None))
                .order_by(DailyBrief.created_at.desc())
                .limit(1)
            )
            row = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Cannot load unsent brief: {e}") from e
        return self._to_document(row) if row else None

    def get_unsent_for_today(self) -> BriefDocument | None:
        return self.get_unsent_for_date(self._today())

    def mark_sent(self, brief_id: int, recipient_count: int) -> bool:
        """Record delivery. Returns False when the brief was already marked sent."""
        try:
            result = self.session.execute(
                update(DailyBrief)
                .where(DailyBrief.id == brief_id)
                .where(DailyBrief.sent_at.is_(None))
                .values(sent_at=utcnow(), recipient_count=recipient_count)
            )
            self.session.flush()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Cannot mark brief {brief_id} as sent: {e}") from e
        return result.rowcount > 0

    def list_recent(self, limit: int = 10) -> Sequence[DailyBrief]:
        """List recent briefs ordered by date descending."""
        result = self.session.execute(
            select(DailyBrief).order_by(DailyBrief.brief_date.desc()).limit(limit)
        )
        return result.scalars().all()

    @staticmethod
    def _to_document(row: DailyBrief) -> BriefDocument:
        return BriefDocument(
            id=row.id,
            title=row.title,
            brief_date=row.brief_date,
            content=row.content,
            sections=[BriefSection.model_validate(section) for section in row.sections or []],
            tags=list(row.tags or []),
            created_at=row.created_at,
            sent_at=row.sent_at,
            recipient_count=row.recipient_count,
        )


class NewsRepository:
    """Read access to fetched news items."""

    def __init__(self, session: Session):
        self.session = session

    def list_recent_for_program(
        self, program_code: str, hours: int = 24, limit: int = 5
    ) -> list[ContentItem]:
        """List a program's news published in the last `hours`, newest first."""
        cutoff = utcnow() - timedelta(hours=hours)
        try:
            result = self.session.execute(
                select(NewsItem)
                .where(NewsItem.program_code == program_code)
                .where(NewsItem.published_at >= cutoff)
                .order_by(NewsItem.published_at.desc())
                .limit(limit)
            )
            rows = result.scalars().all()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Cannot load news for {program_code}: {e}") from e
        return [self._to_item(row) for row in rows]

    def list_recent_general(self, hours: int = 24, limit: int = 3) -> list[ContentItem]:
        """List news not attributed to any program."""
        cutoff = utcnow() - timedelta(hours=hours)
        try:
            result = self.session.execute(
                select(NewsItem)
                .where(NewsItem.program_code.is_(None))
                .where(NewsItem.published_at >= cutoff)
                .order_by(NewsItem.published_at.desc())
                .limit(limit)
            )
            rows = result.scalars().all()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Cannot load general news: {e}") from e
        return [self._to_item(row) for row in rows]

    @staticmethod
    def _to_item(row: NewsItem) -> ContentItem:
        return ContentItem(
            title=row.title,
            body=row.content or "",
            url=row.url or "",
            source=row.source or "",
            published_at=row.published_at,
            program_code=row.program_code,
            base_tier=_to_tier(row.reliability),
        )


class OpportunityRepository:
    """Read/write access to ingested solicitations.

    Storage failures surface as PersistenceError.
    """

    def __init__(self, session: Session):
        self.session = session

    def list_new_or_updated(
        self, program_code: str, hours: int = 24, limit: int = 5
    ) -> list[Solicitation]:
        """List solicitations created or updated in the last `hours`."""
        cutoff = utcnow() - timedelta(hours=hours)
        try:
            result = self.session.execute(
                select(Opportunity)
                .where(Opportunity.program_code == program_code)
                .where(or_(Opportunity.created_at >= cutoff, Opportunity.updated_at >= cutoff))
                .order_by(Opportunity.created_at.desc())
                .limit(limit)
            )
            rows = result.scalars().all()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Cannot load solicitations for {program_code}: {e}") from e
        return [self._to_solicitation(row) for row in rows]

    def list_closing_soon(
        self, program_code: str, today: date, days: int = 7, limit: int = 3
    ) -> list[Solicitation]:
        """List open solicitations closing between today and today + `days`."""
        try:
            result = self.session.execute(
                select(Opportunity)
                .where(Opportunity.program_code == program_code)
                .where(Opportunity.status == "open")
                .where(Opportunity.close_date >= today)
                .where(Opportunity.close_date <= today + timedelta(days=days))
                .order_by(Opportunity.close_date.asc())
                .limit(limit)
            )
            rows = result.scalars().all()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Cannot load closing solicitations: {e}") from e
        return [self._to_solicitation(row) for row in rows]

    def get(self, opp_no: str, program_code: str) -> Opportunity | None:
        result = self.session.execute(
            select(Opportunity)
            .where(Opportunity.opp_no == opp_no)
            .where(Opportunity.program_code == program_code)
        )
        return result.scalar_one_or_none()

    def upsert(self, solicitation: Solicitation, program_code: str) -> str:
        """Insert or update a solicitation.

        Returns:
            "new", "updated" or "unchanged".

        Raises:
            PersistenceError: The store rejected the read or write.
        """
        try:
            return self._upsert(solicitation, program_code)
        except SQLAlchemyError as e:
            raise PersistenceError(
                f"Cannot store solicitation {solicitation.opp_no} ({program_code}): {e}"
            ) from e

    def _upsert(self, solicitation: Solicitation, program_code: str) -> str:
        existing = self.get(solicitation.opp_no, program_code)
        now = utcnow()

        if existing is None:
            self.session.add(
                Opportunity(
                    opp_no=solicitation.opp_no,
                    title=solicitation.title,
                    agency=solicitation.agency,
                    status=solicitation.status,
                    close_date=solicitation.close_date,
                    url=solicitation.url,
                    program_code=program_code,
                    meta=dict(solicitation.meta) or None,
                    created_at=now,
                    updated_at=now,
                )
            )
            self.session.flush()
            return "new"

        if (
            existing.title == solicitation.title
            and existing.status == solicitation.status
            and existing.close_date == solicitation.close_date
        ):
            return "unchanged"

        existing.title = solicitation.title
        existing.agency = solicitation.agency
        existing.status = solicitation.status
        existing.close_date = solicitation.close_date
        existing.url = solicitation.url
        if solicitation.meta:
            existing.meta = dict(solicitation.meta)
        existing.updated_at = now
        self.session.flush()
        return "updated"

    def expire_past_due(self, today: date) -> int:
        """Mark solicitations whose close date has passed as expired."""
        try:
            result = self.session.execute(
                update(Opportunity)
                .where(Opportunity.close_date < today)
                .where(Opportunity.status.not_in(("expired", "awarded", "cancelled")))
                .values(status="expired", updated_at=utcnow())
            )
        except SQLAlchemyError as e:
            raise PersistenceError(f"Cannot expire solicitations: {e}") from e
        return result.rowcount

    @staticmethod
    def _to_solicitation(row: Opportunity) -> Solicitation:
        return Solicitation(
            opp_no=row.opp_no,
            title=row.title,
            agency=row.agency or "",
            status=row.status,
            close_date=row.close_date,
            url=row.url or "",
            program_code=row.program_code,
            meta=dict(row.meta or {}),
        )


class SubscriberRepository:
    """Read access to brief subscribers."""

    def __init__(self, session: Session):
        self.session = session

    def list_active(self) -> list[Subscriber]:
        """List active subscribers ordered by email."""
        try:
            result = self.session.execute(
                select(SubscriberORM)
                .where(SubscriberORM.active == True)  # noqa: E712
                .order_by(SubscriberORM.email)
            )
        except SQLAlchemyError as e:
            raise PersistenceError(f"Cannot load subscribers: {e}") from e
        return [
            Subscriber(email=row.email, name=row.name or "", active=row.active)
            for row in result.scalars().all()
        ]


class ActivityLogRepository:
    """Append-only system activity log."""

    def __init__(self, session: Session):
        self.session = session

    def record(self, entity_id: str, activity_type: str, data: dict) -> ActivityLog:
        entry = ActivityLog(
            entity_type="system",
            entity_id=entity_id,
            activity_type=activity_type,
            activity_data=data,
        )
        self.session.add(entry)
        self.session.flush()
        return entry

    def list_recent(self, limit: int = 10) -> Sequence[ActivityLog]:
        result = self.session.execute(
            select(ActivityLog).order_by(ActivityLog.id.desc()).limit(limit)
        )
        return result.scalars().all()
