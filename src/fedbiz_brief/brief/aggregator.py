# ABOUTME: Daily brief aggregator building per-program and general sections.
# ABOUTME: Classifies news by reliability, renders sections, and saves one brief per day.

from datetime import date
from typing import Protocol

import structlog
from sqlalchemy.exc import SQLAlchemyError

from fedbiz_brief.analysis.analyzer import AnalysisContext, Analyzer
from fedbiz_brief.brief import rendering
from fedbiz_brief.config import Settings, get_settings
from fedbiz_brief.db.repository import ActivityLogRepository, BriefRepository, utcnow
from fedbiz_brief.errors import (
    AggregationError,
    BriefError,
    DuplicateBriefError,
    PersistenceError,
)
from fedbiz_brief.models import (
    BriefDocument,
    BriefSection,
    BuildResult,
    ContentItem,
    Program,
    ReliabilityTier,
    Solicitation,
)
from fedbiz_brief.programs.registry import ProgramRegistry
from fedbiz_brief.reliability import ReliabilityClassifier

log = structlog.get_logger()

GENERAL_SECTION_TITLE = "Federal Contracting"
GENERAL_SECTION_TAGS = ["general", "federal_contracting"]


def _raise_if_fatal(e: Exception) -> None:
    """Propagate storage failures; anything else only costs one section."""
    if isinstance(e, BriefError) and e.fatal:
        raise e
    if isinstance(e, SQLAlchemyError):
        raise PersistenceError(f"Storage unavailable: {e}") from e


class NewsSource(Protocol):
    def list_recent_for_program(
        self, program_code: str, hours: int = 24, limit: int = 5
    ) -> list[ContentItem]: ...

    def list_recent_general(self, hours: int = 24, limit: int = 3) -> list[ContentItem]: ...


class OpportunitySource(Protocol):
    def list_new_or_updated(
        self, program_code: str, hours: int = 24, limit: int = 5
    ) -> list[Solicitation]: ...

    def list_closing_soon(
        self, program_code: str, today: date, days: int = 7, limit: int = 3
    ) -> list[Solicitation]: ...


class BriefAggregator:
    """Builds the daily brief from news, solicitations and analyzer narrative."""

    def __init__(
        self,
        repository: BriefRepository,
        news: NewsSource,
        opportunities: OpportunitySource,
        registry: ProgramRegistry,
        analyzer: Analyzer,
        classifier: ReliabilityClassifier | None = None,
        activity_log: ActivityLogRepository | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.repository = repository
        self.news = news
        self.opportunities = opportunities
        self.registry = registry
        self.analyzer = analyzer
        self.classifier = classifier or ReliabilityClassifier()
        self.activity_log = activity_log

    def build(self, today: date | None = None) -> BuildResult:
        """Build and save today's brief unless one already exists.

        Args:
            today: Brief day. Defaults to the current day in the configured timezone.

        Returns:
            BuildResult; skipped=True when a brief for the day already existed.

        Raises:
            PersistenceError: Storage is unavailable. Nothing is saved.
            AggregationError: Every program and the general section failed.
                Nothing is saved, so a later run can still build the day's brief.
        """
        today = today or self.settings.local_today()
        started_at = utcnow()

        if self.repository.exists_for_date(today):
            log.info("brief_already_exists", brief_date=today.isoformat())
            return BuildResult(skipped=True)

        sections: list[BriefSection] = []
        programs = self.registry.get_active_programs()
        failures = 0
        for program in programs:
            log.info("building_program_section", program=program.code)
            try:
                section = self.build_program_section(program, today)
            except AggregationError as e:
                log.error("program_section_failed", program=e.program_code, error=str(e))
                failures += 1
                continue
            if section is not None:
                sections.append(section)

        try:
            general = self.build_general_section()
        except AggregationError as e:
            log.error("general_section_failed", error=str(e))
            failures += 1
            general = None
        if general is not None:
            sections.append(general)

        if failures == len(programs) + 1:
            log.error("all_sources_failed", brief_date=today.isoformat())
            raise AggregationError("all", "every data source failed, brief not saved")

        document = self.compose(sections, today)

        try:
            brief_id = self.repository.save(document)
        except DuplicateBriefError:
            log.warning("brief_saved_concurrently", brief_date=today.isoformat())
            return BuildResult(skipped=True)

        result = BuildResult(
            brief_id=brief_id,
            sections=len(sections),
            total_items=document.total_items,
        )
        if self.activity_log is not None:
            self.activity_log.record(
                "brief_build",
                "build_completed",
                {
                    "brief_id": brief_id,
                    "sections_count": result.sections,
                    "total_items": result.total_items,
                    "build_time": started_at.isoformat(),
                    "timezone": self.settings.timezone,
                },
            )
        log.info(
            "brief_built",
            brief_id=brief_id,
            sections=result.sections,
            total_items=result.total_items,
        )
        return result

    def build_program_section(self, program: Program, today: date) -> BriefSection | None:
        """Render one program's section, or None when it has nothing to report.

        Raises:
            AggregationError: A data source or the analyzer failed for this program.
            PersistenceError: Storage is unavailable.
        """
        try:
            news_items = self.news.list_recent_for_program(
                program.code,
                hours=self.settings.news_lookback_hours,
                limit=self.settings.program_news_limit,
            )
            solicitations = self.opportunities.list_new_or_updated(
                program.code,
                hours=self.settings.news_lookback_hours,
                limit=self.settings.program_solicitation_limit,
            )
            closing_soon = self.opportunities.list_closing_soon(
                program.code,
                today,
                days=self.settings.closing_soon_days,
                limit=self.settings.closing_soon_limit,
            )
        except Exception as e:
            _raise_if_fatal(e)
            raise AggregationError(program.code, f"data fetch failed: {e}") from e

        if not (news_items or solicitations or closing_soon):
            return None

        buckets: dict[ReliabilityTier, list[ContentItem]] = {tier: [] for tier in ReliabilityTier}
        for item in news_items:
            buckets[self.classifier.classify(item)].append(item)

        content = f"## {program.name} Updates\n\n"
        item_count = 0

        if buckets[ReliabilityTier.CONFIRMED]:
            content += rendering.CONFIRMED_HEADING + "\n"
            for item in buckets[ReliabilityTier.CONFIRMED]:
                content += rendering.render_news_entry(item)
                item_count += 1

        if buckets[ReliabilityTier.DEVELOPING]:
            content += rendering.DEVELOPING_HEADING + "\n"
            for item in buckets[ReliabilityTier.DEVELOPING]:
                content += rendering.render_news_entry(item)
                item_count += 1

        signals = buckets[ReliabilityTier.SIGNAL]
        if signals:
            content += rendering.SIGNALS_HEADING + "\n"
            content += (
                "*The following items are unconfirmed reports that require verification:*\n\n"
            )
            for item in signals:
                content += rendering.render_news_entry(item, unverified=True)
                item_count += 1

        if solicitations:
            adapter = self.registry.get_adapter(program.code)
            labels = adapter.extra_fields() if adapter is not None else {}
            content += rendering.NEW_OPPORTUNITIES_HEADING + "\n"
            for opp in solicitations:
                content += rendering.render_new_opportunity(opp, labels)
                item_count += 1

        if closing_soon:
            content += rendering.CLOSING_SOON_HEADING + "\n"
            for opp in closing_soon:
                content += rendering.render_closing_soon(opp)
                item_count += 1

        context = AnalysisContext(
            program_code=program.code,
            program_name=program.name,
            news_items=news_items,
            solicitations=solicitations,
            closing_soon=closing_soon,
        )
        try:
            what_it_means = self.analyzer.what_it_means(context)
            next_actions = self.analyzer.next_actions(context)
        except Exception as e:
            _raise_if_fatal(e)
            raise AggregationError(program.code, f"analysis failed: {e}") from e

        content += f"### What This Means\n{what_it_means}\n"
        content += f"### Next Actions\n{next_actions}\n"

        return BriefSection(
            title=program.name,
            content=content,
            tags=[program.code],
            item_count=item_count,
            signals_and_rumors="\n".join(rendering.signal_line(item) for item in signals),
        )

    def build_general_section(self) -> BriefSection | None:
        """Render the section for news not attributed to any program.

        Raises:
            AggregationError: The news source failed.
            PersistenceError: Storage is unavailable.
        """
        try:
            general_news = self.news.list_recent_general(
                hours=self.settings.news_lookback_hours,
                limit=self.settings.general_news_limit,
            )
        except Exception as e:
            _raise_if_fatal(e)
            raise AggregationError("general", f"data fetch failed: {e}") from e

        if not general_news:
            return None

        content = "## Federal Contracting Landscape\n\n### Industry News\n"
        signals: list[str] = []
        for item in general_news:
            content += rendering.render_news_entry(item)
            if self.classifier.contains_signal_words(f"{item.title} {item.body}"):
                signals.append(rendering.signal_line(item))

        content += "### Market Intelligence\n"
        content += "".join(f"- {line}\n" for line in rendering.MARKET_INTELLIGENCE) + "\n"

        return BriefSection(
            title=GENERAL_SECTION_TITLE,
            content=content,
            tags=list(GENERAL_SECTION_TAGS),
            item_count=len(general_news),
            signals_and_rumors="\n".join(signals),
        )

    def compose(self, sections: list[BriefSection], today: date) -> BriefDocument:
        """Assemble sections into the full brief document."""
        tags: list[str] = []
        for section in sections:
            for tag in section.tags:
                if tag not in tags:
                    tags.append(tag)

        return BriefDocument(
            title=rendering.brief_title(today),
            brief_date=today,
            content=rendering.render_brief(today, sections, self.settings.timezone),
            sections=sections,
            tags=tags,
            created_at=utcnow(),
        )
