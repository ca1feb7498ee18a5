# ABOUTME: Solicitation ingest from program adapters into the opportunity store.
# ABOUTME: Upserts normalized solicitations per program and expires past-due ones.

from datetime import date

import structlog

from fedbiz_brief.config import Settings, get_settings
from fedbiz_brief.db.repository import ActivityLogRepository, OpportunityRepository, utcnow
from fedbiz_brief.models import IngestStats
from fedbiz_brief.programs.registry import ProgramRegistry

log = structlog.get_logger()


class SolicitationIngestor:
    """Pulls solicitations from every active adapter and stores them."""

    def __init__(
        self,
        opportunities: OpportunityRepository,
        registry: ProgramRegistry,
        activity_log: ActivityLogRepository | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.opportunities = opportunities
        self.registry = registry
        self.activity_log = activity_log

    def ingest(self, today: date | None = None) -> IngestStats:
        """Run one ingest pass over all active programs.

        An adapter that fails to fetch or normalize is logged and recorded in
        the stats; the other programs are still processed.

        Args:
            today: Day used for expiring past-due solicitations.

        Returns:
            IngestStats with processed/new/updated/expired counts.

        Raises:
            PersistenceError: The opportunity store rejected a read or write.
        """
        today = today or self.settings.local_today()
        started_at = utcnow()
        stats = IngestStats()

        for code, adapter in self.registry.get_active_adapters().items():
            log.info("ingesting_program", program=code)
            try:
                raws = adapter.fetch_solicitations()
                solicitations = [adapter.normalize(raw) for raw in raws]
            except Exception as e:
                log.error("program_ingest_failed", program=code, error=str(e))
                stats.errors.append(f"{code}: {e}")
                continue

            for solicitation in solicitations:
                outcome = self.opportunities.upsert(solicitation, code)
                stats.processed += 1
                if outcome == "new":
                    stats.new += 1
                elif outcome == "updated":
                    stats.updated += 1
            log.info("program_ingested", program=code, count=len(solicitations))

        stats.expired = self.opportunities.expire_past_due(today)

        if self.activity_log is not None:
            self.activity_log.record(
                "solicitations_ingest",
                "ingest_completed",
                {
                    "processed": stats.processed,
                    "new_solicitations": stats.new,
                    "updated_solicitations": stats.updated,
                    "expired_solicitations": stats.expired,
                    "errors": stats.errors[: self.settings.max_logged_errors],
                    "ingest_time": started_at.isoformat(),
                },
            )

        log.info(
            "ingest_completed",
            processed=stats.processed,
            new=stats.new,
            updated=stats.updated,
            expired=stats.expired,
            errors=len(stats.errors),
        )
        return stats
