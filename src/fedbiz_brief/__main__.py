# ABOUTME: CLI entry point for the fedbiz_brief daily brief system.
# ABOUTME: Provides subcommands: build, send, ingest, status.

import argparse
import logging
import sys
from datetime import date

import structlog

from fedbiz_brief.config import get_settings
from fedbiz_brief.errors import BriefError


def configure_logging() -> None:
    """Configure structlog for console or JSON output."""
    settings = get_settings()

    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    if settings.log_format == "json":
        structlog.configure(
            processors=[
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.add_log_level,
                structlog.processors.JSONRenderer(),
            ],
            wrapper_class=structlog.make_filtering_bound_logger(log_level),
        )
    else:
        structlog.configure(
            processors=[
                structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S"),
                structlog.processors.add_log_level,
                structlog.dev.ConsoleRenderer(colors=True),
            ],
            wrapper_class=structlog.make_filtering_bound_logger(log_level),
        )


def _parse_date(value: str | None) -> date | None:
    return date.fromisoformat(value) if value else None


def cmd_build(args: argparse.Namespace) -> int:
    """Build today's brief.

    A brief that already exists for the day is a successful no-op.
    """
    from fedbiz_brief.analysis import get_analyzer
    from fedbiz_brief.brief import BriefAggregator
    from fedbiz_brief.db import get_session, init_db
    from fedbiz_brief.db.repository import (
        ActivityLogRepository,
        BriefRepository,
        NewsRepository,
        OpportunityRepository,
    )
    from fedbiz_brief.programs import ProgramRegistry

    log = structlog.get_logger()
    settings = get_settings()
    brief_date = _parse_date(getattr(args, "date", None)) or settings.local_today()
    log.info("brief_build_start", brief_date=brief_date.isoformat())

    try:
        init_db(settings)
        with get_session(settings) as session:
            aggregator = BriefAggregator(
                repository=BriefRepository(session, today=brief_date),
                news=NewsRepository(session),
                opportunities=OpportunityRepository(session),
                registry=ProgramRegistry(),
                analyzer=get_analyzer(settings, today=brief_date),
                activity_log=ActivityLogRepository(session),
                settings=settings,
            )
            result = aggregator.build(brief_date)
    except BriefError as e:
        log.error("brief_build_failed", error=str(e), fatal=e.fatal)
        print(f"Brief build failed: {e}")
        return 1
    except Exception:
        log.exception("brief_build_failed")
        print("Brief build failed: unexpected error, see log")
        return 1

    if result.skipped:
        print(f"Brief already exists for {brief_date.isoformat()}, skipping build")
        return 0

    print("Brief build completed:")
    print(f"- Brief ID: {result.brief_id}")
    print(f"- Sections: {result.sections}")
    print(f"- Total items: {result.total_items}")
    return 0


def cmd_send(args: argparse.Namespace) -> int:
    """Send today's unsent brief to all active subscribers.

    With --preview, renders the brief to previous_issues_dir instead of sending.
    """
    from fedbiz_brief.db import get_session, init_db
    from fedbiz_brief.db.repository import (
        ActivityLogRepository,
        BriefRepository,
        SubscriberRepository,
    )
    from fedbiz_brief.email import BriefEmailRenderer, get_transport
    from fedbiz_brief.services import SendOrchestrator

    log = structlog.get_logger()
    settings = get_settings()
    brief_date = _parse_date(getattr(args, "date", None)) or settings.local_today()
    log.info("brief_send_start", brief_date=brief_date.isoformat())

    try:
        init_db(settings)
        with get_session(settings) as session:
            repository = BriefRepository(session, today=brief_date)

            if getattr(args, "preview", False):
                brief = repository.get_unsent_for_date(brief_date)
                if brief is None:
                    print("No unsent brief found for today")
                    return 0
                path = BriefEmailRenderer(settings).save_preview(brief)
                print(f"Preview saved to {path}")
                return 0

            orchestrator = SendOrchestrator(
                repository=repository,
                subscribers=SubscriberRepository(session),
                transport=get_transport(settings),
                activity_log=ActivityLogRepository(session),
                settings=settings,
            )
            stats = orchestrator.send(getattr(args, "brief_id", None), today=brief_date)
    except BriefError as e:
        log.error("brief_send_failed", error=str(e), fatal=e.fatal)
        print(f"Brief send failed: {e}")
        return 1
    except Exception:
        log.exception("brief_send_failed")
        print("Brief send failed: unexpected error, see log")
        return 1

    if stats.brief_id is None:
        print("No unsent brief found for today")
        return 0
    if stats.total == 0:
        print("No active subscribers found")
        return 0

    print("Brief send completed:")
    print(f"- Brief ID: {stats.brief_id}")
    print(f"- Sent successfully: {stats.sent}")
    print(f"- Failed: {stats.failed}")
    print(f"- Total subscribers: {stats.total}")
    if stats.errors:
        print(f"Errors encountered: {'; '.join(stats.errors[:3])}")
    return 0


def cmd_ingest(_args: argparse.Namespace) -> int:
    """Ingest solicitations from all active program adapters."""
    from fedbiz_brief.db import get_session, init_db
    from fedbiz_brief.db.repository import ActivityLogRepository, OpportunityRepository
    from fedbiz_brief.programs import ProgramRegistry
    from fedbiz_brief.services import SolicitationIngestor

    log = structlog.get_logger()
    settings = get_settings()
    log.info("ingest_start")

    try:
        init_db(settings)
        with get_session(settings) as session:
            ingestor = SolicitationIngestor(
                opportunities=OpportunityRepository(session),
                registry=ProgramRegistry(),
                activity_log=ActivityLogRepository(session),
                settings=settings,
            )
            stats = ingestor.ingest()
    except BriefError as e:
        log.error("ingest_failed", error=str(e), fatal=e.fatal)
        print(f"Solicitations ingest failed: {e}")
        return 1
    except Exception:
        log.exception("ingest_failed")
        print("Solicitations ingest failed: unexpected error, see log")
        return 1

    print("Solicitations ingest completed:")
    print(f"- Processed: {stats.processed}")
    print(f"- New: {stats.new}")
    print(f"- Updated: {stats.updated}")
    print(f"- Expired: {stats.expired}")
    if stats.errors:
        print(f"Errors: {'; '.join(stats.errors)}")
    return 0


def cmd_status(_args: argparse.Namespace) -> int:
    """Show recent briefs and activity."""
    from fedbiz_brief.db import get_session, init_db
    from fedbiz_brief.db.repository import ActivityLogRepository, BriefRepository
    from fedbiz_brief.programs import ProgramRegistry

    settings = get_settings()
    try:
        init_db(settings)
        with get_session(settings) as session:
            briefs = BriefRepository(session).list_recent(limit=5)
            activities = ActivityLogRepository(session).list_recent(limit=5)

            print("\n=== fedbiz_brief Status ===\n")
            print(f"Today ({settings.timezone}): {settings.local_today().isoformat()}")
            print(f"Active Programs: {', '.join(ProgramRegistry().available_programs())}")

            print(f"\nRecent Briefs: {len(briefs)}")
            for brief in briefs:
                sent = (
                    f"sent to {brief.recipient_count}" if brief.sent_at is not None else "unsent"
                )
                print(f"  - {brief.brief_date} #{brief.id} {brief.title} ({sent})")

            print(f"\nRecent Activity: {len(activities)}")
            for activity in activities:
                print(f"  - {activity.created_at} {activity.activity_type}")
            print()
    except BriefError as e:
        print(f"Status unavailable: {e}")
        return 1

    return 0


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="fedbiz_brief",
        description="fedbiz_brief - federal contracting daily brief builder and sender",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # build command
    build_parser = subparsers.add_parser(
        "build",
        help="Build today's brief from stored news and solicitations",
    )
    build_parser.add_argument(
        "--date",
        type=str,
        help="Brief date (YYYY-MM-DD). Defaults to today in the configured timezone",
    )

    # send command
    send_parser = subparsers.add_parser(
        "send",
        help="Send today's unsent brief to active subscribers",
    )
    send_parser.add_argument(
        "--date",
        type=str,
        help="Brief date (YYYY-MM-DD). Defaults to today in the configured timezone",
    )
    send_parser.add_argument(
        "--brief-id",
        type=int,
        help="Only send if today's unsent brief has this id",
    )
    send_parser.add_argument(
        "--preview",
        action="store_true",
        help="Render the brief to previous_issues_dir without sending",
    )

    # ingest command
    subparsers.add_parser(
        "ingest",
        help="Ingest solicitations from program adapters",
    )

    # status command
    subparsers.add_parser(
        "status",
        help="Show recent briefs and activity",
    )

    return parser


def main() -> int:
    """Main entry point."""
    configure_logging()

    parser = create_parser()
    args = parser.parse_args()

    commands = {
        "build": cmd_build,
        "send": cmd_send,
        "ingest": cmd_ingest,
        "status": cmd_status,
    }

    handler = commands.get(args.command)
    if handler:
        return handler(args)

    parser.print_help()
    return 1


def build_main() -> int:
    """Console script: build today's brief."""
    configure_logging()
    return cmd_build(argparse.Namespace(date=None))


def send_main() -> int:
    """Console script: send today's brief."""
    configure_logging()
    return cmd_send(argparse.Namespace(date=None, brief_id=None, preview=False))


if __name__ == "__main__":
    sys.exit(main())
