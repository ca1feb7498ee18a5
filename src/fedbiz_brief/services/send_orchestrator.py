# ABOUTME: Batch delivery of the day's brief to every active subscriber.
# ABOUTME: Isolates per-recipient failures, throttles sends, and marks the brief sent once.

import time
from collections.abc import Callable
from datetime import date

import structlog

from fedbiz_brief.config import Settings, get_settings
from fedbiz_brief.db.repository import (
    ActivityLogRepository,
    BriefRepository,
    SubscriberRepository,
    utcnow,
)
from fedbiz_brief.email.sender import BriefEmailRenderer
from fedbiz_brief.email.transport import MailTransport
from fedbiz_brief.models import BriefDocument, SendResult, SendStats, Subscriber

log = structlog.get_logger()


class SendOrchestrator:
    """Sends the unsent brief for a day through a MailTransport."""

    def __init__(
        self,
        repository: BriefRepository,
        subscribers: SubscriberRepository,
        transport: MailTransport,
        renderer: BriefEmailRenderer | None = None,
        activity_log: ActivityLogRepository | None = None,
        settings: Settings | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.settings = settings or get_settings()
        self.repository = repository
        self.subscribers = subscribers
        self.transport = transport
        self.renderer = renderer or BriefEmailRenderer(self.settings)
        self.activity_log = activity_log
        self.sleep = sleep

    def send(self, brief_id: int | None = None, today: date | None = None) -> SendStats:
        """Deliver today's unsent brief to all active subscribers.

        Args:
            brief_id: When given, only send if today's unsent brief has this id.
            today: Brief day. Defaults to the current day in the configured timezone.

        Returns:
            SendStats with sent + failed == total. All counts are zero when
            there is nothing to send.

        Raises:
            PersistenceError: Storage is unavailable.
        """
        today = today or self.settings.local_today()
        started_at = utcnow()

        brief = self.repository.get_unsent_for_date(today)
        if brief is None:
            log.info("no_unsent_brief", brief_date=today.isoformat())
            return SendStats()
        if brief_id is not None and brief.id != brief_id:
            log.info("brief_id_mismatch", requested=brief_id, unsent=brief.id)
            return SendStats()

        subscribers = self.subscribers.list_active()
        if not subscribers:
            log.info("no_active_subscribers", brief_id=brief.id)
            return SendStats(brief_id=brief.id)

        log.info("brief_send_start", brief_id=brief.id, subscriber_count=len(subscribers))

        results: list[SendResult] = []
        for index, subscriber in enumerate(subscribers):
            if index > 0 and self.settings.send_delay_seconds > 0:
                self.sleep(self.settings.send_delay_seconds)
            results.append(self.send_one(brief, subscriber))

        sent = sum(1 for result in results if result.success)
        errors = [
            f"{result.subscriber.email}: {result.error}" for result in results if not result.success
        ]
        stats = SendStats(
            brief_id=brief.id,
            sent=sent,
            failed=len(results) - sent,
            total=len(results),
            errors=errors[: self.settings.max_logged_errors],
        )

        self.repository.mark_sent(brief.id, sent)

        if self.activity_log is not None:
            self.activity_log.record(
                "brief_send",
                "send_completed",
                {
                    "brief_id": brief.id,
                    "sent_count": stats.sent,
                    "failed_count": stats.failed,
                    "total_subscribers": stats.total,
                    "errors": stats.errors,
                    "send_time": started_at.isoformat(),
                    "timezone": self.settings.timezone,
                },
            )

        log.info(
            "brief_send_completed",
            brief_id=brief.id,
            sent=stats.sent,
            failed=stats.failed,
            total=stats.total,
        )
        return stats

    def send_one(self, brief: BriefDocument, subscriber: Subscriber) -> SendResult:
        """Render and deliver to one subscriber. Never raises."""
        try:
            html, text = self.renderer.render(brief, subscriber)
            ok = self.transport.send(
                subscriber.email,
                brief.title,
                html,
                text,
                recipient_name=subscriber.name,
            )
        except Exception as e:
            log.error("send_failed", recipient=subscriber.email, error=str(e))
            return SendResult(subscriber=subscriber, success=False, error=str(e))

        if not ok:
            error = self.transport.last_error or "transport rejected message"
            log.warning("send_failed", recipient=subscriber.email, error=error)
            return SendResult(subscriber=subscriber, success=False, error=error)

        log.debug("send_succeeded", recipient=subscriber.email)
        return SendResult(subscriber=subscriber, success=True)
