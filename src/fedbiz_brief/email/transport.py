# ABOUTME: Mail transport interface, local sendmail transport and transport selection.
# ABOUTME: Transports deliver one message per call and report failure by returning False.

import subprocess
from abc import ABC, abstractmethod

import structlog

from fedbiz_brief.config import Settings, get_settings
from fedbiz_brief.email.mime import build_message

log = structlog.get_logger()


class MailTransport(ABC):
    """Delivers one rendered brief to one recipient."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()
        self.last_error: str | None = None

    @abstractmethod
    def send(
        self,
        recipient: str,
        subject: str,
        html: str,
        text: str,
        recipient_name: str = "",
    ) -> bool:
        """Deliver a message.

        Returns:
            True when the server accepted the message. On False, last_error
            holds a short description of the failure.
        """


class LocalMailTransport(MailTransport):
    """Submits mail through the local sendmail binary (sendmail -t -i)."""

    def send(
        self,
        recipient: str,
        subject: str,
        html: str,
        text: str,
        recipient_name: str = "",
    ) -> bool:
        self.last_error = None
        try:
            message = build_message(self.settings, recipient, subject, html, text, recipient_name)
        except ValueError as e:
            self.last_error = f"invalid message: {e}"
            log.warning("sendmail_message_rejected", recipient=recipient, error=str(e))
            return False

        try:
            subprocess.run(
                [self.settings.sendmail_path, "-t", "-i"],
                input=message.as_bytes(),
                capture_output=True,
                timeout=self.settings.smtp_timeout,
                check=True,
            )
        except subprocess.CalledProcessError as e:
            self.last_error = f"sendmail exited with status {e.returncode}"
            log.warning("sendmail_failed", recipient=recipient, returncode=e.returncode)
            return False
        except (OSError, subprocess.SubprocessError) as e:
            self.last_error = f"sendmail unavailable: {e}"
            log.warning("sendmail_failed", recipient=recipient, error=str(e))
            return False

        log.debug("sendmail_accepted", recipient=recipient)
        return True


def get_transport(settings: Settings | None = None) -> MailTransport:
    """SMTP when SMTP_HOST is configured, local sendmail otherwise."""
    settings = settings or get_settings()
    if settings.smtp_host:
        from fedbiz_brief.email.smtp import SmtpTransport

        log.info("transport_selected", transport="smtp", host=settings.smtp_host)
        return SmtpTransport(settings)
    log.info("transport_selected", transport="sendmail", path=settings.sendmail_path)
    return LocalMailTransport(settings)
