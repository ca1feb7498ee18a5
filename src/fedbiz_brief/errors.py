# ABOUTME: Exception hierarchy for brief building, persistence and mail delivery.
# ABOUTME: The fatal flag separates skip-and-continue errors from run-aborting ones.


class BriefError(Exception):
    """Base exception for all fedbiz_brief errors."""

    fatal: bool = False


class AggregationError(BriefError):
    """Raised when a single program's data cannot be gathered or analyzed."""

    def __init__(self, program_code: str, message: str) -> None:
        super().__init__(f"{program_code}: {message}")
        self.program_code = program_code


class PersistenceError(BriefError):
    """Raised when storage cannot be read or written."""

    fatal = True


class DuplicateBriefError(PersistenceError):
    """Raised when a brief for the same day has already been stored."""


class MailError(BriefError):
    """Base class for mail delivery failures for one recipient."""


class MailConnectionError(MailError):
    """Socket, TLS or timeout failure while talking to the mail server."""


class ProtocolError(MailError):
    """The SMTP server answered with an unexpected reply code."""

    def __init__(self, stage: str, expected: str, reply: str) -> None:
        super().__init__(f"{stage}: expected {expected}, got {reply!r}")
        self.stage = stage
        self.expected = expected
        self.reply = reply


class AuthError(ProtocolError):
    """The SMTP server rejected the credentials."""
