# ABOUTME: MIME assembly of brief emails as multipart/alternative messages.
# ABOUTME: Also prepares the SMTP DATA payload with CRLF line endings and dot-stuffing.

import itertools
import os
import secrets
from email import policy
from email.message import EmailMessage
from email.utils import formataddr

from fedbiz_brief.config import Settings

_boundary_counter = itertools.count(1)


def make_boundary() -> str:
    """Boundary token unique within this process and across processes."""
    return f"fedbiz_{os.getpid()}_{next(_boundary_counter)}_{secrets.token_hex(8)}"


def build_message(
    settings: Settings,
    recipient: str,
    subject: str,
    html: str,
    text: str,
    recipient_name: str = "",
) -> EmailMessage:
    """Build the multipart/alternative message for one recipient.

    Args:
        settings: Provides sender identity and X-Mailer value.
        recipient: Destination address.
        subject: Subject line; non-ASCII is header-encoded.
        html: HTML body.
        text: Plain-text body.
        recipient_name: Optional display name for the To header.

    Returns:
        Message with a text/plain part followed by a text/html part, both UTF-8.

    Raises:
        ValueError: A header value contains a line break.
    """
    for value in (recipient, recipient_name, subject):
        if "\r" in value or "\n" in value:
            raise ValueError(f"line break in header value {value!r}")

    message = EmailMessage()
    message["From"] = formataddr((settings.sender_name, settings.sender_email))
    message["To"] = formataddr((recipient_name, recipient)) if recipient_name else recipient
    message["Subject"] = subject
    message["X-Mailer"] = settings.x_mailer

    message.set_content(text, charset="utf-8", cte="quoted-printable")
    message.add_alternative(html, subtype="html", charset="utf-8", cte="quoted-printable")
    message.set_boundary(make_boundary())

    if "MIME-Version" not in message:
        message["MIME-Version"] = "1.0"
    return message


def dot_stuff(payload: bytes) -> bytes:
    """Double any leading dot so no body line can end the DATA phase early."""
    lines = payload.split(b"\r\n")
    return b"\r\n".join(b"." + line if line.startswith(b".") else line for line in lines)


def data_payload(message: EmailMessage) -> bytes:
    """Serialize for the DATA command, terminator included."""
    raw = message.as_bytes(policy=policy.SMTP)
    if not raw.endswith(b"\r\n"):
        raw += b"\r\n"
    return dot_stuff(raw) + b".\r\n"
