# ABOUTME: Email module for brief rendering and mail delivery.
# ABOUTME: Exports the renderer, transports and transport selection.

from fedbiz_brief.email.sender import BriefEmailRenderer
from fedbiz_brief.email.smtp import SmtpState, SmtpTransport
from fedbiz_brief.email.transport import LocalMailTransport, MailTransport, get_transport

__all__ = [
    "BriefEmailRenderer",
    "LocalMailTransport",
    "MailTransport",
    "SmtpState",
    "SmtpTransport",
    "get_transport",
]
