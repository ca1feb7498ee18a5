# ABOUTME: SMTP client implemented as an explicit state machine over a raw socket.
# ABOUTME: Handles greeting, EHLO, STARTTLS, AUTH LOGIN, envelope, DATA and QUIT.

import base64
import socket
import ssl
from collections.abc import Callable
from enum import Enum

import structlog

from fedbiz_brief.config import Settings
from fedbiz_brief.email.mime import build_message, data_payload
from fedbiz_brief.email.transport import MailTransport
from fedbiz_brief.errors import AuthError, MailConnectionError, ProtocolError

log = structlog.get_logger()

SocketFactory = Callable[[tuple[str, int], float], socket.socket]


class SmtpState(Enum):
    CONNECTED = "connected"
    GREETED = "greeted"
    NEGOTIATED = "negotiated"
    AUTHENTICATED = "authenticated"
    ENVELOPE_FROM = "envelope_from"
    ENVELOPE_TO = "envelope_to"
    DATA_READY = "data_ready"
    SENT = "sent"
    CLOSED = "closed"


class SmtpReply:
    """A complete, possibly multi-line, server reply."""

    def __init__(self, code: int, lines: list[str]) -> None:
        self.code = code
        self.lines = lines

    @property
    def text(self) -> str:
        return "\n".join(self.lines)

    def __repr__(self) -> str:
        return f"<SmtpReply({self.code}, {self.text!r})>"


class SmtpSession:
    """One SMTP conversation delivering a single message.

    Each state has exactly one handler; a handler performs one exchange and
    moves to the next state or raises ProtocolError, AuthError or
    MailConnectionError.
    """

    def __init__(
        self,
        sock: socket.socket,
        settings: Settings,
        recipient: str,
        payload: bytes,
        ssl_context: ssl.SSLContext | None = None,
    ) -> None:
        self.sock = sock
        self.settings = settings
        self.recipient = recipient
        self.payload = payload
        self.ssl_context = ssl_context
        self.state = SmtpState.CONNECTED
        self.tls_active = False
        self.extensions: list[str] = []
        self._buffer = b""
        self._handlers: dict[SmtpState, Callable[[], None]] = {
            SmtpState.CONNECTED: self._on_connected,
            SmtpState.GREETED: self._on_greeted,
            SmtpState.NEGOTIATED: self._on_negotiated,
            SmtpState.AUTHENTICATED: self._on_authenticated,
            SmtpState.ENVELOPE_FROM: self._on_envelope_from,
            SmtpState.ENVELOPE_TO: self._on_envelope_to,
            SmtpState.DATA_READY: self._on_data_ready,
            SmtpState.SENT: self._on_sent,
        }

    def run(self) -> None:
        """Drive the conversation until the message is sent and QUIT is issued."""
        while self.state is not SmtpState.CLOSED:
            self._handlers[self.state]()

    # State handlers

    def _on_connected(self) -> None:
        self._expect(self.read_reply(), (220,), "greeting")
        self.state = SmtpState.GREETED

    def _on_greeted(self) -> None:
        domain = self.settings.smtp_ehlo_domain or socket.getfqdn()
        reply = self._command(f"EHLO {domain}", (250,), "ehlo")
        self.extensions = [line.upper() for line in reply.lines[1:]]
        self.state = SmtpState.NEGOTIATED

    def _on_negotiated(self) -> None:
        if self.settings.smtp_encryption == "tls" and not self.tls_active:
            self._command("STARTTLS", (220,), "starttls")
            self._start_tls()
            # Extensions must be renegotiated over the encrypted channel.
            self.state = SmtpState.GREETED
            return

        if self.settings.smtp_user and self.settings.smtp_pass:
            self._authenticate()
        self.state = SmtpState.AUTHENTICATED

    def _on_authenticated(self) -> None:
        self._command(f"MAIL FROM:<{self.settings.sender_email}>", (250,), "mail_from")
        self.state = SmtpState.ENVELOPE_FROM

    def _on_envelope_from(self) -> None:
        self._command(f"RCPT TO:<{self.recipient}>", (250, 251), "rcpt_to")
        self.state = SmtpState.ENVELOPE_TO

    def _on_envelope_to(self) -> None:
        self._command("DATA", (354,), "data")
        self.state = SmtpState.DATA_READY

    def _on_data_ready(self) -> None:
        self._write(self.payload)
        self._expect(self.read_reply(), (250,), "data_end")
        self.state = SmtpState.SENT

    def _on_sent(self) -> None:
        # The message is already accepted; a bad QUIT reply is not a failure.
        try:
            self._send_line("QUIT")
            reply = self.read_reply()
            if reply.code != 221:
                log.debug("smtp_quit_reply", code=reply.code)
        except (MailConnectionError, ProtocolError) as e:
            log.debug("smtp_quit_failed", error=str(e))
        self.state = SmtpState.CLOSED

    # Helpers

    def _authenticate(self) -> None:
        user = self.settings.smtp_user or ""
        password = self.settings.smtp_pass.get_secret_value() if self.settings.smtp_pass else ""

        self._command("AUTH LOGIN", (334,), "auth", auth=True)
        self._command(_b64(user), (334,), "auth_user", auth=True, secret=True)
        self._command(_b64(password), (235,), "auth_pass", auth=True, secret=True)

    def _start_tls(self) -> None:
        context = self.ssl_context or ssl.create_default_context()
        try:
            self.sock = context.wrap_socket(self.sock, server_hostname=self.settings.smtp_host)
        except (ssl.SSLError, OSError) as e:
            raise MailConnectionError(f"TLS negotiation failed: {e}") from e
        self._buffer = b""
        self.tls_active = True
        log.debug("smtp_tls_started")

    def _command(
        self,
        line: str,
        expected: tuple[int, ...],
        stage: str,
        auth: bool = False,
        secret: bool = False,
    ) -> SmtpReply:
        self._send_line(line, secret=secret)
        return self._expect(self.read_reply(), expected, stage, auth=auth)

    def _expect(
        self,
        reply: SmtpReply,
        expected: tuple[int, ...],
        stage: str,
        auth: bool = False,
    ) -> SmtpReply:
        if reply.code not in expected:
            wanted = "/".join(str(code) for code in expected)
            error_cls = AuthError if auth else ProtocolError
            raise error_cls(stage, wanted, f"{reply.code} {reply.text}")
        return reply

    def _send_line(self, line: str, secret: bool = False) -> None:
        log.debug("smtp_command", command="<redacted>" if secret else line)
        self._write(line.encode("utf-8") + b"\r\n")

    def _write(self, data: bytes) -> None:
        try:
            self.sock.sendall(data)
        except OSError as e:
            raise MailConnectionError(f"write failed in state {self.state.value}: {e}") from e

    def _read_line(self) -> bytes:
        while b"\n" not in self._buffer:
            try:
                chunk = self.sock.recv(4096)
            except OSError as e:
                raise MailConnectionError(f"read failed in state {self.state.value}: {e}") from e
            if not chunk:
                raise MailConnectionError(f"connection closed in state {self.state.value}")
            self._buffer += chunk
        line, self._buffer = self._buffer.split(b"\n", 1)
        return line.rstrip(b"\r")

    def read_reply(self) -> SmtpReply:
        """Read one reply, following "250-" continuation lines to the final "250 " line."""
        lines: list[str] = []
        while True:
            raw = self._read_line().decode("utf-8", errors="replace")
            code = raw[:3]
            if len(code) < 3 or not (code.isascii() and code.isdigit()):
                raise ProtocolError(self.state.value, "reply code", raw)
            lines.append(raw[4:])
            if raw[3:4] != "-":
                return SmtpReply(int(code), lines)


def _b64(value: str) -> str:
    return base64.b64encode(value.encode("utf-8")).decode("ascii")


class SmtpTransport(MailTransport):
    """Delivers mail over SMTP, one connection per message."""

    def __init__(
        self,
        settings: Settings | None = None,
        socket_factory: SocketFactory | None = None,
        ssl_context: ssl.SSLContext | None = None,
    ) -> None:
        super().__init__(settings)
        self.socket_factory = socket_factory or socket.create_connection
        self.ssl_context = ssl_context

    def send(
        self,
        recipient: str,
        subject: str,
        html: str,
        text: str,
        recipient_name: str = "",
    ) -> bool:
        """Send one message. Never raises; failures return False and set last_error."""
        self.last_error = None
        try:
            payload = data_payload(
                build_message(self.settings, recipient, subject, html, text, recipient_name)
            )
        except ValueError as e:
            self.last_error = f"invalid message: {e}"
            log.warning("smtp_message_rejected", recipient=recipient, error=str(e))
            return False

        host = self.settings.smtp_host or "localhost"
        sock: socket.socket | None = None
        session: SmtpSession | None = None
        try:
            try:
                sock = self.socket_factory(
                    (host, self.settings.smtp_port), self.settings.smtp_timeout
                )
            except OSError as e:
                raise MailConnectionError(
                    f"connect to {host}:{self.settings.smtp_port} failed: {e}"
                ) from e
            sock.settimeout(self.settings.smtp_timeout)

            session = SmtpSession(sock, self.settings, recipient, payload, self.ssl_context)
            session.run()
        except AuthError as e:
            self.last_error = str(e)
            log.warning("smtp_auth_failed", recipient=recipient, stage=e.stage, reply=e.reply)
            return False
        except ProtocolError as e:
            self.last_error = str(e)
            log.warning(
                "smtp_unexpected_reply",
                recipient=recipient,
                stage=e.stage,
                expected=e.expected,
                reply=e.reply,
            )
            return False
        except MailConnectionError as e:
            self.last_error = str(e)
            log.warning("smtp_connection_failed", recipient=recipient, error=str(e))
            return False
        finally:
            _close(session.sock if session is not None else sock)

        log.info("smtp_message_sent", recipient=recipient)
        return True


def _close(sock: socket.socket | None) -> None:
    if sock is None:
        return
    try:
        sock.close()
    except OSError as e:
        log.debug("smtp_close_failed", error=str(e))
