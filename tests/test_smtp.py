# ABOUTME: Tests for the SMTP state machine transport against a scripted in-memory server.
# ABOUTME: Covers the full conversation, multi-line replies, STARTTLS, rejections and timeouts.

import base64
import socket
from unittest.mock import MagicMock

import pytest

from fedbiz_brief.config import Settings
from fedbiz_brief.email.smtp import SmtpSession, SmtpState, SmtpTransport

GREETING = b"220 smtp.example.com ESMTP ready\r\n"
EHLO_REPLY = b"250-smtp.example.com\r\n250-AUTH LOGIN PLAIN\r\n250 8BITMIME\r\n"
AUTH_REPLIES = [
    b"334 VXNlcm5hbWU6\r\n",
    b"334 UGFzc3dvcmQ6\r\n",
    b"235 2.7.0 Authentication successful\r\n",
]
ENVELOPE_REPLIES = [
    b"250 2.1.0 Sender OK\r\n",
    b"250 2.1.5 Recipient OK\r\n",
    b"354 End data with <CR><LF>.<CR><LF>\r\n",
    b"250 2.0.0 Queued as ABC123\r\n",
    b"221 2.0.0 Bye\r\n",
]
FULL_SCRIPT = [GREETING, EHLO_REPLY, *AUTH_REPLIES, *ENVELOPE_REPLIES]


def b64(value: str) -> str:
    return base64.b64encode(value.encode()).decode()


def send(transport: SmtpTransport) -> bool:
    return transport.send(
        "analyst@example.com",
        "Federal BD Brief - Oct 7, 2026",
        "<p>Hello</p>",
        "Hello",
        recipient_name="Dana Analyst",
    )


class FakeTLSContext:
    """Stands in for ssl.SSLContext; wrapping returns the same scripted socket."""

    def __init__(self) -> None:
        self.server_hostname: str | None = None

    def wrap_socket(self, sock, server_hostname=None):
        self.server_hostname = server_hostname
        return sock


class TestSuccessfulDelivery:
    """Tests for the happy path."""

    def test_full_conversation(self, mock_settings: Settings, fake_socket_factory) -> None:
        """Commands follow EHLO, AUTH LOGIN, MAIL, RCPT, DATA, QUIT in order."""
        sock, factory = fake_socket_factory(FULL_SCRIPT)
        transport = SmtpTransport(mock_settings, socket_factory=factory)

        assert send(transport) is True
        assert transport.last_error is None

        commands = sock.commands
        assert commands[:7] == [
            "EHLO client.example.com",
            "AUTH LOGIN",
            b64("brief-user"),
            b64("brief-password"),
            "MAIL FROM:<briefs@example.com>",
            "RCPT TO:<analyst@example.com>",
            "DATA",
        ]
        assert commands[-1] == "QUIT"
        assert sock.sent[7].endswith(b"\r\n.\r\n")
        assert b"Subject: Federal BD Brief - Oct 7, 2026" in sock.sent[7]
        assert sock.closed is True

    def test_connects_with_configured_timeout(
        self, mock_settings: Settings, fake_socket_factory
    ) -> None:
        sock, factory = fake_socket_factory(FULL_SCRIPT)
        send(SmtpTransport(mock_settings, socket_factory=factory))

        assert sock.address == ("smtp.example.com", 2525)
        assert sock.connect_timeout == 5
        assert sock.timeout == 5

    def test_no_auth_without_credentials(
        self, mock_settings: Settings, fake_socket_factory
    ) -> None:
        """Without SMTP_USER the AUTH exchange is skipped."""
        settings = mock_settings.model_copy(update={"smtp_user": None, "smtp_pass": None})
        sock, factory = fake_socket_factory([GREETING, EHLO_REPLY, *ENVELOPE_REPLIES])

        assert send(SmtpTransport(settings, socket_factory=factory)) is True
        assert sock.commands[1] == "MAIL FROM:<briefs@example.com>"

    def test_starttls_renegotiates(self, mock_settings: Settings, fake_socket_factory) -> None:
        """With TLS enabled the client upgrades the socket and sends EHLO again."""
        settings = mock_settings.model_copy(update={"smtp_encryption": "tls"})
        sock, factory = fake_socket_factory(
            [
                GREETING,
                b"250-smtp.example.com\r\n250 STARTTLS\r\n",
                b"220 2.0.0 Ready to start TLS\r\n",
                EHLO_REPLY,
                *AUTH_REPLIES,
                *ENVELOPE_REPLIES,
            ]
        )
        context = FakeTLSContext()

        assert send(SmtpTransport(settings, socket_factory=factory, ssl_context=context)) is True
        assert sock.commands[:4] == [
            "EHLO client.example.com",
            "STARTTLS",
            "EHLO client.example.com",
            "AUTH LOGIN",
        ]
        assert context.server_hostname == "smtp.example.com"

    def test_bad_quit_reply_is_still_success(
        self, mock_settings: Settings, fake_socket_factory
    ) -> None:
        """The server hanging up after accepting the message does not fail the send."""
        sock, factory = fake_socket_factory(
            [GREETING, EHLO_REPLY, *AUTH_REPLIES, *ENVELOPE_REPLIES[:-1]]
        )

        assert send(SmtpTransport(mock_settings, socket_factory=factory)) is True
        assert sock.closed is True


class TestFailures:
    """Tests for rejected and broken conversations."""

    def test_rejected_greeting(self, mock_settings: Settings, fake_socket_factory) -> None:
        """A 554 greeting fails without sending EHLO."""
        sock, factory = fake_socket_factory([b"554 No SMTP service here\r\n"])
        transport = SmtpTransport(mock_settings, socket_factory=factory)

        assert send(transport) is False
        assert sock.sent == []
        assert sock.closed is True
        assert "554" in transport.last_error

    def test_auth_failure(self, mock_settings: Settings, fake_socket_factory) -> None:
        """Rejected credentials fail before any envelope command."""
        sock, factory = fake_socket_factory(
            [
                GREETING,
                EHLO_REPLY,
                AUTH_REPLIES[0],
                AUTH_REPLIES[1],
                b"535 5.7.8 Authentication credentials invalid\r\n",
            ]
        )
        transport = SmtpTransport(mock_settings, socket_factory=factory)

        assert send(transport) is False
        assert not any(command.startswith("MAIL FROM") for command in sock.commands)
        assert "auth_pass" in transport.last_error
        assert sock.closed is True

    def test_rejected_recipient(self, mock_settings: Settings, fake_socket_factory) -> None:
        """A 550 to RCPT TO fails before DATA."""
        sock, factory = fake_socket_factory(
            [
                GREETING,
                EHLO_REPLY,
                *AUTH_REPLIES,
                b"250 Sender OK\r\n",
                b"550 5.1.1 Mailbox unavailable\r\n",
            ]
        )
        transport = SmtpTransport(mock_settings, socket_factory=factory)

        assert send(transport) is False
        assert "DATA" not in sock.commands
        assert "rcpt_to" in transport.last_error

    def test_timeout(self, mock_settings: Settings, fake_socket_factory) -> None:
        """A read timeout is reported as failure, not raised."""
        sock, factory = fake_socket_factory([], fail_on_recv=socket.timeout("timed out"))
        transport = SmtpTransport(mock_settings, socket_factory=factory)

        assert send(transport) is False
        assert "timed out" in transport.last_error
        assert sock.closed is True

    def test_connection_refused(self, mock_settings: Settings) -> None:
        def refuse(address, timeout):
            raise ConnectionRefusedError("connection refused")

        transport = SmtpTransport(mock_settings, socket_factory=refuse)

        assert send(transport) is False
        assert "connection refused" in transport.last_error

    def test_server_disconnects(self, mock_settings: Settings, fake_socket_factory) -> None:
        """The server closing mid-conversation is a failure."""
        sock, factory = fake_socket_factory([GREETING, EHLO_REPLY, *AUTH_REPLIES])
        transport = SmtpTransport(mock_settings, socket_factory=factory)

        assert send(transport) is False
        assert "connection closed" in transport.last_error

    def test_garbage_reply(self, mock_settings: Settings, fake_socket_factory) -> None:
        sock, factory = fake_socket_factory([b"hello there\r\n"])
        assert send(SmtpTransport(mock_settings, socket_factory=factory)) is False

    def test_non_ascii_digit_reply_code(
        self, mock_settings: Settings, fake_socket_factory
    ) -> None:
        """Superscript digits are not a reply code and are reported, not raised."""
        sock, factory = fake_socket_factory(["²²² ready\r\n".encode()])
        transport = SmtpTransport(mock_settings, socket_factory=factory)

        assert send(transport) is False
        assert "reply code" in transport.last_error
        assert sock.closed is True


class TestHeaderInjection:
    """Tests for header values carrying line breaks."""

    def test_recipient_with_crlf(self, mock_settings: Settings) -> None:
        """No connection is opened for a recipient that would inject headers."""
        factory = MagicMock()
        transport = SmtpTransport(mock_settings, socket_factory=factory)

        result = transport.send("a@example.com\r\nBcc: x@y", "Brief", "<p>x</p>", "x")

        assert result is False
        assert transport.last_error.startswith("invalid message")
        factory.assert_not_called()

    def test_subject_with_newline(self, mock_settings: Settings, fake_socket_factory) -> None:
        sock, factory = fake_socket_factory(FULL_SCRIPT)
        transport = SmtpTransport(mock_settings, socket_factory=factory)

        result = transport.send("a@example.com", "Brief\nBcc: x@y", "<p>x</p>", "x")

        assert result is False
        assert "line break" in transport.last_error
        assert sock.sent == []


class TestSmtpSession:
    """Tests for reply parsing and state transitions."""

    def test_multiline_reply_across_chunks(
        self, mock_settings: Settings, fake_socket_factory
    ) -> None:
        """Continuation lines are read until the final line, even split across reads."""
        sock, _ = fake_socket_factory(
            [b"250-smtp.example.com\r\n250-PIPE", b"LINING\r\n250 HELP\r\n"]
        )
        session = SmtpSession(sock, mock_settings, "a@example.com", b"")

        reply = session.read_reply()

        assert reply.code == 250
        assert reply.lines == ["smtp.example.com", "PIPELINING", "HELP"]

    def test_states_advance_to_closed(self, mock_settings: Settings, fake_socket_factory) -> None:
        sock, _ = fake_socket_factory(FULL_SCRIPT)
        session = SmtpSession(sock, mock_settings, "a@example.com", b"body\r\n.\r\n")
        assert session.state is SmtpState.CONNECTED

        session.run()

        assert session.state is SmtpState.CLOSED
        assert session.extensions == ["AUTH LOGIN PLAIN", "8BITMIME"]

    @pytest.mark.parametrize(
        "state",
        [state for state in SmtpState if state is not SmtpState.CLOSED],
    )
    def test_every_state_has_a_handler(
        self, mock_settings: Settings, fake_socket_factory, state: SmtpState
    ) -> None:
        sock, _ = fake_socket_factory([])
        session = SmtpSession(sock, mock_settings, "a@example.com", b"")
        assert state in session._handlers
