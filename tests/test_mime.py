# ABOUTME: Tests for MIME message assembly and SMTP DATA payload preparation.
# ABOUTME: Validates headers, boundary format, part order, CRLF endings and dot-stuffing.

import re
from email.message import EmailMessage

import pytest

from fedbiz_brief.config import Settings
from fedbiz_brief.email.mime import build_message, data_payload, dot_stuff, make_boundary

BOUNDARY_RE = re.compile(r"^fedbiz_\d+_\d+_[0-9a-f]{16}$")


class TestBoundary:
    """Tests for boundary generation."""

    def test_format(self) -> None:
        assert BOUNDARY_RE.match(make_boundary())

    def test_unique(self) -> None:
        assert len({make_boundary() for _ in range(50)}) == 50


class TestBuildMessage:
    """Tests for build_message."""

    def test_headers(self, mock_settings: Settings) -> None:
        """From, To, Subject, MIME-Version and X-Mailer are set."""
        message = build_message(
            mock_settings,
            "analyst@example.com",
            "Federal BD Brief - Oct 7, 2026",
            "<p>Hi</p>",
            "Hi",
            recipient_name="Dana Analyst",
        )

        assert message["From"] == "Test Briefs <briefs@example.com>"
        assert message["To"] == "Dana Analyst <analyst@example.com>"
        assert message["Subject"] == "Federal BD Brief - Oct 7, 2026"
        assert message["MIME-Version"] == "1.0"
        assert message["X-Mailer"] == "Test Mailer"

    def test_bare_recipient_without_name(self, mock_settings: Settings) -> None:
        message = build_message(mock_settings, "analyst@example.com", "S", "<p>x</p>", "x")
        assert message["To"] == "analyst@example.com"

    def test_multipart_alternative(self, mock_settings: Settings) -> None:
        """Plain text comes first, HTML second, both UTF-8, with the generated boundary."""
        message = build_message(mock_settings, "a@example.com", "S", "<p>Hello</p>", "Hello")

        assert message.get_content_type() == "multipart/alternative"
        assert BOUNDARY_RE.match(message.get_boundary())
        parts = list(message.iter_parts())
        assert [part.get_content_type() for part in parts] == ["text/plain", "text/html"]
        assert all(part.get_content_charset() == "utf-8" for part in parts)
        assert parts[0].get_content().strip() == "Hello"
        assert parts[1].get_content().strip() == "<p>Hello</p>"

    def test_non_ascii_bodies_round_trip(self, mock_settings: Settings) -> None:
        """Emoji headings survive encoding."""
        html = "<h3>✅ Confirmed Updates</h3>"
        message = build_message(mock_settings, "a@example.com", "Brief ✅", html, "✅ Confirmed")

        parts = list(message.iter_parts())
        assert parts[1].get_content().strip() == html
        assert message["Subject"] == "Brief ✅"

    @pytest.mark.parametrize(
        "recipient, subject, name",
        [
            ("a@example.com\r\nBcc: x@y", "S", ""),
            ("a@example.com", "S\nBcc: x@y", ""),
            ("a@example.com", "S", "Dana\rAnalyst"),
        ],
    )
    def test_line_breaks_in_headers_rejected(
        self, mock_settings: Settings, recipient, subject, name
    ) -> None:
        with pytest.raises(ValueError, match="line break"):
            build_message(mock_settings, recipient, subject, "<p>x</p>", "x", name)


class TestDataPayload:
    """Tests for the DATA-phase payload."""

    def test_crlf_line_endings_and_terminator(self, mock_settings: Settings) -> None:
        message = build_message(mock_settings, "a@example.com", "S", "<p>x</p>", "x\ny")
        payload = data_payload(message)

        assert payload.endswith(b"\r\n.\r\n")
        assert b"\n" not in payload.replace(b"\r\n", b"")

    def test_payload_is_ascii(self, mock_settings: Settings) -> None:
        """Non-ASCII content is transfer-encoded."""
        message = build_message(mock_settings, "a@example.com", "Brief ✅", "<p>📊</p>", "🔄")
        data_payload(message).decode("ascii")

    def test_leading_dots_are_stuffed(self) -> None:
        message = EmailMessage()
        message["Subject"] = "dots"
        message.set_content("first line\n.hidden line\n")

        payload = data_payload(message)

        assert b"\r\n..hidden line\r\n" in payload
        assert payload.endswith(b"\r\n.\r\n")

    def test_dot_stuff(self) -> None:
        assert dot_stuff(b"a\r\n.b\r\n..c\r\n") == b"a\r\n..b\r\n...c\r\n"
        assert dot_stuff(b".start") == b"..start"
        assert dot_stuff(b"no dots") == b"no dots"
