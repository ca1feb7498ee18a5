# ABOUTME: Pytest fixtures and configuration for fedbiz_brief tests.
# ABOUTME: Provides mock settings, an in-memory SQLite session, sample items, and a scripted SMTP socket.

from collections.abc import Iterator
from datetime import date, datetime, timedelta
from pathlib import Path

import pytest
from pydantic import SecretStr
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from fedbiz_brief.config import Settings
from fedbiz_brief.db.models import Base, utcnow
from fedbiz_brief.models import (
    BriefDocument,
    BriefSection,
    ContentItem,
    Solicitation,
    Subscriber,
)

TODAY = date(2026, 10, 7)


@pytest.fixture
def mock_settings(tmp_path: Path) -> Settings:
    """Create mock settings for testing."""
    return Settings(
        smtp_host="smtp.example.com",
        smtp_port=2525,
        smtp_user="brief-user",
        smtp_pass=SecretStr("brief-password"),
        smtp_encryption="none",
        smtp_timeout=5,
        smtp_ehlo_domain="client.example.com",
        sender_email="briefs@example.com",
        sender_name="Test Briefs",
        x_mailer="Test Mailer",
        send_delay_seconds=0,
        analyzer="rules",
        gemini_api_key=None,
        gemini_model="gemini-test",
        database_url="sqlite://",
        previous_issues_dir=tmp_path / "previous_issues",
        log_level="DEBUG",
    )


@pytest.fixture
def session() -> Iterator[Session]:
    """In-memory SQLite session with all tables created."""
    engine = create_engine("sqlite://")
    Base.metadata.create_all(engine)
    db_session = Session(engine, expire_on_commit=False, autoflush=False)
    try:
        yield db_session
    finally:
        db_session.close()
        engine.dispose()


@pytest.fixture
def recent() -> datetime:
    """A publication time inside the 24h lookback window."""
    return utcnow() - timedelta(hours=1)


@pytest.fixture
def confirmed_item(recent: datetime) -> ContentItem:
    return ContentItem(
        title="GSA announces new TLS ordering guide",
        body="The ordering guide covers tactical equipment.",
        url="https://example.com/news/1",
        source="Federal News Network",
        published_at=recent,
        program_code="tls",
    )


@pytest.fixture
def signal_item(recent: datetime) -> ContentItem:
    return ContentItem(
        title="Industry chatter about SOE recompete",
        body="Sources say the recompete could slip.",
        url="https://example.com/news/2",
        source="Contracting Blog",
        published_at=recent,
        program_code="tls",
    )


@pytest.fixture
def sample_solicitation() -> Solicitation:
    return Solicitation(
        opp_no="TLS-SOE-2026-001",
        title="Special Operations Equipment - Tactical Gear",
        agency="DLA",
        status="open",
        close_date=TODAY + timedelta(days=30),
        url="https://sam.gov/opp/example1",
        program_code="tls",
    )


@pytest.fixture
def sample_document() -> BriefDocument:
    """A stored-shape brief with one program section carrying signals."""
    section = BriefSection(
        title="DLA TLS (SOE/F&ESE)",
        content=(
            "## DLA TLS (SOE/F&ESE) Updates\n\n"
            "### ✅ Confirmed Updates\n"
            "- **GSA announces new TLS ordering guide**\n"
            "  Source: Federal News Network | Oct 7\n"
            "  [Read more](https://example.com/news/1)\n\n"
            "### 📊 Signals & Market Intelligence\n"
            "- **Industry chatter about SOE recompete** *(Unverified)*\n"
            "  Source: Contracting Blog | Oct 7\n"
            "  [Read more](https://example.com/news/2)\n\n"
            "### What This Means\n- Watch the recompete\n"
        ),
        tags=["tls"],
        item_count=2,
        signals_and_rumors="📊 Industry chatter about SOE recompete (Contracting Blog)",
    )
    return BriefDocument(
        id=1,
        title="Federal BD Brief - Oct 7, 2026",
        brief_date=TODAY,
        content="# Federal Business Development Daily Brief\n",
        sections=[section],
        tags=["tls"],
    )


@pytest.fixture
def subscriber() -> Subscriber:
    return Subscriber(email="analyst@example.com", name="Dana Analyst")


class FakeSocket:
    """Scripted SMTP server socket.

    Each recv returns the next queued reply chunk; writes are recorded.
    """

    def __init__(self, replies: list[bytes], fail_on_recv: Exception | None = None) -> None:
        self.replies = list(replies)
        self.sent: list[bytes] = []
        self.closed = False
        self.timeout: float | None = None
        self.fail_on_recv = fail_on_recv

    def settimeout(self, value: float) -> None:
        self.timeout = value

    def sendall(self, data: bytes) -> None:
        self.sent.append(data)

    def recv(self, _size: int) -> bytes:
        if self.fail_on_recv is not None:
            raise self.fail_on_recv
        if not self.replies:
            return b""
        return self.replies.pop(0)

    def close(self) -> None:
        self.closed = True

    @property
    def commands(self) -> list[str]:
        return [chunk.decode("utf-8", errors="replace").rstrip("\r\n") for chunk in self.sent]


@pytest.fixture
def fake_socket_factory():
    """Build a socket factory returning a FakeSocket scripted with the given replies."""

    def make(replies: list[bytes], fail_on_recv: Exception | None = None):
        sock = FakeSocket(replies, fail_on_recv)

        def factory(address: tuple[str, int], timeout: float) -> FakeSocket:
            sock.address = address
            sock.connect_timeout = timeout
            return sock

        return sock, factory

    return make

