# ABOUTME: DLA Tailored Logistics Support (SOE/F&ESE) program adapter.
# ABOUTME: Supplies TLS keywords and normalizes TLS solicitation records.

from datetime import date
from typing import Any

from fedbiz_brief.models import Solicitation
from fedbiz_brief.programs.base import ProgramAdapter

TLS_SOLICITATIONS: list[dict[str, Any]] = [
    {
        "source_id": "TLS-SOE-2025-001",
        "title": "Special Operations Equipment - Tactical Gear",
        "agency": "DLA",
        "posted_date": "2025-08-15",
        "response_date": "2025-09-15",
        "status": "Open",
        "url": "https://sam.gov/opp/example1",
        "scope": "SOE",
        "set_aside": "Small Business",
    },
    {
        "source_id": "TLS-FESE-2025-002",
        "title": "Fire & Emergency Services Equipment",
        "agency": "DLA",
        "posted_date": "2025-08-10",
        "response_date": "2025-09-10",
        "status": "Open",
        "url": "https://sam.gov/opp/example2",
        "scope": "F&ESE",
        "set_aside": "Unrestricted",
    },
]


def parse_date(value: Any) -> date | None:
    """Parse an ISO date string, returning None for blanks and garbage."""
    if isinstance(value, date):
        return value
    if not value:
        return None
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


class TLSAdapter(ProgramAdapter):
    """DLA TLS (Special Operations Equipment / Fire & Emergency Services Equipment)."""

    code = "tls"

    def name(self) -> str:
        return "DLA TLS (SOE/F&ESE)"

    def keywords(self) -> list[str]:
        return [
            "DLA TLS",
            "SOE",
            "F&ESE",
            "Special Operations Equipment",
            "Fire & Emergency Services Equipment",
            "ADS",
            "Federal Resources",
            "Quantico Tactical",
            "SupplyCore",
            "TSSi",
            "W.S. Darley",
            "Defense Logistics Agency",
            "Tailored Logistics Support",
        ]

    def fetch_solicitations(self, status: str | None = None) -> list[dict[str, Any]]:
        return self._filter_status(list(TLS_SOLICITATIONS), status)

    def normalize(self, raw: dict[str, Any]) -> Solicitation:
        return Solicitation(
            opp_no=raw.get("source_id", ""),
            title=raw.get("title", ""),
            agency=raw.get("agency") or "DLA",
            status=str(raw.get("status") or "open").lower(),
            close_date=parse_date(raw.get("response_date")),
            url=raw.get("url", ""),
            program_code=self.code,
            meta={
                "scope": raw.get("scope", ""),
                "set_aside": raw.get("set_aside", ""),
                "posted_date": raw.get("posted_date"),
            },
        )

    def extra_fields(self) -> dict[str, str]:
        return {
            "scope": "TLS Scope (SOE/F&ESE)",
            "set_aside": "Set-Aside Type",
            "posted_date": "Posted Date",
        }
