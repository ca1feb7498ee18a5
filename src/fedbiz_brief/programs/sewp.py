# ABOUTME: NASA SEWP (Solutions for Enterprise-Wide Procurement) program adapter.
# ABOUTME: Supplies SEWP keywords and normalizes SEWP RFQ records.

from typing import Any

from fedbiz_brief.models import Solicitation
from fedbiz_brief.programs.base import ProgramAdapter
from fedbiz_brief.programs.tls import parse_date

SEWP_SOLICITATIONS: list[dict[str, Any]] = [
    {
        "source_id": "SEWP-RFQ-2025-001",
        "title": "Enterprise Network Infrastructure",
        "agency": "Department of Defense",
        "posted_date": "2025-08-14",
        "response_date": "2025-09-14",
        "status": "Open",
        "url": "https://sewp.nasa.gov/rfq/example1",
        "group": "A",
        "naics": "541511",
        "psc": "7030",
    },
    {
        "source_id": "SEWP-RFQ-2025-002",
        "title": "Cloud Software Licensing",
        "agency": "Department of Education",
        "posted_date": "2025-08-11",
        "response_date": "2025-09-11",
        "status": "Open",
        "url": "https://sewp.nasa.gov/rfq/example2",
        "group": "B",
        "naics": "541513",
        "psc": "7040",
    },
]


class SEWPAdapter(ProgramAdapter):
    """NASA SEWP GWAC."""

    code = "sewp"

    def name(self) -> str:
        return "NASA SEWP"

    def keywords(self) -> list[str]:
        return [
            "NASA SEWP",
            "SEWP V",
            "SEWP VI",
            "Solutions for Enterprise-Wide Procurement",
            "GWAC IT",
            "GWAC AV",
            "Ordering Guide",
            "Marketplace",
            "COTS",
            "Tech Refresh",
        ]

    def fetch_solicitations(self, status: str | None = None) -> list[dict[str, Any]]:
        return self._filter_status(list(SEWP_SOLICITATIONS), status)

    def normalize(self, raw: dict[str, Any]) -> Solicitation:
        return Solicitation(
            opp_no=raw.get("source_id", ""),
            title=raw.get("title", ""),
            agency=raw.get("agency", ""),
            status=str(raw.get("status") or "open").lower(),
            close_date=parse_date(raw.get("response_date")),
            url=raw.get("url", ""),
            program_code=self.code,
            meta={
                "sewp_group": raw.get("group", ""),
                "naics": raw.get("naics", ""),
                "psc": raw.get("psc", ""),
                "posted_date": raw.get("posted_date"),
            },
        )

    def extra_fields(self) -> dict[str, str]:
        return {
            "sewp_group": "SEWP Group (A/B/C)",
            "naics": "NAICS Codes",
            "psc": "PSC Codes",
            "posted_date": "Posted Date",
        }
