# ABOUTME: Abstract program adapter interface for federal contract vehicles.
# ABOUTME: Each adapter exposes its name and keywords and normalizes raw solicitations.

from abc import ABC, abstractmethod
from typing import Any

from fedbiz_brief.models import Program, Solicitation


class ProgramAdapter(ABC):
    """Base class for contract vehicle adapters."""

    code: str = ""

    @abstractmethod
    def name(self) -> str:
        """Human-readable program name."""

    @abstractmethod
    def keywords(self) -> list[str]:
        """Keywords used for news matching and brief generation."""

    @abstractmethod
    def fetch_solicitations(self, status: str | None = None) -> list[dict[str, Any]]:
        """Fetch raw solicitations, optionally filtered by raw status."""

    @abstractmethod
    def normalize(self, raw: dict[str, Any]) -> Solicitation:
        """Convert a raw solicitation to the common shape."""

    def extra_fields(self) -> dict[str, str]:
        """Labels for the Solicitation.meta keys normalize() fills, shown with new opportunities."""
        return {}

    def to_program(self) -> Program:
        return Program(code=self.code, name=self.name(), keywords=self.keywords())

    @staticmethod
    def _filter_status(raws: list[dict[str, Any]], status: str | None) -> list[dict[str, Any]]:
        if status is None:
            return raws
        return [raw for raw in raws if str(raw.get("status", "")).lower() == status.lower()]
