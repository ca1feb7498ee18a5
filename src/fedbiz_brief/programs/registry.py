# ABOUTME: Static registry mapping program codes to adapter classes.
# ABOUTME: Resolves adapters once at startup and tracks which programs are active.

from fedbiz_brief.models import Program
from fedbiz_brief.programs.base import ProgramAdapter
from fedbiz_brief.programs.oasis_plus import OASISPlusAdapter
from fedbiz_brief.programs.sewp import SEWPAdapter
from fedbiz_brief.programs.tls import TLSAdapter

ADAPTERS: dict[str, type[ProgramAdapter]] = {
    TLSAdapter.code: TLSAdapter,
    OASISPlusAdapter.code: OASISPlusAdapter,
    SEWPAdapter.code: SEWPAdapter,
}


class ProgramRegistry:
    """Holds one adapter instance per program and its active flag."""

    def __init__(
        self,
        adapters: dict[str, ProgramAdapter] | None = None,
        active: set[str] | None = None,
    ) -> None:
        if adapters is None:
            adapters = {code: adapter_cls() for code, adapter_cls in ADAPTERS.items()}
        self._adapters = adapters
        self._active = set(adapters) if active is None else set(active) & set(adapters)

    def get_adapter(self, code: str) -> ProgramAdapter | None:
        """Get the adapter for an active program, None otherwise."""
        if not self.is_active(code):
            return None
        return self._adapters.get(code)

    def get_active_adapters(self) -> dict[str, ProgramAdapter]:
        return {code: adapter for code, adapter in self._adapters.items() if code in self._active}

    def get_active_programs(self) -> list[Program]:
        return [adapter.to_program() for adapter in self.get_active_adapters().values()]

    def is_active(self, code: str) -> bool:
        return code in self._active

    def toggle_program(self, code: str, active: bool) -> bool:
        """Enable or disable a registered program. Returns False for unknown codes."""
        if code not in self._adapters:
            return False
        if active:
            self._active.add(code)
        else:
            self._active.discard(code)
        return True

    def available_programs(self) -> list[str]:
        return list(self._adapters)
