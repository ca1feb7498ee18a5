# ABOUTME: Program adapters for the supported federal contract vehicles.
# ABOUTME: Exports the adapter base class, concrete adapters and the registry.

from fedbiz_brief.programs.base import ProgramAdapter
from fedbiz_brief.programs.oasis_plus import OASISPlusAdapter
from fedbiz_brief.programs.registry import ADAPTERS, ProgramRegistry
from fedbiz_brief.programs.sewp import SEWPAdapter
from fedbiz_brief.programs.tls import TLSAdapter

__all__ = [
    "ADAPTERS",
    "OASISPlusAdapter",
    "ProgramAdapter",
    "ProgramRegistry",
    "SEWPAdapter",
    "TLSAdapter",
]
