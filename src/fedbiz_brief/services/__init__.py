# ABOUTME: Service layer for batch jobs.
# ABOUTME: Exports the send orchestrator and the solicitation ingestor.

from fedbiz_brief.services.ingest import SolicitationIngestor
from fedbiz_brief.services.send_orchestrator import SendOrchestrator

__all__ = ["SendOrchestrator", "SolicitationIngestor"]
