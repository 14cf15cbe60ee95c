"""Generation lifecycle orchestration."""

from .orchestrator import GenerationOrchestrator, SessionView

__all__ = ["GenerationOrchestrator", "SessionView"]
