"""
Core resolution logic.
"""

from .locks import ProjectLocks
from .orchestrator import ResolutionOrchestrator, build_orchestrator

__all__ = ["ProjectLocks", "ResolutionOrchestrator", "build_orchestrator"]
