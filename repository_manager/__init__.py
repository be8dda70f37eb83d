"""
Repository Manager

Resolves (project, commit) pairs to downloadable single-commit bundles,
materializing each upstream project only once.
"""

import importlib.metadata

__version__ = importlib.metadata.version("repository-manager")

from .core.orchestrator import ResolutionOrchestrator
from .errors import (
    CheckoutError,
    CommitNotFoundError,
    ExtractionError,
    NotFoundError,
    RepositoryManagerError,
    StorageError,
    TransportError,
)
from .index import ArtifactIndex, ArtifactRecord, InMemoryArtifactIndex
from .store import ContentStore

__all__ = [
    "ArtifactIndex",
    "ArtifactRecord",
    "CheckoutError",
    "CommitNotFoundError",
    "ContentStore",
    "ExtractionError",
    "InMemoryArtifactIndex",
    "NotFoundError",
    "RepositoryManagerError",
    "ResolutionOrchestrator",
    "StorageError",
    "TransportError",
]
