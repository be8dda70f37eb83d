"""
Artifact index - which (project, commit) pairs already have a bundle.

The index is the system of record the API trusts before serving a file.
It is append-mostly: records are inserted once after a bundle is complete
and never updated or deleted here.

Backends:
    - InMemoryArtifactIndex: process-local, for tests and ad-hoc runs
    - SqlArtifactIndex (repository_manager.db.services): SQLAlchemy
"""
from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Dict, Optional, Tuple


@dataclass(frozen=True)
class ArtifactRecord:
    """One materialized commit bundle."""

    project_id: str
    commit_hash: str
    project_name: str
    working_tree_path: str
    bundle_path: str
    created_at: Optional[datetime] = field(default=None, compare=False)

    @property
    def key(self) -> Tuple[str, str]:
        return (self.project_id, self.commit_hash)


class ArtifactIndex(ABC):
    """Abstract base class for artifact index backends."""

    @abstractmethod
    def find_exact(self, project_id: str, commit: str) -> Optional[ArtifactRecord]:
        """Return the record for exactly this pair, or None."""
        pass

    @abstractmethod
    def find_any(self, project_id: str) -> Optional[ArtifactRecord]:
        """Return the oldest record of a project, or None."""
        pass

    @abstractmethod
    def upsert(self, record: ArtifactRecord) -> ArtifactRecord:
        """Insert ``record`` unless its key already exists.

        Returns:
            The stored record; the existing one if another writer was first
        """
        pass


class InMemoryArtifactIndex(ArtifactIndex):
    """Thread-safe dictionary-backed index."""

    def __init__(self) -> None:
        self._records: Dict[Tuple[str, str], ArtifactRecord] = {}
        self._lock = threading.Lock()

    def find_exact(self, project_id: str, commit: str) -> Optional[ArtifactRecord]:
        with self._lock:
            return self._records.get((project_id, commit))

    def find_any(self, project_id: str) -> Optional[ArtifactRecord]:
        with self._lock:
            # dicts keep insertion order, so the first match is the oldest
            for record in self._records.values():
                if record.project_id == project_id:
                    return record
        return None

    def upsert(self, record: ArtifactRecord) -> ArtifactRecord:
        with self._lock:
            existing = self._records.get(record.key)
            if existing is not None:
                return existing
            stored = replace(record, created_at=datetime.now(timezone.utc))
            self._records[record.key] = stored
            return stored

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
