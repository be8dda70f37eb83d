"""Test doubles for the project source and the external tools."""

import threading
import time
from collections import defaultdict
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Set

from repository_manager.errors import NotFoundError, ToolError
from repository_manager.integrations.project_source import ProjectSource
from repository_manager.schemas.projects import ProjectMetadata
from repository_manager.store.tools import Archiver, VersionControlTool


PROJECT_ID = "11111111-1111-1111-1111-111111111111"
COMMIT_A = "a" * 40
COMMIT_B = "b" * 40


class FakeProjectSource(ProjectSource):
    """In-memory project source that counts its calls."""

    def __init__(self, projects: Optional[Dict[str, str]] = None, delay: float = 0.0):
        self.projects = projects if projects is not None else {PROJECT_ID: "demo"}
        self.delay = delay
        self.metadata_calls = 0
        self.fetch_calls = 0
        self.error: Optional[Exception] = None
        self._lock = threading.Lock()

    def get_metadata(self, project_id: str) -> ProjectMetadata:
        with self._lock:
            self.metadata_calls += 1
        if self.error is not None:
            raise self.error
        if project_id not in self.projects:
            raise NotFoundError(f"Project {project_id} not found")
        return ProjectMetadata(project_id=project_id, name=self.projects[project_id])

    @contextmanager
    def fetch_archive(self, project_id: str) -> Iterator[Iterator[bytes]]:
        with self._lock:
            self.fetch_calls += 1
        if project_id not in self.projects:
            raise NotFoundError(f"Project {project_id} not found")
        time.sleep(self.delay)
        yield iter([b"PK-fake-", self.projects[project_id].encode()])


class FakeArchiver(Archiver):
    """Pretends to extract by writing a marker file."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.calls: List[Path] = []

    @property
    def name(self) -> str:
        return "fake"

    def extract(self, archive: Path, target: Path) -> None:
        self.calls.append(archive)
        if self.fail:
            raise ToolError(["fake-unzip", str(archive)], returncode=9, stderr="corrupt")
        (target / ".git").mkdir()
        (target / "README").write_bytes(archive.read_bytes())


class FakeVersionControl(VersionControlTool):
    """Tracks which commit each working tree has checked out.

    Bundles contain the name of the commit checked out at bundle time, so a
    bundle taken while another request switched the tree shows up as the
    wrong content.
    """

    def __init__(self, commits: Optional[Set[str]] = None, delay: float = 0.0):
        self.commits = commits if commits is not None else {COMMIT_A, COMMIT_B}
        self.delay = delay
        self.head: Dict[Path, str] = {}
        self.checkouts: List[str] = []
        self.resets = 0
        self.fail_bundle = False
        self.fail_reset = False
        self.active: Dict[Path, int] = defaultdict(int)
        self.max_active = 0
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        return "fake-vcs"

    def resolve_commit(self, working_tree: Path, commit: str) -> bool:
        return commit in self.commits

    def checkout(self, working_tree: Path, commit: str) -> None:
        with self._lock:
            self.active[working_tree] += 1
            self.max_active = max(self.max_active, self.active[working_tree])
            self.checkouts.append(commit)
            self.head[working_tree] = commit
        time.sleep(self.delay)

    def bundle(self, working_tree: Path, destination: Path) -> None:
        if self.fail_bundle:
            raise ToolError(["fake-git", "bundle"], returncode=128, stderr="boom")
        time.sleep(self.delay)
        destination.write_text(f"bundle:{self.head[working_tree]}")

    def reset(self, working_tree: Path) -> None:
        with self._lock:
            self.resets += 1
            self.active[working_tree] -= 1
        if self.fail_reset:
            raise ToolError(["fake-git", "reset"], returncode=128, stderr="locked")


