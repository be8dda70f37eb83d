"""Test configuration and fixtures."""

import os

# Keep the default engine off the working directory during tests
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest

from repository_manager.core.orchestrator import ResolutionOrchestrator
from repository_manager.index import InMemoryArtifactIndex
from repository_manager.store.content import ContentStore

from .fakes import FakeArchiver, FakeProjectSource, FakeVersionControl


@pytest.fixture
def source() -> FakeProjectSource:
    return FakeProjectSource()


@pytest.fixture
def archiver() -> FakeArchiver:
    return FakeArchiver()


@pytest.fixture
def vcs() -> FakeVersionControl:
    return FakeVersionControl()


@pytest.fixture
def store(tmp_path, archiver, vcs) -> ContentStore:
    return ContentStore(tmp_path / "projects", archiver=archiver, vcs=vcs)


@pytest.fixture
def index() -> InMemoryArtifactIndex:
    return InMemoryArtifactIndex()


@pytest.fixture
def orchestrator(store, source, index) -> ResolutionOrchestrator:
    return ResolutionOrchestrator(store=store, source=source, index=index)
