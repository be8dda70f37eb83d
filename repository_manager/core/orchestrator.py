"""
Resolution orchestrator - turns (project, commit) into a bundle on disk.

Flow for a request:
1. CacheExact: index lookup for the exact pair; a hit is returned as is
2. Identify: project name from the index, else from the project source
3. TreeCheck: reuse the project's working tree if it is already extracted
4. FetchAndExtract: download the archive, save it, extract the working tree
5. Checkout: bundle the commit out of the shared working tree
6. Commit: insert the index record, always as the last step

Steps 3-6 hold the project's lock: the working tree is shared by every
commit of a project, and only one download per project may be in flight.
"""
from __future__ import annotations

from pathlib import Path
from typing import Optional

import structlog

from ..config import Settings
from ..index import ArtifactIndex, ArtifactRecord
from ..integrations.project_source import HttpProjectSource, ProjectSource
from ..store.content import ContentStore
from ..store.tools import get_archiver, get_version_control
from .locks import ProjectLocks

logger = structlog.get_logger()


class ResolutionOrchestrator:
    """
    Drives the content store, project source and artifact index through the
    minimum work needed to produce a commit bundle.

    Any failure aborts the resolution and propagates unchanged; the index
    is only written after the bundle file is complete.
    """

    def __init__(
        self,
        store: ContentStore,
        source: ProjectSource,
        index: ArtifactIndex,
        locks: Optional[ProjectLocks] = None,
        keep_archives: bool = True,
    ):
        self.store = store
        self.source = source
        self.index = index
        self.locks = locks or ProjectLocks()
        self.keep_archives = keep_archives

    def resolve(self, project_id: str, commit: str) -> ArtifactRecord:
        """Return the index record of the bundle for ``commit`` of ``project_id``.

        Raises:
            NotFoundError, TransportError: Project source failures
            ExtractionError: The archive could not be expanded
            CheckoutError: The commit could not be checked out or bundled
            StorageError: Local filesystem failures
        """
        log = logger.bind(project_id=project_id, commit=commit)
        log.info("resolve_start")

        record = self._cached(project_id, commit, log)
        if record is not None:
            return record

        project_name = self._identify(project_id, log)

        with self.locks.hold(project_id):
            # Another request may have produced it while we waited.
            record = self._cached(project_id, commit, log)
            if record is not None:
                return record

            working_tree = self._ensure_working_tree(project_id, project_name, log)

            bundle_path = self.store.checkout(
                working_tree,
                self.store.commit_path(project_id, commit),
                commit,
                project_id,
                project_name,
            )

            record = self.index.upsert(
                ArtifactRecord(
                    project_id=project_id,
                    commit_hash=commit,
                    project_name=project_name,
                    working_tree_path=str(working_tree),
                    bundle_path=str(bundle_path),
                )
            )

        log.info("resolve_complete", bundle_path=record.bundle_path)
        return record

    def _cached(self, project_id: str, commit: str, log) -> Optional[ArtifactRecord]:
        record = self.index.find_exact(project_id, commit)
        if record is None:
            return None
        if not Path(record.bundle_path).is_file():
            # The record outlived its file; rebuild at the same path.
            log.warning("artifact_bundle_missing", bundle_path=record.bundle_path)
            return None
        log.info(
            "artifact_cache_hit",
            project_name=record.project_name,
            bundle_path=record.bundle_path,
        )
        return record

    def _identify(self, project_id: str, log) -> str:
        known = self.index.find_any(project_id)
        if known is not None:
            log.debug("project_name_from_index", project_name=known.project_name)
            return known.project_name

        metadata = self.source.get_metadata(project_id)
        return metadata.name

    def _ensure_working_tree(self, project_id: str, project_name: str, log) -> Path:
        known = self.index.find_any(project_id)
        if known is not None and Path(known.working_tree_path).is_dir():
            log.info("working_tree_reused", working_tree=known.working_tree_path)
            return Path(known.working_tree_path)

        if self.store.has_working_tree(project_id, project_name):
            working_tree = self.store.working_tree_path(project_id, project_name)
            log.info("working_tree_reused", working_tree=str(working_tree))
            return working_tree

        archive_path = self.store.zip_file_path(project_id, project_name)
        with self.source.fetch_archive(project_id) as chunks:
            size = self.store.save(archive_path, chunks)
        log.info("archive_fetched", archive=str(archive_path), size_bytes=size)

        working_tree = self.store.extract(
            archive_path, self.store.unzip_path(project_id), project_name
        )

        if not self.keep_archives:
            self.store.discard_archive(project_id)

        return working_tree


def build_orchestrator(settings: Settings, index: ArtifactIndex) -> ResolutionOrchestrator:
    """Wire an orchestrator from settings."""
    archiver = get_archiver(
        settings.archiver,
        binary=settings.unzip_binary,
        timeout=settings.tool_timeout_seconds,
    )
    vcs = get_version_control(
        settings.vcs,
        binary=settings.git_binary,
        timeout=settings.tool_timeout_seconds,
    )
    store = ContentStore(
        settings.base_path,
        archiver=archiver,
        vcs=vcs,
        max_file_size=settings.max_archive_bytes,
    )
    source = HttpProjectSource(
        settings.project_source_url,
        timeout=settings.project_source_timeout_seconds,
        retries=settings.project_source_retries,
    )
    return ResolutionOrchestrator(
        store=store,
        source=source,
        index=index,
        keep_archives=settings.keep_archives,
    )
