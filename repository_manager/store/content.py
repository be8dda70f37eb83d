"""
Content store: the on-disk layout of every project.

Structure:
    {base_path}/{project_id}/
    ├── zip/{name}.zip          # Raw archive from the project source
    ├── unzip/{name}/           # Shared working tree (one per project)
    └── {commit}/{name}.bundle  # Per-commit bundle

Paths are deterministic functions of project id, commit and name; other
tooling may rely on this layout.
"""
from __future__ import annotations

import os
import shutil
import uuid
from pathlib import Path
from typing import Iterable, Optional, Union

import structlog

from ..errors import (
    CheckoutError,
    CommitNotFoundError,
    ExtractionError,
    StorageError,
    ToolError,
)
from .tools import Archiver, VersionControlTool

logger = structlog.get_logger()

PathLike = Union[str, Path]


class ContentStore:
    """Filesystem layout plus the save / extract / checkout operations."""

    def __init__(
        self,
        base_path: PathLike,
        archiver: Archiver,
        vcs: VersionControlTool,
        max_file_size: Optional[int] = None,
    ):
        """Initialize the store.

        Args:
            base_path: Root directory; made absolute once here
            archiver: Archive extraction backend
            vcs: Version-control backend used for checkout and bundling
            max_file_size: Upper bound in bytes for saved files (None = unbounded)
        """
        self.base_path = Path(base_path).expanduser().resolve()
        self.archiver = archiver
        self.vcs = vcs
        self.max_file_size = max_file_size

    # ------------------------------------------------------------------
    # Layout
    # ------------------------------------------------------------------

    def full_path(self, path: PathLike) -> Path:
        """Return ``path`` joined onto the base path."""
        return self.base_path / path

    def project_path(self, project_id: str) -> Path:
        return self.full_path(project_id)

    def zip_path(self, project_id: str) -> Path:
        return self.project_path(project_id) / "zip"

    def zip_file_path(self, project_id: str, project_name: str) -> Path:
        return self.zip_path(project_id) / f"{project_name}.zip"

    def unzip_path(self, project_id: str) -> Path:
        return self.project_path(project_id) / "unzip"

    def working_tree_path(self, project_id: str, project_name: str) -> Path:
        return self.unzip_path(project_id) / project_name

    def commit_path(self, project_id: str, commit: str) -> Path:
        return self.project_path(project_id) / commit

    def bundle_file_path(self, project_id: str, commit: str, project_name: str) -> Path:
        return self.commit_path(project_id, commit) / f"{project_name}.bundle"

    def has_working_tree(self, project_id: str, project_name: str) -> bool:
        """True if the project's working tree has been fully extracted."""
        return self.working_tree_path(project_id, project_name).is_dir()

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def save(self, path: PathLike, contents: Iterable[bytes]) -> int:
        """Write a stream of byte chunks to ``path``, replacing any existing file.

        The stream is written to a temporary sibling and renamed into place,
        so the final path either holds the complete content or nothing new.

        Returns:
            Number of bytes written

        Raises:
            StorageError: On I/O failure or when the size limit is exceeded
        """
        dest = Path(path)
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Unable to create directory {dest.parent}: {e}") from e

        tmp = dest.with_name(f".{dest.name}.tmp-{uuid.uuid4().hex[:8]}")
        written = 0
        try:
            with open(tmp, "wb") as f:
                for chunk in contents:
                    written += len(chunk)
                    if self.max_file_size is not None and written > self.max_file_size:
                        raise StorageError(
                            f"File exceeds maximum size of {self.max_file_size} bytes: {dest}"
                        )
                    f.write(chunk)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, dest)
        except OSError as e:
            tmp.unlink(missing_ok=True)
            raise StorageError(f"Unable to write file {dest}: {e}") from e
        except BaseException:
            tmp.unlink(missing_ok=True)
            raise

        logger.info("file_saved", path=str(dest), size_bytes=written)
        return written

    def extract(self, archive_path: PathLike, dest_dir: PathLike, name: str) -> Path:
        """Expand ``archive_path`` into ``dest_dir/name``.

        Extraction runs in a hidden staging directory that is renamed into
        place only on success; an existing ``dest_dir/name`` is therefore
        always a complete extraction.

        Returns:
            Path of the extracted working tree

        Raises:
            ExtractionError: If the archive is missing or cannot be expanded
            StorageError: If ``dest_dir`` cannot be created
        """
        archive = Path(archive_path)
        target_root = Path(dest_dir)
        final = target_root / name

        if not archive.is_file():
            raise ExtractionError(f"Archive not found: {archive}")

        try:
            target_root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Unable to create directory {target_root}: {e}") from e

        staging = target_root / f".{name}.partial-{uuid.uuid4().hex[:8]}"
        try:
            staging.mkdir()
            self.archiver.extract(archive, staging)
            if final.exists():
                # Populated by an earlier run; keep the existing tree.
                logger.info("working_tree_exists", path=str(final))
            else:
                os.replace(staging, final)
        except ToolError as e:
            raise ExtractionError(f"Unable to extract {archive}: {e}") from e
        except OSError as e:
            raise StorageError(f"Unable to populate {final}: {e}") from e
        finally:
            if staging.exists():
                shutil.rmtree(staging, ignore_errors=True)

        logger.info(
            "archive_extracted",
            archive=str(archive),
            path=str(final),
            archiver=self.archiver.name,
        )
        return final

    def checkout(
        self,
        working_tree_path: PathLike,
        dest_dir: PathLike,
        commit: str,
        project_id: str,
        name: str,
    ) -> Path:
        """Bundle ``commit`` of the working tree into ``dest_dir/{name}.bundle``.

        Steps: check out the commit, bundle HEAD, hard-reset the tree. The
        reset runs whenever the checkout was attempted, so the shared tree
        is left clean for the next commit even if an earlier step failed.

        Returns:
            Path of the bundle file

        Raises:
            CommitNotFoundError: If the commit does not resolve
            CheckoutError: If checkout, bundle or reset fails
            StorageError: If ``dest_dir`` cannot be created
        """
        tree = Path(working_tree_path)
        dest = Path(dest_dir)
        bundle_file = dest / f"{name}.bundle"
        log = logger.bind(project_id=project_id, commit=commit, working_tree=str(tree))

        if not tree.is_dir():
            raise CheckoutError(f"Working tree not found: {tree}")

        try:
            dest.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Unable to create directory {dest}: {e}") from e

        try:
            if not self.vcs.resolve_commit(tree, commit):
                raise CommitNotFoundError(
                    f"Commit {commit} not found in project {project_id}"
                )
        except ToolError as e:
            raise CheckoutError(f"Unable to resolve commit {commit}: {e}") from e

        tmp_bundle = dest / f".{name}.bundle.tmp-{uuid.uuid4().hex[:8]}"
        placed = False
        log.info("checkout_start", vcs=self.vcs.name)
        try:
            self.vcs.checkout(tree, commit)
            self.vcs.bundle(tree, tmp_bundle)
            os.replace(tmp_bundle, bundle_file)
            placed = True
        except ToolError as e:
            raise CheckoutError(f"Unable to bundle commit {commit}: {e}") from e
        except OSError as e:
            raise StorageError(f"Unable to write bundle {bundle_file}: {e}") from e
        finally:
            tmp_bundle.unlink(missing_ok=True)
            try:
                self._reset(tree, log)
            except CheckoutError:
                # A failed checkout never leaves a bundle behind.
                if placed:
                    bundle_file.unlink(missing_ok=True)
                raise

        log.info("checkout_complete", bundle_path=str(bundle_file))
        return bundle_file

    def _reset(self, tree: Path, log) -> None:
        try:
            self.vcs.reset(tree)
        except ToolError as e:
            log.error("working_tree_reset_failed", error=str(e))
            raise CheckoutError(f"Unable to reset working tree {tree}: {e}") from e

    def discard_archive(self, project_id: str) -> None:
        """Remove the zip staging directory of a project."""
        path = self.zip_path(project_id)
        try:
            shutil.rmtree(path)
        except FileNotFoundError:
            return
        except OSError as e:
            raise StorageError(f"Unable to remove {path}: {e}") from e
        logger.info("archive_discarded", project_id=project_id, path=str(path))
