"""
External tool adapters for the content store.

Archive extraction and version-control operations sit behind two narrow
interfaces so the content store never shells out directly:

- Archiver: UnzipArchiver (``unzip`` command line tool), ZipFileArchiver
  (in-process)
- VersionControlTool: GitTool (``git`` command line tool)

Every subprocess is started with an explicit ``cwd``; nothing here reads
or changes the process-wide current directory.
"""
from __future__ import annotations

import shutil
import stat
import subprocess
import zipfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional, Sequence

import structlog

from ..errors import ToolError

logger = structlog.get_logger()


def run_tool(
    args: Sequence[str],
    cwd: Path,
    timeout: Optional[float] = None,
) -> subprocess.CompletedProcess:
    """Run an external command in ``cwd`` and return the completed process.

    Raises:
        ToolError: If the binary is missing, the command times out or exits
            with a non-zero status
    """
    argv: List[str] = [str(arg) for arg in args]
    logger.debug("tool_start", command=argv, cwd=str(cwd))
    try:
        result = subprocess.run(
            argv,
            cwd=str(cwd),
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except FileNotFoundError as e:
        raise ToolError(argv, reason=f"not found: {e.filename or argv[0]}") from e
    except subprocess.TimeoutExpired as e:
        raise ToolError(argv, reason=f"timed out after {timeout}s") from e

    if result.returncode != 0:
        logger.warning(
            "tool_failed",
            command=argv,
            returncode=result.returncode,
            stderr=result.stderr.strip(),
        )
        raise ToolError(argv, returncode=result.returncode, stderr=result.stderr)

    return result


class Archiver(ABC):
    """Expands a project archive into a directory."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Archiver name for logging and identification."""
        pass

    @abstractmethod
    def extract(self, archive: Path, target: Path) -> None:
        """Expand ``archive`` into the existing directory ``target``.

        Raises:
            ToolError: If the archive cannot be read or expanded
        """
        pass


class UnzipArchiver(Archiver):
    """Extracts archives with the ``unzip`` command line tool."""

    def __init__(self, binary: str = "unzip", timeout: Optional[float] = None):
        self.binary = binary
        self.timeout = timeout

    @property
    def name(self) -> str:
        return "unzip"

    def extract(self, archive: Path, target: Path) -> None:
        run_tool(
            [self.binary, "-qq", "-o", archive, "-d", target],
            cwd=target,
            timeout=self.timeout,
        )


class ZipFileArchiver(Archiver):
    """Extracts archives in-process, restoring unix permission bits.

    Git compares file modes, so executable bits lost during extraction would
    show up as local modifications in the working tree.
    """

    @property
    def name(self) -> str:
        return "zipfile"

    def extract(self, archive: Path, target: Path) -> None:
        argv = ["zipfile", str(archive)]
        try:
            with zipfile.ZipFile(archive) as zf:
                for info in zf.infolist():
                    extracted = Path(zf.extract(info, target))
                    mode = (info.external_attr >> 16) & 0o777
                    if mode and not info.is_dir():
                        extracted.chmod(mode | stat.S_IRUSR)
        except (zipfile.BadZipFile, OSError) as e:
            raise ToolError(argv, reason=str(e)) from e


class VersionControlTool(ABC):
    """Version-control operations on an extracted working tree."""

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @abstractmethod
    def resolve_commit(self, working_tree: Path, commit: str) -> bool:
        """Return True if ``commit`` names a commit in the working tree."""
        pass

    @abstractmethod
    def checkout(self, working_tree: Path, commit: str) -> None:
        """Check out ``commit`` in the working tree."""
        pass

    @abstractmethod
    def bundle(self, working_tree: Path, destination: Path) -> None:
        """Write a bundle of the working tree's HEAD to ``destination``."""
        pass

    @abstractmethod
    def reset(self, working_tree: Path) -> None:
        """Hard-reset the working tree to a clean state."""
        pass


class GitTool(VersionControlTool):
    """Version-control operations backed by the ``git`` command line tool."""

    def __init__(self, binary: str = "git", timeout: Optional[float] = None):
        self.binary = binary
        self.timeout = timeout

    @property
    def name(self) -> str:
        return "git"

    def _git(self, working_tree: Path, *args: str) -> subprocess.CompletedProcess:
        return run_tool([self.binary, *args], cwd=working_tree, timeout=self.timeout)

    def resolve_commit(self, working_tree: Path, commit: str) -> bool:
        try:
            self._git(working_tree, "rev-parse", "--verify", "--quiet", f"{commit}^{{commit}}")
        except ToolError as e:
            # rev-parse --verify --quiet exits 1 for unknown revisions
            if e.returncode == 1:
                return False
            raise
        return True

    def checkout(self, working_tree: Path, commit: str) -> None:
        self._git(working_tree, "checkout", "--quiet", "--force", commit)

    def bundle(self, working_tree: Path, destination: Path) -> None:
        self._git(working_tree, "bundle", "create", str(destination), "HEAD")

    def reset(self, working_tree: Path) -> None:
        self._git(working_tree, "reset", "--hard", "--quiet")


def get_archiver(
    archiver_type: str = "unzip",
    binary: Optional[str] = None,
    timeout: Optional[float] = None,
) -> Archiver:
    """Factory function to get an archiver by type.

    Raises:
        ValueError: If the archiver type is not supported
    """
    if archiver_type == "unzip":
        resolved = binary or "unzip"
        if shutil.which(resolved) is None:
            logger.warning("archiver_binary_missing", binary=resolved)
        return UnzipArchiver(binary=resolved, timeout=timeout)
    elif archiver_type == "zipfile":
        return ZipFileArchiver()
    else:
        raise ValueError(
            f"Unsupported archiver type: {archiver_type}. "
            f"Supported: unzip, zipfile"
        )


def get_version_control(
    vcs_type: str = "git",
    binary: Optional[str] = None,
    timeout: Optional[float] = None,
) -> VersionControlTool:
    """Factory function to get a version-control tool by type.

    Raises:
        ValueError: If the tool type is not supported
    """
    if vcs_type == "git":
        return GitTool(binary=binary or "git", timeout=timeout)
    else:
        raise ValueError(
            f"Unsupported version control tool: {vcs_type}. "
            f"Supported: git"
        )
