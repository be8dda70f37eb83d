"""
Error taxonomy for the Repository Manager.

Every failure surfaced by the content store, the project source or the
orchestrator is one of these kinds. Each kind carries the HTTP status the
API answers with.
"""

from __future__ import annotations

from typing import Optional, Sequence


class RepositoryManagerError(Exception):
    """Base class for all resolution failures."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(RepositoryManagerError):
    """Upstream project metadata or archive is unavailable."""

    status_code = 404


class TransportError(RepositoryManagerError):
    """Network failure talking to the project source."""

    status_code = 502


class ExtractionError(RepositoryManagerError):
    """Archive missing, corrupt, or the extraction tool failed."""


class CheckoutError(RepositoryManagerError):
    """Checkout, bundle or reset of the working tree failed."""


class CommitNotFoundError(CheckoutError):
    """The requested commit does not resolve in the working tree."""

    status_code = 404


class StorageError(RepositoryManagerError):
    """Local filesystem I/O failure."""


class ToolError(Exception):
    """An external tool exited non-zero, timed out or could not be started.

    Raised by the tool adapters; the content store maps it onto the error
    kind of the operation that ran the tool.
    """

    def __init__(
        self,
        args: Sequence[str],
        returncode: Optional[int] = None,
        stderr: str = "",
        reason: Optional[str] = None,
    ):
        self.command = list(args)
        self.returncode = returncode
        self.stderr = stderr.strip()
        self.reason = reason
        detail = reason or f"exit status {returncode}"
        if self.stderr:
            detail = f"{detail}: {self.stderr}"
        super().__init__(f"{self.command[0]} failed ({detail})")
