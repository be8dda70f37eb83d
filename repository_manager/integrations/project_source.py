"""
Client for the upstream project source.

The project source knows every project by id and serves its metadata and
its full archive:

    GET /api/v1/projects/{id}           -> {"projectId": ..., "name": ...}
    GET /api/v1/projects/{id}/download  -> archive bytes

Calls are single-attempt from the orchestrator's point of view. Connection
retries, if configured, happen inside the httpx transport.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Iterator, Optional

import httpx
import structlog
from pydantic import ValidationError

from ..errors import NotFoundError, TransportError
from ..schemas.projects import ProjectMetadata

logger = structlog.get_logger()

CHUNK_SIZE = 1024 * 1024


class ProjectSource(ABC):
    """Where project metadata and archives come from."""

    @abstractmethod
    def get_metadata(self, project_id: str) -> ProjectMetadata:
        """Return the metadata of a project.

        Raises:
            NotFoundError: If the project is unknown upstream
            TransportError: On network failure or malformed metadata
        """
        pass

    @abstractmethod
    def fetch_archive(self, project_id: str):
        """Context manager yielding an iterator over the archive's bytes.

        Raises:
            NotFoundError: If the project is unknown upstream
            TransportError: On network failure, also while iterating
        """
        pass

    def close(self) -> None:
        """Release any held resources."""
        pass


def _raise_for_status(response: httpx.Response, project_id: str) -> None:
    if response.status_code == httpx.codes.OK:
        return
    if 400 <= response.status_code < 500:
        raise NotFoundError(
            f"Project {project_id} not found (upstream status {response.status_code})"
        )
    raise TransportError(
        f"Project source answered {response.status_code} for project {project_id}"
    )


class HttpProjectSource(ProjectSource):
    """Project source reached over HTTP."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        retries: int = 0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """Initialize the client.

        Args:
            base_url: Scheme and host of the project source; a bare
                ``host:port`` is taken as http
            timeout: Connect/read timeout in seconds
            retries: Connection retries performed by the transport
            transport: Custom transport (tests use httpx.MockTransport)
        """
        if "://" not in base_url:
            base_url = f"http://{base_url}"
        self.base_url = base_url.rstrip("/")
        self.client = httpx.Client(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport or httpx.HTTPTransport(retries=retries),
        )

    def close(self) -> None:
        """Close the HTTP client."""
        self.client.close()

    def get_metadata(self, project_id: str) -> ProjectMetadata:
        log = logger.bind(project_id=project_id)
        try:
            response = self.client.get(f"/api/v1/projects/{project_id}")
        except httpx.HTTPError as e:
            log.error("project_metadata_request_failed", error=str(e))
            raise TransportError(f"Unable to reach project source: {e}") from e

        _raise_for_status(response, project_id)

        try:
            metadata = ProjectMetadata.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            log.error("project_metadata_malformed", error=str(e))
            raise TransportError(
                f"Malformed metadata for project {project_id}: {e}"
            ) from e

        log.info("project_metadata_fetched", project_name=metadata.name)
        return metadata

    @contextmanager
    def fetch_archive(self, project_id: str) -> Iterator[Iterator[bytes]]:
        log = logger.bind(project_id=project_id)
        try:
            with self.client.stream("GET", f"/api/v1/projects/{project_id}/download") as response:
                _raise_for_status(response, project_id)
                log.info("archive_download_started")
                yield self._iter_body(response, project_id)
        except httpx.HTTPError as e:
            log.error("archive_download_failed", error=str(e))
            raise TransportError(f"Unable to download project {project_id}: {e}") from e

    @staticmethod
    def _iter_body(response: httpx.Response, project_id: str) -> Iterator[bytes]:
        try:
            yield from response.iter_bytes(CHUNK_SIZE)
        except httpx.HTTPError as e:
            raise TransportError(
                f"Download of project {project_id} interrupted: {e}"
            ) from e
