"""
Database services for the Repository Manager.
"""

from typing import Optional

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from ..index import ArtifactIndex, ArtifactRecord
from .models import ArtifactModel

logger = structlog.get_logger()


def _to_record(model: ArtifactModel) -> ArtifactRecord:
    return ArtifactRecord(
        project_id=model.project_id,
        commit_hash=model.commit_hash,
        project_name=model.project_name,
        working_tree_path=model.working_tree_path,
        bundle_path=model.bundle_path,
        created_at=model.created_at,
    )


class ArtifactService:
    """Service for managing artifact rows within one session."""

    def __init__(self, db: Session):
        self.db = db

    def get_artifact(self, project_id: str, commit: str) -> Optional[ArtifactModel]:
        """Get the artifact row for a project and commit."""
        return (
            self.db.query(ArtifactModel)
            .filter(
                ArtifactModel.project_id == project_id,
                ArtifactModel.commit_hash == commit,
            )
            .first()
        )

    def get_any_artifact(self, project_id: str) -> Optional[ArtifactModel]:
        """Get the oldest artifact row of a project."""
        return (
            self.db.query(ArtifactModel)
            .filter(ArtifactModel.project_id == project_id)
            .order_by(ArtifactModel.created_at.asc(), ArtifactModel.commit_hash.asc())
            .first()
        )

    def create_artifact(self, record: ArtifactRecord) -> ArtifactModel:
        """Insert a new artifact row and commit."""
        db_artifact = ArtifactModel(
            project_id=record.project_id,
            commit_hash=record.commit_hash,
            project_name=record.project_name,
            working_tree_path=record.working_tree_path,
            bundle_path=record.bundle_path,
        )

        self.db.add(db_artifact)
        self.db.commit()
        self.db.refresh(db_artifact)
        return db_artifact


class SqlArtifactIndex(ArtifactIndex):
    """Artifact index backed by the ``artifacts`` table.

    Each call runs in its own short-lived session, so the index is safe to
    share between request threads.
    """

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def find_exact(self, project_id: str, commit: str) -> Optional[ArtifactRecord]:
        with self.session_factory() as db:
            model = ArtifactService(db).get_artifact(project_id, commit)
            return _to_record(model) if model else None

    def find_any(self, project_id: str) -> Optional[ArtifactRecord]:
        with self.session_factory() as db:
            model = ArtifactService(db).get_any_artifact(project_id)
            return _to_record(model) if model else None

    def upsert(self, record: ArtifactRecord) -> ArtifactRecord:
        with self.session_factory() as db:
            service = ArtifactService(db)
            existing = service.get_artifact(record.project_id, record.commit_hash)
            if existing is not None:
                return _to_record(existing)

            try:
                return _to_record(service.create_artifact(record))
            except IntegrityError:
                # Concurrent insert of the same key; first writer wins.
                db.rollback()
                logger.info(
                    "artifact_insert_conflict",
                    project_id=record.project_id,
                    commit=record.commit_hash,
                )
                existing = service.get_artifact(record.project_id, record.commit_hash)
                if existing is None:
                    raise
                return _to_record(existing)
