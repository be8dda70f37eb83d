"""
SQLAlchemy models for the Repository Manager.
"""

from typing import Any, Dict

from sqlalchemy import Column, DateTime, Index, String, Text
from sqlalchemy.sql import func

from .base import Base


class ArtifactModel(Base):
    """One materialized commit bundle, keyed by (project_id, commit_hash)."""

    __tablename__ = "artifacts"

    # Composite primary key
    project_id = Column(String(36), primary_key=True)
    commit_hash = Column(String(40), primary_key=True)

    # Project-wide values (identical for all rows of a project)
    project_name = Column(String(255), nullable=False)
    working_tree_path = Column(Text, nullable=False)

    # Commit-specific artifact
    bundle_path = Column(Text, nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=func.now())

    __table_args__ = (
        Index("ix_artifacts_project_created", "project_id", "created_at"),
    )

    def to_dict(self) -> Dict[str, Any]:
        """Convert model to dictionary."""
        return {
            "project_id": self.project_id,
            "commit_hash": self.commit_hash,
            "project_name": self.project_name,
            "working_tree_path": self.working_tree_path,
            "bundle_path": self.bundle_path,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
