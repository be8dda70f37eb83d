"""
Database package for the Repository Manager.
"""

from .base import (
    Base,
    check_database,
    get_engine,
    get_session_local,
    init_database,
)
from .models import ArtifactModel
from .services import ArtifactService, SqlArtifactIndex

__all__ = [
    "Base",
    "get_engine",
    "get_session_local",
    "check_database",
    "init_database",
    "ArtifactModel",
    "ArtifactService",
    "SqlArtifactIndex",
]
