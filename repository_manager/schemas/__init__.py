"""
Pydantic schemas for the Repository Manager wire formats.
"""

from .projects import ErrorResponse, ProjectMetadata

__all__ = ["ErrorResponse", "ProjectMetadata"]
