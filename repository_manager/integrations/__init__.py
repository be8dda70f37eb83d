"""
Integrations with external services.
"""

from .project_source import HttpProjectSource, ProjectSource

__all__ = ["ProjectSource", "HttpProjectSource"]
