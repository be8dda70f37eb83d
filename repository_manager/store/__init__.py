"""
Content store - filesystem layout and external tool adapters.

Components:
    - content: ContentStore (layout, save, extract, checkout)
    - tools: Archiver / VersionControlTool interfaces and their
      command line implementations
"""

from .content import ContentStore
from .tools import (
    Archiver,
    GitTool,
    UnzipArchiver,
    VersionControlTool,
    ZipFileArchiver,
    get_archiver,
    get_version_control,
    run_tool,
)

__all__ = [
    "ContentStore",
    "Archiver",
    "UnzipArchiver",
    "ZipFileArchiver",
    "VersionControlTool",
    "GitTool",
    "get_archiver",
    "get_version_control",
    "run_tool",
]
