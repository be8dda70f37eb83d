from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict, Field, constr, field_validator

PROJECT_ID_PATTERN = r"^[0-9a-f-]{36}$"
COMMIT_PATTERN = r"^[0-9a-f]{40}$"

_UNSAFE_NAME = re.compile(r"[/\\\x00]")


class ProjectMetadata(BaseModel):
    """Project metadata as returned by the upstream project source.

    The name becomes a directory and file name in the content store, so it
    must be a single path segment.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    project_id: str = Field(alias="projectId")
    name: constr(min_length=1, max_length=255)

    @field_validator("name")
    @classmethod
    def name_is_single_segment(cls, value: str) -> str:
        if _UNSAFE_NAME.search(value) or value in (".", ".."):
            raise ValueError(f"Project name is not a valid file name: {value!r}")
        return value


class ErrorResponse(BaseModel):
    """Error body returned by the download endpoint."""

    message: str
