"""File objects for the ``/files`` endpoint."""

from __future__ import annotations

import mimetypes
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from respondent.models.base import ApiModel


class FilePurpose(str, Enum):
    ASSISTANTS = "assistants"
    BATCH = "batch"
    FINE_TUNE = "fine-tune"
    VISION = "vision"
    USER_DATA = "user_data"
    EVALS = "evals"


class File(ApiModel):
    """Metadata of an uploaded file."""

    id: str
    object: str = "file"
    purpose: str
    filename: str
    bytes: int = 0
    created_at: int | None = None
    expires_at: int | None = None
    status: str | None = None


@dataclass(frozen=True, slots=True)
class FileUpload:
    """In-memory file content ready for a multipart upload."""

    name: str
    contents: bytes
    content_type: str = "application/octet-stream"

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("upload name must be non-empty")

    @classmethod
    def from_path(cls, path: Path | str, *, content_type: str | None = None) -> FileUpload:
        file_path = Path(path)
        guessed, _ = mimetypes.guess_type(file_path.name)
        return cls(
            name=file_path.name,
            contents=file_path.read_bytes(),
            content_type=content_type or guessed or "application/octet-stream",
        )

    def as_multipart(self) -> tuple[str, bytes, str]:
        return (self.name, self.contents, self.content_type)


__all__ = ["File", "FilePurpose", "FileUpload"]
