# src/cloudinary_fs/storage/dto.py
from pydantic import BaseModel, ConfigDict
from io import IOBase
from typing import Literal, Optional


class FileMetadata(BaseModel):
    """
    A standardized Data Transfer Object for file metadata to abstract away
    provider-specific response shapes. Missing fields stay None, never zero.
    """

    type: Literal["file", "dir"] = "file"
    path: str
    size: Optional[int] = None
    timestamp: Optional[int] = None
    hash: Optional[str] = None
    mimetype: Optional[str] = None


class ReadResult(BaseModel):
    path: str
    contents: bytes


class StreamResult(BaseModel):
    """A seekable stream positioned at the start of the file contents."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    path: str
    stream: IOBase
