"""Batch upload descriptors."""

from __future__ import annotations

from enum import StrEnum

from pydantic import field_validator

from nuxeo_sdk.models.base import NuxeoBaseModel


__all__ = [
    "BatchInfo",
    "BatchUpload",
    "UploadType",
]


class UploadType(StrEnum):
    """How a file was sent to the batch."""

    NORMAL = "normal"
    CHUNKED = "chunked"


class BatchInfo(NuxeoBaseModel):
    """Answer to a batch creation."""

    batch_id: str


class BatchUpload(NuxeoBaseModel):
    """The server's record of one file in a batch.

    The server sends numbers as strings (``"fileIdx": "0"``,
    ``"uploadedSize": "30"``); they are normalised on decode.
    ``uploaded_chunk_ids`` is kept sorted and free of duplicates.
    """

    name: str | None = None
    batch_id: str | None = None
    file_idx: str | None = None
    upload_type: UploadType | None = None
    uploaded_size: int = 0
    uploaded: bool | None = None
    uploaded_chunk_ids: list[int] = []
    chunk_count: int = 0

    @field_validator("file_idx", mode="before")
    @classmethod
    def stringify_file_idx(cls, value: object) -> object:
        """Accept integer file indexes."""
        if isinstance(value, int):
            return str(value)
        return value

    @field_validator("uploaded_chunk_ids", mode="after")
    @classmethod
    def sort_chunk_ids(cls, value: list[int]) -> list[int]:
        """Keep completed chunk indexes strictly ascending."""
        return sorted(set(value))

    @property
    def is_complete(self) -> bool:
        """True once every byte (or every chunk) reached the server."""
        if self.upload_type == UploadType.CHUNKED:
            done = len(self.uploaded_chunk_ids)
            return self.chunk_count > 0 and done == self.chunk_count
        if self.uploaded is not None:
            return self.uploaded
        return self.batch_id is not None
