"""Wire models for the remote store's session API.

Field aliases accept both the compact names the store emits (``chunks``,
``md5``, ``final_path``) and their descriptive equivalents.
"""

from __future__ import annotations

from typing import Optional

from pydantic import AliasChoices, Field, field_validator, model_validator

from .base import BaseModel


class CreateSessionRequest(BaseModel):
    """Body of the session-initiation request."""

    file_name: str = Field(..., min_length=1, description="Display name of the file")
    total_size: int = Field(..., ge=0, description="File size in bytes")
    chunk_size: int = Field(..., gt=0, description="Requested chunk size in bytes")


class SessionCreated(BaseModel):
    """Store's answer to session initiation."""

    upload_id: str = Field(..., min_length=1, description="Opaque upload identifier")
    chunk_size: int = Field(..., gt=0, description="Chunk size recorded by the store")
    total_chunks: int = Field(..., ge=0, description="Chunk count computed by the store")


class ChunkAck(BaseModel):
    """Acknowledgement of one received chunk."""

    index: int = Field(..., ge=0, description="Chunk index")
    size: int = Field(..., ge=0, description="Bytes the store received")
    checksum: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("checksum", "md5"),
        description="MD5 hex digest of the received bytes",
    )

    @field_validator("checksum")
    @classmethod
    def _lower_checksum(cls, value: Optional[str]) -> Optional[str]:
        return value.lower() if value else None


class StatusProgress(BaseModel):
    """Optional progress block some stores attach to status responses."""

    completed: int = 0
    total: int = 0
    percent: int = 0


class SessionStatus(BaseModel):
    """Remote view of an upload session (the confirmed chunk set)."""

    upload_id: str = Field(..., description="Opaque upload identifier")
    confirmed_indices: list[int] = Field(
        default_factory=list,
        validation_alias=AliasChoices("confirmed_indices", "chunks"),
        description="Chunk indices the store has durably received",
    )
    total_chunks: Optional[int] = Field(None, ge=0, description="Chunk count, if reported")
    chunk_size: Optional[int] = Field(None, gt=0, description="Recorded chunk size, if reported")
    total_size: Optional[int] = Field(None, ge=0, description="Recorded file size, if reported")
    status: Optional[str] = Field(None, description="Store-side lifecycle state")
    progress: Optional[StatusProgress] = Field(None, description="Store-computed progress")

    @field_validator("confirmed_indices", mode="before")
    @classmethod
    def _null_as_empty(cls, value: object) -> object:
        # The store serializes an empty index list as null
        return [] if value is None else value

    @model_validator(mode="after")
    def _total_from_progress(self) -> SessionStatus:
        if self.total_chunks is None and self.progress is not None and self.progress.total:
            self.total_chunks = self.progress.total
        return self

    @property
    def confirmed(self) -> frozenset[int]:
        """Confirmed indices as a set (duplicates collapse)."""
        return frozenset(self.confirmed_indices)


class FinalLocation(BaseModel):
    """Store's answer to finalize: where the assembled file lives."""

    final_path: str = Field(
        ...,
        validation_alias=AliasChoices("final_path", "final_location"),
        description="Location of the assembled file",
    )
    file_size: Optional[int] = Field(
        None,
        validation_alias=AliasChoices("file_size", "final_size"),
        description="Size of the assembled file",
    )
    checksum: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("checksum", "md5"),
        description="MD5 hex digest of the assembled file",
    )
    status: Optional[str] = Field(None, description="Store-side lifecycle state")

    @field_validator("checksum")
    @classmethod
    def _lower_checksum(cls, value: Optional[str]) -> Optional[str]:
        return value.lower() if value else None
