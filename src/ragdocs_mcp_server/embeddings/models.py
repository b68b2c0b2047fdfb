"""
Document Data Models

This module defines the canonical payload stored with every vector point and
the derived ``Source`` record used for catalog listings.

Each ``DocumentChunk`` corresponds to ONE point and ONE chunk of text.
"""

from __future__ import annotations

from typing import Any, Dict, Final, Optional

from pydantic import BaseModel, ConfigDict, Field


DOCUMENT_CHUNK_TYPE: Final[str] = "DocumentChunk"


class DocumentChunk(BaseModel):
    """
    A single indexed document chunk.

    This model is the authoritative schema for:
    - Point payloads written on upsert
    - Search result mapping
    """

    text: str = Field(
        ...,
        min_length=1,
        description="Raw text content for this chunk.",
    )

    url: str = Field(
        ...,
        min_length=1,
        description="Original source: an absolute URL or a local file path.",
    )

    title: str = Field(
        ...,
        min_length=1,
        description="Human-readable label for the source.",
    )

    timestamp: str = Field(
        ...,
        description="ISO 8601 time the source was ingested.",
    )

    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
    )

    def to_payload(self) -> Dict[str, Any]:
        """Payload written to the store, tagged with its shape discriminator."""
        payload = self.model_dump()
        payload["_type"] = DOCUMENT_CHUNK_TYPE
        return payload

    @classmethod
    def from_payload(cls, payload: Optional[Dict[str, Any]]) -> Optional["DocumentChunk"]:
        """Rebuild a chunk from a stored payload, or None for other shapes."""
        if not payload or payload.get("_type") != DOCUMENT_CHUNK_TYPE:
            return None

        fields = {k: payload.get(k) for k in ("text", "url", "title", "timestamp")}
        if not all(isinstance(v, str) for v in fields.values()):
            return None

        try:
            return cls(**fields)
        except ValueError:
            return None


class Source(BaseModel):
    """A `{title, url}` pair reconstructed from stored chunk payloads."""

    title: str
    url: str

    model_config = ConfigDict(frozen=True)
