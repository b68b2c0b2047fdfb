"""
API Models for the Documentation MCP Server

This module defines the Pydantic models used for tool-call requests and
responses, and the argument schemas of every tool.

Design Goals
------------
- Strong typing
- Safe defaults (no shared mutable state)
- Explicit tool input and output contracts
"""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------
# Tool Call Envelope
# ---------------------------------------------------------------------

class ToolCallRequest(BaseModel):
    """
    A host's request to run one tool.
    """
    name: str = Field(..., min_length=1)
    arguments: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(extra="forbid")


class ToolTextContent(BaseModel):
    type: Literal["text"] = "text"
    text: str


class ToolCallResponse(BaseModel):
    """
    Canonical tool-layer result.

    Failures are returned as regular responses with ``is_error`` set and the
    machine-readable failure kind in ``error``.
    """
    content: List[ToolTextContent] = Field(default_factory=list)
    is_error: bool = False
    error: Optional[str] = None
    data: Optional[Dict[str, Any]] = None

    model_config = ConfigDict(extra="forbid")

    @property
    def text(self) -> str:
        return "\n".join(part.text for part in self.content)

    @classmethod
    def from_text(cls, text: str, data: Optional[Dict[str, Any]] = None) -> "ToolCallResponse":
        return cls(content=[ToolTextContent(text=text)], data=data)

    @classmethod
    def failure(
        cls,
        kind: str,
        text: str,
        data: Optional[Dict[str, Any]] = None,
    ) -> "ToolCallResponse":
        return cls(content=[ToolTextContent(text=text)], is_error=True, error=kind, data=data)


# ---------------------------------------------------------------------
# Tool Arguments
# ---------------------------------------------------------------------

class AddDocumentationArgs(BaseModel):
    url: str = Field(..., min_length=1)

    model_config = ConfigDict(extra="forbid")


class SearchDocumentationArgs(BaseModel):
    query: str = Field(..., min_length=1)
    limit: int = Field(default=5, ge=1, le=20)

    model_config = ConfigDict(extra="forbid")


class ExtractUrlsArgs(BaseModel):
    url: str = Field(..., min_length=1)
    add_to_queue: bool = False

    model_config = ConfigDict(extra="forbid")


class RemoveDocumentationArgs(BaseModel):
    urls: List[str] = Field(..., min_length=1)

    model_config = ConfigDict(extra="forbid")


class NoArgs(BaseModel):
    model_config = ConfigDict(extra="forbid")


# ---------------------------------------------------------------------
# Search Results
# ---------------------------------------------------------------------

class ToolSearchResult(BaseModel):
    """
    One ranked excerpt returned by ``search_documentation``.
    """
    title: str = Field(..., min_length=1)
    url: str = Field(..., min_length=1)
    score: float
    text: str

    model_config = ConfigDict(extra="forbid")
