"""
Tool Dispatch Layer

This module defines the central, authoritative dispatch mechanism for every
tool call issued by the host. It enforces:

- Explicit tool allow-listing
- Strong argument validation
- Dependency injection for testability
- Uniform failure responses: typed errors become structured results instead
  of propagating out of the call
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Dict, Type, TypeVar

from pydantic import BaseModel, ValidationError

from ..api.models import (
    AddDocumentationArgs,
    ExtractUrlsArgs,
    NoArgs,
    RemoveDocumentationArgs,
    SearchDocumentationArgs,
    ToolCallResponse,
)
from ..context import ToolContext
from ..core.errors import InputValidationError, RagDocsError
from .definitions import (
    TOOL_ADD_DOCUMENTATION,
    TOOL_CLEAR_QUEUE,
    TOOL_EXTRACT_URLS,
    TOOL_LIST_QUEUE,
    TOOL_LIST_SOURCES,
    TOOL_REMOVE_DOCUMENTATION,
    TOOL_RUN_QUEUE,
    TOOL_SEARCH_DOCUMENTATION,
)
from .doc_tools import (
    tool_add_documentation,
    tool_extract_urls,
    tool_list_sources,
    tool_remove_documentation,
)
from .queue_tools import tool_clear_queue, tool_list_queue, tool_run_queue
from .search_tools import tool_search_documentation

logger = logging.getLogger("ragdocs.tools")

ArgsT = TypeVar("ArgsT", bound=BaseModel)


# ---------------------------------------------------------------------
# Tool Type Definitions
# ---------------------------------------------------------------------

ToolHandler = Callable[[Dict[str, Any], ToolContext], Awaitable[ToolCallResponse]]


def _parse_args(tool_name: str, model: Type[ArgsT], args: Dict[str, Any]) -> ArgsT:
    try:
        return model.model_validate(args or {})
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'arguments'}: {err['msg']}"
            for err in exc.errors()
        )
        raise InputValidationError(f"Invalid arguments for {tool_name}: {problems}") from exc


# ---------------------------------------------------------------------
# Tool Registry (AUTHORITATIVE)
# ---------------------------------------------------------------------

async def _handle_add_documentation(args: Dict[str, Any], ctx: ToolContext) -> ToolCallResponse:
    parsed = _parse_args(TOOL_ADD_DOCUMENTATION, AddDocumentationArgs, args)
    return await tool_add_documentation(parsed.url, ctx)


async def _handle_search_documentation(args: Dict[str, Any], ctx: ToolContext) -> ToolCallResponse:
    parsed = _parse_args(TOOL_SEARCH_DOCUMENTATION, SearchDocumentationArgs, args)
    return await tool_search_documentation(parsed.query, ctx, limit=parsed.limit)


async def _handle_list_sources(args: Dict[str, Any], ctx: ToolContext) -> ToolCallResponse:
    _parse_args(TOOL_LIST_SOURCES, NoArgs, args)
    return await tool_list_sources(ctx)


async def _handle_extract_urls(args: Dict[str, Any], ctx: ToolContext) -> ToolCallResponse:
    parsed = _parse_args(TOOL_EXTRACT_URLS, ExtractUrlsArgs, args)
    return await tool_extract_urls(parsed.url, ctx, add_to_queue=parsed.add_to_queue)


async def _handle_remove_documentation(args: Dict[str, Any], ctx: ToolContext) -> ToolCallResponse:
    parsed = _parse_args(TOOL_REMOVE_DOCUMENTATION, RemoveDocumentationArgs, args)
    return await tool_remove_documentation(parsed.urls, ctx)


async def _handle_list_queue(args: Dict[str, Any], ctx: ToolContext) -> ToolCallResponse:
    _parse_args(TOOL_LIST_QUEUE, NoArgs, args)
    return await tool_list_queue(ctx)


async def _handle_run_queue(args: Dict[str, Any], ctx: ToolContext) -> ToolCallResponse:
    _parse_args(TOOL_RUN_QUEUE, NoArgs, args)
    return await tool_run_queue(ctx)


async def _handle_clear_queue(args: Dict[str, Any], ctx: ToolContext) -> ToolCallResponse:
    _parse_args(TOOL_CLEAR_QUEUE, NoArgs, args)
    return await tool_clear_queue(ctx)


TOOL_REGISTRY: Dict[str, ToolHandler] = {
    TOOL_ADD_DOCUMENTATION: _handle_add_documentation,
    TOOL_SEARCH_DOCUMENTATION: _handle_search_documentation,
    TOOL_LIST_SOURCES: _handle_list_sources,
    TOOL_EXTRACT_URLS: _handle_extract_urls,
    TOOL_REMOVE_DOCUMENTATION: _handle_remove_documentation,
    TOOL_LIST_QUEUE: _handle_list_queue,
    TOOL_RUN_QUEUE: _handle_run_queue,
    TOOL_CLEAR_QUEUE: _handle_clear_queue,
}


# ---------------------------------------------------------------------
# Public Dispatch API
# ---------------------------------------------------------------------

async def dispatch_tool_call(
    tool_name: str,
    args: Dict[str, Any],
    ctx: ToolContext,
) -> ToolCallResponse:
    """
    Dispatch a tool call requested by the host.

    Parameters
    ----------
    tool_name : str
        The symbolic tool name.

    args : Dict[str, Any]
        Parsed JSON arguments for the tool.

    ctx : ToolContext
        Active components (injected).

    Returns
    -------
    ToolCallResponse
        The tool result, or a structured failure for any typed error,
        including unknown tools and invalid arguments.
    """
    handler = TOOL_REGISTRY.get(tool_name)

    try:
        if handler is None:
            raise InputValidationError(f"Unknown tool requested: {tool_name}")
        return await handler(args, ctx)
    except RagDocsError as exc:
        logger.error("Tool %s failed (%s): %s", tool_name, exc.kind, exc.message)
        return ToolCallResponse.failure(exc.kind, f"Failed to run {tool_name}: {exc.message}")
