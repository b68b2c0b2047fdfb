"""
Tool Routes

This module exposes the tool surface to the calling host:
- Listing the available tool definitions
- Executing a tool call

Tool failures are returned as structured ``ToolCallResponse`` payloads with
``is_error`` set, never as transport-level errors.
"""

from typing import Annotated, Any, Dict, List

from fastapi import APIRouter, Depends, status

from .dependencies import get_tool_context
from .models import ToolCallRequest, ToolCallResponse
from ..context import ToolContext
from ..tools.base import dispatch_tool_call
from ..tools.definitions import TOOL_DEFINITIONS

router = APIRouter(prefix="/tools", tags=["tools"])


@router.get(
    "",
    summary="List available tools",
)
async def list_tools() -> Dict[str, List[Dict[str, Any]]]:
    return {"tools": TOOL_DEFINITIONS}


@router.post(
    "/call",
    response_model=ToolCallResponse,
    summary="Execute a tool call",
    status_code=status.HTTP_200_OK,
)
async def call_tool(
    req: ToolCallRequest,
    ctx: Annotated[ToolContext, Depends(get_tool_context)],
) -> ToolCallResponse:
    """
    Run one tool.

    Parameters
    ----------
    req : ToolCallRequest
        Contains:
        - name: Tool name, one of the listed definitions
        - arguments: Tool arguments

    Returns
    -------
    ToolCallResponse
        Text content plus structured data, or a structured failure.
    """
    # Unexpected exceptions are left to the global handler, which logs them
    # and returns a generic 500.
    return await dispatch_tool_call(req.name, req.arguments, ctx)
