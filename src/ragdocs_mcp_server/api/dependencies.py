from fastapi import Request

from ..config import Settings
from ..context import ToolContext


def get_tool_context(request: Request) -> ToolContext:
    return request.app.state.tool_context


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings
