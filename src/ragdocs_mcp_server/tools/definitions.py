"""
Tool Definitions

This module defines the authoritative tool schemas exposed to the calling
host. These definitions must remain strictly synchronized with:

- tools/base.py (TOOL_REGISTRY)
- The argument models in api/models.py
"""

from __future__ import annotations

from typing import Any, Dict, Final, List


# ---------------------------------------------------------------------
# Tool Name Constants (Single Source of Truth)
# ---------------------------------------------------------------------

TOOL_ADD_DOCUMENTATION: Final[str] = "add_documentation"
TOOL_SEARCH_DOCUMENTATION: Final[str] = "search_documentation"
TOOL_LIST_SOURCES: Final[str] = "list_sources"
TOOL_EXTRACT_URLS: Final[str] = "extract_urls"
TOOL_REMOVE_DOCUMENTATION: Final[str] = "remove_documentation"
TOOL_LIST_QUEUE: Final[str] = "list_queue"
TOOL_RUN_QUEUE: Final[str] = "run_queue"
TOOL_CLEAR_QUEUE: Final[str] = "clear_queue"


_NO_ARGUMENTS: Dict[str, Any] = {
    "type": "object",
    "properties": {},
    "additionalProperties": False,
}


# ---------------------------------------------------------------------
# Tool Definitions
# ---------------------------------------------------------------------

TOOL_DEFINITIONS: List[Dict[str, Any]] = [
    {
        "name": TOOL_ADD_DOCUMENTATION,
        "description": (
            "Add documentation from a URL or a local file path to the index. "
            "Web pages are rendered in a headless browser; plain-text URLs and "
            "local files are read directly. Local paths must stay inside the "
            "server's working directory."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "url": {
                    "type": "string",
                    "description": "http(s) URL or local file path of the documentation.",
                    "minLength": 1,
                },
            },
            "required": ["url"],
            "additionalProperties": False,
        },
    },
    {
        "name": TOOL_SEARCH_DOCUMENTATION,
        "description": (
            "Search the indexed documentation with a natural-language query. "
            "Returns ranked excerpts with their source title and URL."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": "The text to search for.",
                    "minLength": 1,
                },
                "limit": {
                    "type": "integer",
                    "description": "Maximum number of results to return.",
                    "minimum": 1,
                    "maximum": 20,
                    "default": 5,
                },
            },
            "required": ["query"],
            "additionalProperties": False,
        },
    },
    {
        "name": TOOL_LIST_SOURCES,
        "description": "List every indexed documentation source, grouped by host.",
        "inputSchema": _NO_ARGUMENTS,
    },
    {
        "name": TOOL_EXTRACT_URLS,
        "description": (
            "Extract the links on a documentation page that belong to the same "
            "site section, optionally adding them to the processing queue."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "url": {
                    "type": "string",
                    "description": "Page to extract links from.",
                    "minLength": 1,
                },
                "add_to_queue": {
                    "type": "boolean",
                    "description": "Add the discovered URLs to the processing queue.",
                    "default": False,
                },
            },
            "required": ["url"],
            "additionalProperties": False,
        },
    },
    {
        "name": TOOL_REMOVE_DOCUMENTATION,
        "description": "Remove every indexed chunk that came from the given sources.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "urls": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Source URLs or paths exactly as they were added.",
                    "minItems": 1,
                },
            },
            "required": ["urls"],
            "additionalProperties": False,
        },
    },
    {
        "name": TOOL_LIST_QUEUE,
        "description": "List the URLs waiting in the processing queue.",
        "inputSchema": _NO_ARGUMENTS,
    },
    {
        "name": TOOL_RUN_QUEUE,
        "description": (
            "Index every queued URL, one at a time. Failing URLs are reported "
            "and skipped."
        ),
        "inputSchema": _NO_ARGUMENTS,
    },
    {
        "name": TOOL_CLEAR_QUEUE,
        "description": "Remove every URL from the processing queue.",
        "inputSchema": _NO_ARGUMENTS,
    },
]
