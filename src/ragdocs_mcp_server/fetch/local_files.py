"""
Local file sources, confined to the workspace root.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

from ..core.errors import (
    LocalFileNotFoundError,
    LocalFilePermissionError,
    LocalFileReadError,
    PathTraversalError,
)


def resolve_workspace_path(source: str, root: Path) -> Path:
    """
    Resolve ``source`` against ``root`` and refuse anything outside it.

    Raises
    ------
    PathTraversalError
        If the resolved path escapes ``root``. Nothing is read before this
        check.
    """
    root = root.resolve()
    resolved = (root / source).resolve()

    if resolved != root and root not in resolved.parents:
        raise PathTraversalError(
            "Access denied: Path is outside the allowed workspace directory."
        )
    return resolved


async def read_local_text(path: Path) -> str:
    try:
        return await asyncio.to_thread(path.read_text, encoding="utf-8")
    except FileNotFoundError as exc:
        raise LocalFileNotFoundError(f"Local file not found: {path}") from exc
    except PermissionError as exc:
        raise LocalFilePermissionError(f"Permission denied reading local file: {path}") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise LocalFileReadError(f"Error reading local file {path}: {exc}") from exc
