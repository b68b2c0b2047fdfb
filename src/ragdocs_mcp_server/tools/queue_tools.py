"""
Queue Tool Layer

Tools that inspect, drain and clear the pending-source queue.
"""

from __future__ import annotations

from typing import List

from ..api.models import ToolCallResponse
from ..context import ToolContext
from ..ingest.queue import DrainReport, QueueOutcome


def _progress_line(position: int, total: int, outcome: QueueOutcome) -> str:
    if outcome.ok:
        return f"[{position}/{total}] Processed {outcome.url} ({outcome.chunks} chunks)"
    return f"[{position}/{total}] Failed {outcome.url}: {outcome.error}"


def _report_data(report: DrainReport) -> dict:
    return {
        "processed": report.processed,
        "failed": report.failed,
        "remaining": report.remaining,
        "aborted": report.aborted,
        "outcomes": [
            {
                "url": o.url,
                "ok": o.ok,
                "chunks": o.chunks,
                "attempts": o.attempts,
                "error": o.error_kind,
            }
            for o in report.outcomes
        ],
    }


async def tool_list_queue(ctx: ToolContext) -> ToolCallResponse:
    pending = ctx.queue.list()
    if not pending:
        return ToolCallResponse.from_text("Queue is empty.", data={"urls": []})

    lines = [f"{i}. {url}" for i, url in enumerate(pending, start=1)]
    return ToolCallResponse.from_text(
        f"Queue contains {len(pending)} URLs:\n" + "\n".join(lines),
        data={"urls": pending},
    )


async def tool_run_queue(ctx: ToolContext) -> ToolCallResponse:
    total = len(ctx.queue)
    if total == 0:
        return ToolCallResponse.from_text(
            "Queue is empty. Processed: 0, Failed: 0",
            data={"processed": 0, "failed": 0, "remaining": 0, "aborted": False, "outcomes": []},
        )

    await ctx.collections.ensure_collection()

    lines: List[str] = []

    def on_progress(outcome: QueueOutcome) -> None:
        lines.append(_progress_line(len(lines) + 1, total, outcome))

    report = await ctx.queue.drain(ctx.pipeline.ingest, on_progress=on_progress)

    summary = f"Queue processing complete. Processed: {report.processed}, Failed: {report.failed}"
    if report.aborted:
        lines.append(f"Queue processing aborted: {report.fatal_error}")
        summary = (
            f"Queue processing aborted. Processed: {report.processed}, "
            f"Failed: {report.failed}, Remaining: {report.remaining}"
        )
        lines.append(summary)
        return ToolCallResponse.failure(
            report.fatal_kind or "internal_error",
            "\n".join(lines),
            data=_report_data(report),
        )

    lines.append(summary)
    return ToolCallResponse.from_text("\n".join(lines), data=_report_data(report))


async def tool_clear_queue(ctx: ToolContext) -> ToolCallResponse:
    count = ctx.queue.clear()
    return ToolCallResponse.from_text(
        f"Queue cleared ({count} URLs removed)",
        data={"removed": count},
    )
