import argparse
import asyncio

from dotenv import load_dotenv
load_dotenv()

from ragdocs_mcp_server.config import get_settings
from ragdocs_mcp_server.context import build_tool_context
from ragdocs_mcp_server.main import configure_logging


def read_sources(path: str) -> list[str]:
    """One source per line; blank lines and '#' comments are ignored."""
    with open(path, "r", encoding="utf-8") as f:
        lines = [line.strip() for line in f]
    return [line for line in lines if line and not line.startswith("#")]


async def main(sources_file: str):
    settings = get_settings()
    configure_logging(settings.log_level)

    print("Initializing components...")
    ctx = build_tool_context(settings)

    try:
        action = await ctx.collections.ensure_collection()
        print(f"Collection '{settings.collection_name}' {action}.")

        sources = read_sources(sources_file)
        added = ctx.queue.enqueue_many(sources)
        print(f"Queued {added} sources ({len(sources) - added} duplicates skipped).")

        def on_progress(outcome):
            if outcome.ok:
                print(f"  OK   {outcome.url} ({outcome.chunks} chunks)")
            else:
                print(f"  FAIL {outcome.url}: {outcome.error}")

        report = await ctx.queue.drain(ctx.pipeline.ingest, on_progress=on_progress)

        print(f"Processed: {report.processed}, Failed: {report.failed}")
        if report.aborted:
            print(f"Aborted: {report.fatal_error} ({report.remaining} sources left in queue)")
            return 1
        return 0
    finally:
        await ctx.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Bulk-index documentation sources.")
    parser.add_argument("sources_file", help="File with one URL or local path per line.")
    args = parser.parse_args()
    raise SystemExit(asyncio.run(main(args.sources_file)))
