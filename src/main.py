# src/main.py — v1
"""CLI entry point — filter, nlp, batch commands.

Usage:
    docworker filter --user <user> [--project <index>]
    docworker nlp --index <index> --doc-id <id> [--doc-id <id> ...]
    docworker batch [--once]
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys

from docworker.config.settings import ConfigurationError, Settings, load_settings
from docworker.logging.logger import setup_logging
from docworker.version import __version__

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        settings = load_settings()
    except ConfigurationError as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 2

    _setup_logging(args.verbose, settings)

    try:
        return asyncio.run(args.func(args, settings))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="docworker",
        description=f"docworker v{__version__}: document queue, extraction and batch search worker",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- filter ---
    p_filter = subparsers.add_parser(
        "filter", help="Remove duplicate and already indexed paths from a user queue",
    )
    p_filter.add_argument("--user", required=True, help="Owner of the queue")
    p_filter.add_argument(
        "--project", default=None,
        help="Index to check paths against (default: DEFAULT_PROJECT)",
    )
    p_filter.set_defaults(func=_cmd_filter)

    # --- nlp ---
    p_nlp = subparsers.add_parser(
        "nlp", help="Extract named entities from indexed documents",
    )
    p_nlp.add_argument("--index", default=None, help="Index name (default: DEFAULT_PROJECT)")
    p_nlp.add_argument(
        "--doc-id", dest="doc_ids", action="append", required=True,
        help="Document id (repeatable)",
    )
    p_nlp.add_argument("--routing", default=None, help="Root document id")
    p_nlp.set_defaults(func=_cmd_nlp)

    # --- batch ---
    p_batch = subparsers.add_parser(
        "batch", help="Run queued batch search jobs",
    )
    p_batch.add_argument(
        "--once", action="store_true",
        help="Run the currently queued jobs and exit",
    )
    p_batch.set_defaults(func=_cmd_batch)

    return parser


async def _cmd_filter(args: argparse.Namespace, settings: Settings) -> int:
    """Filter the pending queue of one user."""
    from docworker.index.index_factory import create_document_index
    from docworker.queue.filter import QueueFilter
    from docworker.queue.queue_factory import create_document_queue

    project = args.project or settings.default_project
    queue = create_document_queue(settings.user_queue_name(args.user), settings)
    index = create_document_index(settings)
    try:
        report = await QueueFilter(index, project, settings.filter_batch_size).filter(queue)
    finally:
        queue.close()
        index.close()

    print(f"\nFilter complete for {report.queue}:")
    print(f"  Duplicates:      {report.duplicates}")
    print(f"  Already indexed: {report.already_indexed}")
    print(f"  Remaining:       {report.remaining}")
    return 0


async def _cmd_nlp(args: argparse.Namespace, settings: Settings) -> int:
    """Run the extraction worker over the given documents, then stop."""
    from docworker.graph.graph_store_factory import create_graph_store
    from docworker.index.index_factory import create_document_index
    from docworker.nlp.email_pipeline import EmailPipeline
    from docworker.worker.consumer import ExtractionWorker
    from docworker.worker.messages import Message

    index_name = args.index or settings.default_project
    index = create_document_index(settings)
    graph_store = create_graph_store(settings)

    messages: asyncio.Queue[Message] = asyncio.Queue()
    for doc_id in args.doc_ids:
        messages.put_nowait(Message.extract_nlp(index_name, doc_id, args.routing))
    messages.put_nowait(Message.shutdown())

    worker = ExtractionWorker(
        EmailPipeline(),
        index,
        messages,
        graph_store=graph_store,
        poll_timeout_s=settings.worker_poll_timeout_s,
    )
    try:
        await worker.run()
    finally:
        index.close()
        if graph_store is not None:
            graph_store.close()
    return 0


async def _cmd_batch(args: argparse.Namespace, settings: Settings) -> int:
    """Execute queued batch search jobs."""
    from docworker.index.index_factory import create_document_index
    from docworker.jobs.executor import BatchExecutor
    from docworker.jobs.sqlite_store import SqliteJobStore

    store = SqliteJobStore(settings.job_db_path)
    index = create_document_index(settings)
    executor = BatchExecutor.from_settings(settings, store, index)
    try:
        if args.once:
            runs = await executor.run_queued()
            failed = sum(1 for run in runs if run.state == "FAILURE")
            print(f"\nBatch complete:")
            print(f"  Jobs run: {len(runs)}")
            print(f"  Failed:   {failed}")
            return 1 if failed else 0

        stop = asyncio.Event()
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, stop.set)
        await executor.run_forever(stop, settings.batch_poll_interval_s)
        return 0
    finally:
        store.close()
        index.close()


def _setup_logging(verbose: bool, settings: Settings) -> None:
    """Configure logging for CLI usage."""
    setup_logging(
        level="DEBUG" if verbose else settings.log_level,
        log_format=settings.log_format,
        log_file=settings.log_file,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )
    # Quiet noisy libraries
    logging.getLogger("neo4j").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


if __name__ == "__main__":
    sys.exit(main())
