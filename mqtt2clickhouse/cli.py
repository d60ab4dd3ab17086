# ==============================================
# CLI: Command Line Entry Point
# ==============================================
#
# COMMANDS:
# ---------
# 1. Run the pipeline fed from a JSON-lines file (or stdin):
#    python -m mqtt2clickhouse run --file messages.jsonl
#    cat messages.jsonl | python -m mqtt2clickhouse run
#
# 2. Run the pipeline polling an HTTP endpoint:
#    python -m mqtt2clickhouse run --url http://127.0.0.1:8000/messages --max-messages 100
#    python -m mqtt2clickhouse run --url     (polls DATA_STREAM_URL)
#
# 3. Show the table schemas currently in the store:
#    python -m mqtt2clickhouse tables
#
# 4. Dry-run the record builder (no store access):
#    python -m mqtt2clickhouse check /acme/plant1/out/sensors/temp_out '{"value": 21.5}'
#
# Connection settings come from the environment / .env
# (see config.py), never from flags.
#
# ==============================================

import argparse
import logging
import sys
from typing import List, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from mqtt2clickhouse import __version__
from mqtt2clickhouse.config import AppConfig, get_config
from mqtt2clickhouse.errors import IngestError
from mqtt2clickhouse.normalization.record_builder import RecordBuilder
from mqtt2clickhouse.pipeline import IngestPipeline
from mqtt2clickhouse.registry.schema_registry import SchemaRegistry
from mqtt2clickhouse.sources import HttpPollSource, JsonLinesSource
from mqtt2clickhouse.storage.store_client import StoreClient

console = Console()
logger = logging.getLogger("mqtt2clickhouse")


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
    )


def build_source(args: argparse.Namespace, config: AppConfig):
    # --url with no value polls DATA_STREAM_URL
    if args.url is not None:
        url = args.url or config.source.data_stream_url
        return HttpPollSource(url, interval=config.source.poll_interval_seconds)
    return JsonLinesSource(args.file)


def cmd_run(args: argparse.Namespace, config: AppConfig) -> int:
    source = build_source(args, config)

    pipeline = None
    try:
        pipeline = IngestPipeline(config)
        pipeline.start()
    except (IngestError, ValueError) as e:
        logger.error("Startup failed: %s", e)
        if pipeline is not None:
            pipeline.close()
        return 1

    try:
        queued = pipeline.feed(source, max_messages=args.max_messages)
        logger.info("Queued %d message(s), draining", queued)
    except KeyboardInterrupt:
        logger.warning("Interrupted, draining queued messages")
    finally:
        pipeline.close()

    status = pipeline.get_status()
    console.print(
        f"[bold]received[/bold] {status['received']}  "
        f"[green]written[/green] {status['written']}  "
        f"[red]dropped[/red] {status['dropped']}  "
        f"[yellow]queue full[/yellow] {status['rejected_queue_full']}"
    )
    for name, count in sorted(status["errors"].items()):
        console.print(f"  {name}: {count}")
    return 0


def cmd_tables(args: argparse.Namespace, config: AppConfig) -> int:
    registry = SchemaRegistry()
    try:
        with StoreClient.from_config(config.store) as store:
            registry.load(store)
    except IngestError as e:
        logger.error("Could not read schema: %s", e)
        return 1

    table = Table(title=f"Tables in {config.store.database}")
    table.add_column("Table", style="cyan")
    table.add_column("Columns")
    for name, schema in sorted(registry.snapshot().items()):
        table.add_row(name, ", ".join(f"{d.name} {d.type_name}" for d in schema))
    console.print(table)
    return 0


def cmd_check(args: argparse.Namespace, config: AppConfig) -> int:
    builder = RecordBuilder(numbers_as_float=config.ingest.numbers_as_float)
    try:
        record = builder.build(args.topic, args.payload.encode("utf-8"))
    except IngestError as e:
        console.print(f"[red]✗ {type(e).__name__}:[/red] {e}")
        return 1

    table = Table(title=f"Record for table '{record.table_name}'")
    table.add_column("Column", style="cyan")
    table.add_column("Type")
    table.add_column("Value")
    for descriptor, value in zip(record.descriptors, record.values):
        table.add_row(descriptor.name, descriptor.type_name, repr(value))
    console.print(table)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mqtt2clickhouse",
        description="Ingest topic messages into dynamically created ClickHouse tables.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run = subparsers.add_parser("run", help="Run the ingestion pipeline")
    source = run.add_mutually_exclusive_group()
    source.add_argument("--file", default="-", help="JSON-lines file of messages ('-' for stdin)")
    source.add_argument(
        "--url",
        nargs="?",
        const="",
        default=None,
        help="HTTP endpoint to poll for messages (DATA_STREAM_URL if no value is given)",
    )
    run.add_argument("--max-messages", type=int, default=None)
    run.set_defaults(func=cmd_run)

    tables = subparsers.add_parser("tables", help="Show table schemas from the store")
    tables.set_defaults(func=cmd_tables)

    check = subparsers.add_parser("check", help="Build a record without touching the store")
    check.add_argument("topic")
    check.add_argument("payload")
    check.set_defaults(func=cmd_check)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    config = get_config()
    configure_logging(args.log_level or config.log_level)
    return args.func(args, config)


if __name__ == "__main__":
    sys.exit(main())
