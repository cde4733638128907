"""Command line interface: write entries, report errors, send payloads, sweep, list."""

import argparse
import dataclasses
import json
import logging
import sys

from lazylog.config import load_config
from lazylog.dispatcher import AsyncDispatcher, SubprocessExecutor
from lazylog.inspector import format_size, list_log_files
from lazylog.reporter import Reporter
from lazylog.sender import SyncSender
from lazylog.sweeper import sweep_stale_staging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="lazylog", description="Local log writer and error reporter")
    parser.add_argument("--config", help="YAML config file (default: $LAZYLOG_CONFIG)")
    parser.add_argument("--base-path", help="Log base directory")
    parser.add_argument("--url", help="Collector URL")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("write", help="Append an entry to a local log file")
    p.add_argument("--file", help="Log file name, may include subdirectories")
    p.add_argument("--title", required=True)
    group = p.add_mutually_exclusive_group(required=True)
    group.add_argument("--content", help="Entry body, written verbatim")
    group.add_argument("--json", help="Entry body as JSON, re-encoded compactly")

    p = sub.add_parser("report", help="Report an error message to the collector")
    p.add_argument("--message", required=True)
    p.add_argument("--context", help="JSON object with extra context")
    p.add_argument("--sync", action="store_true", help="Block until the POST completes")

    p = sub.add_parser("send", help="Send a JSON payload file to the collector")
    p.add_argument("--payload", required=True, help="Path to the JSON payload")
    p.add_argument("--sync", action="store_true", help="Block until the POST completes")

    p = sub.add_parser("sweep", help="Delete orphaned staging files")
    p.add_argument("--max-age", type=float, default=3600, help="Age in seconds (default 3600)")

    p = sub.add_parser("list", help="List the active and rotated log files")
    p.add_argument("--file", help="Log file name")

    return parser


def _cmd_write(reporter: Reporter, args) -> int:
    content = json.loads(args.json) if args.json is not None else args.content
    result = reporter.write(args.file, args.title, content)
    if result.rotated_path:
        logger.info("Rotated: %s", result.rotated_path)
    if not result.written:
        print(f"Entry not written: {result.error.value}", file=sys.stderr)
        return 1
    return 0


def _cmd_report(reporter: Reporter, args) -> int:
    if not reporter.config.collector_url:
        print("Error: no collector URL configured", file=sys.stderr)
        return 2
    context = json.loads(args.context) if args.context else None
    error = RuntimeError(args.message)
    if args.sync:
        outcome = reporter.report_sync(error, context)
        print(f"delivered={outcome.delivered} status={outcome.status_code}")
        return 0 if outcome.delivered else 1
    result = reporter.report_async(error, context)
    print(f"started={result.started}")
    return 0 if result.started else 1


def _cmd_send(config, args) -> int:
    if not config.collector_url:
        print("Error: no collector URL configured", file=sys.stderr)
        return 2
    try:
        with open(args.payload, "rb") as f:
            body = f.read()
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    if args.sync:
        outcome = SyncSender(timeout=config.sync_timeout).post(body, config.collector_url)
        print(f"delivered={outcome.delivered} status={outcome.status_code}")
        return 0 if outcome.delivered else 1
    dispatcher = AsyncDispatcher(
        executor=SubprocessExecutor(config.worker_executable),
        staging_dir=config.staging_dir,
        timeout_seconds=config.async_timeout,
    )
    result = dispatcher.try_dispatch(body, config.collector_url)
    print(f"started={result.started}")
    return 0 if result.started else 1


def _cmd_sweep(config, args) -> int:
    deleted = sweep_stale_staging(config.staging_dir, args.max_age)
    for name in deleted:
        print(f"  removed {name}")
    print(f"Swept {len(deleted)} staging file(s) from {config.staging_dir}")
    return 0


def _cmd_list(config, args) -> int:
    files = list_log_files(config.base_path, args.file or config.file_name)
    if not files:
        print("No log files found.")
        return 0
    for name, size in files:
        print(f"  {name}  ({format_size(size)})")
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [lazylog] %(levelname)s %(message)s",
        stream=sys.stderr,
    )

    config = load_config(args.config)
    overrides = {}
    if args.base_path:
        overrides["base_path"] = args.base_path
    if args.url:
        overrides["collector_url"] = args.url
    if overrides:
        config = dataclasses.replace(config, **overrides)

    try:
        if args.command == "write":
            return _cmd_write(Reporter(config), args)
        if args.command == "report":
            return _cmd_report(Reporter(config), args)
        if args.command == "send":
            return _cmd_send(config, args)
        if args.command == "sweep":
            return _cmd_sweep(config, args)
        return _cmd_list(config, args)
    except json.JSONDecodeError as e:
        print(f"Error: invalid JSON: {e}", file=sys.stderr)
        return 2
