#!/usr/bin/env python3
# cli.py: command-line entry point for barrage

import argparse
import asyncio
import logging
import os
import sys

from dotenv import load_dotenv

from barrage.core import RequestBarrage
from barrage.errors import ConfigError
from barrage.logging_config import setup_logging
from barrage.models import RunConfig
from barrage.persistence import default_result_path, load_targets, save_results
from barrage.rendering import render_report


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Barrage: HTTP load generator with response validation",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument(
        "-f",
        "--file",
        default="config.json",
        help="JSON file with the list of request targets",
    )
    parser.add_argument(
        "-c",
        "--concurrency",
        type=int,
        default=os.getenv("BARRAGE_CONCURRENCY", "100"),
        help="Number of concurrent workers per target",
    )
    parser.add_argument(
        "-n",
        "--requests",
        type=int,
        default=os.getenv("BARRAGE_REQUESTS", "1000"),
        help="Total number of requests per target",
    )
    parser.add_argument(
        "-t",
        "--timeout",
        type=float,
        default=os.getenv("BARRAGE_TIMEOUT", "20"),
        help="Per-request timeout in seconds",
    )
    parser.add_argument(
        "-o",
        "--output",
        default=None,
        help="Where to write the JSON results (default: ./result.<target file name>)",
    )

    # Logging & Debugging
    parser.add_argument(
        "-d",
        "--debug",
        action="store_true",
        help="Enable debug-level logging, including every response body",
    )
    parser.add_argument(
        "--log-file",
        type=str,
        default=None,
        help="Optional file to write logs to (e.g., barrage.log)",
    )
    parser.add_argument(
        "--no-progress",
        action="store_true",
        help="Disable the progress bar",
    )

    return parser.parse_args(argv)


async def run(args) -> int:
    log_level = "DEBUG" if args.debug else "INFO"
    console = setup_logging(level=log_level, log_file=args.log_file)

    try:
        targets = load_targets(args.file)
        config = RunConfig(
            concurrency=args.concurrency,
            total_requests=args.requests,
            request_timeout_s=args.timeout,
            debug=args.debug,
            progress=not args.no_progress,
        )
        barrage = RequestBarrage(targets, config, console=console)
    except ConfigError as e:
        logging.error(f"Configuration error: {e}")
        return 2

    results = await barrage.run()
    print("\n" + render_report(results))

    output = args.output or default_result_path(args.file)
    if not save_results(results, output):
        return 1
    return 0


def main():
    load_dotenv()
    sys.exit(asyncio.run(run(parse_args())))


if __name__ == "__main__":
    main()
