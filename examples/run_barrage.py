"""
Quick sanity run against httpbin without the CLI.
Run: uv run examples/run_barrage.py
"""
import os

from barrage import RunConfig, render_report, run_campaigns
from barrage.logging_config import setup_logging
from barrage.persistence import load_targets

TARGETS_FILE = os.path.join(os.path.dirname(__file__), "targets.json")


def main():
    console = setup_logging("INFO")
    config = RunConfig(
        concurrency=4,
        total_requests=20,
        request_timeout_s=float(os.getenv("HTTP_REQUEST_TIMEOUT_S", "10")),
        progress=True,
    )
    results = run_campaigns(load_targets(TARGETS_FILE), config, console)
    print(render_report(results))


if __name__ == "__main__":
    main()
