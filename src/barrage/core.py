import asyncio
import logging
from collections.abc import Iterable

import aiohttp
from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)

from .dispatch import dispatch
from .errors import ConfigError
from .executor import RequestExecutor
from .models import CampaignResult, RunConfig, TargetSpec

logger = logging.getLogger(__name__)


class RequestBarrage:
    """Runs one campaign per target, strictly in order."""

    def __init__(
        self,
        targets: Iterable[TargetSpec],
        config: RunConfig,
        console: Console | None = None,
    ) -> None:
        self.targets = list(targets)
        if not self.targets:
            raise ConfigError("no request targets given")
        self.config = config
        # progress bars render on this console; share it with the log handler
        self.console = console

        logger.info(
            f"Initialized barrage with {len(self.targets)} targets, "
            f"concurrency={config.concurrency}, requests={config.total_requests}, "
            f"timeout={config.request_timeout_s}s"
        )

    async def run(self) -> list[CampaignResult]:
        results: list[CampaignResult] = []
        for index, target in enumerate(self.targets, start=1):
            logger.info(f"Starting campaign #{index}: [{target.method}] {target.url}")
            result = await self.run_campaign(target)
            results.append(result)
            logger.info(
                f"Campaign #{index} finished: {result.success}/{result.attempted} succeeded, "
                f"{result.timeouts} timed out, total {result.total_duration_ms:.0f}ms"
            )
            if result.failures:
                logger.warning(
                    f"Campaign #{index}: {result.failures} failed requests "
                    f"({len(result.status_counts)} status codes, "
                    f"{len(result.error_messages)} distinct errors)"
                )
        return results

    async def run_campaign(self, target: TargetSpec) -> CampaignResult:
        connector = aiohttp.TCPConnector(limit=0)
        timeout = aiohttp.ClientTimeout(total=self.config.request_timeout_s)

        progress = None
        task_id = None
        if self.config.progress:
            progress = Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                BarColumn(),
                MofNCompleteColumn(),
                TimeElapsedColumn(),
                console=self.console,
            )
            progress.start()
            task_id = progress.add_task(
                f"[cyan]{target.method} {target.url}", total=self.config.total_requests
            )

        def advance() -> None:
            progress.advance(task_id)

        try:
            async with aiohttp.ClientSession(connector=connector, timeout=timeout) as session:
                executor = RequestExecutor(session, debug=self.config.debug)
                return await dispatch(
                    target,
                    executor,
                    self.config.concurrency,
                    self.config.total_requests,
                    on_complete=advance if progress else None,
                )
        finally:
            if progress:
                progress.stop()


def run_campaigns(
    targets: Iterable[TargetSpec], config: RunConfig, console: Console | None = None
) -> list[CampaignResult]:
    return asyncio.run(RequestBarrage(targets, config, console).run())
