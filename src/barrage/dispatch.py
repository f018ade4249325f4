import asyncio
import logging

from .errors import RequestError
from .executor import RequestExecutor
from .metrics import MetricsAggregator
from .models import (
    CampaignResult,
    CompletionCallback,
    Outcome,
    RequestOutcome,
    TargetSpec,
    WorkUnit,
)
from .utils import elapsed_ms, now
from .validator import validate

logger = logging.getLogger(__name__)


async def process_unit(executor: RequestExecutor, target: TargetSpec) -> RequestOutcome:
    """Execute and validate one request. Per-request failures become outcomes."""
    try:
        response = await executor.execute(target)
    except RequestError as e:
        return RequestOutcome(kind=Outcome(e.kind), elapsed_ms=e.elapsed_ms, message=str(e))
    return validate(target.response, response)


async def dispatch(
    target: TargetSpec,
    executor: RequestExecutor,
    concurrency: int,
    total_requests: int,
    on_complete: CompletionCallback | None = None,
) -> CampaignResult:
    """
    Run one campaign: exactly total_requests units drained by exactly
    concurrency workers. Returns the finalized result once every worker
    has exited.
    """
    if concurrency < 1 or total_requests < 1:
        raise ValueError("concurrency and total_requests must both be >= 1")

    # Filled once and never refilled: an empty queue means the campaign is drained.
    q: asyncio.Queue[WorkUnit] = asyncio.Queue(maxsize=total_requests)
    for idx in range(total_requests):
        q.put_nowait(WorkUnit(idx))

    aggregator = MetricsAggregator(target)

    async def worker(worker_id: int) -> None:
        handled = 0
        while True:
            try:
                unit = q.get_nowait()
            except asyncio.QueueEmpty:
                break
            outcome = await process_unit(executor, target)
            await aggregator.record(outcome)
            handled += 1
            if not outcome.ok:
                logger.debug(
                    f"[W{worker_id}] unit {unit.index}: {outcome.kind.value} {outcome.message}"
                )
            if on_complete is not None:
                on_complete()
        logger.debug(f"Worker {worker_id} stopped after {handled} requests")

    t0 = now()
    logger.debug(f"Starting {total_requests} requests with {concurrency} workers")
    workers = [asyncio.create_task(worker(i)) for i in range(concurrency)]
    try:
        await asyncio.gather(*workers)
    except BaseException:
        for w in workers:
            w.cancel()
        await asyncio.gather(*workers, return_exceptions=True)
        raise

    return aggregator.finalize(elapsed_ms(t0))
