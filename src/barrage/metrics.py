import asyncio
import logging

from .models import (
    CampaignResult,
    CampaignSummary,
    HistogramBucket,
    Outcome,
    RequestOutcome,
    TargetSpec,
)

logger = logging.getLogger(__name__)

BUCKET_WIDTH_MS = 100


class MetricsAggregator:
    """
    Owns one campaign's CampaignResult while workers are running.

    record() is the only way to mutate the result and folds a whole outcome
    under a single lock, so counters, maps and the latency sequence are
    never observed half-updated. finalize() runs once after the workers
    have been joined.
    """

    def __init__(self, target: TargetSpec) -> None:
        self._result = CampaignResult(target=target)
        self._lock = asyncio.Lock()
        self._finalized = False

    async def record(self, outcome: RequestOutcome) -> None:
        async with self._lock:
            if self._finalized:
                raise RuntimeError("campaign already finalized")
            self._fold(outcome)

    def _fold(self, outcome: RequestOutcome) -> None:
        r = self._result
        r.attempted += 1

        if outcome.kind is Outcome.SUCCESS:
            r.success += 1
            r.latencies_ms.append(outcome.elapsed_ms or 0.0)
        elif outcome.kind is Outcome.TIMEOUT:
            r.timeouts += 1
            r.latencies_ms.append(outcome.elapsed_ms or 0.0)
        elif outcome.kind is Outcome.STATUS_MISMATCH:
            r.status_counts[outcome.status_code] = r.status_counts.get(outcome.status_code, 0) + 1
        else:
            r.error_messages[outcome.message] = r.error_messages.get(outcome.message, 0) + 1

    def finalize(self, total_duration_ms: float) -> CampaignResult:
        if self._finalized:
            raise RuntimeError("campaign already finalized")
        self._finalized = True

        r = self._result
        r.total_duration_ms = total_duration_ms
        if r.latencies_ms:
            r.avg_duration_ms = sum(r.latencies_ms) / len(r.latencies_ms)
            r.max_duration_ms = max(r.latencies_ms)
        logger.debug(
            f"Finalized campaign: attempted={r.attempted}, success={r.success}, "
            f"timeouts={r.timeouts}, avg={r.avg_duration_ms:.1f}ms, max={r.max_duration_ms:.1f}ms"
        )
        return r


def latency_histogram(
    latencies_ms: list[float], bucket_ms: int = BUCKET_WIDTH_MS
) -> list[HistogramBucket]:
    """
    Fixed-width buckets from 0 up to the largest latency. The last bucket is
    open-ended and takes every value at or above its lower bound.
    """
    if not latencies_ms:
        return []

    n_buckets = int(max(latencies_ms) // bucket_ms) + 1
    counts = [0] * n_buckets
    for x in latencies_ms:
        j = int(x // bucket_ms)
        if j >= n_buckets:
            j = n_buckets - 1
        counts[max(0, j)] += 1

    buckets = []
    for i, c in enumerate(counts):
        upper = (i + 1) * bucket_ms if i < n_buckets - 1 else None
        buckets.append(HistogramBucket(lower_ms=i * bucket_ms, upper_ms=upper, count=c))
    return buckets


def compute_summary(result: CampaignResult) -> CampaignSummary:
    total = result.attempted
    seconds = result.total_duration_ms / 1000.0
    logger.debug(
        f"Computing summary: total={total}, success={result.success}, timeouts={result.timeouts}"
    )

    n = len(result.latencies_ms)
    sl = sorted(result.latencies_ms)

    def pct(p):
        if not n:
            return None
        return sl[max(0, min(n - 1, int(p * (n - 1))))]

    return CampaignSummary(
        attempted=total,
        success=result.success,
        failures=result.failures,
        timeouts=result.timeouts,
        success_rate=result.success / total if total else 0.0,
        qps=total / seconds if seconds > 0 else 0.0,
        ok_qps=result.success / seconds if seconds > 0 else 0.0,
        total_duration_ms=result.total_duration_ms,
        avg_duration_ms=result.avg_duration_ms,
        max_duration_ms=result.max_duration_ms,
        p50=pct(0.50),
        p90=pct(0.90),
        p95=pct(0.95),
        p99=pct(0.99),
        histogram=latency_histogram(result.latencies_ms),
    )
