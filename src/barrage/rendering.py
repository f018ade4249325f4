from .metrics import BUCKET_WIDTH_MS, compute_summary, latency_histogram
from .models import CampaignResult


def format_ms(ms: float) -> str:
    """Milliseconds below one second, seconds above."""
    if ms > 1000:
        return f"{ms / 1000:.3f}s"
    return f"{ms:.0f}ms"


def render_latency_histogram(
    latencies_ms: list[float], bucket_ms: int = BUCKET_WIDTH_MS, width: int = 40
) -> str:
    if not latencies_ms:
        return "No latency data."

    buckets = latency_histogram(latencies_ms, bucket_ms)
    peak = max(b.count for b in buckets)
    lines = []
    for b in buckets:
        if b.count == 0:
            continue
        bar = "#" * max(1, int((b.count / peak) * width))
        if b.upper_ms is None:
            label = f"{format_ms(b.lower_ms)}+"
        else:
            label = f"{format_ms(b.lower_ms)}-{format_ms(b.upper_ms - 1)}"
        lines.append(f"{label:>17} | {bar} ({b.count})")
    return f"Latency Histogram (per {bucket_ms}ms)\n" + "\n".join(lines)


def render_campaign(index: int, result: CampaignResult) -> str:
    s = compute_summary(result)
    target = result.target
    lines = [
        f"====== Target #{index} ======",
        f"[URL]    [{target.method}] {target.url}",
        f"[QPS]    {s.qps:.2f}",
        f"[OK-QPS] {s.ok_qps:.2f}",
        "",
        f"Requests: {s.attempted}, succeeded: {s.success}, failed: {s.failures} "
        f"(timed out: {s.timeouts}), success rate: {s.success_rate * 100:.2f}%",
        f"Total: {format_ms(s.total_duration_ms)}, max: {format_ms(s.max_duration_ms)}, "
        f"avg: {format_ms(s.avg_duration_ms)}",
    ]
    if s.p50 is not None:
        lines.append(
            f"p50: {format_ms(s.p50)}, p90: {format_ms(s.p90)}, "
            f"p95: {format_ms(s.p95)}, p99: {format_ms(s.p99)}"
        )

    if result.status_counts:
        lines.append("Unexpected status codes:")
        for code, count in sorted(result.status_counts.items()):
            lines.append(f"  [{count}x] {code}")
    if result.error_messages:
        lines.append("Errors:")
        for msg, count in sorted(result.error_messages.items(), key=lambda kv: -kv[1]):
            lines.append(f"  [{count}x] {msg}")

    lines.append("")
    lines.append(render_latency_histogram(result.latencies_ms))
    return "\n".join(lines)


def render_report(results: list[CampaignResult]) -> str:
    if not results:
        return "No results."
    return "\n\n".join(render_campaign(i, r) for i, r in enumerate(results, start=1))
