from barrage.models import CampaignResult, TargetSpec
from barrage.rendering import format_ms, render_latency_histogram, render_report


def test_histogram_empty():
    assert "No latency data" in render_latency_histogram([])


def test_report_empty():
    assert "No results" in render_report([])


def test_format_ms():
    assert format_ms(250) == "250ms"
    assert format_ms(1000) == "1000ms"
    assert format_ms(1500) == "1.500s"


def test_histogram_skips_empty_buckets_and_marks_overflow():
    text = render_latency_histogram([10.0, 20.0, 450.0])
    lines = text.splitlines()
    assert lines[0].startswith("Latency Histogram")
    assert len(lines) == 3
    assert "0ms-99ms" in lines[1]
    assert "(2)" in lines[1]
    assert "400ms+" in lines[2]


def test_report_contains_summary_and_errors():
    result = CampaignResult(
        target=TargetSpec(url="http://localhost/api", method="POST"),
        attempted=4,
        success=2,
        timeouts=1,
        latencies_ms=[50.0, 70.0, 2000.0],
        status_counts={503: 1},
        error_messages={},
        total_duration_ms=2000.0,
        max_duration_ms=2000.0,
        avg_duration_ms=706.0,
    )
    text = render_report([result])
    assert "Target #1" in text
    assert "[POST] http://localhost/api" in text
    assert "[QPS]    2.00" in text
    assert "[OK-QPS] 1.00" in text
    assert "success rate: 50.00%" in text
    assert "[1x] 503" in text
    assert "2.000s+" in text
