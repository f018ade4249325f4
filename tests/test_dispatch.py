import aiohttp
import pytest

from barrage.dispatch import dispatch, process_unit
from barrage.executor import RequestExecutor
from barrage.models import Outcome, TargetSpec


async def _campaign(target, concurrency, total, timeout=2.0, on_complete=None):
    client_timeout = aiohttp.ClientTimeout(total=timeout)
    async with aiohttp.ClientSession(
        connector=aiohttp.TCPConnector(limit=0), timeout=client_timeout
    ) as session:
        return await dispatch(
            target, RequestExecutor(session), concurrency, total, on_complete=on_complete
        )


def _classified(result):
    return (
        result.success
        + result.timeouts
        + sum(result.status_counts.values())
        + sum(result.error_messages.values())
    )


@pytest.mark.parametrize("concurrency", [1, 10, 100])
async def test_attempted_equals_total_regardless_of_concurrency(target_for, concurrency):
    result = await _campaign(target_for("/ok"), concurrency, 10)
    assert result.attempted == 10
    assert result.success == 10
    assert len(result.latencies_ms) == 10
    assert _classified(result) == result.attempted


async def test_success_with_field_check(target_for):
    target = target_for("/ok", response={"status": 200, "field": {"code": 200}})
    result = await _campaign(target, 2, 4)
    assert result.success == 4
    assert result.status_counts == {}
    assert result.error_messages == {}


async def test_server_error_counted_by_status(target_for):
    result = await _campaign(target_for("/error"), 3, 6)
    assert result.attempted == 6
    assert result.success == 0
    assert result.status_counts == {500: 6}
    assert result.latencies_ms == []
    assert _classified(result) == result.attempted


async def test_field_mismatch_counted_by_message(target_for):
    target = target_for("/ok", response={"field": {"message": "nope", "data.flag": None}})
    result = await _campaign(target, 2, 5)
    assert result.success == 0
    assert result.error_messages == {'field message: expected "nope", got "ok"': 5}


async def test_non_json_body_counted_as_field_mismatch(target_for):
    result = await _campaign(target_for("/plain", response={"field": {"code": 200}}), 2, 3)
    assert result.error_messages == {"response body is not valid JSON": 3}


async def test_timeouts_are_measured(target_for):
    target = target_for("/slow", params={"delay": 0.6})
    result = await _campaign(target, 2, 2, timeout=0.15)
    assert result.attempted == 2
    assert result.timeouts == 2
    assert result.success == 0
    assert len(result.latencies_ms) == 2
    for latency in result.latencies_ms:
        assert 100 <= latency < 550
    assert result.max_duration_ms == max(result.latencies_ms)


async def test_truncated_body_counted_as_error_without_latency(target_for):
    result = await _campaign(target_for("/truncated"), 2, 4)
    assert result.attempted == 4
    assert result.success == 0
    assert result.timeouts == 0
    assert result.status_counts == {}
    assert sum(result.error_messages.values()) == 4
    assert all(m.startswith("failed to read response body") for m in result.error_messages)
    assert result.latencies_ms == []


async def test_stalled_body_counted_as_timeout(target_for):
    target = target_for("/stalled", params={"delay": 0.6})
    result = await _campaign(target, 2, 2, timeout=0.3)
    assert result.timeouts == 2
    assert result.error_messages == {}
    assert len(result.latencies_ms) == 2
    for latency in result.latencies_ms:
        assert 250 <= latency < 600


async def test_build_errors_do_not_abort_campaign():
    result = await _campaign(TargetSpec(url="not a url"), 3, 7)
    assert result.attempted == 7
    assert result.latencies_ms == []
    assert sum(result.error_messages.values()) == 7
    assert len(result.error_messages) == 1


async def test_transport_errors_do_not_abort_campaign():
    result = await _campaign(TargetSpec(url="http://127.0.0.1:1/"), 2, 4)
    assert result.attempted == 4
    assert result.success == 0
    assert sum(result.error_messages.values()) == 4


async def test_bounded_concurrency(target_for):
    # 10 requests of ~100ms through 2 workers: about 5 rounds, not 10
    target = target_for("/slow", params={"delay": 0.1})
    result = await _campaign(target, 2, 10)
    assert result.attempted == 10
    assert result.success == 10
    assert 450 <= result.total_duration_ms < 950


async def test_on_complete_called_per_unit(target_for):
    calls = []
    await _campaign(target_for("/ok"), 4, 9, on_complete=lambda: calls.append(1))
    assert len(calls) == 9


async def test_process_unit_classifies_build_errors(session):
    outcome = await process_unit(RequestExecutor(session), TargetSpec(url="not a url"))
    assert outcome.kind is Outcome.BUILD_ERROR
    assert outcome.elapsed_ms is None
    assert "invalid URL" in outcome.message


async def test_invalid_parameters_rejected(executor, target_for):
    with pytest.raises(ValueError):
        await dispatch(target_for("/ok"), executor, 0, 1)
    with pytest.raises(ValueError):
        await dispatch(target_for("/ok"), executor, 1, 0)
