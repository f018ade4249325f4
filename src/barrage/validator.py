import json
from collections.abc import Mapping
from typing import Any

from .lookup import MISSING, lookup
from .models import Expectation, Outcome, RequestOutcome, Response

INVALID_JSON_MESSAGE = "response body is not valid JSON"


def values_match(actual: Any, expected: Any) -> bool:
    """Exact scalar comparison; booleans never equal numbers, MISSING never matches."""
    if actual is MISSING:
        return False
    if isinstance(actual, bool) or isinstance(expected, bool):
        return isinstance(actual, bool) and isinstance(expected, bool) and actual == expected
    return actual == expected


def _render(value: Any) -> str:
    if value is MISSING:
        return repr(MISSING)
    return json.dumps(value, ensure_ascii=False, default=str)


def check_fields(checks: Mapping[str, Any], body: bytes) -> list[str]:
    """
    Compare every declared path against the JSON body and return one
    description per mismatching path, in declaration order.
    """
    try:
        document = json.loads(body)
    except ValueError:
        return [INVALID_JSON_MESSAGE]

    mismatches = []
    for path, expected in checks.items():
        actual = lookup(document, path)
        if not values_match(actual, expected):
            mismatches.append(
                f"field {path}: expected {_render(expected)}, got {_render(actual)}"
            )
    return mismatches


def validate(expectation: Expectation, response: Response) -> RequestOutcome:
    mismatches = []
    if expectation.field_checks:
        mismatches = check_fields(expectation.field_checks, response.body)

    if response.status != expectation.status:
        message = f"unexpected status {response.status}, expected {expectation.status}"
        if mismatches:
            message += "; " + "; ".join(mismatches)
        return RequestOutcome(
            kind=Outcome.STATUS_MISMATCH,
            elapsed_ms=response.elapsed_ms,
            message=message,
            status_code=response.status,
        )

    if mismatches:
        return RequestOutcome(
            kind=Outcome.FIELD_MISMATCH,
            elapsed_ms=response.elapsed_ms,
            message="; ".join(mismatches),
        )

    return RequestOutcome(kind=Outcome.SUCCESS, elapsed_ms=response.elapsed_ms)
