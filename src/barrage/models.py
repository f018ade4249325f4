from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional
from collections.abc import Callable

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .errors import ConfigError


# ────────────────────────────────
# Target Specification (loaded from the JSON target file)
# ────────────────────────────────


class Expectation(BaseModel):
    """What a response must look like to count as a success."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    status: Optional[int] = 200
    field_checks: Optional[dict[str, Any]] = Field(default=None, alias="field")

    @field_validator("status")
    @classmethod
    def default_status(cls, v: Optional[int]) -> int:
        # null and 0 both mean "not set" in target files
        return v or 200


class TargetSpec(BaseModel):
    """One endpoint under test."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    url: str
    method: Optional[str] = "GET"
    params: Optional[dict[str, Any]] = None
    data: Any = None
    headers: Optional[dict[str, str]] = None
    response: Optional[Expectation] = Field(default_factory=Expectation)

    @field_validator("method")
    @classmethod
    def default_method(cls, v: Optional[str]) -> str:
        return (v or "").strip().upper() or "GET"

    @field_validator("response")
    @classmethod
    def default_response(cls, v: Optional[Expectation]) -> Expectation:
        return Expectation() if v is None else v

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


# ────────────────────────────────
# Run Parameters
# ────────────────────────────────


@dataclass(frozen=True)
class RunConfig:
    concurrency: int = 100
    total_requests: int = 1000
    request_timeout_s: float = 20.0
    debug: bool = False
    progress: bool = False

    def __post_init__(self) -> None:
        if self.concurrency < 1:
            raise ConfigError(f"concurrency must be >= 1, got {self.concurrency}")
        if self.total_requests < 1:
            raise ConfigError(f"total request count must be >= 1, got {self.total_requests}")
        if self.request_timeout_s <= 0:
            raise ConfigError(f"timeout must be > 0, got {self.request_timeout_s}")


# ────────────────────────────────
# Per-request Records
# ────────────────────────────────


class Outcome(str, Enum):
    SUCCESS = "success"
    STATUS_MISMATCH = "status_mismatch"
    FIELD_MISMATCH = "field_mismatch"
    TIMEOUT = "timeout"
    TRANSPORT_ERROR = "transport_error"
    BODY_READ_ERROR = "body_read_error"
    BUILD_ERROR = "build_error"


@dataclass(frozen=True)
class WorkUnit:
    index: int


@dataclass(frozen=True)
class Response:
    status: int
    body: bytes
    elapsed_ms: float


@dataclass(frozen=True)
class RequestOutcome:
    kind: Outcome
    elapsed_ms: float | None = None
    message: str = ""
    status_code: int | None = None

    @property
    def ok(self) -> bool:
        return self.kind is Outcome.SUCCESS


# ────────────────────────────────
# Campaign Records
# ────────────────────────────────


@dataclass
class CampaignResult:
    target: TargetSpec
    attempted: int = 0
    success: int = 0
    timeouts: int = 0
    latencies_ms: list[float] = field(default_factory=list)
    status_counts: dict[int, int] = field(default_factory=dict)
    error_messages: dict[str, int] = field(default_factory=dict)
    total_duration_ms: float = 0.0
    max_duration_ms: float = 0.0
    avg_duration_ms: float = 0.0

    @property
    def failures(self) -> int:
        return self.attempted - self.success

    def to_dict(self) -> dict[str, Any]:
        return {
            "target": self.target.to_dict(),
            "attempted": self.attempted,
            "success": self.success,
            "timeouts": self.timeouts,
            "total_duration_ms": round(self.total_duration_ms, 3),
            "max_duration_ms": round(self.max_duration_ms, 3),
            "avg_duration_ms": round(self.avg_duration_ms, 3),
            "latencies_ms": [round(x, 3) for x in self.latencies_ms],
            "status_counts": dict(self.status_counts),
            "error_messages": dict(self.error_messages),
        }


@dataclass(frozen=True)
class HistogramBucket:
    lower_ms: int
    upper_ms: int | None  # None for the open-ended last bucket
    count: int


@dataclass
class CampaignSummary:
    attempted: int
    success: int
    failures: int
    timeouts: int
    success_rate: float
    qps: float
    ok_qps: float
    total_duration_ms: float
    avg_duration_ms: float
    max_duration_ms: float
    p50: float | None
    p90: float | None
    p95: float | None
    p99: float | None
    histogram: list[HistogramBucket]


# Invoked once per recorded outcome (progress bars)
CompletionCallback = Callable[[], None]
