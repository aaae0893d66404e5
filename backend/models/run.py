"""Pydantic models for run accounting, failure records and delivery results."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from models.types import RecipientID, TopicList


class RunStatus(str, Enum):
    SUCCESS = "success"
    PARTIAL = "partial"
    FAILED = "failed"


class FailureType(str, Enum):
    """Failure taxonomy written to the digest_failures table."""

    FETCH_ERROR = "fetch_error"
    SUMMARY_ERROR = "summary_error"
    EMAIL_ERROR = "email_error"
    UNKNOWN = "unknown"


class SkipReason(str, Enum):
    PAUSED = "paused"
    NO_TOPICS = "no-topics"
    NO_SUMMARIES = "no-summaries-produced"


class FailureRecord(BaseModel):
    """Granular failure row written alongside the run summary."""

    model_config = ConfigDict(frozen=True)

    recipient_id: RecipientID
    failure_type: FailureType
    reason: str
    topics: TopicList = Field(default_factory=list)
    details: dict[str, Any] = Field(default_factory=dict)


class DeliveryResult(BaseModel):
    """Outcome of a single delivery provider call."""

    success: bool
    email_id: str | None = None
    error: str | None = None


class RunResult(BaseModel):
    """Immutable summary of one invocation."""

    model_config = ConfigDict(frozen=True)

    processed: int = 0
    successful: int = 0
    failed: int = 0
    skipped: int = 0
    errors: list[str] = Field(default_factory=list)
    skip_reasons: list[str] = Field(default_factory=list)
    failures: list[FailureRecord] = Field(default_factory=list, exclude=True)
    status: RunStatus = RunStatus.SUCCESS
    cursor: int = 0
    next_cursor: int | None = None
    next_batch_triggered: bool | None = None
    execution_time_ms: int = 0


def derive_status(
    successful: int, failed: int, stalled: bool = False
) -> RunStatus:
    """
    Overall run status.

    A run is failed only when nothing succeeded and something failed. A run
    that would otherwise succeed but left remaining recipients without a
    follow-up invocation is partial, rather than success.

    `partial` therefore always means the chain stalled: more recipients
    remain and the continuation trigger did not fire, so the next batch has
    to be started by hand from the run's `next_cursor`.
    """
    if successful == 0 and failed > 0:
        return RunStatus.FAILED
    if stalled:
        return RunStatus.PARTIAL
    return RunStatus.SUCCESS
