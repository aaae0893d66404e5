"""
Per-invocation run accounting.

Every invocation owns one RunAccumulator. Each recipient in the slice is
recorded exactly once as successful, failed or skipped; the accumulator is
frozen into a RunResult when the run ends.
"""

from typing import Any

from models.recipient import Recipient, RejectedRecipient
from models.run import (
    FailureRecord,
    FailureType,
    RunResult,
    RunStatus,
    SkipReason,
    derive_status,
)
from models.types import Cursor

SKIP_PREFIX = "[skipped]"
FAILURE_PREFIX = "[failed]"


class RunAccumulator:
    """Mutable counters and reasons for a single run."""

    def __init__(self, cursor: Cursor = 0):
        self.cursor = cursor
        self.successful = 0
        self.failed = 0
        self.skipped = 0
        self.errors: list[str] = []
        self.skip_reasons: list[str] = []
        self.failures: list[FailureRecord] = []
        self._settled: set[str] = set()

    @property
    def processed(self) -> int:
        return self.successful + self.failed + self.skipped

    def _settle(self, recipient: Recipient | RejectedRecipient) -> None:
        if recipient.id in self._settled:
            raise ValueError(f"Recipient {recipient.id} already has a terminal state")
        self._settled.add(recipient.id)

    def record_success(self, recipient: Recipient) -> None:
        self._settle(recipient)
        self.successful += 1

    def record_skip(
        self, recipient: Recipient, reason: SkipReason, detail: str | None = None
    ) -> None:
        self._settle(recipient)
        self.skipped += 1
        message = f"{recipient.email}: {reason.value}"
        if detail:
            message += f" ({detail})"
        self.skip_reasons.append(message)
        self.errors.append(f"{SKIP_PREFIX} {message}")

    def record_failure(
        self,
        recipient: Recipient,
        failure_type: FailureType,
        reason: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        self._settle(recipient)
        self.failed += 1
        self.errors.append(
            f"{FAILURE_PREFIX} {failure_type.value}: {recipient.email}: {reason}"
        )
        self.add_failure_record(recipient, failure_type, reason, details)

    def record_rejected(self, rejected: RejectedRecipient) -> None:
        """Fail a store row that never became a valid Recipient."""
        self._settle(rejected)
        self.failed += 1
        reason = f"Invalid recipient record: {rejected.error}"
        self.errors.append(
            f"{FAILURE_PREFIX} {FailureType.UNKNOWN.value}: {rejected.email or rejected.id}: {reason}"
        )
        self.failures.append(
            FailureRecord(
                recipient_id=rejected.id,
                failure_type=FailureType.UNKNOWN,
                reason=reason,
                topics=rejected.topics,
            )
        )

    def add_failure_record(
        self,
        recipient: Recipient,
        failure_type: FailureType,
        reason: str,
        details: dict[str, Any] | None = None,
        topics: list[str] | None = None,
    ) -> None:
        """Add a granular failure row without changing the recipient's terminal state."""
        self.failures.append(
            FailureRecord(
                recipient_id=recipient.id,
                failure_type=failure_type,
                reason=reason,
                topics=topics if topics is not None else recipient.active_topics(),
                details=details or {},
            )
        )

    def add_error(self, message: str) -> None:
        """Record a run-level error that is not tied to a recipient."""
        self.errors.append(message)

    def finalize(
        self,
        execution_time_ms: int = 0,
        next_cursor: Cursor | None = None,
        next_batch_triggered: bool | None = None,
        fatal: bool = False,
    ) -> RunResult:
        stalled = next_cursor is not None and not next_batch_triggered
        status = derive_status(self.successful, self.failed, stalled=stalled)
        if fatal:
            status = RunStatus.FAILED
        return RunResult(
            processed=self.processed,
            successful=self.successful,
            failed=self.failed,
            skipped=self.skipped,
            errors=list(self.errors),
            skip_reasons=list(self.skip_reasons),
            failures=list(self.failures),
            status=status,
            cursor=self.cursor,
            next_cursor=next_cursor,
            next_batch_triggered=next_batch_triggered,
            execution_time_ms=execution_time_ms,
        )
