"""
Run auditing and email archiving in Supabase.

Writes one `cron_job_logs` row per invocation plus granular
`digest_failures` rows, and archives delivered digests in `email_archive`.
Audit and archive writes are best-effort: failures are logged, never raised
into the pipeline.
"""

from datetime import datetime
from typing import Any, Protocol

from digest.error_logger import log_digest_error
from models.run import FailureRecord, RunResult
from models.types import RecipientID
from shared.db import get_supabase_client


class AuditLog(Protocol):
    def append_run(self, result: RunResult) -> None: ...

    def append_failures(self, failures: list[FailureRecord]) -> None: ...


class _SupabaseWriter:
    def __init__(self, supabase: Any = None):
        self._supabase = supabase

    @property
    def supabase(self) -> Any:
        if self._supabase is None:
            self._supabase = get_supabase_client()
        return self._supabase


class SupabaseAuditLog(_SupabaseWriter):
    """Audit log persisted to `cron_job_logs` and `digest_failures`."""

    def append_run(self, result: RunResult) -> None:
        self.supabase.table("cron_job_logs").insert(
            {
                "status": result.status.value,
                "processed_count": result.processed,
                "successful_count": result.successful,
                "failed_count": result.failed,
                "skipped_count": result.skipped,
                "errors": result.errors,
                "skip_reasons": result.skip_reasons,
                "execution_time_ms": result.execution_time_ms,
                "execution_date": datetime.now().isoformat(),
                "cursor": result.cursor,
                "next_cursor": result.next_cursor,
                "next_batch_triggered": result.next_batch_triggered,
            }
        ).execute()

    def append_failures(self, failures: list[FailureRecord]) -> None:
        if not failures:
            return

        self.supabase.table("digest_failures").insert(
            [
                {
                    "user_id": failure.recipient_id,
                    "failure_type": failure.failure_type.value,
                    "failure_reason": failure.reason,
                    "topics": failure.topics,
                    "error_details": failure.details,
                }
                for failure in failures
            ]
        ).execute()


class SupabaseArchiveStore(_SupabaseWriter):
    """Archive of delivered digests in `email_archive`."""

    def record(
        self,
        recipient_id: RecipientID,
        digest_content: list[dict[str, Any]],
        topics: list[str],
    ) -> None:
        self.supabase.table("email_archive").insert(
            {
                "user_id": recipient_id,
                "subject": f"Your Daily Digest - {datetime.now().strftime('%x')}",
                "content": digest_content,
                "topics": topics,
            }
        ).execute()


class AuditRecorder:
    """Writes a run's audit records without ever raising."""

    def __init__(self, audit_log: AuditLog):
        self.audit_log = audit_log

    def record(self, result: RunResult) -> bool:
        """
        Persist the run summary and its failure records.

        Returns:
            True if every write succeeded
        """
        ok = True

        try:
            self.audit_log.append_run(result)
        except Exception as e:
            ok = False
            self._report("run", e, result)

        try:
            self.audit_log.append_failures(result.failures)
        except Exception as e:
            ok = False
            self._report("failures", e, result)

        return ok

    @staticmethod
    def _report(kind: str, error: Exception, result: RunResult) -> None:
        print(f"  ⚠️  Failed to write audit {kind} record: {error}")
        log_digest_error(
            error_type="audit",
            error_message=str(error),
            context={
                "record": kind,
                "status": result.status.value,
                "cursor": result.cursor,
                "processed": result.processed,
                "failure_count": len(result.failures),
            },
        )
