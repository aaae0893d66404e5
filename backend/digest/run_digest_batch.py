"""
CLI script and pipeline for sending one batch of daily digests.

Usage:
    # Send the first batch (a follow-up batch is triggered over HTTP if configured)
    uv run python -m digest.run_digest_batch

    # Resume a chain at a specific cursor
    uv run python -m digest.run_digest_batch --cursor 20

    # Run every batch of the chain in this process
    uv run python -m digest.run_digest_batch --follow

    # Dry run (don't actually send emails)
    uv run python -m digest.run_digest_batch --dry-run --follow
"""

import argparse
import time
from typing import Callable

from pydantic import BaseModel, ConfigDict

from config.settings import DispatchSettings, load_settings
from digest.audit import AuditLog, AuditRecorder, SupabaseArchiveStore, SupabaseAuditLog
from digest.continuation import (
    BatchContinuationController,
    ContinuationTrigger,
    HttpContinuationTrigger,
    QueuedContinuationTrigger,
    RecipientStore,
    SliceRow,
)
from digest.dispatcher import ArchiveStore, DeliveryProvider, RateLimitedDispatcher
from digest.email_sender import DryRunDeliveryProvider, ResendDeliveryProvider
from digest.error_logger import log_digest_error
from digest.errors import ContentFetchError
from digest.packager import package_digest
from digest.preparer import (
    ContentProvider,
    PreparationOutcome,
    SummarizationEngine,
    SummaryPreparer,
    fetch_slice_content,
)
from digest.recipient_store import SupabaseRecipientStore
from digest.results import RunAccumulator
from digest.topic_dedup import collect_unique_topics
from ingest.news_fetcher import ArticleCache, NewsAPIContentProvider
from models.digest import PreparedDigest
from models.recipient import Recipient
from models.run import FailureType, RunResult, SkipReason
from models.types import Cursor
from processing.summarizer import OllamaSummarizer
from shared.utils import print_summary


class BatchReport(BaseModel):
    """What one invocation did, for the entry point's response."""

    model_config = ConfigDict(frozen=True)

    message: str
    result: RunResult
    total: int = 0
    remaining: int | None = None
    fatal_error: str | None = None


class DigestPipeline:
    """Runs one invocation: select slice, prepare, package, dispatch, chain, audit."""

    def __init__(
        self,
        store: RecipientStore,
        content_provider: ContentProvider,
        summarizer: SummarizationEngine,
        delivery: DeliveryProvider,
        audit_log: AuditLog,
        archive: ArchiveStore | None = None,
        trigger: ContinuationTrigger | None = None,
        settings: DispatchSettings | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.settings = settings or DispatchSettings()
        self.content_provider = content_provider
        self.controller = BatchContinuationController(
            store, trigger, batch_size=self.settings.batch_size
        )
        self.preparer = SummaryPreparer(summarizer, timeout=self.settings.summary_timeout)
        self.dispatcher = RateLimitedDispatcher(
            delivery,
            archive=archive,
            min_interval=self.settings.send_interval,
            clock=clock,
            sleep=sleep,
        )
        self.recorder = AuditRecorder(audit_log)
        self.clock = clock

    def run(self, cursor: Cursor = 0) -> BatchReport:
        started = self.clock()
        results = RunAccumulator(cursor=cursor)

        def elapsed_ms() -> int:
            return int((self.clock() - started) * 1000)

        print(f"Starting daily digest batch at cursor {cursor}...")

        try:
            rows, total = self.controller.select_slice(cursor)
        except Exception as e:
            print(f"✗ Error fetching recipients: {e}")
            return self._abort(results, e, elapsed_ms())

        if not rows:
            print("No users to process.")
            run = results.finalize(execution_time_ms=elapsed_ms())
            self.recorder.record(run)
            return BatchReport(message="No users to process", result=run, total=total)

        print(f"Processing {len(rows)} of {total} users...")

        try:
            recipients = self._reject_invalid(rows, results)
            eligible, topics = collect_unique_topics(recipients, results)
            outcomes = self._prepare(eligible, topics, results)
            digests = self._package(outcomes, results)

            print(f"\nSending {len(digests)} digests...")
            self.dispatcher.dispatch(digests, results)

            # Rejected rows count toward the slice so the cursor moves past them
            decision = self.controller.decide(cursor, len(rows), total)
            triggered = self.controller.continue_chain(decision)
        except Exception as e:
            print(f"✗ Digest batch aborted: {e}")
            return self._abort(results, e, elapsed_ms(), total)

        run = results.finalize(
            execution_time_ms=elapsed_ms(),
            next_cursor=decision.next_cursor if decision.has_more else None,
            next_batch_triggered=triggered if decision.has_more else None,
        )
        self.recorder.record(run)
        print_summary(run)

        return BatchReport(
            message="Daily digest process completed",
            result=run,
            total=total,
            remaining=decision.remaining if decision.has_more else None,
        )

    def _abort(
        self,
        results: RunAccumulator,
        error: Exception,
        execution_time_ms: int,
        total: int = 0,
    ) -> BatchReport:
        """Close out a run that cannot continue, keeping whatever was already settled."""
        error_msg = str(error) or error.__class__.__name__
        results.add_error(f"Fatal: {error_msg}")
        run = results.finalize(execution_time_ms=execution_time_ms, fatal=True)
        self.recorder.record(run)
        return BatchReport(
            message="Daily digest process failed",
            result=run,
            total=total,
            fatal_error=error_msg,
        )

    def _reject_invalid(
        self, rows: list[SliceRow], results: RunAccumulator
    ) -> list[Recipient]:
        recipients: list[Recipient] = []
        for row in rows:
            if isinstance(row, Recipient):
                recipients.append(row)
                continue

            results.record_rejected(row)
            log_digest_error(
                error_type="recipient",
                error_message=row.error,
                context={"recipient_id": row.id, "email": row.email, "cursor": results.cursor},
            )
        return recipients

    def _prepare(
        self, eligible: list[Recipient], topics: list[str], results: RunAccumulator
    ) -> list[PreparationOutcome]:
        if not eligible:
            return []

        print(f"Fetching content for {len(topics)} unique topics...")
        try:
            content = fetch_slice_content(self.content_provider, topics)
        except ContentFetchError as e:
            print(f"✗ {e}")
            for recipient in eligible:
                results.record_failure(
                    recipient,
                    FailureType.FETCH_ERROR,
                    str(e),
                    details={"topics": recipient.active_topics()},
                )
            return []

        return self.preparer.prepare_all(eligible, content)

    def _package(
        self, outcomes: list[PreparationOutcome], results: RunAccumulator
    ) -> list[PreparedDigest]:
        digests: list[PreparedDigest] = []

        for outcome in outcomes:
            recipient = outcome.recipient

            if outcome.failure_type is not None:
                results.record_failure(
                    recipient, outcome.failure_type, outcome.error or "Unknown error"
                )
                continue

            for topic, error in outcome.topic_errors.items():
                results.add_failure_record(
                    recipient,
                    FailureType.SUMMARY_ERROR,
                    f"Summary failed for '{topic}': {error}",
                    topics=[topic],
                )

            if not outcome.summaries:
                if outcome.attempted_topics:
                    detail = f"attempted: {', '.join(outcome.attempted_topics)}"
                else:
                    detail = f"No news found for: {', '.join(recipient.active_topics())}"
                print(f"  ⊘ No summaries produced for {recipient.email}, skipping")
                results.record_skip(recipient, SkipReason.NO_SUMMARIES, detail)
                continue

            try:
                digests.append(package_digest(recipient, outcome.summaries))
            except Exception as e:
                results.record_failure(
                    recipient,
                    FailureType.UNKNOWN,
                    f"Error processing user {recipient.email}: {e}",
                )

        return digests


def build_pipeline(
    settings: DispatchSettings | None = None,
    dry_run: bool = False,
    trigger: ContinuationTrigger | None = None,
) -> DigestPipeline:
    """Wire the pipeline to Supabase, NewsAPI, Ollama and Resend."""
    settings = settings or load_settings()

    if trigger is None and settings.trigger_url:
        trigger = HttpContinuationTrigger(settings.trigger_url, settings.cron_secret)

    if dry_run:
        delivery: DeliveryProvider = DryRunDeliveryProvider()
        archive: ArchiveStore | None = None
    else:
        delivery = ResendDeliveryProvider()
        archive = SupabaseArchiveStore()

    return DigestPipeline(
        store=SupabaseRecipientStore(),
        content_provider=NewsAPIContentProvider(cache=ArticleCache()),
        summarizer=OllamaSummarizer(),
        delivery=delivery,
        audit_log=SupabaseAuditLog(),
        archive=archive,
        trigger=trigger,
        settings=settings,
    )


def run_chain(
    pipeline: DigestPipeline, trigger: QueuedContinuationTrigger, cursor: Cursor = 0
) -> list[BatchReport]:
    """Run a batch and every follow-up it queues, in this process."""
    reports = [pipeline.run(cursor)]
    next_cursor = trigger.next_cursor()
    while next_cursor is not None:
        reports.append(pipeline.run(next_cursor))
        next_cursor = trigger.next_cursor()
    return reports


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Send one batch of daily digest emails")

    parser.add_argument(
        "--cursor",
        type=int,
        default=0,
        help="Offset into the eligible recipient population (default: 0)",
    )

    parser.add_argument(
        "--follow",
        action="store_true",
        help="Run follow-up batches in this process instead of triggering them over HTTP",
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Dry run mode (don't actually send emails)",
    )

    args = parser.parse_args()

    if args.cursor < 0:
        parser.error("--cursor must be >= 0")

    if args.follow:
        queued = QueuedContinuationTrigger()
        pipeline = build_pipeline(dry_run=args.dry_run, trigger=queued)
        run_chain(pipeline, queued, cursor=args.cursor)
    else:
        pipeline = build_pipeline(dry_run=args.dry_run)
        pipeline.run(args.cursor)


if __name__ == "__main__":
    main()
