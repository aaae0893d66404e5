"""
Rate-limited, strictly sequential digest delivery.

The delivery provider enforces a hard request rate, so digests are sent one
at a time with at least `min_interval` seconds between the start of
consecutive sends. No delay precedes the first send.
"""

import time
from typing import Any, Callable, Protocol

from digest.error_logger import log_digest_error
from digest.results import RunAccumulator
from models.digest import PreparedDigest
from models.run import DeliveryResult, FailureType
from models.types import RecipientID


class DeliveryProvider(Protocol):
    def send(self, address: str, digest: PreparedDigest) -> DeliveryResult: ...


class ArchiveStore(Protocol):
    def record(
        self,
        recipient_id: RecipientID,
        digest_content: list[dict[str, Any]],
        topics: list[str],
    ) -> None: ...


class RateLimitedDispatcher:
    """Sends prepared digests sequentially under a minimum inter-send interval."""

    def __init__(
        self,
        provider: DeliveryProvider,
        archive: ArchiveStore | None = None,
        min_interval: float = 0.55,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.provider = provider
        self.archive = archive
        self.min_interval = min_interval
        self.clock = clock
        self.sleep = sleep

    def dispatch(self, digests: list[PreparedDigest], results: RunAccumulator) -> None:
        """Send every digest in order, recording each recipient's terminal state."""
        last_start: float | None = None

        for digest in digests:
            if last_start is not None:
                remaining = self.min_interval - (self.clock() - last_start)
                if remaining > 0:
                    self.sleep(remaining)

            last_start = self.clock()
            self._send_one(digest, results)

    def _send_one(self, digest: PreparedDigest, results: RunAccumulator) -> None:
        recipient = digest.recipient

        try:
            result = self.provider.send(recipient.email, digest)
        except Exception as e:
            result = DeliveryResult(success=False, error=str(e) or e.__class__.__name__)

        if not result.success:
            error_msg = result.error or "Unknown error"
            print(f"  ✗ Failed to send to {recipient.email}: {error_msg}")

            error_file = log_digest_error(
                error_type="sending",
                error_message=error_msg,
                context={
                    "recipient_id": recipient.id,
                    "topics": digest.topics,
                    "tier": digest.tier.value,
                },
            )
            if error_file:
                print(f"    Error details logged to: {error_file}")

            results.record_failure(
                recipient,
                FailureType.EMAIL_ERROR,
                f"Failed to send email: {error_msg}",
                details={"provider_error": error_msg},
            )
            return

        results.record_success(recipient)
        print(f"  ✓ Sent digest to {recipient.email}")

        if self.archive is None:
            return

        # Archiving is best-effort and never undoes a successful delivery
        try:
            self.archive.record(
                recipient.id,
                [summary.model_dump(mode="json") for summary in digest.summaries],
                digest.topics,
            )
        except Exception as e:
            print(f"  ⚠️  Failed to archive email for {recipient.email}: {e}")
            log_digest_error(
                error_type="archive",
                error_message=str(e),
                context={"recipient_id": recipient.id, "email_id": result.email_id},
            )
