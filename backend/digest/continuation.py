"""
Batch continuation across invocations.

Each invocation processes the slice `[cursor, cursor + batch_size)` of the
eligible population. When recipients remain, the controller fires a
continuation trigger with the next cursor and does not wait for the
follow-up run. A trigger that fails to fire is logged and reported, never
retried; the run's result shows the stalled chain.
"""

from collections import deque
from typing import Protocol

import requests
from pydantic import BaseModel

from models.recipient import Recipient, RejectedRecipient
from models.types import Cursor

SliceRow = Recipient | RejectedRecipient


class RecipientStore(Protocol):
    def list_eligible_recipients(self, offset: int, limit: int) -> list[SliceRow]: ...

    def total_eligible_count(self) -> int: ...


class ContinuationTrigger(Protocol):
    def fire(self, cursor: Cursor) -> bool: ...


class ContinuationDecision(BaseModel):
    cursor: Cursor
    slice_size: int
    total: int

    @property
    def next_cursor(self) -> Cursor:
        return self.cursor + self.slice_size

    @property
    def has_more(self) -> bool:
        # An empty slice can never advance the cursor, so it always ends the chain
        return self.slice_size > 0 and self.next_cursor < self.total

    @property
    def remaining(self) -> int:
        return max(0, self.total - self.next_cursor)


class BatchContinuationController:
    """Selects the slice for this invocation and decides whether to chain."""

    def __init__(
        self,
        store: RecipientStore,
        trigger: ContinuationTrigger | None,
        batch_size: int = 10,
    ):
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.store = store
        self.trigger = trigger
        self.batch_size = batch_size

    def select_slice(self, cursor: Cursor) -> tuple[list[SliceRow], int]:
        """
        Read the total population size and this invocation's slice.

        Store errors propagate; they are fatal for the run.
        """
        total = self.store.total_eligible_count()
        if total <= 0 or cursor >= total:
            return [], total

        recipients = self.store.list_eligible_recipients(cursor, self.batch_size)
        return recipients[: self.batch_size], total

    def decide(self, cursor: Cursor, slice_size: int, total: int) -> ContinuationDecision:
        return ContinuationDecision(cursor=cursor, slice_size=slice_size, total=total)

    def continue_chain(self, decision: ContinuationDecision) -> bool:
        """
        Fire the follow-up invocation if recipients remain.

        Returns:
            True if a continuation was fired, False if none was needed or firing failed
        """
        if not decision.has_more:
            return False

        if self.trigger is None:
            print(
                f"  ⚠ {decision.remaining} recipients remain but no continuation trigger is configured"
            )
            return False

        try:
            fired = self.trigger.fire(decision.next_cursor)
        except Exception as e:
            print(f"  ✗ Continuation trigger failed for cursor {decision.next_cursor}: {e}")
            return False

        if fired:
            print(
                f"→ Triggered next batch at cursor {decision.next_cursor} "
                f"({decision.remaining} recipients remaining)"
            )
        else:
            print(f"  ✗ Next batch at cursor {decision.next_cursor} was not triggered")
        return fired


class HttpContinuationTrigger:
    """
    Re-invokes the digest endpoint over HTTP without waiting for the run.

    The request is sent with a short read timeout: a read timeout means the
    endpoint accepted the request and is still working, which counts as fired.
    """

    def __init__(
        self,
        url: str,
        secret: str | None,
        connect_timeout: float = 5.0,
        read_timeout: float = 1.0,
    ):
        self.url = url
        self.secret = secret
        self.timeout = (connect_timeout, read_timeout)
        self.session = requests.Session()

    def fire(self, cursor: Cursor) -> bool:
        headers = {}
        if self.secret:
            headers["Authorization"] = f"Bearer {self.secret}"

        try:
            response = self.session.post(
                self.url,
                json={"cursor": cursor},
                headers=headers,
                timeout=self.timeout,
            )
        except requests.exceptions.ReadTimeout:
            return True
        except requests.exceptions.RequestException as e:
            print(f"  ✗ Could not reach {self.url}: {e}")
            return False

        if response.status_code >= 400:
            print(f"  ✗ Continuation rejected with HTTP {response.status_code}")
            return False
        return True


class QueuedContinuationTrigger:
    """In-process trigger that queues cursors for the caller to run next."""

    def __init__(self) -> None:
        self.pending: deque[Cursor] = deque()
        self.fired: list[Cursor] = []

    def fire(self, cursor: Cursor) -> bool:
        self.pending.append(cursor)
        self.fired.append(cursor)
        return True

    def next_cursor(self) -> Cursor | None:
        return self.pending.popleft() if self.pending else None
