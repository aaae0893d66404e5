"""
Content and summary preparation for a recipient slice.

Content is fetched once per slice for the unique topic set, then every
eligible recipient is prepared in parallel. Within a recipient, each topic
is summarized in parallel under an independent deadline. All outcomes,
including timeouts and exceptions, are collected before returning; a single
failing unit never aborts its siblings.
"""

from concurrent.futures import (
    Future,
    ThreadPoolExecutor,
    TimeoutError as FuturesTimeoutError,
    as_completed,
)
from typing import Protocol

from pydantic import BaseModel, ConfigDict, Field

from digest.errors import ContentFetchError, classify_exception
from models.digest import ContentSet, TopicSummary
from models.recipient import Recipient, Tier
from models.run import FailureType


class ContentProvider(Protocol):
    def fetch_content(self, topics: list[str]) -> dict[str, ContentSet]: ...


class SummarizationEngine(Protocol):
    def summarize(
        self, topic: str, content: ContentSet, tier: Tier
    ) -> TopicSummary: ...


class PreparationOutcome(BaseModel):
    """Result of preparing one recipient's summaries."""

    model_config = ConfigDict(frozen=True)

    recipient: Recipient
    # Completion order, not subscription order
    summaries: list[TopicSummary] = Field(default_factory=list)
    attempted_topics: list[str] = Field(default_factory=list)
    topic_errors: dict[str, str] = Field(default_factory=dict)
    failure_type: FailureType | None = None
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.failure_type is None and bool(self.summaries)


def fetch_slice_content(
    provider: ContentProvider, topics: list[str]
) -> dict[str, ContentSet]:
    """
    Fetch content for every unique topic in the slice.

    Missing keys in the provider's result mean "not found" and are not errors.
    Any exception from the provider is raised as ContentFetchError.
    """
    if not topics:
        return {}

    try:
        content = provider.fetch_content(topics)
    except ContentFetchError:
        raise
    except Exception as e:
        raise ContentFetchError(f"Content provider failed: {e}") from e

    return {
        topic: content_set
        for topic, content_set in content.items()
        if topic in topics and content_set is not None
    }


class SummaryPreparer:
    """Runs the parallel preparation phase for a slice."""

    def __init__(self, summarizer: SummarizationEngine, timeout: float = 15.0):
        self.summarizer = summarizer
        self.timeout = timeout

    def prepare_all(
        self, recipients: list[Recipient], content: dict[str, ContentSet]
    ) -> list[PreparationOutcome]:
        """
        Prepare every recipient concurrently and join on all of them.

        Returns:
            One outcome per recipient, in preparation-completion order
        """
        if not recipients:
            return []

        unit_count = sum(
            len(_topics_with_content(recipient, content)) for recipient in recipients
        )
        recipient_pool = ThreadPoolExecutor(
            max_workers=len(recipients), thread_name_prefix="digest-recipient"
        )
        summary_pool = ThreadPoolExecutor(
            max_workers=max(1, unit_count), thread_name_prefix="digest-summary"
        )

        outcomes: list[PreparationOutcome] = []
        try:
            futures: dict[Future[PreparationOutcome], Recipient] = {
                recipient_pool.submit(
                    self._prepare_recipient, recipient, content, summary_pool
                ): recipient
                for recipient in recipients
            }
            for future in as_completed(futures):
                recipient = futures[future]
                try:
                    outcomes.append(future.result())
                except Exception as e:
                    print(f"  ✗ Unexpected error preparing {recipient.email}: {e}")
                    outcomes.append(
                        PreparationOutcome(
                            recipient=recipient,
                            attempted_topics=recipient.active_topics(),
                            failure_type=classify_exception(e),
                            error=f"Error processing user {recipient.email}: {e}",
                        )
                    )
        finally:
            recipient_pool.shutdown(wait=False, cancel_futures=True)
            # Timed-out summaries may still be running; never block on them
            summary_pool.shutdown(wait=False, cancel_futures=True)

        return outcomes

    def _prepare_recipient(
        self,
        recipient: Recipient,
        content: dict[str, ContentSet],
        summary_pool: ThreadPoolExecutor,
    ) -> PreparationOutcome:
        topics = _topics_with_content(recipient, content)
        if not topics:
            return PreparationOutcome(recipient=recipient)

        futures: dict[Future[TopicSummary], str] = {
            summary_pool.submit(
                self.summarizer.summarize, topic, content[topic], recipient.tier
            ): topic
            for topic in topics
        }

        summaries: list[TopicSummary] = []
        topic_errors: dict[str, str] = {}
        try:
            for future in as_completed(futures, timeout=self.timeout):
                topic = futures[future]
                exc = future.exception()
                if exc is not None:
                    topic_errors[topic] = str(exc) or exc.__class__.__name__
                    continue

                summary = future.result()
                if not summary.items:
                    topic_errors[topic] = "Summarizer returned no stories"
                    continue
                summaries.append(summary)
        except FuturesTimeoutError:
            for future, topic in futures.items():
                if not future.done():
                    future.cancel()
                    topic_errors[topic] = f"Summarization timed out after {self.timeout}s"

        if summaries:
            return PreparationOutcome(
                recipient=recipient,
                summaries=summaries,
                attempted_topics=topics,
                topic_errors=topic_errors,
            )

        # Every attempted topic failed: the recipient is skipped, not failed
        return PreparationOutcome(
            recipient=recipient,
            attempted_topics=topics,
            topic_errors=topic_errors,
        )


def _topics_with_content(
    recipient: Recipient, content: dict[str, ContentSet]
) -> list[str]:
    return [
        topic
        for topic in recipient.active_topics()
        if topic in content and not content[topic].is_empty()
    ]
