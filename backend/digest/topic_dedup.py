"""
Topic de-duplication for a recipient slice.

Collapses every eligible recipient's topic list into the unique set of topics
that need content this run. Paused recipients and recipients without topics
are recorded as skipped here so no preparation work is spent on them.
"""

from models.recipient import Recipient
from models.run import SkipReason
from digest.results import RunAccumulator


def collect_unique_topics(
    recipients: list[Recipient], results: RunAccumulator
) -> tuple[list[Recipient], list[str]]:
    """
    Split a slice into eligible recipients and the distinct topics they need.

    Args:
        recipients: The slice of recipients under consideration
        results: Run accumulator; ineligible recipients are recorded as skipped

    Returns:
        Tuple of (eligible recipients in slice order, unique topics in first-seen order)
    """
    eligible: list[Recipient] = []
    topics: list[str] = []
    seen: set[str] = set()

    for recipient in recipients:
        if recipient.paused:
            print(f"  ⊘ {recipient.email} has paused emails, skipping")
            results.record_skip(recipient, SkipReason.PAUSED, "User paused emails")
            continue

        recipient_topics = recipient.active_topics()
        if not recipient_topics:
            print(f"  ⊘ {recipient.email} has no topics, skipping")
            results.record_skip(recipient, SkipReason.NO_TOPICS)
            continue

        eligible.append(recipient)
        for topic in recipient_topics:
            if topic not in seen:
                seen.add(topic)
                topics.append(topic)

    return eligible, topics
