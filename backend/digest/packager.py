"""
Per-recipient digest assembly.

Summaries arrive in completion order, which is non-deterministic. The
packager restores the recipient's subscription order and applies the tier's
story limit before handing the digest to the dispatcher.
"""

from models.digest import PreparedDigest, TopicSummary
from models.recipient import Recipient, Tier

# Stories kept per topic for each tier
MAX_STORIES_PER_TOPIC = {Tier.FREE: 3, Tier.PAID: 5}


def package_digest(
    recipient: Recipient, summaries: list[TopicSummary]
) -> PreparedDigest:
    """
    Build a PreparedDigest ordered by the recipient's original topic order.

    Raises:
        ValueError: If summaries is empty (callers filter these out first)
    """
    if not summaries:
        raise ValueError(f"No summaries to package for recipient {recipient.id}")

    position = {topic: index for index, topic in enumerate(recipient.active_topics())}
    ordered = sorted(summaries, key=lambda s: position.get(s.topic, len(position)))

    limit = MAX_STORIES_PER_TOPIC[recipient.tier]
    trimmed = [
        summary.model_copy(update={"items": summary.items[:limit]})
        for summary in ordered
    ]

    return PreparedDigest(recipient=recipient, summaries=trimmed, tier=recipient.tier)
