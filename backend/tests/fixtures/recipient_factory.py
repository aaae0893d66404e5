"""Factory functions for creating test recipients, content and summaries."""

import uuid
from typing import Any, Dict, List, Optional

from models.digest import ContentItem, ContentSet, SummaryItem, TopicSummary
from models.recipient import Recipient, Tier


def create_test_recipient(
    recipient_id: Optional[str] = None,
    email: Optional[str] = None,
    tier: Tier = Tier.FREE,
    topics: Optional[List[str]] = None,
    paused: bool = False,
) -> Recipient:
    """Factory for creating a Recipient."""
    recipient_id = recipient_id or str(uuid.uuid4())
    return Recipient(
        id=recipient_id,
        email=email or f"{recipient_id[:8]}@example.com",
        tier=tier,
        topics=["technology"] if topics is None else topics,
        paused=paused,
    )


def create_test_recipients(count: int, **overrides) -> List[Recipient]:
    """Factory for a numbered list of recipients (user-00, user-01, ...)."""
    return [
        create_test_recipient(
            recipient_id=f"user-{i:02d}", email=f"user{i:02d}@example.com", **overrides
        )
        for i in range(count)
    ]


def create_test_content(topic: str = "technology", count: int = 3) -> ContentSet:
    """Factory for a ContentSet with `count` articles."""
    return ContentSet(
        topic=topic,
        items=[
            ContentItem(
                title=f"{topic} story {i}",
                description=f"Details about {topic} story {i}",
                url=f"https://news.example.com/{topic}/{i}",
                source="Example News",
                published_at=f"2026-10-1{i}T08:00:00Z",
            )
            for i in range(count)
        ],
    )


def create_test_summary(
    topic: str = "technology", tier: Tier = Tier.FREE, count: int = 3
) -> TopicSummary:
    """Factory for a TopicSummary with `count` stories."""
    return TopicSummary(
        topic=topic,
        tier=tier,
        items=[
            SummaryItem(
                title=f"{topic} story {i}",
                summary=f"- Key point about {topic} {i}",
                url=f"https://news.example.com/{topic}/{i}",
                source="Example News",
            )
            for i in range(count)
        ],
    )


def create_test_user_row(
    user_id: Optional[str] = None,
    email: str = "test@example.com",
    tier: str = "free",
    topics: Optional[List[str]] = None,
    paused: Optional[bool] = False,
    **overrides,
) -> Dict[str, Any]:
    """Factory for a Supabase users row with embedded topics and settings."""
    row: Dict[str, Any] = {
        "id": user_id or str(uuid.uuid4()),
        "email": email,
        "subscription_tier": tier,
        "user_topics": [
            {"topic_name": name, "created_at": f"2026-01-0{i + 1}T00:00:00+00:00"}
            for i, name in enumerate(topics or ["technology"])
        ],
        "user_email_settings": [] if paused is None else [{"paused": paused}],
    }
    row.update(overrides)
    return row
