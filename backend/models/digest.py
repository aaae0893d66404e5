"""Pydantic models for fetched content, summaries and packaged digests."""

from pydantic import BaseModel, ConfigDict, Field

from models.recipient import Recipient, Tier
from models.types import TopicName


class ContentItem(BaseModel):
    """A single raw article fetched for a topic."""

    title: str
    description: str = ""
    url: str
    source: str = "Unknown Source"
    published_at: str | None = None


class ContentSet(BaseModel):
    """Raw items fetched for one topic at one point in time."""

    topic: TopicName
    items: list[ContentItem] = Field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.items


class SummaryItem(BaseModel):
    """One summarized story inside a topic summary."""

    title: str
    summary: str
    url: str
    source: str = "Unknown Source"


class TopicSummary(BaseModel):
    """Distilled representation of a ContentSet, tagged with the tier it was written for."""

    model_config = ConfigDict(frozen=True)

    topic: TopicName
    tier: Tier
    items: list[SummaryItem] = Field(default_factory=list)


class PreparedDigest(BaseModel):
    """A recipient's assembled digest, ready for the delivery provider."""

    model_config = ConfigDict(frozen=True)

    recipient: Recipient
    summaries: list[TopicSummary] = Field(..., min_length=1)
    tier: Tier

    @property
    def topics(self) -> list[str]:
        return [summary.topic for summary in self.summaries]
