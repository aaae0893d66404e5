"""Pydantic models for digest recipients."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from models.types import RecipientID, TopicList


class Tier(str, Enum):
    """Subscription tier controlling verbosity and topic quota."""

    FREE = "free"
    PAID = "paid"


# Maximum number of subscribed topics honoured per tier
TOPIC_QUOTA = {Tier.FREE: 3, Tier.PAID: 12}


class Recipient(BaseModel):
    """A subscriber as read from the recipient store."""

    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: RecipientID
    email: str = Field(..., pattern=r"^[^@]+@[^@]+\.[^@]+$")
    tier: Tier = Tier.FREE
    topics: TopicList = Field(default_factory=list)
    paused: bool = False

    @property
    def is_paid(self) -> bool:
        return self.tier is Tier.PAID

    def active_topics(self) -> list[str]:
        """Subscribed topics in subscription order, de-duplicated and capped at the tier quota."""
        seen: list[str] = []
        for topic in self.topics:
            if topic and topic not in seen:
                seen.append(topic)
        return seen[: TOPIC_QUOTA[self.tier]]


class RejectedRecipient(BaseModel):
    """A recipient-store row that could not be parsed into a Recipient."""

    model_config = ConfigDict(frozen=True)

    id: RecipientID
    email: str = ""
    topics: TopicList = Field(default_factory=list)
    error: str
