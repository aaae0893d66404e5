"""Pydantic models for data validation and type checking."""

from models.digest import (
    ContentItem,
    ContentSet,
    PreparedDigest,
    SummaryItem,
    TopicSummary,
)
from models.recipient import TOPIC_QUOTA, Recipient, RejectedRecipient, Tier
from models.run import (
    DeliveryResult,
    FailureRecord,
    FailureType,
    RunResult,
    RunStatus,
    SkipReason,
    derive_status,
)

__all__ = [
    "ContentItem",
    "ContentSet",
    "PreparedDigest",
    "SummaryItem",
    "TopicSummary",
    "Recipient",
    "RejectedRecipient",
    "Tier",
    "TOPIC_QUOTA",
    "DeliveryResult",
    "FailureRecord",
    "FailureType",
    "RunResult",
    "RunStatus",
    "SkipReason",
    "derive_status",
]
