"""
Recipient store backed by the Supabase `users` table.

A recipient is eligible when they have at least one subscribed topic. The
population is ordered by user ID so that offsets stay stable across the
invocations of one continuation chain.
"""

from typing import Any, cast

from digest.errors import RecipientStoreError
from models.recipient import Recipient, RejectedRecipient, Tier
from shared.db import get_supabase_client

RECIPIENT_COLUMNS = (
    "id, email, subscription_tier, "
    "user_topics!inner(topic_name, created_at), "
    "user_email_settings(paused)"
)


class SupabaseRecipientStore:
    """Reads eligible recipients page by page."""

    def __init__(self, supabase: Any = None):
        self._supabase = supabase

    @property
    def supabase(self) -> Any:
        if self._supabase is None:
            self._supabase = get_supabase_client()
        return self._supabase

    def list_eligible_recipients(
        self, offset: int, limit: int
    ) -> list[Recipient | RejectedRecipient]:
        """
        Return up to `limit` eligible recipients starting at `offset`.

        Rows that cannot be parsed come back as RejectedRecipient so they
        still occupy their place in the slice.
        """
        if limit <= 0:
            return []

        try:
            response = (
                self.supabase.table("users")
                .select(RECIPIENT_COLUMNS)
                .order("id")
                .range(offset, offset + limit - 1)
                .execute()
            )
        except Exception as e:
            raise RecipientStoreError(f"Failed to fetch users: {e}") from e

        rows = cast(list[dict[str, Any]], response.data or [])
        return [
            _parse_row(row, fallback_id=f"row-{offset + index}")
            for index, row in enumerate(rows)
        ]

    def total_eligible_count(self) -> int:
        try:
            response = (
                self.supabase.table("users")
                .select("id, user_topics!inner(topic_name)", count="exact")
                .limit(1)
                .execute()
            )
        except Exception as e:
            raise RecipientStoreError(f"Failed to count users: {e}") from e

        return int(response.count or 0)


def _row_to_recipient(row: dict[str, Any]) -> Recipient:
    """Convert a users row with embedded topics and settings into a Recipient."""
    topic_rows = cast(list[dict[str, Any]], row.get("user_topics") or [])
    # Subscription order is the order topics were added
    topic_rows = sorted(topic_rows, key=lambda t: t.get("created_at") or "")
    topics = [t["topic_name"] for t in topic_rows if t.get("topic_name")]

    settings = row.get("user_email_settings")
    if isinstance(settings, list):
        settings = settings[0] if settings else None
    paused = bool(settings.get("paused", False)) if settings else False

    tier = row.get("subscription_tier") or Tier.FREE.value
    if tier not in {t.value for t in Tier}:
        print(f"  ⚠ Unknown tier {tier!r} for user {row.get('id')}, treating as free")
        tier = Tier.FREE.value

    return Recipient(
        id=row["id"],
        email=row["email"],
        tier=Tier(tier),
        topics=topics,
        paused=paused,
    )


def _parse_row(row: dict[str, Any], fallback_id: str) -> Recipient | RejectedRecipient:
    """Parse one row, turning any validation error into a RejectedRecipient."""
    try:
        return _row_to_recipient(row)
    except (KeyError, TypeError, ValueError) as e:
        error_msg = str(e) or e.__class__.__name__
        print(f"  ✗ Invalid user row {row.get('id') or fallback_id}: {error_msg}")
        topic_rows = row.get("user_topics")
        topics = [
            t["topic_name"]
            for t in (topic_rows if isinstance(topic_rows, list) else [])
            if isinstance(t, dict) and isinstance(t.get("topic_name"), str)
        ]
        email = row.get("email")
        return RejectedRecipient(
            id=str(row.get("id") or fallback_id),
            email=email if isinstance(email, str) else "",
            topics=topics,
            error=error_msg,
        )
