"""
Unit tests for digest/recipient_store.py
"""

import unittest
from unittest.mock import patch

from digest.errors import RecipientStoreError
from digest.recipient_store import SupabaseRecipientStore, _parse_row, _row_to_recipient
from models.recipient import Recipient, RejectedRecipient, Tier
from tests.fixtures.mock_helpers import create_mock_supabase
from tests.fixtures.recipient_factory import create_test_user_row


class TestRowToRecipient(unittest.TestCase):
    """Tests for _row_to_recipient()."""

    def test_basic_row(self):
        row = create_test_user_row(
            user_id="user-1", email="a@example.com", tier="paid", topics=["ai", "sports"]
        )

        recipient = _row_to_recipient(row)

        self.assertEqual(recipient.id, "user-1")
        self.assertEqual(recipient.tier, Tier.PAID)
        self.assertEqual(recipient.topics, ["ai", "sports"])
        self.assertFalse(recipient.paused)

    def test_topics_ordered_by_subscription_time(self):
        row = create_test_user_row()
        row["user_topics"] = [
            {"topic_name": "sports", "created_at": "2026-02-01T00:00:00+00:00"},
            {"topic_name": "ai", "created_at": "2026-01-01T00:00:00+00:00"},
        ]

        self.assertEqual(_row_to_recipient(row).topics, ["ai", "sports"])

    def test_paused_settings(self):
        row = create_test_user_row(paused=True)

        self.assertTrue(_row_to_recipient(row).paused)

    def test_settings_as_object(self):
        """One-to-one embeds come back as an object rather than a list."""
        row = create_test_user_row()
        row["user_email_settings"] = {"paused": True}

        self.assertTrue(_row_to_recipient(row).paused)

    def test_missing_settings_not_paused(self):
        row = create_test_user_row(paused=None)

        self.assertFalse(_row_to_recipient(row).paused)

    def test_missing_tier_defaults_free(self):
        row = create_test_user_row(subscription_tier=None)

        self.assertEqual(_row_to_recipient(row).tier, Tier.FREE)

    @patch("builtins.print")
    def test_unknown_tier_treated_as_free(self, mock_print):
        row = create_test_user_row(tier="premium")

        self.assertEqual(_row_to_recipient(row).tier, Tier.FREE)


@patch("builtins.print")
class TestParseRow(unittest.TestCase):
    """Tests for _parse_row()."""

    def test_valid_row(self, mock_print):
        recipient = _parse_row(create_test_user_row(user_id="user-1"), fallback_id="row-0")

        self.assertIsInstance(recipient, Recipient)

    def test_invalid_email_rejected(self, mock_print):
        row = create_test_user_row(user_id="user-1", email="ops@localhost", topics=["ai"])

        rejected = _parse_row(row, fallback_id="row-0")

        self.assertIsInstance(rejected, RejectedRecipient)
        self.assertEqual(rejected.id, "user-1")
        self.assertEqual(rejected.email, "ops@localhost")
        self.assertEqual(rejected.topics, ["ai"])
        self.assertIn("email", rejected.error)

    def test_missing_id_uses_fallback(self, mock_print):
        row = create_test_user_row()
        del row["id"]

        rejected = _parse_row(row, fallback_id="row-4")

        self.assertIsInstance(rejected, RejectedRecipient)
        self.assertEqual(rejected.id, "row-4")


class TestSupabaseRecipientStore(unittest.TestCase):
    """Tests for SupabaseRecipientStore."""

    def test_list_uses_range_from_offset(self):
        supabase = create_mock_supabase([create_test_user_row(), create_test_user_row()])
        store = SupabaseRecipientStore(supabase)

        recipients = store.list_eligible_recipients(offset=10, limit=10)

        self.assertEqual(len(recipients), 2)
        supabase.table.assert_called_with("users")
        supabase.order.assert_called_with("id")
        supabase.range.assert_called_with(10, 19)

    @patch("builtins.print")
    def test_bad_row_keeps_its_place(self, mock_print):
        rows = [
            create_test_user_row(user_id="user-0", email="a@example.com"),
            create_test_user_row(user_id="user-1", email="ops@localhost"),
            create_test_user_row(user_id="user-2", email="c@example.com"),
        ]
        store = SupabaseRecipientStore(create_mock_supabase(rows))

        recipients = store.list_eligible_recipients(offset=0, limit=3)

        self.assertEqual([r.id for r in recipients], ["user-0", "user-1", "user-2"])
        self.assertIsInstance(recipients[1], RejectedRecipient)
        self.assertIsInstance(recipients[2], Recipient)

    def test_list_zero_limit(self):
        supabase = create_mock_supabase()

        self.assertEqual(SupabaseRecipientStore(supabase).list_eligible_recipients(0, 0), [])
        supabase.table.assert_not_called()

    def test_total_count(self):
        supabase = create_mock_supabase(count=23)

        self.assertEqual(SupabaseRecipientStore(supabase).total_eligible_count(), 23)
        self.assertEqual(supabase.select.call_args[1]["count"], "exact")

    def test_errors_wrapped(self):
        supabase = create_mock_supabase()
        supabase.execute.side_effect = ConnectionError("timeout")
        store = SupabaseRecipientStore(supabase)

        with self.assertRaises(RecipientStoreError):
            store.total_eligible_count()
        with self.assertRaises(RecipientStoreError):
            store.list_eligible_recipients(0, 10)


if __name__ == "__main__":
    unittest.main()
