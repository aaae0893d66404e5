"""Unit tests for Pydantic models."""

import unittest

from pydantic import ValidationError

from models import (
    PreparedDigest,
    Recipient,
    RunResult,
    RunStatus,
    Tier,
    TopicSummary,
    derive_status,
)
from tests.fixtures.recipient_factory import create_test_recipient, create_test_summary


class TestRecipient(unittest.TestCase):
    """Tests for the Recipient model."""

    def test_minimal_recipient_defaults(self):
        """Tier defaults to free, not paused, no topics."""
        recipient = Recipient(id="user-1", email="reader@example.com")

        self.assertEqual(recipient.tier, Tier.FREE)
        self.assertFalse(recipient.paused)
        self.assertEqual(recipient.topics, [])
        self.assertFalse(recipient.is_paid)

    def test_invalid_email_rejected(self):
        with self.assertRaises(ValidationError):
            Recipient(id="user-1", email="not-an-email")

    def test_tier_parsed_from_string(self):
        recipient = Recipient(id="user-1", email="a@example.com", tier="paid")

        self.assertEqual(recipient.tier, Tier.PAID)
        self.assertTrue(recipient.is_paid)

    def test_active_topics_respects_free_quota(self):
        """Free recipients get their first three topics."""
        recipient = create_test_recipient(topics=["a", "b", "c", "d", "e"])

        self.assertEqual(recipient.active_topics(), ["a", "b", "c"])

    def test_active_topics_paid_quota(self):
        topics = [f"topic-{i}" for i in range(15)]
        recipient = create_test_recipient(tier=Tier.PAID, topics=topics)

        self.assertEqual(recipient.active_topics(), topics[:12])

    def test_active_topics_deduplicates_in_order(self):
        recipient = create_test_recipient(topics=["ai", "sports", "ai", "", "climate"])

        self.assertEqual(recipient.active_topics(), ["ai", "sports", "climate"])

    def test_recipient_is_immutable(self):
        recipient = create_test_recipient()

        with self.assertRaises(ValidationError):
            recipient.paused = True


class TestDigestModels(unittest.TestCase):
    """Tests for TopicSummary and PreparedDigest."""

    def test_prepared_digest_requires_summaries(self):
        recipient = create_test_recipient()

        with self.assertRaises(ValidationError):
            PreparedDigest(recipient=recipient, summaries=[], tier=Tier.FREE)

    def test_prepared_digest_topics(self):
        recipient = create_test_recipient(topics=["ai", "sports"])
        digest = PreparedDigest(
            recipient=recipient,
            summaries=[create_test_summary("ai"), create_test_summary("sports")],
            tier=Tier.FREE,
        )

        self.assertEqual(digest.topics, ["ai", "sports"])

    def test_topic_summary_tagged_with_tier(self):
        summary = TopicSummary(topic="ai", tier=Tier.PAID)

        self.assertEqual(summary.tier, Tier.PAID)
        self.assertEqual(summary.items, [])


class TestRunStatus(unittest.TestCase):
    """Tests for derive_status() and RunResult."""

    def test_failed_only_when_nothing_succeeded(self):
        self.assertEqual(derive_status(successful=0, failed=2), RunStatus.FAILED)

    def test_partial_failures_still_success(self):
        self.assertEqual(derive_status(successful=1, failed=5), RunStatus.SUCCESS)

    def test_all_skipped_is_success(self):
        self.assertEqual(derive_status(successful=0, failed=0), RunStatus.SUCCESS)

    def test_stalled_chain_is_partial(self):
        self.assertEqual(
            derive_status(successful=3, failed=0, stalled=True), RunStatus.PARTIAL
        )

    def test_failed_wins_over_stalled(self):
        self.assertEqual(
            derive_status(successful=0, failed=1, stalled=True), RunStatus.FAILED
        )

    def test_run_result_is_frozen(self):
        result = RunResult(processed=1, successful=1)

        with self.assertRaises(ValidationError):
            result.processed = 2

    def test_failures_excluded_from_dump(self):
        result = RunResult()

        self.assertNotIn("failures", result.model_dump())


if __name__ == "__main__":
    unittest.main()
