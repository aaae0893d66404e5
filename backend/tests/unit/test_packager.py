"""
Unit tests for digest/packager.py
"""

import unittest

from digest.packager import MAX_STORIES_PER_TOPIC, package_digest
from models.recipient import Tier
from tests.fixtures.recipient_factory import create_test_recipient, create_test_summary


class TestPackageDigest(unittest.TestCase):
    """Tests for package_digest()."""

    def test_restores_subscription_order(self):
        """Completion order never leaks into the digest."""
        recipient = create_test_recipient(topics=["ai", "sports", "climate"])
        completed = [
            create_test_summary("climate"),
            create_test_summary("ai"),
            create_test_summary("sports"),
        ]

        digest = package_digest(recipient, completed)

        self.assertEqual(digest.topics, ["ai", "sports", "climate"])

    def test_missing_topics_keep_relative_order(self):
        recipient = create_test_recipient(topics=["ai", "sports", "climate"])

        digest = package_digest(
            recipient, [create_test_summary("climate"), create_test_summary("ai")]
        )

        self.assertEqual(digest.topics, ["ai", "climate"])

    def test_free_tier_story_limit(self):
        recipient = create_test_recipient(tier=Tier.FREE, topics=["ai"])

        digest = package_digest(recipient, [create_test_summary("ai", count=5)])

        self.assertEqual(len(digest.summaries[0].items), MAX_STORIES_PER_TOPIC[Tier.FREE])

    def test_paid_tier_keeps_more_stories(self):
        recipient = create_test_recipient(tier=Tier.PAID, topics=["ai"])

        digest = package_digest(
            recipient, [create_test_summary("ai", tier=Tier.PAID, count=5)]
        )

        self.assertEqual(len(digest.summaries[0].items), 5)
        self.assertEqual(digest.tier, Tier.PAID)

    def test_digest_references_recipient(self):
        recipient = create_test_recipient(topics=["ai"])

        digest = package_digest(recipient, [create_test_summary("ai")])

        self.assertEqual(digest.recipient, recipient)

    def test_empty_summaries_rejected(self):
        recipient = create_test_recipient()

        with self.assertRaises(ValueError):
            package_digest(recipient, [])


if __name__ == "__main__":
    unittest.main()
