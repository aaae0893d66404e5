"""
Daily digest batch dispatcher.

This package handles:
- Selecting a bounded slice of recipients and chaining follow-up invocations
- De-duplicating topics and preparing per-tier summaries in parallel
- Packaging digests and sending them under the email provider's rate limit
- Recording run summaries, failures and archived digests

Entry points live in `digest.handler` and `digest.run_digest_batch`.
"""

from .errors import ContentFetchError, DigestError, RecipientStoreError, SummaryError

__all__ = [
    'DigestError',
    'ContentFetchError',
    'SummaryError',
    'RecipientStoreError',
]
