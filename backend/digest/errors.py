"""Exception types raised by digest collaborators."""

from models.run import FailureType


class DigestError(Exception):
    """Base class for digest pipeline errors."""

    failure_type = FailureType.UNKNOWN


class ContentFetchError(DigestError):
    """The upstream content provider could not supply content."""

    failure_type = FailureType.FETCH_ERROR


class SummaryError(DigestError):
    """The summarization engine failed or produced nothing usable."""

    failure_type = FailureType.SUMMARY_ERROR


class RecipientStoreError(DigestError):
    """The recipient store could not be read. Fatal for the run."""


def classify_exception(exc: BaseException) -> FailureType:
    """Map an exception raised during preparation to the failure taxonomy."""
    if isinstance(exc, DigestError):
        return exc.failure_type
    return FailureType.UNKNOWN
