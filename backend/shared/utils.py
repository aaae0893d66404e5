from datetime import datetime

from models.run import RunResult


def print_summary(result: RunResult) -> None:
    """Print run summary."""
    print(f"\n{'=' * 60}")
    print(f"[{datetime.now()}] Digest Batch Complete ({result.status.value})")
    print(f"{'=' * 60}")
    print(f"Cursor:       {result.cursor}")
    print(f"✓ Successful: {result.successful}")
    print(f"⊘ Skipped:    {result.skipped}")
    print(f"✗ Failed:     {result.failed}")
    print(f"Processed:    {result.processed}")
    if result.next_cursor is not None:
        triggered = "yes" if result.next_batch_triggered else "NO"
        print(f"Next cursor:  {result.next_cursor} (triggered: {triggered})")
    print(f"{'=' * 60}\n")
