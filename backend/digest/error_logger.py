"""
Error logging utility for the digest dispatcher.

Logs delivery and audit errors to timestamped files for debugging.
"""

import os
from datetime import datetime
from typing import Any


def log_digest_error(
    error_type: str, error_message: str, context: dict[str, Any] | None = None
) -> str | None:
    """
    Log a digest error to a timestamped file.

    Args:
        error_type: Type of error (e.g., 'sending', 'archive', 'audit')
        error_message: The error message
        context: Optional dictionary with additional context (recipient_id, cursor, etc.)

    Returns:
        Path to the log file created, or None if the file could not be written
    """
    log_dir = os.getenv("DIGEST_LOG_DIR") or os.path.join(
        os.path.dirname(__file__), "logs"
    )

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
    filename = os.path.join(log_dir, f"digest_error_{error_type}_{timestamp}.txt")

    try:
        os.makedirs(log_dir, exist_ok=True)
        with open(filename, "w", encoding="utf-8") as f:
            f.write(f"Digest Error Report - {datetime.now()}\n")
            f.write("=" * 60 + "\n\n")
            f.write(f"Error Type: {error_type}\n")
            f.write(f"Error Message: {error_message}\n\n")

            if context:
                f.write("Context:\n")
                f.write("-" * 60 + "\n")
                for key, value in context.items():
                    f.write(f"{key}: {value}\n")
    except OSError as e:
        print(f"  ⚠️  Could not write error report: {e}")
        return None

    return filename
