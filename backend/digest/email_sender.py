"""
Email delivery via Resend API for digest batches.

Handles rendering and sending each recipient's daily digest.
"""

import html
import os
from datetime import datetime
from typing import Any, Dict, List

import resend

from models.digest import PreparedDigest
from models.run import DeliveryResult

# Frontend base URL for links in emails
FRONTEND_BASE_URL = os.getenv("FRONTEND_BASE_URL", "https://snipit.news")


def _prepare_topic_sections(digest: PreparedDigest) -> List[Dict[str, Any]]:
    """
    Flatten a digest into display-ready topic sections.

    This does ALL data processing once so formatters only handle presentation.

    Args:
        digest: Packaged digest with summaries already in subscription order

    Returns:
        List of dicts with topic title and escaped story fields
    """
    sections = []
    for summary in digest.summaries:
        stories = [
            {
                "title": html.escape(item.title),
                "summary": html.escape(item.summary),
                "url": html.escape(item.url, quote=True),
                "source": html.escape(item.source),
            }
            for item in summary.items
        ]
        sections.append(
            {
                "topic": html.escape(summary.topic),
                "topic_title": html.escape(summary.topic.replace("_", " ").title()),
                "stories": stories,
            }
        )
    return sections


def _build_subject(now: datetime | None = None) -> str:
    now = now or datetime.now()
    return f"Your Daily Digest - {now.strftime('%b')} {now.day}"


class ResendDeliveryProvider:
    """Delivery provider backed by the Resend API."""

    def __init__(
        self,
        api_key: str | None = None,
        from_email: str | None = None,
        preferences_url: str | None = None,
    ):
        self.api_key = api_key or os.getenv("RESEND_API_KEY")
        self.from_email = from_email or os.getenv(
            "DIGEST_FROM_EMAIL", "nofluff@newsletter.snipit.news"
        )
        self.preferences_url = preferences_url or f"{FRONTEND_BASE_URL}/dashboard"

    def send(self, address: str, digest: PreparedDigest) -> DeliveryResult:
        """
        Send a digest email.

        Returns:
            DeliveryResult with email_id on success or the provider error on failure
        """
        if not self.api_key:
            return DeliveryResult(success=False, error="RESEND_API_KEY is not configured")

        resend.api_key = self.api_key

        sections = _prepare_topic_sections(digest)
        is_paid = digest.recipient.is_paid

        try:
            response = resend.Emails.send(
                {
                    "from": f"SnipIt <{self.from_email}>",
                    "to": [address],
                    "subject": _build_subject(),
                    "html": _build_digest_html(sections, self.preferences_url, is_paid),
                    "text": _build_digest_text(sections, self.preferences_url),
                }
            )
        except Exception as e:
            return DeliveryResult(success=False, error=f"Resend API error: {e}")

        return DeliveryResult(success=True, email_id=response.get("id"))


class DryRunDeliveryProvider:
    """Prints what would be sent instead of calling Resend."""

    def send(self, address: str, digest: PreparedDigest) -> DeliveryResult:
        print(
            f"  [DRY RUN] Would send digest to {address} "
            f"({', '.join(digest.topics)})"
        )
        return DeliveryResult(success=True)


def _build_digest_html(
    sections: List[Dict[str, Any]], preferences_url: str, is_paid: bool = False
) -> str:
    """
    Build HTML email body for a digest.

    Args:
        sections: Topic sections with all story data pre-extracted and escaped
        preferences_url: URL to manage topics and delivery settings
        is_paid: Paid digests render summaries as paragraphs, free as bullets

    Returns:
        HTML string
    """
    html_body = """
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Your Daily Digest</title>
    <style>
        body {
            font-family: 'Roboto', 'Helvetica Neue', Arial, sans-serif;
            line-height: 1.6;
            color: #1f2937;
            max-width: 640px;
            margin: 0 auto;
            padding: 20px;
            background-color: #f5f5f5;
        }
        .container {
            background-color: white;
            padding: 30px;
            border-radius: 8px;
        }
        .topic {
            border-left: 4px solid #111827;
            padding: 15px;
            margin-bottom: 24px;
            background-color: #f9fafb;
        }
        .topic-title {
            font-size: 20px;
            font-weight: 700;
            margin: 0 0 12px 0;
        }
        .story-title {
            font-size: 16px;
            font-weight: 600;
            margin: 12px 0 4px 0;
        }
        .story-source {
            color: #6b7280;
            font-size: 13px;
        }
        .footer {
            margin-top: 30px;
            padding-top: 20px;
            border-top: 1px solid #e5e7eb;
            font-size: 13px;
            color: #6b7280;
            text-align: center;
        }
    </style>
</head>
<body>
    <div class="container">
        <h1>Your Daily Digest</h1>
"""

    for section in sections:
        html_body += f"""
        <div class="topic">
            <h2 class="topic-title">{section['topic_title']}</h2>
"""
        for story in section["stories"]:
            if is_paid:
                summary_html = f"<p>{story['summary']}</p>"
            else:
                bullets = [
                    line.lstrip("-• ").strip()
                    for line in story["summary"].splitlines()
                    if line.strip()
                ]
                summary_html = (
                    "<ul>" + "".join(f"<li>{b}</li>" for b in bullets) + "</ul>"
                )
            html_body += f"""
            <div class="story">
                <div class="story-title"><a href="{story['url']}">{story['title']}</a></div>
                <div class="story-source">{story['source']}</div>
                {summary_html}
            </div>
"""
        html_body += """
        </div>
"""

    html_body += f"""
        <div class="footer">
            <p>
                You received this email because you subscribed to daily topic digests.
                <br>
                <a href="{preferences_url}">Manage your topics and delivery settings</a>
            </p>
        </div>
    </div>
</body>
</html>
"""

    return html_body


def _build_digest_text(sections: List[Dict[str, Any]], preferences_url: str) -> str:
    """
    Build plain text email body for a digest.

    Args:
        sections: Topic sections with all story data pre-extracted
        preferences_url: URL to manage topics and delivery settings

    Returns:
        Plain text string
    """
    text = "YOUR DAILY DIGEST\n\n"

    for section in sections:
        text += f"{section['topic_title'].upper()}\n"
        text += "=" * 60 + "\n\n"
        for i, story in enumerate(section["stories"], 1):
            text += f"{i}. {html.unescape(story['title'])}\n"
            text += f"Source: {html.unescape(story['source'])}\n"
            text += f"\n{html.unescape(story['summary'])}\n"
            text += f"\nRead more: {html.unescape(story['url'])}\n\n"
        text += "-" * 60 + "\n\n"

    text += f"""
Manage your topics and delivery settings: {preferences_url}
"""

    return text
