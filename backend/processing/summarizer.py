"""
LLM-based topic summarization for daily digests.

Uses Ollama with structured output to turn a topic's fetched articles into a
short list of story summaries. Paid recipients get paragraph summaries of up
to five stories; free recipients get bullet-point summaries of up to three.
The same articles therefore produce a distinct summary per tier.
"""

import os
import time

from ollama import Client
from pydantic import BaseModel, Field

from digest.errors import SummaryError
from digest.packager import MAX_STORIES_PER_TOPIC
from models.digest import ContentSet, SummaryItem, TopicSummary
from models.recipient import Tier

MAX_LLM_RETRIES = 3  # Maximum retry attempts for failed LLM calls
MAX_ARTICLES_PER_PROMPT = 5
MAX_DESCRIPTION_CHARS = 500


class StorySummary(BaseModel):
    title: str = Field(description="Article title")
    summary: str = Field(max_length=2000, description="Summary text")
    url: str = Field(description="Article URL")
    source: str = Field(description="Source name")


class TopicSummaries(BaseModel):
    summaries: list[StorySummary] = Field(
        description="3-5 summaries of the most relevant and recent articles"
    )


def call_llm(
    client: Client,
    model: str,
    prompt: str,
    schema: dict[str, object],
    temperature: float = 0.3,
    max_retries: int = MAX_LLM_RETRIES,
) -> str:
    """
    Call Ollama LLM with structured output validation and exponential backoff retry logic.

    Retries with exponential backoff (1s, 2s) on failure. Validates that
    responses are non-empty before returning.

    Args:
        client: Ollama client (carries its own HTTP timeout)
        model: Ollama model name (e.g., "llama3.1:8b")
        prompt: Prompt text to send to the LLM
        schema: Pydantic model JSON schema for structured output format
        temperature: Sampling temperature
        max_retries: Maximum retry attempts on failure

    Returns:
        JSON string response from LLM

    Raises:
        SummaryError: If all retry attempts fail or LLM returns empty response
    """
    for attempt in range(max_retries):
        try:
            response = client.chat(
                model=model,
                messages=[
                    {
                        "role": "system",
                        "content": "You are a professional news summarizer. Always respond with valid JSON only.",
                    },
                    {"role": "user", "content": prompt},
                ],
                format=schema,
                options={"temperature": temperature},
            )
            content = response.message.content

            if not content or content.strip() == "":
                raise ValueError("LLM returned empty response")

            return content

        except Exception as e:
            if attempt < max_retries - 1:
                wait_time = 2**attempt
                print(
                    f"  ⚠ Attempt {attempt + 1} failed: {e}. Retrying in {wait_time}s..."
                )
                time.sleep(wait_time)
            else:
                raise SummaryError(f"LLM call failed after {max_retries} attempts: {e}")

    raise SummaryError("Unreachable code: all retry attempts exhausted")


def build_prompt(topic: str, content: ContentSet, tier: Tier) -> str:
    """Build the summarization prompt for one topic and tier."""
    if tier is Tier.PAID:
        format_text = "paragraph summaries (2-3 sentences per article)"
    else:
        format_text = "bullet point summaries (3-4 bullet points per article, one per line)"

    articles = content.items[:MAX_ARTICLES_PER_PROMPT]
    article_text = "\n".join(
        f"""
Article {index}:
Title: {article.title}
Description: {article.description[:MAX_DESCRIPTION_CHARS]}
URL: {article.url}
Source: {article.source}
Published: {article.published_at or 'unknown'}
"""
        for index, article in enumerate(articles, 1)
    )

    return f"""You are a news summarizer for a personalized daily digest.

Topic: {topic}
Format: {format_text}
Articles to summarize: {len(articles)}

Provide up to {MAX_STORIES_PER_TOPIC[tier]} summaries for the most relevant and recent articles. Each summary should:
- Be concise and informative (no fluff, just facts)
- Include the article title, source name and URL exactly as given

Articles to process:
{article_text}"""


class OllamaSummarizer:
    """Summarization engine backed by a local Ollama model."""

    def __init__(self, model: str | None = None, client: Client | None = None):
        self.model = model or os.getenv("OLLAMA_MODEL", "llama3.1:8b")
        # Ollama calls can hang; the client timeout is a backstop behind the caller's deadline
        self.client = client or Client(timeout=60.0)

    def summarize(self, topic: str, content: ContentSet, tier: Tier) -> TopicSummary:
        """
        Summarize a topic's articles for one tier.

        Raises:
            SummaryError: If the LLM fails or returns no usable summaries
        """
        if content.is_empty():
            raise SummaryError(f"No articles to summarize for '{topic}'")

        prompt = build_prompt(topic, content, tier)
        response = call_llm(self.client, self.model, prompt, TopicSummaries.model_json_schema())

        try:
            data = TopicSummaries.model_validate_json(response)
        except ValueError as e:
            raise SummaryError(f"Invalid response format from LLM: {e}") from e

        items = [
            SummaryItem(
                title=story.title,
                summary=story.summary,
                url=story.url,
                source=story.source,
            )
            for story in data.summaries[: MAX_STORIES_PER_TOPIC[tier]]
        ]
        if not items:
            raise SummaryError(f"LLM returned no summaries for '{topic}'")

        print(f"  ✓ Summarized '{topic}' ({tier.value}): {len(items)} stories")
        return TopicSummary(topic=topic, tier=tier, items=items)
