"""
Content provider backed by NewsAPI, with a per-day article cache in Supabase.

Each topic is searched over an expanding look-back window until enough
articles are found. Fetched articles are cached by (topic, date) so later
slices of the same run reuse them instead of hitting the API again.
"""

import os
import time
from datetime import date, datetime, timedelta
from typing import Any, cast

import requests

from digest.errors import ContentFetchError
from models.digest import ContentItem, ContentSet
from shared.db import get_supabase_client

NEWS_API_BASE_URL = "https://newsapi.org/v2"
CACHE_SOURCE = "newsapi"

MIN_ARTICLES_NEEDED = 3  # Need at least 3 articles for good summaries
TIME_WINDOWS_DAYS = [1, 3, 7, 14]  # Maximum look-back is two weeks
LATEST_KEPT = 3
MAX_ARTICLES = 10


class ArticleCache:
    """Read-through article cache stored in the `article_cache` table."""

    def __init__(self, supabase: Any = None):
        self._supabase = supabase

    @property
    def supabase(self) -> Any:
        if self._supabase is None:
            self._supabase = get_supabase_client()
        return self._supabase

    def get(self, topic: str, day: date) -> list[ContentItem] | None:
        response = (
            self.supabase.table("article_cache")
            .select("articles")
            .eq("topic", topic)
            .eq("date", day.isoformat())
            .eq("source", CACHE_SOURCE)
            .limit(1)
            .execute()
        )
        rows = cast(list[dict[str, Any]], response.data or [])
        if not rows:
            return None
        return [ContentItem.model_validate(a) for a in rows[0].get("articles") or []]

    def put(self, topic: str, day: date, items: list[ContentItem]) -> None:
        self.supabase.table("article_cache").upsert(
            {
                "topic": topic,
                "date": day.isoformat(),
                "source": CACHE_SOURCE,
                "articles": [item.model_dump(mode="json") for item in items],
            },
            on_conflict="topic,date,source",
        ).execute()


class NewsAPIContentProvider:
    """Fetches recent articles per topic from NewsAPI."""

    def __init__(
        self,
        api_key: str | None = None,
        cache: ArticleCache | None = None,
        request_delay: float = 0.2,
        timeout: int = 20,
    ):
        self.api_key = api_key or os.getenv("NEWS_API_KEY")
        self.cache = cache
        self.request_delay = request_delay
        self.timeout = timeout
        self.session = requests.Session()

    def fetch_content(self, topics: list[str]) -> dict[str, ContentSet]:
        """
        Fetch content for each topic.

        Topics with no articles are left out of the result. Per-topic errors
        drop that topic; if every topic errored the provider is considered
        down and ContentFetchError is raised.
        """
        results: dict[str, ContentSet] = {}
        errors: dict[str, str] = {}
        today = date.today()

        for i, topic in enumerate(topics):
            cached = self._read_cache(topic, today)
            if cached is not None:
                print(f"  ✓ Cache hit for '{topic}' ({len(cached)} articles)")
                if cached:
                    results[topic] = ContentSet(topic=topic, items=cached)
                continue

            try:
                print(f"→ Fetching news for topic {i + 1}/{len(topics)}: {topic}")
                items = self.fetch_topic(topic)
            except Exception as e:
                print(f"  ✗ Failed to fetch news for '{topic}': {e}")
                errors[topic] = str(e)
                if "rate limit" in str(e).lower():
                    time.sleep(2)
                continue

            if items:
                results[topic] = ContentSet(topic=topic, items=items)
                self._write_cache(topic, today, items)

            if i < len(topics) - 1:
                time.sleep(self.request_delay)

        if topics and len(errors) == len(topics):
            raise ContentFetchError(
                f"News fetch failed for all {len(topics)} topics: "
                + "; ".join(f"{t}: {msg}" for t, msg in errors.items())
            )

        return results

    def fetch_topic(self, topic: str) -> list[ContentItem]:
        """Search with an expanding time window and keep the newest plus the most detailed articles."""
        articles: list[ContentItem] = []

        for days in TIME_WINDOWS_DAYS:
            if len(articles) >= MIN_ARTICLES_NEEDED:
                break

            existing_urls = {a.url for a in articles}
            new_articles = [
                a for a in self._fetch_window(topic, days) if a.url not in existing_urls
            ]
            articles = sorted(
                articles + new_articles,
                key=lambda a: a.published_at or "",
                reverse=True,
            )

        latest = articles[:LATEST_KEPT]
        by_detail = sorted(
            articles[LATEST_KEPT:], key=lambda a: len(a.description), reverse=True
        )
        return (latest + by_detail)[:MAX_ARTICLES]

    def _fetch_window(self, topic: str, days_back: int) -> list[ContentItem]:
        if not self.api_key:
            raise ContentFetchError("NEWS_API_KEY is not configured")

        from_date = (datetime.now() - timedelta(days=days_back)).date().isoformat()
        response = self.session.get(
            f"{NEWS_API_BASE_URL}/everything",
            params={
                "q": topic,
                "from": from_date,
                "sortBy": "publishedAt",
                "language": "en",
                "pageSize": 20,
                "apiKey": self.api_key,
            },
            timeout=self.timeout,
        )

        if response.status_code == 429:
            raise ContentFetchError("NewsAPI rate limit exceeded")
        response.raise_for_status()

        data = response.json()
        if data.get("status") != "ok":
            raise ContentFetchError(f"NewsAPI error: {data.get('message')}")

        items = []
        seen_urls = set()
        for article in data.get("articles") or []:
            url = article.get("url")
            title = article.get("title")
            if not url or not title or url in seen_urls or title == "[Removed]":
                continue
            seen_urls.add(url)
            items.append(
                ContentItem(
                    title=title,
                    description=article.get("description") or "",
                    url=url,
                    source=(article.get("source") or {}).get("name") or "Unknown Source",
                    published_at=article.get("publishedAt"),
                )
            )
        return items

    def _read_cache(self, topic: str, day: date) -> list[ContentItem] | None:
        if self.cache is None:
            return None
        try:
            return self.cache.get(topic, day)
        except Exception as e:
            print(f"  ⚠ Article cache read failed for '{topic}': {e}")
            return None

    def _write_cache(self, topic: str, day: date, items: list[ContentItem]) -> None:
        if self.cache is None:
            return
        try:
            self.cache.put(topic, day, items)
        except Exception as e:
            print(f"  ⚠ Article cache write failed for '{topic}': {e}")
