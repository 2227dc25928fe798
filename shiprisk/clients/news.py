"""News API headline fetcher."""

from __future__ import annotations

import logging

import httpx

from shiprisk.config import HTTP_TIMEOUT, NEWS_API_KEY, NEWS_API_URL
from shiprisk.errors import ExternalServiceError

logger = logging.getLogger(__name__)

PAGE_SIZE = 50


def _article_text(article: dict) -> str:
    title = article.get("title") or ""
    description = article.get("description") or ""
    return f"{title} {description}".strip()


def fetch_headlines(query: str, api_key: str | None = None, limit: int = PAGE_SIZE) -> list[str]:
    """Title + description of recent articles matching the query."""
    key = api_key or NEWS_API_KEY
    if not key:
        raise ExternalServiceError("Missing NEWS_API_KEY")

    logger.debug("fetching news for %r", query)
    try:
        resp = httpx.get(
            f"{NEWS_API_URL}/everything",
            params={"q": query, "pageSize": limit, "apiKey": key},
            timeout=HTTP_TIMEOUT,
        )
        resp.raise_for_status()
        data = resp.json()
    except (httpx.HTTPError, ValueError) as exc:
        logger.warning("news lookup failed for %r: %s", query, exc)
        raise ExternalServiceError(f"Error fetching news for {query!r}: {exc}") from exc

    articles = (data.get("articles") or []) if isinstance(data, dict) else []
    texts = [_article_text(a) for a in articles if isinstance(a, dict)]
    return [t for t in texts if t]
