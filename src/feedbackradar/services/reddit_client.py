"""Reddit data collection service (public JSON endpoints, no OAuth)."""

import logging
from datetime import datetime, timezone
from typing import List

from ..core.constants import SourceConstants
from ..core.models import RawItem, SourceKind
from .base_client import BaseSourceClient, Thread, strip_html

logger = logging.getLogger(__name__)

REDDIT_URL = "https://www.reddit.com"
STOP_USERS = {"AutoModerator", "[deleted]"}


def _iso(created_utc) -> str:
    if not created_utc:
        return ""
    return datetime.fromtimestamp(float(created_utc), tz=timezone.utc).isoformat()


class RedditService(BaseSourceClient):
    """Posts from Reddit search plus their top-level comments."""

    source = SourceKind.REDDIT
    base_url = REDDIT_URL

    def search(self, query: str, limit: int = SourceConstants.DEFAULT_PARENT_LIMIT,
               sort: str = "relevance", time_filter: str = "year", **options) -> List[Thread]:
        data = self._get_json("/search.json", {
            "q": query,
            "limit": limit,
            "sort": sort,
            "t": time_filter,
            "type": "link",
        })
        threads = []
        for child in (data or {}).get("data", {}).get("children", []):
            post = child.get("data") or {}
            permalink = post.get("permalink")
            if not permalink:
                continue
            text = " ".join(p for p in (post.get("title", ""), strip_html(post.get("selftext", ""))) if p)
            item = self._make_item(
                text=text,
                author=post.get("author", ""),
                timestamp=_iso(post.get("created_utc")),
                url=f"{REDDIT_URL}{permalink}",
            )
            threads.append(Thread(ref=permalink, post=item))
        return threads[:limit]

    def fetch_children(self, ref: str, limit: int = SourceConstants.DEFAULT_CHILDREN_PER_PARENT) -> List[RawItem]:
        """Top-level comments of a post; ``ref`` is the post permalink."""
        endpoint = f"{ref.rstrip('/')}.json"
        data = self._get_json(endpoint, {"limit": limit, "depth": 1, "sort": "top"})
        if not isinstance(data, list) or len(data) < 2:
            return []

        comments = []
        for child in data[1].get("data", {}).get("children", []):
            if child.get("kind") != "t1":
                continue
            comment = child.get("data") or {}
            author = comment.get("author", "")
            if author in STOP_USERS:
                continue
            body = strip_html(comment.get("body", ""))
            if len(body) < SourceConstants.MIN_REDDIT_COMMENT_LENGTH:
                continue
            comments.append(self._make_item(
                text=body,
                author=author,
                timestamp=_iso(comment.get("created_utc")),
                url=f"{REDDIT_URL}{comment.get('permalink', ref)}",
            ))
            if len(comments) >= limit:
                break
        return comments
