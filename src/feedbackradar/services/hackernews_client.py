"""Hacker News collection via the Algolia search API."""

import logging
from typing import Any, Dict, List, Tuple

from ..core.constants import SourceConstants
from ..core.models import RawItem, SourceKind
from .base_client import BaseSourceClient, Thread, strip_html

logger = logging.getLogger(__name__)

HN_ITEM_URL = "https://news.ycombinator.com/item?id={}"


class HackerNewsService(BaseSourceClient):
    """Stories matching a query and the comments posted on them."""

    source = SourceKind.HACKERNEWS
    base_url = "https://hn.algolia.com/api/v1"

    def search(self, query: str, limit: int = SourceConstants.DEFAULT_PARENT_LIMIT,
               sort: str = "relevance", **options) -> List[Thread]:
        endpoint = "/search_by_date" if sort == "date" else "/search"
        data = self._get_json(endpoint, {"query": query, "tags": "story", "hitsPerPage": limit})

        threads = []
        for hit in (data or {}).get("hits", []):
            story_id = hit.get("objectID")
            if not story_id:
                continue
            text = " ".join(p for p in (hit.get("title") or "", strip_html(hit.get("story_text") or "")) if p)
            threads.append(Thread(
                ref=str(story_id),
                post=self._make_item(
                    text=text,
                    author=hit.get("author", ""),
                    timestamp=hit.get("created_at", ""),
                    url=hit.get("url") or HN_ITEM_URL.format(story_id),
                ),
            ))
        return threads[:limit]

    def fetch_children(self, ref: str, limit: int = SourceConstants.DEFAULT_CHILDREN_PER_PARENT) -> List[RawItem]:
        """Comments on story ``ref``."""
        data = self._get_json("/search", {"tags": f"comment,story_{ref}", "hitsPerPage": limit})

        comments = []
        for hit in (data or {}).get("hits", []):
            text = strip_html(hit.get("comment_text") or "")
            if len(text) < SourceConstants.MIN_HN_COMMENT_LENGTH:
                continue
            comments.append(self._make_item(
                text=text,
                author=hit.get("author", ""),
                timestamp=hit.get("created_at", ""),
                url=HN_ITEM_URL.format(hit.get("objectID", ref)),
            ))
        return comments[:limit]

    def _search_plan(self, product_name: str, parent_limit: int) -> List[Tuple[str, Dict[str, Any]]]:
        # Half by relevance, half by recency
        half = max(1, parent_limit // 2)
        plan = [
            (product_name, {"limit": half}),
            (product_name, {"limit": parent_limit - half or 1, "sort": "date"}),
        ]
        return plan + super()._search_plan(product_name, parent_limit)[1:]
