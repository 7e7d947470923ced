"""Dev.to collection via the Forem public API."""

import logging
import re
from typing import Any, Dict, List, Tuple

from ..core.constants import SourceConstants
from ..core.models import RawItem, SourceKind
from .base_client import BaseSourceClient, Thread, strip_html

logger = logging.getLogger(__name__)


def devto_tag(product_name: str) -> str:
    """Dev.to tags are lowercase alphanumerics: 'Next.js' -> 'nextjs'."""
    return re.sub(r"[^a-z0-9]", "", product_name.lower())


class DevToService(BaseSourceClient):
    """Articles tagged with the product and their comment threads."""

    source = SourceKind.DEVTO
    base_url = "https://dev.to/api"

    def search(self, query: str, limit: int = SourceConstants.DEFAULT_PARENT_LIMIT,
               top: int = 365, **options) -> List[Thread]:
        data = self._get_json("/articles", {"tag": devto_tag(query), "per_page": limit, "top": top})

        threads = []
        for article in data or []:
            article_id = article.get("id")
            if not article_id:
                continue
            threads.append(Thread(ref=str(article_id), post=self._article_item(article)))
        return threads[:limit]

    def fetch_article(self, ref: str) -> RawItem:
        """Full article body; search results carry only a description."""
        return self._article_item(self._get_json(f"/articles/{ref}"))

    def fetch_children(self, ref: str, limit: int = SourceConstants.DEFAULT_CHILDREN_PER_PARENT) -> List[RawItem]:
        """Comments on article ``ref``, nested replies flattened depth-first."""
        data = self._get_json("/comments", {"a_id": ref})
        comments: List[RawItem] = []
        self._flatten(data or [], comments, limit)
        return comments

    def _flatten(self, nodes: List[Dict[str, Any]], out: List[RawItem], limit: int) -> None:
        for node in nodes:
            if len(out) >= limit:
                return
            body = strip_html(node.get("body_html", ""))
            if len(body) >= SourceConstants.MIN_DEVTO_COMMENT_LENGTH:
                user = node.get("user") or {}
                out.append(self._make_item(
                    text=body,
                    author=user.get("username") or user.get("name", ""),
                    timestamp=node.get("created_at", ""),
                    url=f"https://dev.to/comment/{node.get('id_code', '')}",
                ))
            self._flatten(node.get("children") or [], out, limit)

    def _expand_thread(self, thread: Thread, children_limit: int) -> Thread:
        try:
            thread.post = self.fetch_article(thread.ref)
        except Exception as e:
            logger.debug(f"Keeping search summary for dev.to article {thread.ref}: {e}")
        return super()._expand_thread(thread, children_limit)

    def _article_item(self, article: Dict[str, Any]) -> RawItem:
        title = article.get("title", "")
        body = strip_html(article.get("body_html") or "") or article.get("description", "")
        user = article.get("user") or {}
        return self._make_item(
            text=" ".join(p for p in (title, body) if p),
            author=user.get("username") or user.get("name", ""),
            timestamp=article.get("published_at") or article.get("created_at", ""),
            url=article.get("url", ""),
        )

    def _search_plan(self, product_name: str, parent_limit: int) -> List[Tuple[str, Dict[str, Any]]]:
        # Tag search ignores free-text variations
        return [(product_name, {"limit": parent_limit})]
