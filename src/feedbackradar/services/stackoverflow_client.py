"""Stack Overflow collection via the Stack Exchange API 2.3."""

import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from ..core.config import settings
from ..core.constants import SourceConstants
from ..core.models import RawItem, SourceKind
from .base_client import BaseSourceClient, Thread, strip_html

logger = logging.getLogger(__name__)


def _iso(epoch) -> str:
    if not epoch:
        return ""
    return datetime.fromtimestamp(int(epoch), tz=timezone.utc).isoformat()


def product_tag(product_name: str) -> str:
    """Stack Overflow tag for a product name: lowercase, spaces to hyphens."""
    return re.sub(r"\s+", "-", product_name.strip().lower())


class StackOverflowService(BaseSourceClient):
    """Questions about a product and their highest-voted answers."""

    source = SourceKind.STACKOVERFLOW
    base_url = "https://api.stackexchange.com/2.3"

    def __init__(self, api_key: Optional[str] = None, **kwargs):
        super().__init__(**kwargs)
        self.api_key = settings.stackexchange_key if api_key is None else api_key

    def _params(self, **params) -> Dict[str, Any]:
        params["site"] = "stackoverflow"
        if self.api_key:
            params["key"] = self.api_key
        return params

    def search(self, query: str, limit: int = SourceConstants.DEFAULT_PARENT_LIMIT,
               sort: str = "relevance", tagged: Optional[str] = None, **options) -> List[Thread]:
        params = self._params(q=query, pagesize=limit, sort=sort, order="desc", filter="withbody")
        if tagged:
            params["tagged"] = tagged
        data = self._get_json("/search/advanced", params)

        threads = []
        for question in (data or {}).get("items", []):
            question_id = question.get("question_id")
            if not question_id:
                continue
            title = strip_html(question.get("title", ""))
            body = strip_html(question.get("body", ""))
            threads.append(Thread(
                ref=str(question_id),
                post=self._make_item(
                    text=" ".join(p for p in (title, body) if p),
                    author=(question.get("owner") or {}).get("display_name", ""),
                    timestamp=_iso(question.get("creation_date")),
                    url=question.get("link", f"https://stackoverflow.com/q/{question_id}"),
                ),
            ))
        return threads[:limit]

    def fetch_children(self, ref: str, limit: int = SourceConstants.DEFAULT_CHILDREN_PER_PARENT) -> List[RawItem]:
        """Answers to question ``ref``, highest voted first."""
        data = self._get_json(
            f"/questions/{ref}/answers",
            self._params(pagesize=limit, sort="votes", order="desc", filter="withbody"),
        )

        answers = []
        for answer in (data or {}).get("items", []):
            body = strip_html(answer.get("body", ""))
            if len(body) < SourceConstants.MIN_SO_ANSWER_LENGTH:
                continue
            answers.append(self._make_item(
                text=body,
                author=(answer.get("owner") or {}).get("display_name", ""),
                timestamp=_iso(answer.get("creation_date")),
                url=f"https://stackoverflow.com/a/{answer.get('answer_id')}",
            ))
        return answers[:limit]

    def _search_plan(self, product_name: str, parent_limit: int) -> List[Tuple[str, Dict[str, Any]]]:
        # Tagged questions are the most precise; free text fills the rest
        plan = [(product_name, {"limit": parent_limit, "tagged": product_tag(product_name)})]
        return plan + super()._search_plan(product_name, parent_limit)
