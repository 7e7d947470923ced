"""Shared machinery for content-source clients: caching, retry, throttling, child fan-out."""

import html
import json
import logging
import re
import threading
import time
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

import requests
from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..core.config import settings
from ..core.constants import ErrorConstants, SourceConstants
from ..core.errors import PermanentSourceError, TransientSourceError
from ..core.models import RawItem, SourceKind

logger = logging.getLogger(__name__)

TAG_RE = re.compile(r"<[^>]*>")
_WS = re.compile(r"\s+")


def strip_html(text: str) -> str:
    """Drop tags, decode entities, collapse whitespace."""
    if not text:
        return ""
    cleaned = TAG_RE.sub(" ", text)
    cleaned = html.unescape(cleaned)
    return _WS.sub(" ", cleaned).strip()


def truncate(text: str, limit: int = SourceConstants.MAX_ITEM_TEXT_LENGTH) -> str:
    return text[:limit]


@dataclass
class Thread:
    """A parent post and the child items (comments, answers) fetched for it."""
    ref: str
    post: RawItem
    children: List[RawItem] = field(default_factory=list)


class BaseSourceClient(ABC):
    """
    Base class for one content source.

    Each instance owns a private response cache and its retry configuration;
    nothing is shared between instances. Subclasses implement ``search`` and
    ``fetch_children`` and describe their query plan in ``_search_plan``.

    ``search`` returns ``Thread`` objects so a parent keeps the reference its
    children are fetched by; each thread's ``post`` is the parent ``RawItem``.
    ``search_with_children`` fills in the children and ``collect`` flattens
    parents and children into a plain ``List[RawItem]``.
    """

    source: SourceKind = None
    base_url: str = ""

    def __init__(
        self,
        cache_ttl: Optional[float] = None,
        max_retries: Optional[int] = None,
        retry_delay: Optional[float] = None,
        request_delay: Optional[float] = None,
        timeout: Optional[float] = None,
        child_batch_size: Optional[int] = None,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.cache_ttl = settings.source_cache_ttl if cache_ttl is None else cache_ttl
        self.max_retries = settings.source_max_retries if max_retries is None else max_retries
        self.retry_delay = settings.source_retry_delay if retry_delay is None else retry_delay
        self.request_delay = settings.source_request_delay if request_delay is None else request_delay
        self.timeout = settings.source_timeout if timeout is None else timeout
        self.child_batch_size = max(1, settings.child_batch_size if child_batch_size is None else child_batch_size)
        self._sleep = sleep
        self._clock = clock
        self._cache: Dict[str, Tuple[float, Any]] = {}
        self._cache_lock = threading.Lock()

        self.session = session or requests.Session()
        self.session.headers.update({
            "Accept": "application/json",
            "User-Agent": settings.user_agent,
        })

    @property
    def name(self) -> str:
        return self.source.value if self.source else self.__class__.__name__

    # ── cache ───────────────────────────────────────────────────────────
    @staticmethod
    def _cache_key(endpoint: str, params: Optional[Dict[str, Any]]) -> str:
        return f"{endpoint}|{json.dumps(params or {}, sort_keys=True, default=str)}"

    def _get_cached(self, key: str):
        with self._cache_lock:
            entry = self._cache.get(key)
            if entry is None:
                return None
            expires_at, data = entry
            if self._clock() > expires_at:
                del self._cache[key]
                return None
            return data

    def _set_cache(self, key: str, data: Any) -> None:
        with self._cache_lock:
            self._cache[key] = (self._clock() + self.cache_ttl, data)

    def clear_cache(self) -> None:
        with self._cache_lock:
            self._cache.clear()

    # ── HTTP ────────────────────────────────────────────────────────────
    def _retrying(self) -> Retrying:
        return Retrying(
            stop=stop_after_attempt(self.max_retries + 1),
            wait=wait_exponential(multiplier=self.retry_delay, exp_base=2),
            retry=retry_if_exception_type(TransientSourceError),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            sleep=self._sleep,
            reraise=True,
        )

    def _request(self, url: str, params: Optional[Dict[str, Any]]) -> Any:
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise TransientSourceError(f"{self.name} request failed: {e}", source=self.name) from e

        status = response.status_code
        if status == ErrorConstants.RETRYABLE_STATUS:
            raise TransientSourceError(f"Rate limited by {self.name} API", status_code=status, source=self.name)
        if status >= ErrorConstants.SERVER_ERROR_MIN:
            raise TransientSourceError(f"{self.name} API error: {status}", status_code=status, source=self.name)
        if not 200 <= status < 300:
            raise PermanentSourceError(f"{self.name} API error: {status}", status_code=status, source=self.name)

        try:
            return response.json()
        except ValueError as e:
            raise PermanentSourceError(
                f"{self.name} returned invalid JSON", status_code=status, source=self.name
            ) from e

    def _get_json(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """GET ``base_url + endpoint`` with caching and retry on 429 / 5xx."""
        key = self._cache_key(endpoint, params)
        cached = self._get_cached(key)
        if cached is not None:
            logger.debug(f"Cache hit for {self.name}: {endpoint}")
            return cached

        data = self._retrying()(self._request, f"{self.base_url}{endpoint}", params)
        self._set_cache(key, data)
        return data

    # ── source contract ─────────────────────────────────────────────────
    @abstractmethod
    def search(self, query: str, limit: int = SourceConstants.DEFAULT_PARENT_LIMIT, **options) -> List[Thread]:
        """Search parent posts; returned threads carry no children yet."""

    @abstractmethod
    def fetch_children(self, ref: str, limit: int = SourceConstants.DEFAULT_CHILDREN_PER_PARENT) -> List[RawItem]:
        """Fetch child items (comments, answers) of one parent."""

    def _expand_thread(self, thread: Thread, children_limit: int) -> Thread:
        thread.children = self.fetch_children(thread.ref, limit=children_limit)
        return thread

    def _search_plan(self, product_name: str, parent_limit: int) -> List[Tuple[str, Dict[str, Any]]]:
        """(query, search options) pairs tried in order until enough parents are found."""
        plan = [(product_name, {"limit": parent_limit})]
        for suffix in ("review", "alternative", "vs", "pricing"):
            plan.append((f"{product_name} {suffix}", {"limit": SourceConstants.VARIATION_PARENT_LIMIT}))
        return plan

    # ── fan-out ─────────────────────────────────────────────────────────
    def search_with_children(
        self,
        query: str,
        limit: int = SourceConstants.DEFAULT_PARENT_LIMIT,
        children_per_parent: int = SourceConstants.DEFAULT_CHILDREN_PER_PARENT,
        **options,
    ) -> List[Thread]:
        """
        Search parents, then fetch their children in small concurrent batches.

        A failed child fetch leaves that parent with no children instead of
        failing the batch.
        """
        threads = self.search(query, limit=limit, **options)
        results: List[Thread] = []
        size = self.child_batch_size

        for start in range(0, len(threads), size):
            batch = threads[start:start + size]
            with ThreadPoolExecutor(max_workers=len(batch)) as executor:
                futures = [executor.submit(self._expand_thread, t, children_per_parent) for t in batch]
                for thread, future in zip(batch, futures):
                    try:
                        results.append(future.result())
                    except Exception as e:
                        logger.warning(f"Failed to fetch {self.name} children for {thread.ref}: {e}")
                        thread.children = []
                        results.append(thread)

            if start + size < len(threads):
                self._sleep(self.request_delay)

        return results

    def collect(
        self,
        product_name: str,
        parent_limit: int = SourceConstants.DEFAULT_PARENT_LIMIT,
        children_per_parent: int = SourceConstants.DEFAULT_CHILDREN_PER_PARENT,
    ) -> List[RawItem]:
        """
        Run the query plan and flatten threads into raw items in fetch order.

        Individual query failures are logged and skipped; the last error is
        raised only when every query failed.
        """
        threads: List[Thread] = []
        seen_refs = set()
        last_error: Optional[Exception] = None
        succeeded = False

        plan = self._search_plan(product_name, parent_limit)
        for position, (query, options) in enumerate(plan):
            if len(threads) >= parent_limit:
                break
            if position > 0:
                self._sleep(self.request_delay)
            try:
                found = self.search_with_children(query, children_per_parent=children_per_parent, **options)
                succeeded = True
            except Exception as e:
                logger.warning(f"Failed {self.name} search for '{query}': {e}")
                last_error = e
                continue
            for thread in found:
                if thread.ref not in seen_refs:
                    seen_refs.add(thread.ref)
                    threads.append(thread)

        if not succeeded and last_error is not None:
            raise last_error

        items: List[RawItem] = []
        for thread in threads[:parent_limit]:
            if len(thread.post.text) >= SourceConstants.MIN_PARENT_TEXT_LENGTH:
                items.append(thread.post)
            items.extend(thread.children)

        logger.info(f"{self.name}: collected {len(items)} items from {min(len(threads), parent_limit)} threads")
        return items

    def _make_item(self, text: str, author: str, timestamp: str, url: str) -> RawItem:
        return RawItem(
            text=truncate(text),
            author=author or SourceConstants.UNKNOWN_AUTHOR,
            timestamp=timestamp or "",
            url=url or "",
            source=self.source,
        )
