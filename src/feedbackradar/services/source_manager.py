"""Multi-source collection: fetch every enabled source in parallel and flatten the results."""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..core.config import load_sources_config
from ..core.constants import SourceConstants
from ..core.models import RawItem, SourceKind
from .base_client import BaseSourceClient
from .devto_client import DevToService
from .hackernews_client import HackerNewsService
from .reddit_client import RedditService
from .stackoverflow_client import StackOverflowService

logger = logging.getLogger(__name__)

SERVICE_CLASSES = {
    SourceKind.REDDIT: RedditService,
    SourceKind.HACKERNEWS: HackerNewsService,
    SourceKind.STACKOVERFLOW: StackOverflowService,
    SourceKind.DEVTO: DevToService,
}


@dataclass
class SourceFetchResult:
    """Outcome of collecting from one source."""
    source: SourceKind
    items: List[RawItem] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class SourceManager:
    """Owns one client per source and fans a product query out to all of them."""

    def __init__(self, clients: Optional[Dict[SourceKind, BaseSourceClient]] = None,
                 sources_config: Optional[Dict[str, Dict[str, Any]]] = None):
        self.sources_config = sources_config if sources_config is not None else load_sources_config()
        if clients is None:
            clients = {kind: cls() for kind, cls in SERVICE_CLASSES.items() if self._enabled(kind)}
        self.clients = clients

    def _enabled(self, kind: SourceKind) -> bool:
        return bool(self.sources_config.get(kind.value, {}).get("enabled", True))

    def _limits(self, kind: SourceKind):
        conf = self.sources_config.get(kind.value, {})
        return (
            int(conf.get("parent_limit", SourceConstants.DEFAULT_PARENT_LIMIT)),
            int(conf.get("children_per_parent", SourceConstants.DEFAULT_CHILDREN_PER_PARENT)),
        )

    def active_sources(self, only: Optional[List[SourceKind]] = None) -> List[SourceKind]:
        """Enabled sources with a client, in client registration order."""
        kinds = [k for k in self.clients if self._enabled(k)]
        if only:
            kinds = [k for k in kinds if k in only]
        return kinds

    def fetch_all(self, product_name: str, only: Optional[List[SourceKind]] = None) -> List[SourceFetchResult]:
        """
        Collect from every active source concurrently.

        A failing source is recorded on its result and never affects the others.
        Results come back in source order, not completion order.
        """
        kinds = self.active_sources(only)
        if not kinds:
            logger.warning("No content sources enabled")
            return []

        logger.info(f"Fetching '{product_name}' from {len(kinds)} sources: {', '.join(k.value for k in kinds)}")
        results = []
        with ThreadPoolExecutor(max_workers=len(kinds)) as executor:
            futures = []
            for kind in kinds:
                parent_limit, children = self._limits(kind)
                futures.append(executor.submit(self.clients[kind].collect, product_name, parent_limit, children))

            for kind, future in zip(kinds, futures):
                try:
                    items = future.result()
                    results.append(SourceFetchResult(source=kind, items=list(items)))
                    logger.info(f"{kind.value}: collected {len(items)} items")
                except Exception as e:
                    logger.error(f"{kind.value}: failed with error: {e}")
                    results.append(SourceFetchResult(source=kind, error=str(e)))
        return results

    @staticmethod
    def flatten(results: List[SourceFetchResult]) -> List[RawItem]:
        items: List[RawItem] = []
        for result in results:
            items.extend(result.items)
        return items

    @staticmethod
    def all_failed(results: List[SourceFetchResult]) -> bool:
        return bool(results) and all(not r.ok for r in results)

    def clear_caches(self) -> None:
        for client in self.clients.values():
            client.clear_cache()
