"""Wires the sync layer together once per process.

Everything that needs the cache or the HTTP core receives it from here
instead of importing a module-level singleton, so tests build a fresh set of
services per case.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from client.auth import AuthSession
from client.cache import CachePolicy, QueryCache, RetryStrategy
from client.hooks import ResourceHooks
from client.http import ApiClient
from client.storage import FileStorage, MemoryStorage, SessionStore
from client.ui import LogNotifier, Navigator
from client.uploads import FileAnalyzer
from utils.config import ClientConfig
from views.search import DebouncedSearch

logger = logging.getLogger(__name__)


@dataclass
class Services:
    config: ClientConfig
    store: SessionStore
    client: ApiClient
    cache: QueryCache
    hooks: ResourceHooks
    auth: AuthSession
    analyzer: FileAnalyzer

    def search(self, source: Any, filter_fn: Callable, **kwargs: Any) -> DebouncedSearch:
        """Debounced search over ``source`` using the configured search delay."""
        return DebouncedSearch(source, filter_fn,
                               delay=self.config.search_debounce_ms / 1000, **kwargs)

    def close(self) -> None:
        self.analyzer.close()
        self.hooks.close()
        self.cache.shutdown()
        self.client.close()

    def __enter__(self) -> "Services":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def build_services(config: Optional[ClientConfig] = None, *, transport: Any = None,
                   storage: Any = None, notifier: Any = None,
                   navigator: Optional[Navigator] = None,
                   persist_session: bool = True, **cache_kwargs: Any) -> Services:
    """Construct the full client stack from configuration.

    Args:
        config: Client settings (default: from environment).
        transport: requests.Session-compatible transport (default: pooled session).
        storage: Durable storage (default: FileStorage at ``config.session_file``,
            or MemoryStorage when ``persist_session`` is False).
        notifier: Notification sink (default: LogNotifier).
        navigator: Navigator receiving login redirects.
        **cache_kwargs: Extra QueryCache arguments (``clock``, ``sleep``).
    """
    config = config or ClientConfig.from_env()
    if storage is None:
        storage = FileStorage(config.session_file) if persist_session else MemoryStorage()
    store = SessionStore(storage)
    client = ApiClient(config, store, transport=transport,
                       notifier=notifier or LogNotifier(), navigator=navigator)
    cache = QueryCache(
        retry=RetryStrategy(max_retries=config.max_retries,
                            backoff_factor=config.retry_base_delay,
                            max_delay=config.retry_max_delay),
        default_policy=CachePolicy(stale_time=config.stale_time, gc_time=config.gc_time),
        **cache_kwargs,
    )
    hooks = ResourceHooks(client, cache)
    auth = AuthSession(client, cache)
    analyzer = FileAnalyzer(client, max_size_mb=config.upload_max_mb)
    logger.debug("Client services ready for %s", config.base_url)
    return Services(config=config, store=store, client=client, cache=cache,
                    hooks=hooks, auth=auth, analyzer=analyzer)
