"""
Public application facade for the lexicon lookup service.

This is the single stable entry point for the library. Every component is
built here once from a LookupConfig and passed explicitly to its consumers.
"""
import asyncio
import logging
import os
import threading
from concurrent.futures import Future
from pathlib import Path
from typing import Any, List, Optional, Sequence

from .cache import JsonFileKeyValueStore, KeyValueStore, ResultCache
from .config import LookupConfig
from .credentials import CredentialProvider
from .lexicon import LexiconStore
from .models import CacheStats, LexiconStats
from .resolution import ResolutionOrchestrator
from .resolvers import ExternalResolver, create_resolvers
from .schemas import ResolutionResult

logger = logging.getLogger(__name__)


class _BackgroundLoop:
    """Event loop on a daemon thread, so sync callers share one loop."""

    def __init__(self):
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(
            target=self._loop.run_forever, name="lexicon-lookup-loop", daemon=True
        )
        self._thread.start()

    def submit(self, coro) -> Future:
        return asyncio.run_coroutine_threadsafe(coro, self._loop)

    def run(self, coro) -> Any:
        return self.submit(coro).result()

    def close(self) -> None:
        self.run(self._cancel_pending())
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join(timeout=5)
        if not self._thread.is_alive():
            self._loop.close()

    @staticmethod
    async def _cancel_pending() -> None:
        tasks = [t for t in asyncio.all_tasks() if t is not asyncio.current_task()]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)


class LexiconLookupApp:
    """
    Public application facade.

    Usage:
        config = load_config_from_env()
        app = LexiconLookupApp(config)
        app.initialize()
        result = app.lookup("hello")
    """

    def __init__(
        self,
        config: LookupConfig,
        resolvers: Optional[Sequence[ExternalResolver]] = None,
        credentials: Optional[CredentialProvider] = None,
        store: Optional[KeyValueStore] = None,
        llm: Optional[Any] = None,
    ):
        """
        :param config: LookupConfig instance
        :param resolvers: Override the resolvers built from config
        :param credentials: Override the environment-based credential check
        :param store: Override the cache's durable storage
        :param llm: Pre-built chat model for the AI resolver
        """
        self._config = config
        self._resolvers = list(resolvers) if resolvers is not None else None
        self._credentials = credentials
        self._store = store
        self._llm = llm
        self._orchestrator: Optional[ResolutionOrchestrator] = None
        self._lexicon: Optional[LexiconStore] = None
        self._cache: Optional[ResultCache] = None
        self._runner: Optional[_BackgroundLoop] = None
        self._sweeper: Optional[Future] = None

    def initialize(self) -> None:
        """
        Load the lexicon, restore the cache and wire the orchestrator.

        Call this once before lookup(). A missing lexicon does not fail
        initialization; lookups then rely on cache and external sources.
        """
        if self._orchestrator:
            return

        service_dir = Path(__file__).parent.parent.parent
        lexicon_path = self._resolve_path(self._config.lexicon_path, service_dir)
        cache_dir = self._resolve_path(self._config.cache_dir, service_dir)

        self._lexicon = LexiconStore(path=lexicon_path)
        self._lexicon.load()

        self._cache = ResultCache(
            store=self._store or JsonFileKeyValueStore(cache_dir),
            default_ttl=self._config.cache_default_ttl,
            frequent_ttl=self._config.cache_frequent_ttl,
            frequency_threshold=self._config.cache_frequency_threshold,
            sweep_interval=self._config.cache_sweep_interval,
            io_timeout=self._config.cache_io_timeout,
        )
        self._runner = _BackgroundLoop()
        self._runner.run(self._cache.load())
        self._sweeper = self._runner.submit(self._cache.run_periodic_sweep())

        credentials = self._credentials or CredentialProvider(
            provider=self._config.llm_provider,
            enabled=self._config.enable_external,
        )
        resolvers = self._resolvers
        if resolvers is None:
            resolvers = (
                create_resolvers(self._config, llm=self._llm)
                if credentials.has_external_access() else []
            )

        self._orchestrator = ResolutionOrchestrator(
            lexicon=self._lexicon,
            cache=self._cache,
            resolvers=resolvers,
            credentials=credentials,
            fuzzy_accept_threshold=self._config.fuzzy_accept_threshold,
            early_stop_confidence=self._config.early_stop_confidence,
            resolver_deadline=self._config.resolver_deadline,
            fuzzy_limit=self._config.fuzzy_limit,
        )
        logger.info(
            f"Lookup service ready: lexicon loaded={self._lexicon.is_loaded}, "
            f"external={self._orchestrator.external_available}"
        )

    @property
    def orchestrator(self) -> ResolutionOrchestrator:
        self._require_initialized()
        return self._orchestrator

    async def alookup(self, query: str) -> ResolutionResult:
        """Async lookup from the caller's event loop."""
        self._require_initialized()
        return await asyncio.wrap_future(self._runner.submit(self._orchestrator.resolve(query)))

    def lookup(self, query: str) -> ResolutionResult:
        """
        Resolve a query to its best translation.

        :param query: Word or phrase to translate
        :return: ResolutionResult (confidence 0 when nothing matched)
        :raises: RuntimeError if initialize() has not been called
        """
        self._require_initialized()
        return self._runner.run(self._orchestrator.resolve(query))

    def lookup_many(self, queries: List[str]) -> List[ResolutionResult]:
        """Resolve several independent queries concurrently."""
        self._require_initialized()

        async def _run():
            return await asyncio.gather(*(self._orchestrator.resolve(q) for q in queries))

        return list(self._runner.run(_run()))

    def clear_cache(self) -> None:
        self._require_initialized()
        self._runner.run(self._cache.clear())

    def cache_stats(self) -> CacheStats:
        self._require_initialized()
        return self._cache.stats()

    def lexicon_stats(self) -> LexiconStats:
        self._require_initialized()
        return self._lexicon.stats()

    def reload_lexicon(self) -> bool:
        self._require_initialized()
        return self._lexicon.reload()

    def shutdown(self) -> None:
        """Stop the cache sweeper and the background loop."""
        if self._sweeper is not None:
            self._sweeper.cancel()
            self._sweeper = None
        if self._runner is not None:
            self._runner.close()
            self._runner = None
        self._orchestrator = None

    def _require_initialized(self) -> None:
        if not self._orchestrator:
            raise RuntimeError("App not initialized. Call initialize() first.")

    @staticmethod
    def _resolve_path(path: str, base: Path) -> str:
        # Relative paths are relative to the service directory, not the caller's CWD
        if os.path.isabs(path) or os.path.exists(path):
            return path
        return str(base / path)
