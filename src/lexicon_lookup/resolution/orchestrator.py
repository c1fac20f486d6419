"""
Resolution orchestrator: the end-to-end lookup cascade.

Stages run in a fixed order and each one may finish the lookup:

    INIT -> CACHE_CHECK -> LOCAL_EXACT -> LOCAL_FUZZY
         -> MULTI_TOKEN_DECOMPOSE | EXTERNAL_RESOLUTION
         -> VALIDATION -> CACHE_WRITE -> DONE   (FAILED if nothing matched)

resolve() never raises for missing data; "no answer" is a result with
confidence 0 and source "none".
"""
import asyncio
import inspect
import logging
from dataclasses import replace
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from ..cache.result_cache import ResultCache
from ..credentials import CredentialProvider
from ..exceptions import CacheCorruptionError, ResolverError
from ..lexicon.store import LexiconStore
from ..models import RankedEntry, WordBreakdownItem
from ..normalization import normalize_query, tokenize
from ..resolvers.base import ExternalResolver
from ..schemas import SOURCE_LEXICON_EXACT, SOURCE_NONE, ResolutionResult
from ..scoring.semantic_scorer import SemanticScorer
from .consensus import ConsensusBuilder, order_alternatives
from .decomposer import SentenceDecomposer
from .disambiguation import DisambiguationPolicy

logger = logging.getLogger(__name__)


class ResolutionStage(str, Enum):
    INIT = "init"
    CACHE_CHECK = "cache_check"
    LOCAL_EXACT = "local_exact"
    LOCAL_FUZZY = "local_fuzzy"
    MULTI_TOKEN_DECOMPOSE = "multi_token_decompose"
    EXTERNAL_RESOLUTION = "external_resolution"
    VALIDATION = "validation"
    CACHE_WRITE = "cache_write"
    DONE = "done"
    FAILED = "failed"


class ResolutionOrchestrator:
    """
    Drives a query through cache, lexicon and external resolvers.

    All collaborators are passed in; nothing is looked up globally.

    Usage:
        orchestrator = ResolutionOrchestrator(lexicon, cache, resolvers, credentials)
        result = await orchestrator.resolve("hello")
    """

    def __init__(
        self,
        lexicon: LexiconStore,
        cache: ResultCache,
        resolvers: Sequence[ExternalResolver] = (),
        credentials: Optional[CredentialProvider] = None,
        scorer: Optional[SemanticScorer] = None,
        consensus: Optional[ConsensusBuilder] = None,
        disambiguation: Optional[DisambiguationPolicy] = None,
        fuzzy_accept_threshold: float = 0.7,
        early_stop_confidence: float = 0.9,
        resolver_deadline: float = 12.0,
        fuzzy_limit: int = 5,
    ):
        """
        :param resolvers: External resolvers in priority order (highest first)
        :param credentials: Decides once whether external resolvers may run;
            without one, resolvers run whenever any are configured
        :param fuzzy_accept_threshold: Local approximate matches at or above
            this confidence are final and skip external resolvers
        :param early_stop_confidence: An external candidate at or above this
            ends external resolution and cancels the remaining calls
        :param resolver_deadline: Seconds shared by all concurrent resolver calls
        """
        self.lexicon = lexicon
        self.cache = cache
        self.resolvers = list(resolvers)
        self.credentials = credentials
        self.scorer = scorer or lexicon.scorer
        self.consensus = consensus or ConsensusBuilder()
        self.disambiguation = disambiguation or DisambiguationPolicy()
        self.fuzzy_accept_threshold = fuzzy_accept_threshold
        self.early_stop_confidence = early_stop_confidence
        self.resolver_deadline = resolver_deadline
        self.fuzzy_limit = fuzzy_limit
        self.decomposer = SentenceDecomposer(self._resolve_token)
        self._external_available: Optional[bool] = None

    @property
    def external_available(self) -> bool:
        """Capability flag, evaluated on first use and then fixed."""
        if self._external_available is None:
            if not self.resolvers:
                self._external_available = False
            elif self.credentials is None:
                self._external_available = True
            else:
                self._external_available = self.credentials.has_external_access()
            if not self._external_available:
                logger.info("External resolution stage disabled")
        return self._external_available

    async def resolve(self, query: str) -> ResolutionResult:
        """
        Resolve a query to its best translation.

        :param query: Word or phrase in the source language
        :return: ResolutionResult; confidence 0 and source "none" when nothing matched
        """
        key = normalize_query(query)
        self._enter(ResolutionStage.INIT, key)
        if not key:
            self._enter(ResolutionStage.FAILED, key)
            return ResolutionResult.empty(query, message="Query is empty")

        self._enter(ResolutionStage.CACHE_CHECK, key)
        cached = await self._cache_lookup(key)
        if cached is not None:
            self._enter(ResolutionStage.DONE, key)
            return replace(cached, query=query)

        result = await self._cascade(query, key, allow_decompose=True)

        if result.confidence <= 0.0:
            self._enter(ResolutionStage.FAILED, key)
            return result

        self._enter(ResolutionStage.CACHE_WRITE, key)
        await self.cache.set(key, result.to_dict(), result.source_tag)
        self._enter(ResolutionStage.DONE, key)
        return result

    # Cascade

    async def _cascade(self, query: str, key: str, allow_decompose: bool) -> ResolutionResult:
        self._enter(ResolutionStage.LOCAL_EXACT, key)
        exact = self._local_exact(query, key)
        if exact is not None:
            return exact

        self._enter(ResolutionStage.LOCAL_FUZZY, key)
        local = self.lexicon.search_fuzzy(key, self.fuzzy_limit)
        if local and local[0].confidence >= self.fuzzy_accept_threshold:
            self._enter(ResolutionStage.VALIDATION, key)
            return self._validate(query, local)

        tokens = tokenize(key)
        if allow_decompose and len(tokens) > 1:
            return await self._decompose(query, key, tokens, local)

        self._enter(ResolutionStage.EXTERNAL_RESOLUTION, key)
        external = await self._resolve_external(key)

        self._enter(ResolutionStage.VALIDATION, key)
        return self._validate(query, local + external)

    async def _resolve_token(self, token: str) -> ResolutionResult:
        return await self._cascade(token, normalize_query(token), allow_decompose=False)

    def _local_exact(self, query: str, key: str) -> Optional[ResolutionResult]:
        senses = self.lexicon.senses(key)
        if not senses:
            return None
        if len(senses) == 1:
            return ResolutionResult(
                query=query,
                primary_entry=senses[0],
                confidence=1.0,
                source_tag=SOURCE_LEXICON_EXACT,
            )

        # Several senses share the key: rank them semantically
        scored = sorted(
            (RankedEntry(entry=s, confidence=self.scorer.score(key, s), source_tag=SOURCE_LEXICON_EXACT)
             for s in senses),
            key=lambda c: -c.confidence,
        )
        preferred = self.disambiguation.preferred_sense(key, senses)
        primary = next((c for c in scored if c.entry is preferred), scored[0])
        alternatives = [c for c in scored if c is not primary]

        needs, questions = self.disambiguation.evaluate(query, [primary] + alternatives)
        return ResolutionResult(
            query=query,
            primary_entry=primary.entry,
            confidence=1.0,
            source_tag=SOURCE_LEXICON_EXACT,
            alternatives=alternatives,
            needs_disambiguation=needs,
            disambiguation_questions=questions,
        )

    async def _decompose(
        self, query: str, key: str, tokens: List[str], local: List[RankedEntry]
    ) -> ResolutionResult:
        self._enter(ResolutionStage.MULTI_TOKEN_DECOMPOSE, key)
        phrase_external, composition = await asyncio.gather(
            self._resolve_external(key),
            self.decomposer.decompose(query, tokens),
        )

        self._enter(ResolutionStage.VALIDATION, key)
        if phrase_external:
            result = self._validate(query, local + phrase_external)
            return self._with_breakdown(result, composition.breakdown)

        composed = composition.to_candidate()
        if composed is not None:
            alternatives = order_alternatives(local, exclude=(composed.entry.target_term,))
            return ResolutionResult(
                query=query,
                primary_entry=composed.entry,
                confidence=composed.confidence,
                source_tag=composed.source_tag,
                alternatives=alternatives,
                word_breakdown=composition.breakdown,
            )

        if local:
            return self._with_breakdown(self._validate(query, local), composition.breakdown)

        return ResolutionResult(
            query=query,
            primary_entry=None,
            confidence=0.0,
            source_tag=SOURCE_NONE,
            word_breakdown=composition.breakdown,
            message=(
                f"No complete translation found for '{query}' "
                f"({composition.found_count} of {len(composition.breakdown)} words found)"
            ),
        )

    def _validate(self, query: str, candidates: List[RankedEntry]) -> ResolutionResult:
        consensus = self.consensus.build(candidates)
        if consensus is None:
            return ResolutionResult.empty(query)

        primary = consensus.primary
        needs, questions = self.disambiguation.evaluate(query, [primary] + consensus.alternatives)
        return ResolutionResult(
            query=query,
            primary_entry=primary.entry,
            confidence=primary.confidence,
            source_tag=primary.source_tag,
            alternatives=consensus.alternatives,
            needs_disambiguation=needs,
            disambiguation_questions=questions,
        )

    # External resolution

    async def _resolve_external(self, key: str) -> List[RankedEntry]:
        """
        Query every resolver concurrently under one shared deadline.

        Failing resolvers are logged and skipped. The first candidate at or
        above early_stop_confidence ends the stage; unfinished calls are
        cancelled and their results discarded.
        """
        if not self.external_available:
            return []

        tasks: Dict[asyncio.Task, int] = {}
        for index, resolver in enumerate(self.resolvers):
            try:
                pending_call = resolver.resolve(key)
            except Exception as e:
                logger.warning(f"Resolver {resolver.name} failed for '{key}': {e!r}")
                continue
            tasks[asyncio.ensure_future(self._call_resolver(resolver, key, pending_call))] = index

        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.resolver_deadline
        results: Dict[int, List[RankedEntry]] = {}
        pending = set(tasks)
        try:
            while pending:
                remaining = deadline - loop.time()
                if remaining <= 0:
                    logger.warning(f"Resolver deadline reached for '{key}', {len(pending)} call(s) abandoned")
                    break
                done, pending = await asyncio.wait(
                    pending, timeout=remaining, return_when=asyncio.FIRST_COMPLETED
                )
                confident = False
                for task in done:
                    candidates = task.result()
                    results[tasks[task]] = candidates
                    confident = confident or any(
                        c.confidence >= self.early_stop_confidence for c in candidates
                    )
                if confident:
                    if pending:
                        logger.debug(f"Confident answer for '{key}', cancelling {len(pending)} call(s)")
                    break
        finally:
            for task in pending:
                task.cancel()

        return [candidate for index in sorted(results) for candidate in results[index]]

    async def _call_resolver(self, resolver: ExternalResolver, key: str, pending_call: Any) -> List[RankedEntry]:
        try:
            if inspect.isawaitable(pending_call):
                candidates = await asyncio.wait_for(pending_call, timeout=resolver.timeout)
            else:
                candidates = pending_call
        except asyncio.TimeoutError:
            logger.warning(f"Resolver {resolver.name} timed out after {resolver.timeout}s for '{key}'")
            return []
        except ResolverError as e:
            logger.warning(f"Resolver failed for '{key}': {e}")
            return []
        except Exception as e:
            logger.warning(f"Resolver {resolver.name} raised for '{key}': {e!r}", exc_info=True)
            return []

        return [c for c in (candidates or []) if isinstance(c, RankedEntry)]

    # Cache

    async def _cache_lookup(self, key: str) -> Optional[ResolutionResult]:
        payload = await self.cache.get(key)
        if payload is None:
            return None
        try:
            result = ResolutionResult.from_dict(payload)
        except CacheCorruptionError as e:
            logger.warning(f"Ignoring corrupt cache entry for '{key}': {e}")
            return None
        logger.info(f"Cache hit for '{key}'")
        return result

    # Helpers

    @staticmethod
    def _with_breakdown(result: ResolutionResult, breakdown: List[WordBreakdownItem]) -> ResolutionResult:
        return replace(result, word_breakdown=breakdown)

    @staticmethod
    def _enter(stage: ResolutionStage, key: str) -> None:
        logger.debug(f"[{stage.value}] '{key}'")
