"""
Tests for the resolution orchestrator cascade.
"""
import asyncio
import time
from dataclasses import replace
from unittest.mock import MagicMock

import pytest

from lexicon_lookup.cache import JsonFileKeyValueStore, ResultCache
from lexicon_lookup.credentials import CredentialProvider, StaticCredentialProvider
from lexicon_lookup.exceptions import ResolverError
from lexicon_lookup.lexicon import LexiconStore
from lexicon_lookup.resolution import ResolutionOrchestrator
from lexicon_lookup.resolvers.base import ExternalResolver
from lexicon_lookup.schemas import (
    SOURCE_AI_TRANSLATION,
    SOURCE_LEXICON_EXACT,
    SOURCE_LEXICON_FUZZY,
    SOURCE_NONE,
    SOURCE_SENTENCE_COMPOSITION,
    ResolutionResult,
)


class ExplodingResolver(ExternalResolver):
    """Resolver that fails before returning an awaitable."""

    name = "exploding"

    def resolve(self, query):
        raise RuntimeError("boom")


def _orchestrator(store, cache, resolvers=(), **kwargs):
    return ResolutionOrchestrator(lexicon=store, cache=cache, resolvers=resolvers, **kwargs)


def _resolve(orchestrator, query):
    return asyncio.run(orchestrator.resolve(query))


class TestLocalResolution:
    """Tests for cache and lexicon stages."""

    def test_exact_match(self, store, cache, stub_resolver):
        """Test that an exact lexicon hit is final with confidence 1.0."""
        resolver = stub_resolver(answers=[("ndewo", 0.99)])
        orchestrator = _orchestrator(store, cache, [resolver])

        result = _resolve(orchestrator, "Hello")

        assert result.target_term == "nno"
        assert result.confidence == 1.0
        assert result.source_tag == SOURCE_LEXICON_EXACT
        assert result.query == "Hello"
        assert resolver.calls == []

    def test_multiple_senses_use_preferred_primary(self, store, cache):
        """Test that a key with several senses leads with the preferred one."""
        result = _resolve(_orchestrator(store, cache), "stop")

        assert result.target_term == "tịre"
        assert result.confidence == 1.0
        assert [a.entry.target_term for a in result.alternatives] == ["tịbe"]

    def test_fuzzy_match_above_threshold_skips_external(self, cache, make_entry, stub_resolver):
        """Test that a confident approximate match ends the lookup locally."""
        store = LexiconStore()
        store.load_entries([make_entry("stop", "tịre", gloss="stop, halt, cease")])
        resolver = stub_resolver(answers=[("kpa", 0.99)])

        result = _resolve(_orchestrator(store, cache, [resolver]), "halt")

        assert result.target_term == "tịre"
        assert result.source_tag == SOURCE_LEXICON_FUZZY
        assert result.confidence >= 0.7
        assert resolver.calls == []

    def test_result_is_cached(self, store, cache):
        """Test that a successful lookup is written to the cache."""
        _resolve(_orchestrator(store, cache), "water")

        entry = cache.peek("water")
        assert entry is not None
        assert entry.source_tag == SOURCE_LEXICON_EXACT

    def test_repeat_lookup_is_served_from_cache(self, store, cache, stub_resolver):
        """Test that a repeated query returns an equal result without resolver calls."""
        resolver = stub_resolver(answers=[("eyo", 0.8)])
        orchestrator = _orchestrator(store, cache, [resolver])

        first = _resolve(orchestrator, "sunrise")
        second = _resolve(orchestrator, "  SUNRISE ")

        assert first.target_term == "eyo"
        assert replace(second, query=first.query).to_dict() == first.to_dict()
        assert resolver.calls == ["sunrise"]

    def test_cache_hit_keeps_caller_spelling(self, store, cache):
        """Test that a cached result reports the query as this caller typed it."""
        orchestrator = _orchestrator(store, cache)
        _resolve(orchestrator, "hello")

        result = _resolve(orchestrator, "HELLO")

        assert result.query == "HELLO"
        assert result.target_term == "nno"
        assert cache.frequency("hello") == 1

    def test_undecodable_cache_file_does_not_break_lookup(self, store, tmp_path, clock):
        """Test that a cache file that is not valid UTF-8 is a miss, not a failure."""
        (tmp_path / f"{ResultCache.NAMESPACE}.json").write_bytes(b'{"entries": {"x": "\xff"}}')
        cache = ResultCache(store=JsonFileKeyValueStore(str(tmp_path)), clock=clock)
        asyncio.run(cache.load())

        result = _resolve(_orchestrator(store, cache), "hello")

        assert result.target_term == "nno"
        assert result.source_tag == SOURCE_LEXICON_EXACT
        assert cache.peek("hello") is not None

    def test_corrupt_cache_entry_is_a_miss(self, store, cache):
        """Test that an unreadable cached payload is ignored."""
        asyncio.run(cache.set("hello", {"bogus": True}, "lexicon-exact"))

        result = _resolve(_orchestrator(store, cache), "hello")

        assert result.target_term == "nno"

    def test_empty_query(self, store, cache):
        """Test that a blank query returns an empty result."""
        result = _resolve(_orchestrator(store, cache), "   ")

        assert result.primary_entry is None
        assert result.source_tag == SOURCE_NONE
        assert result.message == "Query is empty"

    def test_no_match_is_not_cached(self, store, cache):
        """Test that a lookup with no answer returns confidence 0 and skips the cache."""
        result = _resolve(_orchestrator(store, cache), "spaceship")

        assert result.primary_entry is None
        assert result.confidence == 0.0
        assert result.source_tag == SOURCE_NONE
        assert result.message == "No translation found for 'spaceship'"
        assert len(cache) == 0


class TestExternalResolution:
    """Tests for the external resolution stage."""

    def test_external_candidate_used(self, store, cache, stub_resolver):
        """Test that an unknown word is answered by an external resolver."""
        resolver = stub_resolver(answers=[("eyo", 0.8)])

        result = _resolve(_orchestrator(store, cache, [resolver]), "sunrise")

        assert result.target_term == "eyo"
        assert result.source_tag == SOURCE_AI_TRANSLATION
        assert result.confidence == pytest.approx(0.8)

    def test_alternatives_ordered_by_confidence(self, store, cache, stub_resolver):
        """Test that alternatives are non-increasing in confidence."""
        resolver = stub_resolver(answers=[("eyo", 0.85), ("usen", 0.5), ("ndan", 0.7)])

        result = _resolve(_orchestrator(store, cache, [resolver]), "sunrise")

        assert result.target_term == "eyo"
        assert [a.confidence for a in result.alternatives] == [0.7, 0.5]

    def test_missing_credentials_skip_external(self, store, cache, stub_resolver):
        """Test that without external access the stage is skipped entirely."""
        resolver = stub_resolver(answers=[("eyo", 0.95)])
        orchestrator = _orchestrator(
            store, cache, [resolver], credentials=StaticCredentialProvider(False)
        )

        result = _resolve(orchestrator, "sunrise")

        assert orchestrator.external_available is False
        assert result.source_tag == SOURCE_NONE
        assert result.confidence == 0.0
        assert resolver.calls == []

    def test_credentials_checked_once(self, store, cache, stub_resolver):
        """Test that the credential check runs once per orchestrator."""
        credentials = MagicMock(spec=CredentialProvider)
        credentials.has_external_access.return_value = True
        orchestrator = _orchestrator(
            store, cache, [stub_resolver(answers=[("x", 0.8)])], credentials=credentials
        )

        _resolve(orchestrator, "sunrise")
        _resolve(orchestrator, "moonrise")

        assert credentials.has_external_access.call_count == 1

    def test_failing_resolvers_are_isolated(self, store, cache, stub_resolver):
        """Test that raising resolvers do not prevent others from answering."""
        resolvers = [
            ExplodingResolver(),
            stub_resolver(name="broken", error=ResolverError("broken", "HTTP 500")),
            stub_resolver(name="crashing", error=KeyError("data")),
            stub_resolver(name="good", answers=[("eyo", 0.8)]),
        ]

        result = _resolve(_orchestrator(store, cache, resolvers), "sunrise")

        assert result.target_term == "eyo"

    def test_confident_answer_cancels_slow_resolvers(self, store, cache, stub_resolver):
        """Test that a confident candidate ends the stage and cancels pending calls."""
        slow = stub_resolver(name="slow", answers=[("ndan", 0.99)], delay=5)
        fast = stub_resolver(name="fast", answers=[("eyo", 0.95)])
        orchestrator = _orchestrator(store, cache, [slow, fast], resolver_deadline=10)

        started = time.monotonic()
        result = _resolve(orchestrator, "sunrise")

        assert time.monotonic() - started < 3
        assert result.target_term == "eyo"
        assert slow.cancelled is True

    def test_shared_deadline_abandons_slow_resolvers(self, store, cache, stub_resolver):
        """Test that resolvers still running at the deadline are abandoned."""
        slow = stub_resolver(name="slow", answers=[("ndan", 0.8)], delay=5)
        orchestrator = _orchestrator(store, cache, [slow], resolver_deadline=0.05)

        result = _resolve(orchestrator, "sunrise")

        assert result.source_tag == SOURCE_NONE

    def test_resolver_timeout(self, store, cache, stub_resolver):
        """Test that a resolver exceeding its own timeout contributes nothing."""
        slow = stub_resolver(name="slow", answers=[("ndan", 0.8)], delay=1, timeout=0.05)
        fast = stub_resolver(name="fast", answers=[("eyo", 0.6)])

        result = _resolve(_orchestrator(store, cache, [slow, fast]), "sunrise")

        assert result.target_term == "eyo"


class TestMultiTokenResolution:
    """Tests for multi-token queries."""

    def test_phrase_composed_from_words(self, store, cache):
        """Test that a phrase made of known words is composed word by word."""
        result = _resolve(_orchestrator(store, cache), "good house")

        assert result.target_term == "afiak ufok"
        assert result.source_tag == SOURCE_SENTENCE_COMPOSITION
        assert [w.target_token for w in result.word_breakdown] == ["afiak", "ufok"]
        assert all(w.found for w in result.word_breakdown)

    def test_phrase_answer_from_external_preferred(self, store, cache, stub_resolver):
        """Test that a whole-phrase external answer beats composition."""
        resolver = stub_resolver(answers=[("ufok afiak", 0.8)])

        result = _resolve(_orchestrator(store, cache, [resolver]), "good house")

        assert result.target_term == "ufok afiak"
        assert result.source_tag == SOURCE_AI_TRANSLATION
        assert len(result.word_breakdown) == 2
        assert resolver.calls == ["good house"]

    def test_long_phrase_composes_every_word(self, cache, make_entry):
        """Test that a phrase of many known words is translated in full."""
        words = [f"word{name}" for name in (
            "one", "two", "three", "four", "five", "six", "seven",
            "eight", "nine", "ten", "eleven", "twelve", "thirteen",
        )]
        store = LexiconStore()
        store.load_entries([make_entry(w, f"t{w}") for w in words])

        result = _resolve(_orchestrator(store, cache), " ".join(words))

        assert result.source_tag == SOURCE_SENTENCE_COMPOSITION
        assert len(result.word_breakdown) == 13
        assert result.target_term == " ".join(f"t{w}" for w in words)

    def test_partial_phrase_reports_breakdown(self, store, cache):
        """Test that a phrase with unknown words returns its breakdown and no answer."""
        result = _resolve(_orchestrator(store, cache), "good spaceship")

        assert result.primary_entry is None
        assert result.confidence == 0.0
        assert [w.target_token for w in result.word_breakdown] == ["afiak", "[spaceship]"]
        assert "1 of 2 words found" in result.message
        assert len(cache) == 0


class TestResolutionResult:
    """Tests for ResolutionResult serialization."""

    def test_round_trip(self, store, cache):
        """Test that a result survives to_dict/from_dict unchanged."""
        result = _resolve(_orchestrator(store, cache), "good house")

        assert ResolutionResult.from_dict(result.to_dict()) == result

    def test_confidence_validated(self):
        """Test that confidence outside [0, 1] is rejected."""
        with pytest.raises(ValueError):
            ResolutionResult(query="a", primary_entry=None, confidence=1.5, source_tag=SOURCE_NONE)
