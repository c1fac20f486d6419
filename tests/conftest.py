"""
Shared fixtures for lexicon lookup tests.
"""
import asyncio
import json

import pytest

from lexicon_lookup.cache import InMemoryKeyValueStore, ResultCache
from lexicon_lookup.lexicon import LexiconStore
from lexicon_lookup.models import Entry, Example
from lexicon_lookup.resolvers.base import ExternalResolver, make_candidate
from lexicon_lookup.schemas import SOURCE_AI_TRANSLATION


SAMPLE_LEXICON = [
    {
        "english": "hello",
        "ibibio": "nno",
        "meaning": "A greeting used when meeting someone",
        "part_of_speech": "interjection",
        "examples": [{"english": "Hello, how are you?", "ibibio": "Nno, afo adi?"}],
    },
    {
        "english": "water",
        "ibibio": "mmong",
        "meaning": "Clear liquid essential for life",
        "part_of_speech": "noun",
    },
    {
        "english": "stop",
        "ibibio": "tịre",
        "meaning": "to stop, cease, halt; to come to an end",
        "part_of_speech": "verb",
    },
    {
        "english": "stop",
        "ibibio": "tịbe",
        "meaning": "to stop, block, prevent someone from passing",
        "part_of_speech": "verb",
    },
    {
        "english": "good",
        "ibibio": "afiak",
        "meaning": "good, pleasant, of high quality",
        "part_of_speech": "adjective",
    },
    {
        "english": "good",
        "ibibio": "emenere",
        "meaning": "good, kind, morally upright",
        "part_of_speech": "adjective",
    },
    {
        "english": "house",
        "ibibio": "ufok",
        "meaning": "A building where people live; a home",
        "part_of_speech": "noun",
    },
]


class FakeClock:
    """Manually advanced time source."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class StubResolver(ExternalResolver):
    """Resolver returning canned candidates, optionally after a delay."""

    def __init__(self, name="stub", answers=None, delay=0.0, error=None,
                 source_tag=SOURCE_AI_TRANSLATION, timeout=5.0):
        super().__init__(timeout=timeout)
        self.name = name
        self.source_tag = source_tag
        self.answers = answers or []
        self.delay = delay
        self.error = error
        self.calls = []
        self.cancelled = False

    async def resolve(self, query):
        self.calls.append(query)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        if self.error is not None:
            raise self.error
        return [
            make_candidate(query, target, confidence, self.source_tag)
            for target, confidence in self.answers
        ]


@pytest.fixture
def make_entry():
    """Factory for Entry objects with sensible defaults."""
    def _make(source, target, gloss="", part_of_speech="unknown", entry_id=None,
              examples=(), pronunciation=None, cultural_note=None, category=None):
        return Entry(
            id=entry_id or f"{source}-{target}",
            source_term=source,
            target_term=target,
            gloss=gloss,
            part_of_speech=part_of_speech,
            examples=tuple(Example(source=s, target=t) for s, t in examples),
            pronunciation=pronunciation,
            cultural_note=cultural_note,
            category=category,
        )
    return _make


@pytest.fixture
def lexicon_file(tmp_path):
    path = tmp_path / "lexicon.json"
    path.write_text(json.dumps(SAMPLE_LEXICON, ensure_ascii=False), encoding="utf-8")
    return path


@pytest.fixture
def store(lexicon_file):
    lexicon = LexiconStore(path=str(lexicon_file))
    assert lexicon.load()
    return lexicon


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return ResultCache(
        store=InMemoryKeyValueStore(),
        default_ttl=100,
        frequent_ttl=1000,
        frequency_threshold=5,
        sweep_interval=3600,
        clock=clock,
    )


@pytest.fixture
def stub_resolver():
    """Factory for StubResolver instances."""
    return StubResolver
