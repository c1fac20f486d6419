"""
Tests for the application facade and the Flask API.
"""
import asyncio
from unittest.mock import MagicMock

import pytest

from lexicon_lookup.api import MAX_QUERY_LENGTH, create_app
from lexicon_lookup.app import LexiconLookupApp
from lexicon_lookup.config import LookupConfig
from lexicon_lookup.credentials import StaticCredentialProvider


@pytest.fixture
def config(tmp_path, lexicon_file):
    return LookupConfig(
        lexicon_path=str(lexicon_file),
        cache_dir=str(tmp_path / "cache"),
        enable_external=False,
    )


@pytest.fixture
def lookup_app(config):
    app = LexiconLookupApp(config, resolvers=[])
    app.initialize()
    yield app
    app.shutdown()


@pytest.fixture
def client(lookup_app):
    return create_app(lookup_app).test_client()


class TestLexiconLookupApp:
    """Tests for LexiconLookupApp."""

    def test_lookup_before_initialize_raises(self, config):
        """Test that lookups require initialize()."""
        app = LexiconLookupApp(config)

        with pytest.raises(RuntimeError, match="not initialized"):
            app.lookup("hello")

    def test_lookup(self, lookup_app):
        """Test a basic lexicon lookup through the facade."""
        result = lookup_app.lookup("hello")

        assert result.target_term == "nno"
        assert result.confidence == 1.0

    def test_alookup(self, lookup_app):
        """Test that the async entry point works from another event loop."""
        result = asyncio.run(lookup_app.alookup("water"))

        assert result.target_term == "mmong"

    def test_lookup_many(self, lookup_app):
        """Test that several queries resolve in order."""
        results = lookup_app.lookup_many(["hello", "water", "spaceship"])

        assert [r.target_term for r in results] == ["nno", "mmong", None]

    def test_cache_persisted_across_instances(self, config, lookup_app):
        """Test that cached results survive a restart."""
        lookup_app.lookup("hello")

        restarted = LexiconLookupApp(config, resolvers=[])
        restarted.initialize()
        try:
            assert restarted.cache_stats().total_entries == 1
        finally:
            restarted.shutdown()

    def test_clear_cache(self, lookup_app):
        """Test that clear_cache empties the cache."""
        lookup_app.lookup("hello")

        lookup_app.clear_cache()

        assert lookup_app.cache_stats().total_entries == 0

    def test_missing_lexicon_does_not_fail_initialize(self, tmp_path):
        """Test that an unavailable lexicon leaves the service running."""
        config = LookupConfig(
            lexicon_path=str(tmp_path / "missing.json"),
            cache_dir=str(tmp_path / "cache"),
            enable_external=False,
        )
        app = LexiconLookupApp(config, resolvers=[])
        app.initialize()
        try:
            assert app.lexicon_stats().loaded is False
            assert app.lookup("hello").confidence == 0.0
        finally:
            app.shutdown()

    def test_external_resolvers_wired(self, config, stub_resolver):
        """Test that injected resolvers answer words missing from the lexicon."""
        resolver = stub_resolver(answers=[("eyo", 0.8)])
        app = LexiconLookupApp(
            config, resolvers=[resolver], credentials=StaticCredentialProvider(True)
        )
        app.initialize()
        try:
            result = app.lookup("sunrise")
        finally:
            app.shutdown()

        assert result.target_term == "eyo"
        assert resolver.calls == ["sunrise"]


class TestLookupAPI:
    """Tests for the REST endpoints."""

    def test_lookup(self, client):
        """Test a successful lookup."""
        response = client.post("/api/lookup", json={"query": "hello"})

        assert response.status_code == 200
        data = response.get_json()
        assert data["primary_entry"]["target_term"] == "nno"
        assert data["source_tag"] == "lexicon-exact"
        assert data["confidence"] == 1.0

    def test_lookup_no_match(self, client):
        """Test that an unknown word is a 200 with an empty result."""
        response = client.post("/api/lookup", json={"query": "spaceship"})

        assert response.status_code == 200
        data = response.get_json()
        assert data["primary_entry"] is None
        assert data["source_tag"] == "none"

    @pytest.mark.parametrize("body", [
        {},
        {"query": ""},
        {"query": "   "},
        {"query": 42},
        {"query": "x" * (MAX_QUERY_LENGTH + 1)},
    ])
    def test_invalid_requests(self, client, body):
        """Test that invalid bodies are rejected with 400."""
        response = client.post("/api/lookup", json=body)

        assert response.status_code == 400
        assert "error" in response.get_json()

    def test_non_json_body(self, client):
        """Test that a non-JSON body is rejected with 400."""
        response = client.post("/api/lookup", data="hello", content_type="text/plain")

        assert response.status_code == 400

    def test_health(self, client):
        """Test the health endpoint."""
        data = client.get("/api/health").get_json()

        assert data["status"] == "ok"
        assert data["lexicon_loaded"] is True
        assert data["lexicon_entries"] == 7
        assert data["external_resolvers"] is False

    def test_cache_stats_and_clear(self, client):
        """Test cache statistics and clearing over HTTP."""
        client.post("/api/lookup", json={"query": "hello"})
        client.post("/api/lookup", json={"query": "hello"})

        stats = client.get("/api/cache/stats").get_json()
        assert stats["total_entries"] == 1
        assert stats["frequent_searches"] == [{"query": "hello", "count": 1}]
        assert stats["hit_rate"] == 0.5

        response = client.delete("/api/cache")
        assert response.status_code == 200
        assert client.get("/api/cache/stats").get_json()["total_entries"] == 0

    def test_lookup_error_is_500(self):
        """Test that unexpected lookup failures return 500."""
        lookup_app = MagicMock(spec=LexiconLookupApp)
        lookup_app.lookup.side_effect = RuntimeError("boom")
        client = create_app(lookup_app).test_client()

        response = client.post("/api/lookup", json={"query": "hello"})

        assert response.status_code == 500
        assert response.get_json() == {"error": "Internal error"}

    def test_uninitialized_service(self):
        """Test that every route answers 503 without a service."""
        client = create_app(None).test_client()

        assert client.post("/api/lookup", json={"query": "hello"}).status_code == 503
        assert client.get("/api/health").status_code == 503
        assert client.get("/api/cache/stats").status_code == 503
        assert client.delete("/api/cache").status_code == 503
