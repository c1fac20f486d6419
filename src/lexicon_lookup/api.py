"""
Flask REST API over LexiconLookupApp.
"""
import logging
from typing import Optional

from flask import Flask, jsonify, request

from .app import LexiconLookupApp

logger = logging.getLogger(__name__)

MAX_QUERY_LENGTH = 200


def _validate_query(data: Optional[dict]) -> str:
    if not isinstance(data, dict) or "query" not in data:
        raise ValueError("Missing 'query' in request body")
    query = data["query"]
    if not isinstance(query, str):
        raise ValueError("'query' must be a string")
    query = query.strip()
    if not query:
        raise ValueError("Empty query")
    if len(query) > MAX_QUERY_LENGTH:
        raise ValueError(f"Query too long (max {MAX_QUERY_LENGTH} characters)")
    return query


def create_app(lookup_app: Optional[LexiconLookupApp]) -> Flask:
    """
    Build the Flask application.

    :param lookup_app: Initialized facade, or None if initialization failed
        (every lookup route then answers 503)
    """
    app = Flask(__name__)

    @app.route("/api/health", methods=["GET"])
    def health():
        """Liveness plus lexicon/external status."""
        if lookup_app is None:
            return jsonify({"status": "unavailable"}), 503
        lexicon = lookup_app.lexicon_stats()
        return jsonify({
            "status": "ok",
            "lexicon_loaded": lexicon.loaded,
            "lexicon_entries": lexicon.total_entries,
            "external_resolvers": lookup_app.orchestrator.external_available,
        })

    @app.route("/api/lookup", methods=["POST"])
    def lookup():
        """Lookup endpoint."""
        if lookup_app is None:
            return jsonify({"error": "Service not initialized. Please check configuration."}), 503

        try:
            query = _validate_query(request.get_json(silent=True))
        except ValueError as e:
            logger.warning(f"Invalid lookup request: {e}")
            return jsonify({"error": str(e)}), 400

        try:
            result = lookup_app.lookup(query)
        except Exception as e:
            logger.error(f"Lookup endpoint error: {str(e)}", exc_info=True)
            return jsonify({"error": "Internal error"}), 500

        logger.info(f"Lookup '{query}' -> {result.target_term} ({result.source_tag}, {result.confidence:.2f})")
        return jsonify(result.to_dict())

    @app.route("/api/cache/stats", methods=["GET"])
    def cache_stats():
        if lookup_app is None:
            return jsonify({"error": "Service not initialized"}), 503
        stats = lookup_app.cache_stats()
        return jsonify({
            "total_entries": stats.total_entries,
            "frequent_searches": [
                {"query": key, "count": count} for key, count in stats.frequent_searches
            ],
            "hit_rate": round(stats.hit_rate, 4),
        })

    @app.route("/api/cache", methods=["DELETE"])
    def clear_cache():
        if lookup_app is None:
            return jsonify({"error": "Service not initialized"}), 503
        lookup_app.clear_cache()
        return jsonify({"status": "success", "message": "Cache cleared"})

    return app
