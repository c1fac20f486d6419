#!/usr/bin/env python3
"""
Flask REST API entry point for the lexicon lookup service.

Configuration comes from environment variables (and .env for local runs).
"""
import logging
import os
import sys
from pathlib import Path
from typing import Optional

# src/ layout: make the package importable when run as a script
sys.path.insert(0, str(Path(__file__).parent / "src"))

from lexicon_lookup.api import create_app
from lexicon_lookup.app import LexiconLookupApp
from lexicon_lookup.config_loader import load_config_from_env
from lexicon_lookup.exceptions import ConfigurationError
from lexicon_lookup.logging_config import configure_logging

config = None
try:
    config = load_config_from_env()
except ConfigurationError as e:
    configure_logging()
    logging.getLogger(__name__).error(f"Invalid configuration: {e}")
else:
    configure_logging(config.log_level)

logger = logging.getLogger(__name__)


def _initialize_from_env() -> Optional[LexiconLookupApp]:
    """Build the lookup service; None if configuration is unusable."""
    if config is None:
        return None
    lookup_app = LexiconLookupApp(config)
    lookup_app.initialize()
    logger.info("Lookup service initialized from environment variables")
    return lookup_app


app = create_app(_initialize_from_env())


if __name__ == "__main__":
    port = int(os.getenv("PORT", 7860))
    app.run(host="0.0.0.0", port=port, debug=False)
