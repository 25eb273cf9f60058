"""Application configuration loaded from environment variables."""

from __future__ import annotations

import os


class Config:
    """Default configuration for the Flask backend."""

    SECRET_KEY = os.getenv("SECRET_KEY", "dev-key-change-in-prod")
    DEBUG = os.getenv("FLASK_DEBUG", "0") == "1"

    # CORS: origins allowed to call this API
    CORS_ORIGINS = os.getenv(
        "CORS_ORIGINS", "http://localhost:*",
    ).split(",")

    # RDF file served by /api/query and /api/resource (empty = no data)
    SPINQUERY_DATASET = os.getenv("SPINQUERY_DATASET", "")
    SPINQUERY_BASE_URI = os.getenv("SPINQUERY_BASE_URI", "") or None

    # Remote SPARQL endpoint defaults
    SPARQL_TIMEOUT = int(os.getenv("SPARQL_TIMEOUT", "30"))
    SPARQL_MAX_RETRIES = int(os.getenv("SPARQL_MAX_RETRIES", "3"))
    SPARQL_INITIAL_BACKOFF = float(os.getenv("SPARQL_INITIAL_BACKOFF", "1.0"))

    # Media type used when the request sends no Accept header
    DEFAULT_MEDIA_TYPE = os.getenv("DEFAULT_MEDIA_TYPE", "application/rdf+xml")


class TestConfig(Config):
    """Configuration overrides for testing."""

    TESTING = True
    SPINQUERY_DATASET = ""
    SPARQL_MAX_RETRIES = 1
    SPARQL_INITIAL_BACKOFF = 0.0
