"""Flask application factory for the spinquery backend API."""

from __future__ import annotations

import logging

from flask import Flask, jsonify
from flask_cors import CORS
from pydantic import ValidationError
from rdflib import Graph
from werkzeug.exceptions import HTTPException

from spinquery.api import load_dataset
from spinquery.backend.config import Config
from spinquery.errors import InvalidArgument, QueryEvaluationFailure, QueryParseFailure
from spinquery.manager import DataManager

logger = logging.getLogger(__name__)


def register_error_handlers(app: Flask) -> None:
    """Register consistent JSON error handlers."""

    @app.errorhandler(InvalidArgument)
    def invalid_argument(exc):
        return jsonify({"error": str(exc)}), 400

    @app.errorhandler(QueryParseFailure)
    def parse_failure(exc):
        return jsonify({"error": "Invalid SPARQL query", "details": str(exc)}), 400

    @app.errorhandler(ValidationError)
    def invalid_payload(exc):
        return jsonify({"error": "Invalid request", "details": exc.errors(
            include_url=False, include_context=False, include_input=False,
        )}), 400

    @app.errorhandler(QueryEvaluationFailure)
    def evaluation_failure(exc):
        return jsonify({
            "error": "Query evaluation failed",
            "details": str(exc),
        }), 502

    @app.errorhandler(HTTPException)
    def http_error(exc):
        return jsonify({"error": exc.description}), exc.code

    @app.errorhandler(Exception)
    def unhandled(exc):
        app.logger.exception("Unhandled exception")
        return jsonify({"error": "Internal server error"}), 500


def create_app(config_class: type[Config] = Config) -> Flask:
    """Create and configure the Flask application.

    Parameters
    ----------
    config_class:
        Configuration class (default :class:`Config`).

    Returns
    -------
    Flask
        Configured Flask application.
    """
    app = Flask(__name__)
    app.config.from_object(config_class)

    # ── CORS ──────────────────────────────────────────────────────────
    CORS(app, resources={
        r"/api/*": {
            "origins": config_class.CORS_ORIGINS,
            "methods": ["GET", "POST", "OPTIONS"],
            "allow_headers": ["Content-Type", "Accept", "If-None-Match"],
            "expose_headers": ["ETag"],
        },
    })

    # ── Dataset ───────────────────────────────────────────────────────
    dataset_path = config_class.SPINQUERY_DATASET
    if dataset_path:
        dataset = load_dataset(dataset_path, base_uri=config_class.SPINQUERY_BASE_URI)
        logger.info("Loaded %d statements from %s", len(dataset), dataset_path)
    else:
        dataset = Graph()
        logger.warning("SPINQUERY_DATASET is not set; serving an empty dataset")
    app.config["DATASET"] = dataset

    # ── Query execution ───────────────────────────────────────────────
    app.config["DATA_MANAGER"] = DataManager(
        timeout=config_class.SPARQL_TIMEOUT,
        max_retries=config_class.SPARQL_MAX_RETRIES,
        initial_backoff=config_class.SPARQL_INITIAL_BACKOFF,
    )

    # ── Blueprints ────────────────────────────────────────────────────
    from spinquery.backend.routes.builder import builder_bp
    from spinquery.backend.routes.endpoint import endpoint_bp
    from spinquery.backend.routes.query import query_bp

    app.register_blueprint(query_bp, url_prefix="/api")
    app.register_blueprint(endpoint_bp, url_prefix="/api/endpoint")
    app.register_blueprint(builder_bp, url_prefix="/api/builder")

    # ── Error handlers ────────────────────────────────────────────────
    register_error_handlers(app)

    # ── Health check ──────────────────────────────────────────────────
    @app.route("/api/health")
    def health():
        return jsonify({"status": "ok", "statements": len(app.config["DATASET"])})

    return app


if __name__ == "__main__":
    create_app().run(host="0.0.0.0", port=5000, debug=True)
