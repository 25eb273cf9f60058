"""Fixtures for backend tests."""

from __future__ import annotations

import pytest

from spinquery.backend.app import create_app
from spinquery.backend.config import TestConfig


@pytest.fixture()
def app(data_graph):
    """Create a test Flask application serving the sample dataset."""
    application = create_app(TestConfig)
    application.config["DATASET"] = data_graph
    yield application


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


@pytest.fixture()
def dataset(app):
    """Direct access to the served graph."""
    return app.config["DATASET"]
