"""Tests for /api/endpoint."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
import requests
from rdflib import Graph

ENDPOINT = "http://example.org/sparql"
SELECT = "SELECT ?x WHERE { ?x ?p ?o }"


def make_response(text, content_type):
    resp = MagicMock()
    resp.status_code = 200
    resp.text = text
    resp.headers = {"content-type": content_type}
    resp.raise_for_status = MagicMock()
    return resp


@pytest.fixture
def session():
    with patch("spinquery.sparql_helper.requests.Session") as mock_session_cls:
        mock_session = MagicMock()
        mock_session_cls.return_value = mock_session
        yield mock_session


def test_select(client, session):
    session.get.return_value = make_response(
        '{"head":{"vars":["x"]},"results":{"bindings":'
        '[{"x":{"type":"uri","value":"http://example.org/a"}}]}}',
        "application/sparql-results+json",
    )

    resp = client.post("/api/endpoint", json={"endpoint": ENDPOINT, "query": SELECT})

    assert resp.status_code == 200
    assert resp.mimetype == "application/sparql-results+json"
    assert "ETag" not in resp.headers
    body = resp.get_json()
    assert body["results"]["bindings"][0]["x"]["value"] == "http://example.org/a"


def test_select_as_xml(client, session):
    session.get.return_value = make_response(
        '{"head":{"vars":["x"]},"results":{"bindings":[]}}',
        "application/sparql-results+json",
    )
    resp = client.post(
        "/api/endpoint",
        json={"endpoint": ENDPOINT, "query": SELECT},
        headers={"Accept": "application/sparql-results+xml"},
    )
    assert resp.status_code == 200
    assert resp.mimetype == "application/sparql-results+xml"


def test_construct(client, session):
    session.get.return_value = make_response(
        "<http://example.org/a> <http://example.org/label> \"A\" .\n", "text/turtle",
    )
    resp = client.post(
        "/api/endpoint",
        json={"endpoint": ENDPOINT, "query": "CONSTRUCT { ?s ?p ?o } WHERE { ?s ?p ?o }"},
        headers={"Accept": "text/turtle"},
    )
    assert resp.status_code == 200
    assert resp.mimetype == "text/turtle"
    assert len(Graph().parse(data=resp.data, format="turtle")) == 1
    assert "ETag" not in resp.headers


def test_unreachable_endpoint(client, session):
    session.get.side_effect = requests.exceptions.ConnectionError("Connection refused")
    resp = client.post("/api/endpoint", json={"endpoint": ENDPOINT, "query": SELECT})
    assert resp.status_code == 502
    assert resp.get_json()["error"] == "Query evaluation failed"


@pytest.mark.parametrize(
    "payload",
    [{}, {"endpoint": ENDPOINT}, {"query": SELECT}, {"endpoint": "", "query": SELECT}],
)
def test_missing_fields(client, payload):
    resp = client.post("/api/endpoint", json=payload)
    assert resp.status_code == 400


def test_bad_query(client):
    resp = client.post("/api/endpoint", json={"endpoint": ENDPOINT, "query": "SELEKT"})
    assert resp.status_code == 400
