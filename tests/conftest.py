"""Shared fixtures."""

from __future__ import annotations

import pytest
from rdflib import Graph

DATA_TTL = """
@prefix ex: <http://example.org/> .

ex:a a ex:Thing ;
    ex:name "A" ;
    ex:knows ex:b .

ex:b a ex:Thing ;
    ex:name "B" .

ex:c a ex:Other ;
    ex:name "C" .
"""


@pytest.fixture
def data_graph():
    """Small dataset with two ex:Thing and one ex:Other."""
    g = Graph()
    g.parse(data=DATA_TTL, format="turtle")
    return g


@pytest.fixture
def graph():
    """Empty graph receiving SPIN triples."""
    return Graph()
