"""SPIN SPARQL Syntax vocabulary and media type constants.

The query graph uses the ``sp:`` namespace of the SPIN RDF syntax
(http://www.w3.org/Submission/2011/SUBM-spin-sparql-20110222/).  Only the
terms needed by the builder, the translator and the renderer are listed.
"""

from __future__ import annotations

from rdflib import Namespace

__all__ = [
    "SP",
    "SP_NS",
    "QUERY_TYPES",
    "MediaTypes",
]

SP_NS = "http://spinrdf.org/sp#"
SP = Namespace(SP_NS)

# Query form name (as used by the rdflib parser) -> SPIN class
QUERY_TYPES = {
    "SelectQuery": SP.Select,
    "ConstructQuery": SP.Construct,
    "DescribeQuery": SP.Describe,
    "AskQuery": SP.Ask,
}

# Keyword used when rendering each SPIN query class
QUERY_KEYWORDS = {
    SP.Select: "SELECT",
    SP.Construct: "CONSTRUCT",
    SP.Describe: "DESCRIBE",
    SP.Ask: "ASK",
}


class MediaTypes:
    """Media types produced by query-result resources."""

    # CONSTRUCT/DESCRIBE results (RDF formats)
    RDF_XML = "application/rdf+xml"
    TURTLE = "text/turtle"
    NTRIPLES = "application/n-triples"
    JSONLD = "application/ld+json"

    # SELECT/ASK results
    SPARQL_RESULTS_JSON = "application/sparql-results+json"
    SPARQL_RESULTS_XML = "application/sparql-results+xml"

    DEFAULT = RDF_XML

    GRAPH_TYPES = (RDF_XML, TURTLE, NTRIPLES, JSONLD)
    RESULT_SET_TYPES = (SPARQL_RESULTS_JSON, SPARQL_RESULTS_XML)

    # rdflib serializer / result-serializer plugin names
    FORMATS = {
        RDF_XML: "xml",
        TURTLE: "turtle",
        NTRIPLES: "nt",
        JSONLD: "json-ld",
        SPARQL_RESULTS_JSON: "json",
        SPARQL_RESULTS_XML: "xml",
    }
