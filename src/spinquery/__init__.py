"""spinquery: SPARQL queries as RDF graphs, executed lazily.

Main modules:
- builder: QueryBuilder/SelectBuilder, graph-native query editing
- resource: lazy, memoized query-result resources with entity tags
- manager: query execution against local graphs and SPARQL endpoints
- translate / render: SPARQL text <-> SPIN triples
"""

from .builder import QueryBuilder, SelectBuilder
from .errors import (
    EndpointError,
    InvalidArgument,
    QueryEvaluationFailure,
    QueryParseFailure,
    SpinQueryError,
    UnsupportedQuery,
)
from .manager import DataManager
from .resource import (
    EndpointModelResource,
    EntityTag,
    ModelResource,
    ModelResponse,
    QueryModelResource,
    ResourceState,
    create_resource,
)
from .translate import CompiledQuery, compile_query

# Import version information
from .version import VERSION

__all__ = [
    "VERSION",
    "CompiledQuery",
    "DataManager",
    "EndpointError",
    "EndpointModelResource",
    "EntityTag",
    "InvalidArgument",
    "ModelResource",
    "ModelResponse",
    "QueryBuilder",
    "QueryEvaluationFailure",
    "QueryModelResource",
    "QueryParseFailure",
    "ResourceState",
    "SelectBuilder",
    "SpinQueryError",
    "UnsupportedQuery",
    "compile_query",
    "create_resource",
]
