"""Query execution against local graphs and remote SPARQL endpoints."""

from __future__ import annotations

import logging
from typing import Optional, Union

from rdflib import Graph
from rdflib.query import Result

from spinquery.builder import QueryBuilder
from spinquery.errors import InvalidArgument, QueryEvaluationFailure
from spinquery.render import render_query
from spinquery.sparql_helper import SparqlHelper
from spinquery.spin import SpinQuery
from spinquery.translate import CompiledQuery, compile_query

logger = logging.getLogger(__name__)

__all__ = [
    "DataManager",
    "QueryLike",
    "Source",
    "to_compiled_query",
]

QueryLike = Union[str, CompiledQuery, SpinQuery, QueryBuilder]
Source = Union[Graph, str]
Model = Union[Graph, Result]


def to_compiled_query(query: Optional[QueryLike]) -> CompiledQuery:
    """Normalize any supported query representation to a :class:`CompiledQuery`."""
    if query is None:
        raise InvalidArgument("Query cannot be null")
    if isinstance(query, CompiledQuery):
        return query
    if isinstance(query, QueryBuilder):
        return query.compile()
    if isinstance(query, SpinQuery):
        return compile_query(render_query(query))
    if isinstance(query, str):
        return compile_query(query)
    raise InvalidArgument(f"Unsupported query type: {type(query).__name__}")


class DataManager:
    """Load query results from a graph or a named endpoint.

    CONSTRUCT and DESCRIBE results are returned as :class:`rdflib.Graph`;
    SELECT and ASK results as :class:`rdflib.query.Result`.
    """

    def __init__(
        self,
        *,
        timeout: float = 60.0,
        max_retries: int = 3,
        initial_backoff: float = 1.0,
        use_post: bool = False,
    ) -> None:
        self.timeout = timeout
        self.max_retries = max_retries
        self.initial_backoff = initial_backoff
        self.use_post = use_post

    def load_model(self, source: Optional[Source], query: QueryLike) -> Model:
        """Execute *query* against *source* (a Graph or an endpoint URL).

        Raises:
            InvalidArgument: If the source or the query is null
            QueryEvaluationFailure: If evaluation fails
        """
        compiled = to_compiled_query(query)
        if isinstance(source, Graph):
            return self.query_graph(source, compiled)
        if isinstance(source, str) and source:
            return self.query_endpoint(source, compiled)
        raise InvalidArgument("Source must be a Graph or an endpoint URI")

    def query_graph(self, graph: Graph, query: CompiledQuery) -> Model:
        logger.debug(f"Querying Model: {graph.identifier} with Query: {query}")
        try:
            result = graph.query(query.algebra)
            if result.type in ("CONSTRUCT", "DESCRIBE"):
                return result.graph
            # len() drains lazy SELECT bindings so failures surface here
            logger.debug(f"Number of {result.type} results read: {len(result)}")
            return result
        except Exception as exc:
            raise QueryEvaluationFailure(f"Query evaluation failed: {exc}") from exc

    def query_endpoint(self, endpoint_uri: str, query: CompiledQuery) -> Model:
        logger.debug(f"Querying remote service: {endpoint_uri} with Query: {query}")
        with SparqlHelper(
            endpoint_uri,
            use_post=self.use_post,
            max_retries=self.max_retries,
            initial_backoff=self.initial_backoff,
            timeout=self.timeout,
        ) as helper:
            if query.is_select():
                return helper.select(query.text)
            if query.is_ask():
                result = Result("ASK")
                result.askAnswer = helper.ask(query.text)
                return result
            if query.is_describe():
                return helper.describe_graph(query.text)
            return helper.construct_graph(query.text)


_manager = DataManager()


def get() -> DataManager:
    """Return the process-wide :class:`DataManager`."""
    return _manager


def set_manager(manager: DataManager) -> None:
    """Replace the process-wide :class:`DataManager` (used by app setup)."""
    global _manager
    _manager = manager
