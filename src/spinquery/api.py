"""Main spinquery functionalities shared by the HTTP layer and the CLI."""

from __future__ import annotations

from typing import Optional, Union

from rdflib import Graph

from .builder import SelectBuilder
from .models import OrderCondition, SelectBuildRequest, SelectBuildResult
from .resource import EndpointModelResource, ModelResource, QueryModelResource, create_resource
from .spin import as_variable
from .vocabulary import SP_NS

__all__ = [
    "build_select",
    "load_dataset",
    "open_resource",
    "spin_graph",
]


def spin_graph() -> Graph:
    """Return an empty graph with the ``sp:`` prefix bound."""
    graph = Graph()
    graph.bind("sp", SP_NS)
    return graph


def build_select(request: SelectBuildRequest, graph: Optional[Graph] = None) -> SelectBuildResult:
    """Translate a SELECT query, apply the requested edits and read it back.

    Args:
        request: Query text plus the clauses to replace
        graph: Graph that receives the SPIN triples (a fresh one if omitted)

    Returns:
        SelectBuildResult with the rendered SPARQL and the SPIN Turtle
    """
    graph = spin_graph() if graph is None else graph
    builder = SelectBuilder.from_query_string(request.query, graph, base_uri=request.base_uri)

    if request.result_variables is not None:
        builder.result_variables(*request.result_variables)
    if request.distinct is not None:
        builder.distinct(request.distinct)
    if request.reduced is not None:
        builder.reduced(request.reduced)
    if request.limit is not None:
        builder.limit(request.limit)
    if request.offset is not None:
        builder.offset(request.offset)
    if request.order_by is not None:
        builder.order_by(request.order_by, request.desc)

    order_by = []
    for expr, desc in builder.get_order_by():
        variable = as_variable(expr, graph)
        name = variable.get_name() if variable is not None else str(expr)
        order_by.append(OrderCondition(variable=name, descending=desc))

    return SelectBuildResult(
        query=builder.build(),
        spin=graph.serialize(format="turtle"),
        result_variables=[v.get_name() for v in builder.get_result_variables()],
        distinct=builder.is_distinct(),
        reduced=builder.is_reduced(),
        limit=builder.get_limit(),
        offset=builder.get_offset(),
        order_by=order_by,
    )


def load_dataset(path: str, base_uri: Optional[str] = None) -> Graph:
    """Load an RDF file; the format is guessed from the file extension."""
    graph = Graph()
    graph.parse(path, publicID=base_uri)
    return graph


def open_resource(
    source: Union[Graph, str],
    query: Optional[str] = None,
    uri: Optional[str] = None,
    media_type: Optional[str] = None,
) -> ModelResource:
    """Bind *query* (or ``DESCRIBE <uri>``) to a graph or an endpoint URL."""
    if query is None and uri is not None:
        cls = QueryModelResource if isinstance(source, Graph) else EndpointModelResource
        return cls.from_uri(source, uri, media_type=media_type)
    return create_resource(source, query, media_type=media_type)
