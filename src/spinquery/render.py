"""Render SPIN query nodes back to SPARQL text."""

from __future__ import annotations

import logging
from typing import Optional

from rdflib import BNode, Graph, Literal, URIRef
from rdflib.namespace import RDF
from rdflib.term import Node

from spinquery.errors import InvalidArgument, UnsupportedQuery
from spinquery.spin import Select, SpinQuery, as_query, is_variable, list_items
from spinquery.vocabulary import QUERY_KEYWORDS, SP

logger = logging.getLogger(__name__)

__all__ = ["QueryRenderer", "render_query"]

INDENT = "  "


class QueryRenderer:
    """Serialize a :class:`~spinquery.spin.SpinQuery` as SPARQL."""

    def __init__(self, graph: Graph) -> None:
        self.graph = graph

    def render(self, query: SpinQuery) -> str:
        query_type = query.get_query_type()
        if query_type not in QUERY_KEYWORDS:
            raise InvalidArgument(f"{query.identifier} is not a SPIN query")

        lines = [self._head(query)]

        for graph_iri in query.get_from():
            lines.append(f"FROM {graph_iri.n3()}")
        for graph_iri in query.get_from_named():
            lines.append(f"FROM NAMED {graph_iri.n3()}")

        where = self.graph.value(query.identifier, SP.where)
        if where is not None:
            lines.append("WHERE " + self._group(list_items(self.graph, where), 0))
        elif query_type in (SP.Select, SP.Construct, SP.Ask):
            lines.append("WHERE {}")

        order = query.get_order_by()
        if order:
            conditions = []
            for expr, desc in order:
                term = self._term(expr)
                conditions.append(f"DESC({term})" if desc else f"ASC({term})")
            lines.append("ORDER BY " + " ".join(conditions))

        limit = query.get_limit()
        if limit is not None:
            lines.append(f"LIMIT {limit}")
        offset = query.get_offset()
        if offset is not None:
            lines.append(f"OFFSET {offset}")

        return "\n".join(lines)

    def _head(self, query: SpinQuery) -> str:
        if isinstance(query, Select):
            head = "SELECT"
            if query.is_distinct():
                head += " DISTINCT"
            elif query.is_reduced():
                head += " REDUCED"
            variables = query.get_result_variables()
            if variables:
                return head + " " + " ".join(self._term(v.identifier) for v in variables)
            return head + " *"

        keyword = QUERY_KEYWORDS[query.get_query_type()]
        if keyword == "CONSTRUCT":
            return "CONSTRUCT " + self._group(query.get_templates(), 0, blank_nodes=True)
        if keyword == "DESCRIBE":
            nodes = query.get_result_nodes()
            if nodes:
                return "DESCRIBE " + " ".join(self._term(n) for n in nodes)
            return "DESCRIBE *"
        return keyword

    # ── Patterns ──────────────────────────────────────────────────

    def _group(self, elements: list[Node], depth: int, blank_nodes: bool = False) -> str:
        if not elements:
            return "{}"
        pad = INDENT * (depth + 1)
        body = [pad + self._element(e, depth + 1, blank_nodes) for e in elements]
        return "{\n" + "\n".join(body) + "\n" + INDENT * depth + "}"

    def _element(self, node: Node, depth: int, blank_nodes: bool = False) -> str:
        g = self.graph
        if node == RDF.nil or (node, RDF.first, None) in g:
            return self._group(list_items(g, node), depth)
        if (node, SP.subject, None) in g:
            s = self._term(g.value(node, SP.subject), blank_nodes)
            p = self._term(g.value(node, SP.predicate), blank_nodes)
            o = self._term(g.value(node, SP.object), blank_nodes)
            return f"{s} {p} {o} ."

        elements = list_items(g, g.value(node, SP.elements))
        if (node, RDF.type, SP.Optional) in g:
            return "OPTIONAL " + self._group(elements, depth)
        if (node, RDF.type, SP.Minus) in g:
            return "MINUS " + self._group(elements, depth)
        if (node, RDF.type, SP.NamedGraph) in g:
            name = self._term(g.value(node, SP.graphNameNode))
            return f"GRAPH {name} " + self._group(elements, depth)
        if (node, RDF.type, SP.Union) in g:
            return " UNION ".join(self._element(member, depth) for member in elements)

        raise UnsupportedQuery(f"Cannot render WHERE element {node}")

    def _term(self, node: Optional[Node], blank_nodes: bool = False) -> str:
        if node is None:
            raise UnsupportedQuery("Incomplete pattern in query graph")
        if is_variable(self.graph, node):
            return "?" + str(self.graph.value(node, SP.varName))
        if isinstance(node, (URIRef, Literal)):
            return node.n3()
        if isinstance(node, BNode) and blank_nodes:
            # template blank node
            return node.n3()
        raise UnsupportedQuery(f"Cannot render term {node!r}")


def render_query(query: SpinQuery, graph: Optional[Graph] = None) -> str:
    """Return SPARQL text for a SPIN query view (or a query node in *graph*)."""
    view = query if isinstance(query, SpinQuery) else as_query(query, graph)
    if view is None:
        raise InvalidArgument("Query cannot be null")
    text = QueryRenderer(view.graph).render(view)
    logger.debug(f"Rendered SPIN query {view.identifier}:\n{text}")
    return text
