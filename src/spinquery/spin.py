"""Typed views over SPIN query nodes held in an rdflib graph.

A view never copies the query: it is an :class:`rdflib.resource.Resource`
(graph + node identifier), so every read goes to the graph and every write
changes the graph in place.

* :class:`SpinQuery` is the common base with the operations valid for every
  query form (dataset clause, WHERE, ORDER BY, LIMIT, OFFSET).
* :class:`Select`, :class:`Construct`, :class:`Describe` and :class:`Ask`
  add the form-specific accessors.
* :func:`as_query` / :func:`as_variable` down-cast a plain resource and
  return ``None`` when the node is not of the requested kind.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional, Union

from rdflib import BNode, Graph, Literal, URIRef
from rdflib.collection import Collection
from rdflib.namespace import RDF, XSD
from rdflib.resource import Resource
from rdflib.term import Node

from spinquery.vocabulary import QUERY_KEYWORDS, SP

logger = logging.getLogger(__name__)

__all__ = [
    "Ask",
    "Construct",
    "Describe",
    "Select",
    "SpinQuery",
    "Variable",
    "as_query",
    "as_variable",
    "create_list",
    "create_variable",
    "list_items",
    "remove_list",
]


# ── rdf:List helpers ──────────────────────────────────────────────


def create_list(graph: Graph, items: Iterable[Node]) -> Node:
    """Create an rdf:List of *items* and return its head node."""
    items = [_identifier(i) for i in items]
    if not items:
        return RDF.nil
    return Collection(graph, BNode(), items).uri


def list_items(graph: Graph, head: Optional[Node]) -> list[Node]:
    """Return the members of the rdf:List starting at *head*."""
    if head is None:
        return []
    return list(graph.items(head))


def remove_list(graph: Graph, head: Optional[Node]) -> None:
    """Remove the cells of the rdf:List starting at *head*.

    The members themselves are left in the graph.
    """
    if head is None or head == RDF.nil:
        return
    Collection(graph, head).clear()


def _identifier(node: Union[Resource, Node]) -> Node:
    if isinstance(node, Resource):
        return node.identifier
    return node


# ── Variables ─────────────────────────────────────────────────────


class Variable(Resource):
    """A SPIN variable: a node carrying an ``sp:varName``."""

    def get_name(self) -> Optional[str]:
        name = self.graph.value(self.identifier, SP.varName)
        return str(name) if name is not None else None

    def __str__(self) -> str:
        return f"?{self.get_name()}"


def is_variable(graph: Graph, node: Node) -> bool:
    return isinstance(node, (BNode, URIRef)) and (node, SP.varName, None) in graph


def as_variable(resource: Union[Resource, Node, None], graph: Optional[Graph] = None) -> Optional[Variable]:
    """Return a :class:`Variable` view of *resource*, or ``None`` if it is not one."""
    if resource is None:
        return None
    if isinstance(resource, Resource):
        graph, node = resource.graph, resource.identifier
    else:
        node = resource
    if graph is None or not is_variable(graph, node):
        return None
    return Variable(graph, node)


def create_variable(graph: Graph, name: str) -> Variable:
    """Create a new SPIN variable called *name* in *graph*."""
    var = Variable(graph, BNode())
    var.add(RDF.type, SP.Variable)
    var.add(SP.varName, Literal(name))
    return var


# ── Queries ───────────────────────────────────────────────────────


class SpinQuery(Resource):
    """Operations shared by every SPIN query form."""

    query_type: Optional[URIRef] = None

    def get_query_type(self) -> Optional[URIRef]:
        for rdf_type in self.graph.objects(self.identifier, RDF.type):
            if rdf_type in QUERY_KEYWORDS:
                return rdf_type
        return None

    def get_from(self) -> list[URIRef]:
        return sorted(self.graph.objects(self.identifier, SP["from"]))

    def get_from_named(self) -> list[URIRef]:
        return sorted(self.graph.objects(self.identifier, SP.fromNamed))

    def get_where(self) -> list[Node]:
        return list_items(self.graph, self.graph.value(self.identifier, SP.where))

    def get_limit(self) -> Optional[int]:
        return self._integer(SP.limit)

    def get_offset(self) -> Optional[int]:
        return self._integer(SP.offset)

    def get_order_by(self) -> list[tuple[Node, bool]]:
        """Return ``(expression, descending)`` pairs of the ORDER BY clause."""
        terms = list_items(self.graph, self.graph.value(self.identifier, SP.orderBy))
        order = []
        for term in terms:
            if is_variable(self.graph, term):
                order.append((term, False))
                continue
            expr = self.graph.value(term, SP.expression)
            desc = (term, RDF.type, SP.Desc) in self.graph
            order.append((expr, desc))
        return order

    def get_text(self) -> Optional[str]:
        text = self.graph.value(self.identifier, SP.text)
        return str(text) if text is not None else None

    def _integer(self, predicate: URIRef) -> Optional[int]:
        value = self.graph.value(self.identifier, predicate)
        if value is None:
            return None
        return int(value.toPython())

    def _boolean(self, predicate: URIRef) -> bool:
        value = self.graph.value(self.identifier, predicate)
        if value is None:
            return False
        return bool(value.toPython())

    def __str__(self) -> str:
        from spinquery.render import render_query

        return render_query(self)


class Select(SpinQuery):
    """SPIN SELECT query."""

    query_type = SP.Select

    def get_result_variables(self) -> list[Variable]:
        head = self.graph.value(self.identifier, SP.resultVariables)
        return [Variable(self.graph, node) for node in list_items(self.graph, head)]

    def is_distinct(self) -> bool:
        return self._boolean(SP.distinct)

    def is_reduced(self) -> bool:
        return self._boolean(SP.reduced)


class Construct(SpinQuery):
    """SPIN CONSTRUCT query."""

    query_type = SP.Construct

    def get_templates(self) -> list[Node]:
        return list_items(self.graph, self.graph.value(self.identifier, SP.templates))


class Describe(SpinQuery):
    """SPIN DESCRIBE query."""

    query_type = SP.Describe

    def get_result_nodes(self) -> list[Node]:
        return list_items(self.graph, self.graph.value(self.identifier, SP.resultNodes))


class Ask(SpinQuery):
    """SPIN ASK query."""

    query_type = SP.Ask


QUERY_CLASSES = {cls.query_type: cls for cls in (Select, Construct, Describe, Ask)}


def as_query(resource: Union[Resource, Node, None], graph: Optional[Graph] = None) -> Optional[SpinQuery]:
    """Return the typed query view of *resource*.

    Returns ``None`` when the node is not typed with one of the SPIN query
    classes.
    """
    if resource is None:
        return None
    if isinstance(resource, Resource):
        graph, node = resource.graph, resource.identifier
    else:
        node = resource
    if graph is None:
        return None
    for rdf_type in graph.objects(node, RDF.type):
        cls = QUERY_CLASSES.get(rdf_type)
        if cls is not None:
            return cls(graph, node)
    return None


def integer_literal(value: int) -> Literal:
    return Literal(value, datatype=XSD.long)
