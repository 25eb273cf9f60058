"""SPARQL query builders based on the SPIN RDF syntax.

A builder is a mutable facade over a SPIN query node.  It holds no state of
its own: mutators rewrite the triples of the query node in place and
accessors read them back, so the graph is always the single source of truth
and any other holder of the same node sees the changes.

Usage:
    from rdflib import Graph
    from spinquery.builder import SelectBuilder

    graph = Graph()
    builder = SelectBuilder.from_query_string(
        "SELECT ?x WHERE { ?x a <http://example.org/Thing> }", graph
    )
    builder.limit(10).offset(5).order_by("x", True)
    print(builder)  # SPARQL text rendered from the graph

See http://www.w3.org/Submission/2011/SUBM-spin-sparql-20110222/ for the
vocabulary.
"""

from __future__ import annotations

import logging
from typing import Optional, Union

from rdflib import BNode, Graph, Literal
from rdflib.namespace import RDF
from rdflib.resource import Resource
from rdflib.term import Node, URIRef

from spinquery.errors import InvalidArgument
from spinquery.render import render_query
from spinquery.spin import (
    Select,
    SpinQuery,
    Variable,
    as_query,
    as_variable,
    create_list,
    create_variable,
    integer_literal,
    is_variable,
    list_items,
    remove_list,
)
from spinquery.translate import CompiledQuery, QueryTranslator, compile_query
from spinquery.vocabulary import QUERY_TYPES, SP

logger = logging.getLogger(__name__)

__all__ = ["QueryBuilder", "SelectBuilder"]

VariableRef = Union[str, Variable, Resource, Node]


class QueryBuilder:
    """Builder over a SPIN query of any form.

    Subclasses narrow :attr:`query_class`; every construction path checks
    the wrapped node against it and fails with
    :class:`~spinquery.errors.InvalidArgument` on a mismatch.
    """

    query_class: type[SpinQuery] = SpinQuery

    def __init__(self, query: SpinQuery) -> None:
        if query is None:
            raise InvalidArgument("Query cannot be null")
        if not isinstance(query, self.query_class):
            raise InvalidArgument(
                f"{type(self).__name__} requires a SPIN {self.query_class.__name__} query"
            )
        self._query = query

    # ── Construction paths ────────────────────────────────────────

    @classmethod
    def from_spin_query(cls, query: Optional[SpinQuery]):
        """Wrap an existing SPIN query view."""
        return cls(query)

    @classmethod
    def from_resource(cls, resource: Union[Resource, Node, None], graph: Optional[Graph] = None):
        """Wrap a query node given as a Resource, or as a node plus its graph."""
        if resource is None:
            raise InvalidArgument(f"{cls.query_class.__name__} resource cannot be null")

        query = as_query(resource, graph)
        if query is None or not isinstance(query, cls.query_class):
            raise InvalidArgument(
                f"{cls.__name__} resource must be a SPIN {cls.query_class.__name__} query"
            )
        return cls(query)

    @classmethod
    def from_query(cls, query: Optional[CompiledQuery], graph: Graph, uri: Optional[str] = None):
        """Translate a compiled query into *graph* and wrap the new node.

        Args:
            query: Compiled query
            graph: Graph that receives the SPIN triples
            uri: IRI for the query node (a blank node when omitted)
        """
        if query is None:
            raise InvalidArgument("Query cannot be null")
        expected = cls.query_class.query_type
        if expected is not None and QUERY_TYPES[query.syntax.name] != expected:
            raise InvalidArgument(
                f"{cls.__name__} requires a {cls.query_class.__name__} query, got {query.form}"
            )

        spin_query = QueryTranslator(graph).create_query(query, uri)
        return cls.from_resource(spin_query)

    @classmethod
    def from_query_string(
        cls,
        query_string: str,
        graph: Graph,
        base_uri: Optional[str] = None,
        uri: Optional[str] = None,
    ):
        """Parse *query_string* and wrap its SPIN translation.

        :class:`~spinquery.errors.QueryParseFailure` propagates when the
        string does not parse.
        """
        return cls.from_query(compile_query(query_string, base_uri=base_uri), graph, uri)

    # ── Graph primitives ──────────────────────────────────────────

    def get_query(self) -> SpinQuery:
        """SPIN query view wrapped by this builder."""
        return self._query

    def get_model(self) -> Graph:
        """Graph holding the query triples."""
        return self._query.graph

    @property
    def identifier(self) -> Node:
        return self._query.identifier

    def remove_all(self, predicate: URIRef) -> QueryBuilder:
        self.get_model().remove((self.identifier, predicate, None))
        return self

    def add_literal(self, predicate: URIRef, value: Literal) -> QueryBuilder:
        if not isinstance(value, Literal):
            value = Literal(value)
        self.get_model().add((self.identifier, predicate, value))
        return self

    def add_property(self, predicate: URIRef, node: Union[Resource, Node]) -> QueryBuilder:
        if isinstance(node, Resource):
            node = node.identifier
        self.get_model().add((self.identifier, predicate, node))
        return self

    # ── Mutators ──────────────────────────────────────────────────

    def limit(self, limit: Optional[int]):
        _check_count("LIMIT", limit)
        logger.debug(f"Setting LIMIT param: {limit}")

        self.remove_all(SP.limit).add_literal(SP.limit, integer_literal(limit))
        return self

    def offset(self, offset: Optional[int]):
        _check_count("OFFSET", offset)
        logger.debug(f"Setting OFFSET param: {offset}")

        self.remove_all(SP.offset).add_literal(SP.offset, integer_literal(offset))
        return self

    def order_by(self, var: Optional[VariableRef], desc: Optional[bool] = False):
        """Replace the ORDER BY clause with a single condition on *var*.

        Args:
            var: Variable name (with or without ``?``), a
                :class:`~spinquery.spin.Variable`, or a resource/node that
                is a SPIN variable
            desc: Sort descending
        """
        if var is None:
            raise InvalidArgument("ORDER BY variable cannot be null")
        if desc is None:
            raise InvalidArgument("DESC cannot be null")

        variable = self._resolve_variable(var)
        logger.debug(f"Setting ORDER BY variable: {variable} (desc={bool(desc)})")

        self._clear_order_by()
        term = BNode()
        g = self.get_model()
        g.add((term, SP.expression, variable.identifier))
        g.add((term, RDF.type, SP.Desc if desc else SP.Asc))
        self.add_property(SP.orderBy, create_list(g, [term]))
        return self

    def _resolve_variable(self, var: VariableRef) -> Variable:
        if isinstance(var, Resource):
            variable = as_variable(var)
        elif isinstance(var, (BNode, URIRef)):
            variable = as_variable(var, self.get_model())
        elif isinstance(var, str):
            name = var[1:] if var.startswith(("?", "$")) else var
            if not name:
                raise InvalidArgument("ORDER BY variable name cannot be empty")
            return self._variable_named(name)
        else:
            raise InvalidArgument(f"Cannot order by {var!r}")

        if variable is None:
            raise InvalidArgument(f"ORDER BY resource {var} is not a SPIN variable")
        if variable.graph is not self.get_model():
            # a variable held in another graph is matched by name
            return self._variable_named(variable.get_name())
        return variable

    def _variable_named(self, name: str) -> Variable:
        return self._find_variable(name) or create_variable(self.get_model(), name)

    def _find_variable(self, name: str) -> Optional[Variable]:
        g = self.get_model()
        for node in g.subjects(SP.varName, Literal(name)):
            variable = as_variable(node, g)
            if variable is not None:
                return variable
        return None

    def _clear_order_by(self) -> None:
        g = self.get_model()
        for head in list(g.objects(self.identifier, SP.orderBy)):
            for term in list_items(g, head):
                if isinstance(term, BNode) and not is_variable(g, term):
                    g.remove((term, None, None))
            remove_list(g, head)
        self.remove_all(SP.orderBy)

    # ── Accessors ─────────────────────────────────────────────────

    def get_limit(self) -> Optional[int]:
        return self._query.get_limit()

    def get_offset(self) -> Optional[int]:
        return self._query.get_offset()

    def get_order_by(self) -> list[tuple[Node, bool]]:
        return self._query.get_order_by()

    def build(self) -> str:
        """Render the current query graph as SPARQL text."""
        return render_query(self._query)

    def compile(self) -> CompiledQuery:
        """Render and compile the current query, e.g. for execution."""
        return compile_query(self.build())

    def __str__(self) -> str:
        return self.build()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.identifier!r})"


class SelectBuilder(QueryBuilder):
    """SPARQL SELECT query builder."""

    query_class = Select

    @classmethod
    def from_select(cls, select: Optional[Select]) -> SelectBuilder:
        return cls(select)

    def get_query(self) -> Select:
        return self._query

    def distinct(self, flag: bool = True) -> SelectBuilder:
        logger.debug(f"Setting DISTINCT: {flag}")
        self.remove_all(SP.distinct)
        if flag:
            self.remove_all(SP.reduced).add_literal(SP.distinct, Literal(True))
        return self

    def reduced(self, flag: bool = True) -> SelectBuilder:
        logger.debug(f"Setting REDUCED: {flag}")
        self.remove_all(SP.reduced)
        if flag:
            self.remove_all(SP.distinct).add_literal(SP.reduced, Literal(True))
        return self

    def result_variables(self, *variables: VariableRef) -> SelectBuilder:
        """Replace the projection; no arguments means ``SELECT *``."""
        resolved = [self._resolve_variable(v) for v in variables]
        logger.debug(f"Setting result variables: {[str(v) for v in resolved]}")

        g = self.get_model()
        for head in list(g.objects(self.identifier, SP.resultVariables)):
            remove_list(g, head)
        self.remove_all(SP.resultVariables)
        if resolved:
            self.add_property(SP.resultVariables, create_list(g, resolved))
        return self

    def get_result_variables(self) -> list[Variable]:
        return self._query.get_result_variables()

    def is_distinct(self) -> bool:
        return self._query.is_distinct()

    def is_reduced(self) -> bool:
        return self._query.is_reduced()


def _check_count(name: str, value: Optional[int]) -> None:
    if value is None:
        raise InvalidArgument(f"{name} cannot be null")
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidArgument(f"{name} must be an integer, got {value!r}")
    if value < 0:
        raise InvalidArgument(f"{name} cannot be negative")
