"""Compile SPARQL query strings and write them into a graph as SPIN triples.

Two steps, mirroring the way a query string becomes a query-graph node:

1. :func:`compile_query` parses the text with the rdflib SPARQL parser and
   returns a :class:`CompiledQuery`.  It keeps both the algebra (used for
   local evaluation) and the prefix-resolved syntax tree (used for the SPIN
   translation).
2. :class:`QueryTranslator` walks the syntax tree and writes the query into
   a target graph, returning the new :class:`~spinquery.spin.SpinQuery`.

The translation covers the query forms, dataset clauses, projection,
DISTINCT/REDUCED, ORDER BY on variables, LIMIT/OFFSET, CONSTRUCT templates,
DESCRIBE targets and WHERE patterns built from triple patterns, groups,
OPTIONAL, UNION, MINUS and GRAPH.  Anything else raises
:class:`~spinquery.errors.UnsupportedQuery`.
"""

from __future__ import annotations

import functools
import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from pyparsing import ParseException
from rdflib import BNode, Graph, Literal, URIRef, Variable
from rdflib.namespace import RDF
from rdflib.plugins.sparql.algebra import (
    translatePath,
    translatePName,
    translatePrologue,
    translateQuery,
    traverse,
)
from rdflib.plugins.sparql.operators import simplify
from rdflib.plugins.sparql.parser import parseQuery
from rdflib.plugins.sparql.parserutils import CompValue
from rdflib.plugins.sparql.sparql import Query
from rdflib.term import Node

from spinquery.errors import InvalidArgument, QueryParseFailure, UnsupportedQuery
from spinquery.spin import SpinQuery, as_query, create_list, create_variable, integer_literal
from spinquery.vocabulary import QUERY_TYPES, SP

logger = logging.getLogger(__name__)

__all__ = [
    "CompiledQuery",
    "QueryTranslator",
    "compile_query",
    "describe_query",
]


@dataclass
class CompiledQuery:
    """A parsed SPARQL query."""

    text: str
    algebra: Query
    syntax: CompValue
    base_uri: Optional[str] = None

    @property
    def form(self) -> str:
        """``"SELECT"``, ``"CONSTRUCT"``, ``"DESCRIBE"`` or ``"ASK"``."""
        return self.syntax.name[: -len("Query")].upper()

    def is_select(self) -> bool:
        return self.form == "SELECT"

    def is_construct(self) -> bool:
        return self.form == "CONSTRUCT"

    def is_describe(self) -> bool:
        return self.form == "DESCRIBE"

    def is_ask(self) -> bool:
        return self.form == "ASK"

    def __str__(self) -> str:
        return self.text


def compile_query(
    text: str,
    base_uri: Optional[str] = None,
    init_ns: Optional[Mapping[str, Any]] = None,
) -> CompiledQuery:
    """Parse *text* into a :class:`CompiledQuery`.

    Raises
    ------
    InvalidArgument
        If *text* is ``None``.
    QueryParseFailure
        If the text is not a valid SPARQL query.
    """
    if text is None:
        raise InvalidArgument("Query string cannot be null")

    try:
        # translateQuery rewrites the parse tree in place, so the syntax
        # tree comes from a second parse
        algebra = translateQuery(parseQuery(text), base=base_uri, initNs=init_ns)
        parsed = parseQuery(text)
        prologue = translatePrologue(parsed[0], base_uri, init_ns)
        syntax = traverse(
            parsed[1], visitPost=functools.partial(translatePName, prologue=prologue)
        )
        if syntax.where is not None:
            syntax["where"] = traverse(syntax.where, visitPost=translatePath)
    except ParseException as exc:
        raise QueryParseFailure(f"Invalid SPARQL query: {exc}") from exc
    except Exception as exc:
        raise QueryParseFailure(f"Cannot compile SPARQL query: {exc}") from exc

    logger.debug(f"Compiled {syntax.name}: {text!r}")
    return CompiledQuery(text=text, algebra=algebra, syntax=syntax, base_uri=base_uri)


def describe_query(uri: str) -> CompiledQuery:
    """Return the compiled ``DESCRIBE <uri>`` query."""
    if uri is None:
        raise InvalidArgument("Resource URI cannot be null")
    return compile_query(f"DESCRIBE <{uri}>")


def _flatten(groups: list) -> list:
    """Flatten the per-subject term lists produced by the parser."""
    terms: list = []
    for group in groups:
        if isinstance(group, list):
            terms.extend(group)
        else:
            terms.append(group)
    return terms


class QueryTranslator:
    """Write compiled queries into a graph using the SPIN vocabulary."""

    def __init__(self, graph: Graph) -> None:
        if graph is None:
            raise InvalidArgument("Target graph cannot be null")
        self.graph = graph
        self._variables: dict[str, Node] = {}

    def create_query(self, compiled: CompiledQuery, uri: Optional[str] = None) -> SpinQuery:
        """Translate *compiled* and return the new query view.

        Args:
            compiled: Query to translate
            uri: IRI for the query node (a blank node when omitted)
        """
        if compiled is None:
            raise InvalidArgument("Query cannot be null")

        self._variables = {}
        q = compiled.syntax
        node = URIRef(uri) if uri else BNode()
        g = self.graph

        g.add((node, RDF.type, QUERY_TYPES[q.name]))
        self._add_dataset(node, q)

        if q.name == "SelectQuery":
            self._add_projection(node, q)
        elif q.name == "ConstructQuery":
            template = q.template
            if not template and q.where is not None and q.where.name == "FakeGroupGraphPatten":
                # CONSTRUCT WHERE { ... }: the pattern is the template
                template = [group for block in q.where.part for group in block.triples]
                patterns = self._triple_patterns(_flatten(template))
            else:
                patterns = self._triple_patterns(_flatten(template or []), blank_nodes=True)
            g.add((node, SP.templates, create_list(g, patterns)))
        elif q.name == "DescribeQuery":
            targets = [self._term(v) for v in (q.var or [])]
            g.add((node, SP.resultNodes, create_list(g, targets)))

        if q.where is not None:
            g.add((node, SP.where, create_list(g, self._elements(q.where))))

        self._add_solution_modifiers(node, q)

        logger.debug(f"Translated {q.name} into SPIN node {node}")
        return as_query(node, g)

    # ── Clauses ───────────────────────────────────────────────────

    def _add_dataset(self, node: Node, q: CompValue) -> None:
        for clause in q.datasetClause or []:
            if clause.default is not None:
                self.graph.add((node, SP["from"], clause.default))
            elif clause.named is not None:
                self.graph.add((node, SP.fromNamed, clause.named))

    def _add_projection(self, node: Node, q: CompValue) -> None:
        if q.modifier == "DISTINCT":
            self.graph.add((node, SP.distinct, Literal(True)))
        elif q.modifier == "REDUCED":
            self.graph.add((node, SP.reduced, Literal(True)))

        if not q.projection:
            # SELECT *
            return

        variables = []
        for projection in q.projection:
            if projection.evar is not None:
                raise UnsupportedQuery("Expressions in the SELECT projection are not supported")
            variables.append(self._variable(projection.var))
        self.graph.add((node, SP.resultVariables, create_list(self.graph, variables)))

    def _add_solution_modifiers(self, node: Node, q: CompValue) -> None:
        if q.groupby is not None or q.having is not None:
            raise UnsupportedQuery("GROUP BY and HAVING are not supported")
        if q.valuesClause is not None:
            raise UnsupportedQuery("VALUES is not supported")

        if q.orderby is not None:
            terms = []
            for condition in q.orderby.condition:
                expr = simplify(condition.expr)
                if not isinstance(expr, Variable):
                    raise UnsupportedQuery("ORDER BY supports variables only")
                term = BNode()
                order = SP.Desc if condition.order == "DESC" else SP.Asc
                self.graph.add((term, RDF.type, order))
                self.graph.add((term, SP.expression, self._variable(expr)))
                terms.append(term)
            self.graph.add((node, SP.orderBy, create_list(self.graph, terms)))

        if q.limitoffset is not None:
            limit, offset = q.limitoffset.limit, q.limitoffset.offset
            if limit is not None:
                self.graph.add((node, SP.limit, integer_literal(limit.toPython())))
            if offset is not None:
                self.graph.add((node, SP.offset, integer_literal(offset.toPython())))

    # ── WHERE ─────────────────────────────────────────────────────

    def _elements(self, group: CompValue) -> list[Node]:
        if group.name == "SubSelect":
            raise UnsupportedQuery("Sub-queries are not supported")

        elements: list[Node] = []
        for part in group.part or []:
            if part.name == "TriplesBlock":
                elements.extend(self._triple_patterns(_flatten(part.triples)))
            elif part.name == "OptionalGraphPattern":
                elements.append(self._container(SP.Optional, part.graph))
            elif part.name == "MinusGraphPattern":
                elements.append(self._container(SP.Minus, part.graph))
            elif part.name == "GraphGraphPattern":
                named = self._container(SP.NamedGraph, part.graph)
                self.graph.add((named, SP.graphNameNode, self._term(part.term)))
                elements.append(named)
            elif part.name == "GroupOrUnionGraphPattern":
                if len(part.graph) == 1:
                    # nested group
                    elements.append(create_list(self.graph, self._elements(part.graph[0])))
                else:
                    union = BNode()
                    self.graph.add((union, RDF.type, SP.Union))
                    groups = [create_list(self.graph, self._elements(g)) for g in part.graph]
                    self.graph.add((union, SP.elements, create_list(self.graph, groups)))
                    elements.append(union)
            else:
                raise UnsupportedQuery(f"{part.name} is not supported in WHERE patterns")
        return elements

    def _container(self, rdf_type: URIRef, group: CompValue) -> Node:
        node = BNode()
        self.graph.add((node, RDF.type, rdf_type))
        self.graph.add((node, SP.elements, create_list(self.graph, self._elements(group))))
        return node

    def _triple_patterns(self, terms: list, blank_nodes: bool = False) -> list[Node]:
        """Write triple pattern nodes for *terms*.

        With *blank_nodes* (CONSTRUCT templates) blank nodes stay blank nodes
        and produce fresh nodes per solution; elsewhere they act as variables.
        """
        if len(terms) % 3:
            raise UnsupportedQuery("Malformed triple block")
        patterns = []
        for i in range(0, len(terms), 3):
            s, p, o = terms[i : i + 3]
            pattern = BNode()
            self.graph.add((pattern, SP.subject, self._term(s, blank_nodes)))
            self.graph.add((pattern, SP.predicate, self._term(p, blank_nodes)))
            self.graph.add((pattern, SP.object, self._term(o, blank_nodes)))
            patterns.append(pattern)
        return patterns

    def _term(self, term: Any, blank_nodes: bool = False) -> Node:
        if isinstance(term, Variable):
            return self._variable(term)
        if isinstance(term, BNode) and blank_nodes:
            return term
        if isinstance(term, BNode):
            # blank nodes in patterns behave as variables
            return self._variable(Variable(f"_{term}"))
        if isinstance(term, (URIRef, Literal)):
            return term
        raise UnsupportedQuery(f"Unsupported term in query pattern: {term!r}")

    def _variable(self, var: Variable) -> Node:
        name = str(var)
        if name not in self._variables:
            self._variables[name] = create_variable(self.graph, name).identifier
        return self._variables[name]
