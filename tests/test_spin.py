"""Tests for the SPIN query views and list helpers."""

from rdflib import BNode, Graph, Literal, Namespace
from rdflib.namespace import RDF, XSD

from spinquery.spin import (
    Ask,
    Construct,
    Select,
    SpinQuery,
    Variable,
    as_query,
    as_variable,
    create_list,
    create_variable,
    integer_literal,
    list_items,
    remove_list,
)
from spinquery.vocabulary import SP

EX = Namespace("http://example.org/")


class TestLists:
    """rdf:List helpers."""

    def test_empty_list_is_nil(self, graph):
        assert create_list(graph, []) == RDF.nil
        assert len(graph) == 0

    def test_items_in_order(self, graph):
        head = create_list(graph, [EX.a, EX.b, EX.c])
        assert list_items(graph, head) == [EX.a, EX.b, EX.c]

    def test_items_of_missing_list(self, graph):
        assert list_items(graph, None) == []
        assert list_items(graph, RDF.nil) == []

    def test_remove_list_keeps_members(self, graph):
        member = BNode()
        graph.add((member, EX.p, Literal("kept")))
        head = create_list(graph, [member, EX.b])

        remove_list(graph, head)

        assert (None, RDF.first, None) not in graph
        assert (None, RDF.rest, None) not in graph
        assert (member, EX.p, Literal("kept")) in graph


class TestVariables:
    """SPIN variables."""

    def test_create_variable(self, graph):
        var = create_variable(graph, "x")
        assert isinstance(var, Variable)
        assert (var.identifier, RDF.type, SP.Variable) in graph
        assert var.get_name() == "x"
        assert str(var) == "?x"

    def test_as_variable_from_node(self, graph):
        var = create_variable(graph, "y")
        view = as_variable(var.identifier, graph)
        assert view is not None
        assert view.get_name() == "y"

    def test_as_variable_rejects_other_nodes(self, graph):
        assert as_variable(EX.notAVariable, graph) is None
        assert as_variable(None) is None
        assert as_variable(BNode()) is None


class TestQueryViews:
    """Typed query views."""

    def test_as_query_picks_subclass(self, graph):
        node = BNode()
        graph.add((node, RDF.type, SP.Construct))
        view = as_query(node, graph)
        assert isinstance(view, Construct)
        assert view.get_query_type() == SP.Construct

    def test_as_query_untyped(self, graph):
        assert as_query(BNode(), graph) is None
        assert as_query(None, graph) is None

    def test_views_read_through_graph(self, graph):
        node = BNode()
        graph.add((node, RDF.type, SP.Select))
        view = as_query(node, graph)
        assert isinstance(view, Select)
        assert view.get_limit() is None

        graph.add((node, SP.limit, integer_literal(7)))
        assert view.get_limit() == 7

    def test_flags_default_false(self, graph):
        node = BNode()
        graph.add((node, RDF.type, SP.Select))
        view = Select(graph, node)
        assert view.is_distinct() is False
        assert view.is_reduced() is False
        assert view.get_result_variables() == []

    def test_plain_variable_orders_ascending(self, graph):
        node = BNode()
        graph.add((node, RDF.type, SP.Ask))
        var = create_variable(graph, "x")
        graph.add((node, SP.orderBy, create_list(graph, [var])))

        view = as_query(node, graph)
        assert isinstance(view, Ask)
        assert view.get_order_by() == [(var.identifier, False)]

    def test_base_view_has_no_form(self):
        assert SpinQuery.query_type is None


def test_integer_literal_datatype():
    literal = integer_literal(10)
    assert literal.datatype == XSD.long
    assert literal.toPython() == 10


def test_views_share_graph():
    g = Graph()
    node = BNode()
    g.add((node, RDF.type, SP.Select))
    first, second = Select(g, node), Select(g, node)
    g.add((node, SP.distinct, Literal(True)))
    assert first.is_distinct() and second.is_distinct()
