"""Tests for QueryBuilder / SelectBuilder."""

import pytest
from rdflib import BNode, Graph, Namespace, URIRef
from rdflib.namespace import RDF

from spinquery.builder import QueryBuilder, SelectBuilder
from spinquery.errors import InvalidArgument, QueryParseFailure
from spinquery.spin import Select, as_query, create_variable
from spinquery.translate import QueryTranslator, compile_query
from spinquery.vocabulary import SP

EX = Namespace("http://example.org/")

THING_QUERY = "SELECT ?x WHERE { ?x a <http://example.org/Thing> }"


@pytest.fixture
def builder(graph):
    """SelectBuilder over the ex:Thing query."""
    return SelectBuilder.from_query_string(THING_QUERY, graph)


def order_terms(graph):
    return list(graph.subjects(RDF.type, SP.Asc)) + list(graph.subjects(RDF.type, SP.Desc))


def var_name(graph, node):
    return str(graph.value(node, SP.varName))


class TestConstruction:
    """Construction paths and subtype checks."""

    def test_from_query_string(self, builder, graph):
        assert isinstance(builder.get_query(), Select)
        assert builder.get_model() is graph
        assert (builder.identifier, RDF.type, SP.Select) in graph

    def test_from_query_string_with_node_iri(self, graph):
        builder = SelectBuilder.from_query_string(THING_QUERY, graph, uri="http://example.org/q")
        assert builder.identifier == URIRef("http://example.org/q")

    def test_from_query(self, graph):
        builder = SelectBuilder.from_query(compile_query(THING_QUERY), graph)
        assert builder.get_limit() is None

    def test_from_resource(self, graph):
        query = QueryTranslator(graph).create_query(compile_query(THING_QUERY))
        assert SelectBuilder.from_resource(query).get_query() == query
        assert SelectBuilder.from_resource(query.identifier, graph).identifier == query.identifier

    def test_from_select(self, graph):
        query = QueryTranslator(graph).create_query(compile_query(THING_QUERY))
        assert SelectBuilder.from_select(query).identifier == query.identifier

    def test_parse_failure_propagates(self, graph):
        with pytest.raises(QueryParseFailure):
            SelectBuilder.from_query_string("SELECT WHERE {", graph)

    def test_null_inputs(self, graph):
        with pytest.raises(InvalidArgument):
            SelectBuilder.from_query(None, graph)
        with pytest.raises(InvalidArgument):
            SelectBuilder.from_resource(None)
        with pytest.raises(InvalidArgument):
            SelectBuilder.from_select(None)

    def test_untyped_resource(self, graph):
        with pytest.raises(InvalidArgument):
            SelectBuilder.from_resource(BNode(), graph)

    @pytest.mark.parametrize(
        "text",
        [
            "CONSTRUCT { ?s ?p ?o } WHERE { ?s ?p ?o }",
            "DESCRIBE <http://example.org/a>",
            "ASK { ?s ?p ?o }",
        ],
    )
    def test_mismatched_subtype(self, graph, text):
        with pytest.raises(InvalidArgument):
            SelectBuilder.from_query_string(text, graph)
        # nothing was written for the rejected query
        assert len(graph) == 0

        other = QueryTranslator(graph).create_query(compile_query(text))
        with pytest.raises(InvalidArgument):
            SelectBuilder.from_resource(other)
        with pytest.raises(InvalidArgument):
            SelectBuilder.from_spin_query(other)
        with pytest.raises(InvalidArgument):
            SelectBuilder(other)

    def test_base_builder_accepts_any_form(self, graph):
        builder = QueryBuilder.from_query_string("ASK { ?s ?p ?o }", graph)
        builder.limit(1)
        assert builder.get_limit() == 1


class TestLimitOffset:
    """limit() / offset()"""

    def test_limit_replaces(self, builder, graph):
        builder.limit(10).limit(3)
        assert builder.get_limit() == 3
        assert len(list(graph.objects(builder.identifier, SP.limit))) == 1

    def test_offset_replaces(self, builder, graph):
        builder.offset(5).offset(0)
        assert builder.get_offset() == 0
        assert len(list(graph.objects(builder.identifier, SP.offset))) == 1

    @pytest.mark.parametrize("value", [None, -1, "10", 2.5, True])
    def test_invalid_values(self, builder, value):
        with pytest.raises(InvalidArgument):
            builder.limit(value)
        with pytest.raises(InvalidArgument):
            builder.offset(value)
        assert builder.get_limit() is None
        assert builder.get_offset() is None

    def test_replaces_parsed_values(self, graph):
        builder = SelectBuilder.from_query_string(THING_QUERY + " LIMIT 100 OFFSET 20", graph)
        assert builder.get_limit() == 100
        builder.limit(1)
        assert builder.get_limit() == 1
        assert builder.get_offset() == 20


class TestOrderBy:
    """order_by()"""

    def test_single_term_after_two_calls(self, builder, graph):
        builder.order_by("x")
        cells = len(list(graph.triples((None, RDF.first, None))))

        builder.order_by("x", True)

        assert len(builder.get_order_by()) == 1
        assert len(order_terms(graph)) == 1
        assert len(list(graph.triples((None, SP.expression, None)))) == 1
        assert len(list(graph.objects(builder.identifier, SP.orderBy))) == 1
        assert len(list(graph.triples((None, RDF.first, None)))) == cells

    def test_replaces_parsed_order(self, graph):
        builder = SelectBuilder.from_query_string(THING_QUERY + " ORDER BY ?x DESC(?x)", graph)
        assert len(builder.get_order_by()) == 2

        builder.order_by("x")

        ((expr, desc),) = builder.get_order_by()
        assert var_name(graph, expr) == "x"
        assert desc is False
        assert len(order_terms(graph)) == 1

    def test_ascending_by_default(self, builder, graph):
        builder.order_by("x")
        (term,) = order_terms(graph)
        assert (term, RDF.type, SP.Asc) in graph

    @pytest.mark.parametrize("name", ["x", "?x", "$x"])
    def test_name_forms(self, builder, graph, name):
        builder.order_by(name, True)
        ((expr, desc),) = builder.get_order_by()
        assert var_name(graph, expr) == "x"
        assert desc is True

    def test_name_reuses_query_variable(self, builder, graph):
        variables = len(list(graph.subjects(RDF.type, SP.Variable)))
        builder.order_by("x")
        assert builder.get_order_by()[0][0] == builder.get_result_variables()[0].identifier
        assert len(list(graph.subjects(RDF.type, SP.Variable))) == variables

    def test_variable_view(self, builder):
        variable = builder.get_result_variables()[0]
        builder.order_by(variable)
        assert builder.get_order_by() == [(variable.identifier, False)]

    def test_variable_node(self, builder, graph):
        node = create_variable(graph, "y").identifier
        builder.order_by(node, True)
        assert builder.get_order_by() == [(node, True)]

    def test_variable_from_another_graph(self, builder, graph):
        other = SelectBuilder.from_query_string("SELECT ?x ?y WHERE { ?x ?p ?y }", Graph())
        x, y = other.get_result_variables()

        builder.order_by(x, True)
        assert builder.get_order_by() == [(builder.get_result_variables()[0].identifier, True)]

        builder.order_by(y)
        ((expr, _),) = builder.get_order_by()
        assert (expr, SP.varName, None) in graph
        assert var_name(graph, expr) == "y"
        assert "ORDER BY ASC(?y)" in builder.build()

    def test_non_variable_from_another_graph(self, builder):
        other = SelectBuilder.from_query_string(THING_QUERY, Graph())
        builder.order_by("x")
        with pytest.raises(InvalidArgument):
            builder.order_by(other.get_query())
        assert len(builder.get_order_by()) == 1

    def test_invalid_arguments(self, builder):
        with pytest.raises(InvalidArgument):
            builder.order_by(None)
        with pytest.raises(InvalidArgument):
            builder.order_by("x", None)
        with pytest.raises(InvalidArgument):
            builder.order_by("?")
        with pytest.raises(InvalidArgument):
            builder.order_by(EX.notAVariable)
        assert builder.get_order_by() == []


class TestSelectModifiers:
    """distinct(), reduced() and result_variables()"""

    def test_distinct_and_reduced_exclude_each_other(self, builder):
        builder.distinct()
        assert builder.is_distinct() and not builder.is_reduced()
        builder.reduced()
        assert builder.is_reduced() and not builder.is_distinct()
        builder.reduced(False)
        assert not builder.is_reduced() and not builder.is_distinct()

    def test_result_variables(self, builder):
        builder.result_variables("x", "?y")
        assert [v.get_name() for v in builder.get_result_variables()] == ["x", "y"]
        assert builder.build().startswith("SELECT ?x ?y\n")

    def test_result_variables_from_another_graph(self, builder, graph):
        other = SelectBuilder.from_query_string("SELECT ?z WHERE { ?z ?p ?o }", Graph())
        builder.result_variables(*other.get_result_variables())
        (variable,) = builder.get_result_variables()
        assert variable.graph is graph
        assert builder.build().startswith("SELECT ?z")

    def test_select_star(self, builder):
        builder.result_variables()
        assert builder.get_result_variables() == []
        assert builder.build().startswith("SELECT *\n")


class TestSharedGraph:
    """The graph is the single source of truth."""

    def test_two_builders_on_one_node(self, builder, graph):
        other = SelectBuilder.from_resource(builder.identifier, graph)
        builder.limit(4)
        assert other.get_limit() == 4

    def test_direct_graph_edit_is_visible(self, builder, graph):
        builder.limit(4)
        graph.remove((builder.identifier, SP.limit, None))
        assert builder.get_limit() is None

    def test_view_sees_builder_edits(self, builder, graph):
        builder.distinct()
        view = as_query(builder.identifier, graph)
        assert view.is_distinct()


def test_scenario():
    """SELECT ?x ... then limit(10).offset(5).order_by("x", True)."""
    graph = Graph()
    builder = SelectBuilder.from_query_string(THING_QUERY, graph)

    result = builder.limit(10).offset(5).order_by("x", True)

    assert result is builder
    assert builder.get_limit() == 10
    assert builder.get_offset() == 5
    ((expr, desc),) = builder.get_order_by()
    assert var_name(graph, expr) == "x"
    assert desc is True

    text = str(builder)
    assert "ORDER BY DESC(?x)" in text
    assert "LIMIT 10" in text
    assert "OFFSET 5" in text
    assert compile_query(text).is_select()


def test_built_query_runs(data_graph, builder):
    builder.order_by("x", True).limit(1)
    rows = list(data_graph.query(builder.build()))
    assert [row.x for row in rows] == [EX.b]


def test_compile(builder):
    builder.limit(2)
    compiled = builder.compile()
    assert compiled.is_select()
    assert "LIMIT 2" in compiled.text
