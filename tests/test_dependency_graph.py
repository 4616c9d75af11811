"""Tests for the dependency graph and its closures."""

import pytest

from pkgindex.services.dependency_graph import DependencyGraph


@pytest.fixture
def graph(make_record):
    # app -> web -> http -> base
    #    \-> json -> base
    # cli -> base
    return DependencyGraph.build([
        make_record("app", deps=["web", "json"]),
        make_record("web", deps=["http"]),
        make_record("http", deps=["base"]),
        make_record("json", deps=["base"]),
        make_record("cli", deps=["base"]),
        make_record("base"),
    ])


@pytest.fixture
def cycle(make_record):
    return DependencyGraph.build([
        make_record("A", deps=["B"]),
        make_record("B", deps=["C"]),
        make_record("C", deps=["A"]),
    ])


class TestBuild:
    """Tests for graph construction."""

    def test_nodes_and_edges(self, graph):
        assert "base" in graph.nodes
        assert ("app", "web") in graph.edges
        assert ("base", "app") not in graph.edges

    def test_unknown_dependency_becomes_node(self, make_record):
        g = DependencyGraph.build([make_record("a", deps=["missing"])])
        assert g.nodes == {"a", "missing"}

    def test_duplicate_dependencies_single_edge(self, make_record):
        g = DependencyGraph.build([make_record("a", deps=["b", "b"])])
        assert g.edges == {("a", "b")}


class TestClosures:
    """Tests for forward and backward closures."""

    def test_dependencies_of(self, graph):
        assert graph.dependencies_of({"web"}) == {"web", "http", "base"}

    def test_dependents_of(self, graph):
        assert graph.dependents_of({"http"}) == {"http", "web", "app"}

    def test_dependents_of_leaf(self, graph):
        assert graph.dependents_of({"base"}) == {"base", "http", "json", "web", "app", "cli"}

    @pytest.mark.parametrize("seeds", [set(), {"app"}, {"base"}, {"json", "cli"}, {"unknown"}])
    def test_seed_set_always_included(self, graph, seeds):
        assert seeds <= graph.dependencies_of(seeds)
        assert seeds <= graph.dependents_of(seeds)

    def test_cycle_terminates_forward(self, cycle):
        assert cycle.dependencies_of({"A"}) == {"A", "B", "C"}

    def test_cycle_terminates_backward(self, cycle):
        assert cycle.dependents_of({"A"}) == {"A", "B", "C"}

    def test_empty_seed(self, graph):
        assert graph.dependencies_of(set()) == frozenset()


class TestRestrict:
    """Tests for restricting the graph to a closure."""

    def test_no_seed_returns_full_graph(self, graph):
        assert graph.restrict([]) is graph

    def test_forward_subgraph(self, graph):
        sub = graph.restrict(["web"])
        assert sub.nodes == {"web", "http", "base"}
        assert sub.edges == {("web", "http"), ("http", "base")}
        assert sub.highlighted == {"web"}

    def test_reverse_subgraph(self, graph):
        sub = graph.restrict(["json"], reverse=True)
        assert sub.nodes == {"json", "app"}
        assert sub.edges == {("app", "json")}

    def test_edges_need_both_endpoints(self, graph):
        sub = graph.restrict(["json"])
        assert ("app", "json") not in sub.edges
        assert sub.edges == {("json", "base")}


class TestToDict:
    """Tests for the renderer structure."""

    def test_structure(self, graph):
        data = graph.restrict(["http"]).to_dict()
        assert data == {
            'nodes': [
                {'id': 'base', 'highlighted': False},
                {'id': 'http', 'highlighted': True},
            ],
            'edges': [{'from': 'http', 'to': 'base'}],
        }

    def test_full_graph_has_no_highlight(self, graph):
        data = graph.to_dict()
        assert not any(n['highlighted'] for n in data['nodes'])
        assert len(data['edges']) == 6
