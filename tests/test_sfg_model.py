"""Tests for the signal-flow graph model."""
from sfg_model import Edge, Graph, Node


def snapshot(graph):
    return [
        (n.id, n.value, [(e.id, e.weight, e.source, e.destination) for e in n.outgoing_edges])
        for n in graph
    ]


# --- nodes and edges ---

def test_edge_default_id():
    assert Edge('a', 'x1', 'x2').id == 'x1->x2'


def test_node_copy_is_independent():
    node = Node('x1', None, [Edge('a', 'x1', 'x2'), Edge('b', 'x1', 'x3')])
    copy = node.copy()
    copy.outgoing_edges.pop()
    copy.outgoing_edges[0].weight = 'changed'
    assert len(node.outgoing_edges) == 2
    assert node.outgoing_edges[0].weight == 'a'


def test_lookup():
    g = Graph()
    g.add_edge('x1', 'x2', 'a')
    assert g.lookup('x1').id == 'x1'
    assert g.lookup('x2') is None
    assert 'x1' in g and 'x2' not in g


def test_add_edge_keeps_dangling_destination():
    g = Graph()
    edge = g.add_edge('x1', 'ghost', 'a')
    assert g.lookup('x1').outgoing_edges == [edge]
    assert len(g) == 1


def test_parallel_edges_get_ordinal_suffixes():
    g = Graph()
    ids = [g.add_edge('x1', 'x2', w).id for w in ('a', 'b', 'c')]
    assert ids == ['x1->x2', 'x1->x2_1', 'x1->x2_2']


def test_add_node_sets_value_once_given():
    g = Graph()
    g.add_node('x1')
    g.add_node('x1', value=8)
    g.add_node('x1')
    assert g.lookup('x1').value == 8
    assert len(g) == 1


# --- residual subgraphs ---

def test_without_removes_nodes_and_incoming_edges():
    g = Graph()
    for n in ('x1', 'x2', 'x3'):
        g.add_node(n)
    g.add_edge('x1', 'x2', 'a')
    g.add_edge('x1', 'x2', 'a2')
    g.add_edge('x1', 'x3', 'c')
    g.add_edge('x2', 'x1', 'b')
    g.add_edge('x3', 'x3', 'f')

    residual = g.without(['x2'])
    assert list(residual.nodes) == ['x1', 'x3']
    assert [e.id for e in residual.lookup('x1').outgoing_edges] == ['x1->x3']
    assert [e.id for e in residual.lookup('x3').outgoing_edges] == ['x3->x3']


def test_without_leaves_original_untouched():
    g = Graph()
    g.add_node('x2')
    g.add_edge('x1', 'x2', 'a')
    g.add_edge('x2', 'x1', 'b')
    before = snapshot(g)
    g.without(['x1'])
    g.copy().lookup('x2').outgoing_edges.clear()
    assert snapshot(g) == before


# --- conversions ---

def test_from_dicts_defaults_empty_gain():
    g = Graph.from_dicts(
        ['x1', 'x2', {'id': 'x3', 'value': 5}],
        [
            {'from': 'x1', 'to': 'x2', 'gain': ''},
            {'from': 'x2', 'to': 'x3', 'gain': None},
            {'from': 'x2', 'to': 'x3', 'gain': 'k'},
        ],
    )
    assert [e.weight for e in g.edges()] == ['1', '1', 'k']
    assert [e.id for e in g.edges()] == ['x1->x2', 'x2->x3', 'x2->x3_1']
    assert g.lookup('x3').value == 5


def test_to_networkx_keeps_parallel_edges():
    g = Graph()
    g.add_edge('x1', 'x2', 'a')
    g.add_edge('x1', 'x2', 'b')
    g.add_node('x2')
    G = g.to_networkx()
    assert G.number_of_nodes() == 2
    assert G.number_of_edges() == 2
    assert G.edges['x1', 'x2', 'x1->x2_1']['gain'] == 'b'
