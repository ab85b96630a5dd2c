import networkx as nx
from dataclasses import dataclass, field


@dataclass
class Edge:
    weight: object
    source: str
    destination: str
    id: str = ''

    def __post_init__(self):
        if not self.id:
            self.id = edge_id(self.source, self.destination)

    def copy(self):
        return Edge(self.weight, self.source, self.destination, self.id)


@dataclass
class Node:
    id: str
    value: object = None
    outgoing_edges: list = field(default_factory=list)

    def copy(self):
        """Return a node whose edge list can be edited without touching this one."""
        return Node(self.id, self.value, [e.copy() for e in self.outgoing_edges])


def edge_id(source, destination):
    return f"{source}->{destination}"


class Graph:
    """
    Directed weighted multigraph of a signal-flow graph.

    Nodes live in an id-keyed arena and edges only store node ids, so the
    graph can be cyclic and still be copied node by node. Insertion order of
    nodes and of each node's outgoing edges is preserved and drives the
    traversal order of every search.
    """

    def __init__(self, nodes=None):
        self.nodes = {}
        for node in nodes or []:
            self.nodes[node.id] = node

    def __iter__(self):
        return iter(self.nodes.values())

    def __len__(self):
        return len(self.nodes)

    def __contains__(self, node_id):
        return node_id in self.nodes

    def __repr__(self):
        return f"Graph(nodes={list(self.nodes)}, edges={self.edge_count()})"

    def lookup(self, node_id):
        return self.nodes.get(node_id)

    def add_node(self, node_id, value=None):
        node = self.nodes.get(node_id)
        if node is None:
            node = Node(node_id, value)
            self.nodes[node_id] = node
        elif value is not None:
            node.value = value
        return node

    def add_edge(self, source, destination, weight):
        """
        Add ``source -> destination``, creating ``source`` if needed.

        The destination is not created: an edge into a missing node is kept
        and skipped at traversal time. The first edge between a pair keeps
        the bare id, later parallel ones get ``_1``, ``_2``, ... suffixes.
        """
        node = self.add_node(source)
        base = edge_id(source, destination)
        taken = {e.id for e in node.outgoing_edges}
        new_id = base
        suffix = 0
        while new_id in taken:
            suffix += 1
            new_id = f"{base}_{suffix}"
        edge = Edge(weight, source, destination, new_id)
        node.outgoing_edges.append(edge)
        return edge

    def edges(self):
        for node in self.nodes.values():
            yield from node.outgoing_edges

    def edge_count(self):
        return sum(len(n.outgoing_edges) for n in self.nodes.values())

    def copy(self):
        return Graph(n.copy() for n in self.nodes.values())

    def without(self, node_ids):
        """Residual subgraph: ``node_ids`` removed as sources and as destinations."""
        removed = set(node_ids)
        residual = Graph()
        for node in self.nodes.values():
            if node.id in removed:
                continue
            kept = node.copy()
            kept.outgoing_edges = [e for e in kept.outgoing_edges if e.destination not in removed]
            residual.nodes[kept.id] = kept
        return residual

    @classmethod
    def from_dicts(cls, nodes, edges):
        """Build from the API payload: node ids plus ``{'from', 'to', 'gain'}`` dicts."""
        graph = cls()
        for n in nodes:
            if isinstance(n, dict):
                graph.add_node(str(n['id']), n.get('value'))
            else:
                graph.add_node(str(n))
        for e in edges:
            gain = e.get('gain')
            gain = gain if gain is not None and str(gain).strip() != '' else '1'
            graph.add_edge(str(e['from']), str(e['to']), gain)
        return graph

    def to_networkx(self):
        G = nx.MultiDiGraph()
        for node in self.nodes.values():
            G.add_node(node.id, value=None if node.value is None else str(node.value))
        for e in self.edges():
            G.add_edge(e.source, e.destination, key=e.id, gain=str(e.weight))
        return G
