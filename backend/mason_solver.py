import logging
from dataclasses import dataclass

import expression as ex
from equations import build_graph
from loops import find_all_loops, find_non_touching, format_edges
from sfg_model import Graph

logger = logging.getLogger(__name__)


class PathCofactorMismatch(RuntimeError):
    """Forward paths and cofactors no longer line up one to one."""


@dataclass
class ForwardPath:
    nodes: list
    edges: list

    def gain(self):
        return ex.gain_of(self.edges)

    def __str__(self):
        return ' -> '.join(self.nodes)


@dataclass
class TransferFunction:
    numerator: object
    denominator: object
    bode_phase: object
    bode_magnitude: object
    forward_paths: list
    loops: list

    def __str__(self):
        return f"({ex.to_string(self.numerator)}) / ({ex.to_string(self.denominator)})"


@dataclass
class LoopGain:
    gain: object
    phase: object
    magnitude: object


def calculate_denominator(loops, non_touching):
    """
    Mason's Rule denominator:
        1 - sum(loop gains) + sum(2 non-touching) - sum(3 non-touching) ...
    """
    denom = ex.constant(1)
    for loop in loops:
        denom = ex.subtract(denom, ex.gain_of(loop))

    for k, combos in sorted(non_touching.items()):
        level = ex.constant(0)
        for combo in combos:
            level = ex.add(level, ex.gain_of(combo))
        if k % 2 == 0:
            denom = ex.add(denom, level)
        else:
            denom = ex.subtract(denom, level)
    return denom


def delta(graph, logger=logger):
    loops = find_all_loops(graph, logger=logger)
    return calculate_denominator(loops, find_non_touching(loops, logger=logger))


def find_forward_paths(start, end, graph, logger=logger):
    """All simple paths from ``start`` to ``end``, one per distinct edge sequence."""
    first = graph.lookup(start)
    if first is None or end not in graph:
        logger.warning("Unknown node in %s -> %s, no forward paths", start, end)
        return []

    paths = []

    def walk(node, nodes, edges):
        if node.id == end:
            paths.append(ForwardPath(nodes + [node.id], edges))
            return
        if node.id in nodes or not node.outgoing_edges:
            return
        here = nodes + [node.id]
        for edge in node.outgoing_edges:
            nxt = graph.lookup(edge.destination)
            if nxt is None:
                continue
            walk(nxt, list(here), edges + [edge])

    walk(first, [], [])
    for p in paths:
        logger.debug("Forward path: %s", p)
    return paths


def calculate_cofactor(path, graph, logger=logger):
    """Delta of the graph left after removing every node of ``path``."""
    nodes = path.nodes if isinstance(path, ForwardPath) else path
    return delta(graph.without(nodes), logger=logger)


def calculate_cofactors(paths, graph, logger=logger):
    return [calculate_cofactor(p, graph, logger=logger) for p in paths]


def calculate_numerator(start, end, graph, logger=logger, paths=None):
    """Sum of forward path gain times its cofactor over every forward path."""
    if paths is None:
        paths = find_forward_paths(start, end, graph, logger=logger)
    gains = [p.gain() for p in paths]
    cofactors = calculate_cofactors(paths, graph, logger=logger)

    if len(gains) != len(cofactors):
        raise PathCofactorMismatch(
            f"{len(gains)} forward paths but {len(cofactors)} cofactors"
        )

    numer = ex.constant(0)
    for gain, cofactor in zip(gains, cofactors):
        numer = ex.add(numer, ex.multiply(gain, cofactor))
    return numer


def compute_masons(graph, start, end, logger=logger):
    loops = find_all_loops(graph, logger=logger)
    denom = calculate_denominator(loops, find_non_touching(loops, logger=logger))
    paths = find_forward_paths(start, end, graph, logger=logger)
    numer = calculate_numerator(start, end, graph, logger=logger, paths=paths)
    logger.info("%s/%s: numer=%s denom=%s", end, start, numer, denom)
    return TransferFunction(
        numerator=numer,
        denominator=denom,
        bode_phase=ex.bode_phase(numer, denom),
        bode_magnitude=ex.bode_magnitude(numer, denom),
        forward_paths=paths,
        loops=loops,
    )


def compute_loop_gain(graph, logger=logger):
    gain = ex.subtract(delta(graph, logger=logger), 1)
    return LoopGain(gain=gain, phase=ex.phase(gain), magnitude=ex.bode_magnitude(gain, 1))


class MasonSolver:
    def __init__(self, nodes, edges, input_node, output_node, logger=logger):
        self.G = Graph.from_dicts(nodes, edges)
        self.start = None if input_node is None else str(input_node)
        self.end = None if output_node is None else str(output_node)
        self.logger = logger
        self.forward_paths = []
        self.loops = []

    @classmethod
    def from_graph(cls, graph, input_node, output_node, logger=logger):
        solver = cls([], [], input_node, output_node, logger=logger)
        solver.G = graph
        return solver

    @classmethod
    def from_equations(cls, equations, input_node, output_node, node_pattern=None, logger=logger):
        graph = build_graph(equations, node_pattern=node_pattern, logger=logger)
        return cls.from_graph(graph, input_node, output_node, logger=logger)

    def solve(self):
        result = compute_masons(self.G, self.start, self.end, logger=self.logger)
        self.forward_paths = result.forward_paths
        self.loops = result.loops
        if not self.forward_paths:
            self.logger.warning("No path between %s and %s", self.start, self.end)
        return result

    def loop_gain(self):
        return compute_loop_gain(self.G, logger=self.logger)

    def describe(self):
        """Readable dump of the graph plus the loops and paths of the last solve()."""
        lines = []
        for node in self.G:
            lines.append(f"Node {node.id} (value={node.value})")
            for e in node.outgoing_edges:
                lines.append(f"  {e.id}: -> {e.destination}, weight = {e.weight}")
        for loop in self.loops:
            lines.append(f"Loop: {format_edges(loop)}")
        for path in self.forward_paths:
            lines.append(f"Forward path: {path}")
        return '\n'.join(lines)
