"""
Build a signal-flow graph from linear node equations.

Each equation has a single variable on the left, e.g.::

    x2 = a*x1 + f*x2
    V_n2 = DPI_n2*ISC_n2
    DPI_n2 = 10

Left-hand names starting with ``DPI`` are parameters and are substituted into
the other equations instead of becoming nodes. Every remaining left-hand name
is a node, and so is any right-hand name matching the node pattern. Each term
``c*v`` of a right-hand side, with ``v`` a node, becomes an edge ``v -> lhs``
of weight ``c``. Constant terms become source nodes ``y<i>`` feeding the lhs.
"""
import logging
import re
from collections import Counter

import sympy as sp

import expression as ex
from sfg_model import Graph

logger = logging.getLogger(__name__)

DEFAULT_NODE_PATTERN = r'^(x|V_?n)\w*$'
PARAMETER_PREFIX = 'DPI'


class EquationError(ValueError):
    pass


def parse_equation(text):
    """Split ``lhs = rhs`` and return ``(lhs symbol, rhs expression)``."""
    parts = str(text).split('=')
    if len(parts) != 2 or not parts[0].strip() or not parts[1].strip():
        raise EquationError(f"Expected 'variable = expression', got {text!r}")
    try:
        lhs = ex.parse_weight(parts[0])
        rhs = ex.parse_weight(parts[1])
    except sp.SympifyError as exc:
        raise EquationError(f"Cannot parse {text!r}: {exc}") from exc
    if not isinstance(lhs, sp.Symbol):
        raise EquationError(f"Left-hand side of {text!r} must be a single variable")
    return lhs, rhs


def split_linear(rhs, node_names):
    """
    Split ``rhs`` into per-node coefficients and a constant part.

    Raises EquationError for any term that is not linear in exactly one node.
    """
    coeffs = {}
    const = ex.ZERO
    for term in sp.Add.make_args(sp.expand(rhs)):
        in_term = [s for s in term.free_symbols if s.name in node_names]
        if not in_term:
            const += term
            continue
        if len(in_term) > 1:
            raise EquationError(f"Term {term} couples several node variables")
        var = in_term[0]
        coeff = sp.cancel(term / var)
        if coeff.has(var):
            raise EquationError(f"Term {term} is not linear in {var}")
        coeffs[var.name] = coeffs.get(var.name, ex.ZERO) + coeff

    ordered = {}
    for name in node_names:
        if name in coeffs and coeffs[name] != 0:
            ordered[name] = coeffs[name]
    return ordered, const


def _source_name(graph, index):
    name = f"y{index}"
    n = 0
    while name in graph:
        n += 1
        name = f"y{index}_{n}"
    return name


def build_graph(equations, node_pattern=None, logger=logger):
    pattern = re.compile(node_pattern or DEFAULT_NODE_PATTERN)
    params = {}
    parsed = []
    for i, text in enumerate(equations):
        lhs, rhs = parse_equation(text)
        if lhs.name.startswith(PARAMETER_PREFIX):
            params[lhs] = rhs
        else:
            parsed.append((i, lhs, rhs))

    # parameters may refer to each other
    for _ in range(len(params)):
        params = {k: v.xreplace(params) for k, v in params.items()}
    parsed = [(i, lhs, rhs.xreplace(params)) for i, lhs, rhs in parsed]

    node_names = dict.fromkeys(lhs.name for _, lhs, _ in parsed)
    for _, _, rhs in parsed:
        for s in sorted(rhs.free_symbols, key=lambda s: s.name):
            if pattern.match(s.name):
                node_names.setdefault(s.name)

    graph = Graph()
    for name in node_names:
        graph.add_node(name)

    per_node = Counter(lhs.name for _, lhs, _ in parsed)
    for i, lhs, rhs in parsed:
        coeffs, const = split_linear(rhs, node_names)
        if not coeffs and per_node[lhs.name] == 1:
            graph.add_node(lhs.name, value=const)
            continue
        for source, weight in coeffs.items():
            graph.add_edge(source, lhs.name, weight)
        if const != 0:
            source = _source_name(graph, i)
            graph.add_node(source, value=const)
            graph.add_edge(source, lhs.name, ex.ONE)

    logger.debug("Built SFG with %d nodes and %d edges", len(graph), graph.edge_count())
    return graph
