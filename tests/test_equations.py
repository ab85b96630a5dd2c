"""Tests for building signal-flow graphs from node equations."""
import pytest
import sympy as sp

from equations import EquationError, build_graph, parse_equation, split_linear
from mason_solver import MasonSolver

a, b, f, R1, R3 = sp.symbols('a b f R1 R3', real=True)


def edges_of(graph):
    return [(e.id, e.weight) for e in graph.edges()]


# --- parse_equation ---

def test_parse_equation():
    lhs, rhs = parse_equation('x2 = a*x1')
    assert lhs.name == 'x2'
    assert rhs == a * sp.Symbol('x1', real=True)


@pytest.mark.parametrize("text", ['x1', 'x1 = ', ' = 3', 'x1 == 2', 'a + b = x1', 'x1 = (2'])
def test_parse_equation_rejects(text):
    with pytest.raises(EquationError):
        parse_equation(text)


def test_split_linear_rejects_products_of_nodes():
    x1, x2 = sp.symbols('x1 x2', real=True)
    with pytest.raises(EquationError):
        split_linear(x1 * x2, {'x1': None, 'x2': None})
    with pytest.raises(EquationError):
        split_linear(x1**2, {'x1': None})


# --- build_graph ---

def test_build_simple_feedback():
    g = build_graph(['x2 = a*x1 + f*x2', 'x3 = b*x2'])
    assert list(g.nodes) == ['x2', 'x3', 'x1']
    assert edges_of(g) == [('x2->x2', f), ('x2->x3', b), ('x1->x2', a)]


def test_coefficients_of_one_source_are_summed():
    g = build_graph(['x2 = a*x1 + b*x1'])
    assert edges_of(g) == [('x1->x2', a + b)]


def test_parameters_are_substituted():
    g = build_graph([
        'V_n1 = 8',
        'V_n2 = DPI_n2*ISC_n2',
        'DPI_n2 = 9',
        'ISC_n2 = V_n1/R1 + V_n3/R3',
    ])
    assert 'DPI_n2' not in g
    assert list(g.nodes) == ['V_n1', 'V_n2', 'ISC_n2', 'V_n3']
    assert g.lookup('V_n1').value == 8
    assert edges_of(g) == [
        ('V_n1->ISC_n2', 1 / R1),
        ('ISC_n2->V_n2', 9),
        ('V_n3->ISC_n2', 1 / R3),
    ]


def test_constant_term_becomes_source_node():
    g = build_graph(['x2 = a*x1 + 5'])
    assert g.lookup('y0').value == 5
    assert ('y0->x2', 1) in edges_of(g)


def test_repeated_lhs_gives_parallel_edges():
    g = build_graph(['x2 = a*x1', 'x2 = b*x1'])
    assert edges_of(g) == [('x1->x2', a), ('x1->x2_1', b)]


def test_repeated_lhs_constant_is_a_source():
    g = build_graph(['x2 = a*x1', 'x2 = 3'])
    assert g.lookup('x2').value is None
    assert g.lookup('y1').value == 3


def test_nonlinear_equation_rejected():
    with pytest.raises(EquationError):
        build_graph(['x3 = x1*x2', 'x2 = a*x1'])


def test_custom_node_pattern():
    g = build_graph(['v2 = k*v1'], node_pattern=r'^v\d+$')
    assert list(g.nodes) == ['v2', 'v1']


# --- end to end ---

def test_transfer_function_from_equations():
    tf = MasonSolver.from_equations(['x2 = a*x1 + f*x2', 'x3 = b*x2'], 'x1', 'x3').solve()
    assert sp.expand(tf.numerator - a * b) == 0
    assert sp.expand(tf.denominator - (1 - f)) == 0


def test_parallel_equations_add_up():
    tf = MasonSolver.from_equations(['x2 = a*x1', 'x2 = b*x1'], 'x1', 'x2').solve()
    assert sp.expand(tf.numerator - (a + b)) == 0
