"""
Symbolic arithmetic for edge weights and Mason's Rule results, on top of SymPy.

Weights arrive either as strings (``"a"``, ``"-R2/(R1 + R2)"``, ``"10*w*j"``)
or as already-built SymPy expressions. Strings are parsed with ``^`` as the
power operator and ``j`` as the imaginary unit; every free symbol is taken to
be real so that real/imaginary parts, and therefore phase and magnitude,
can be written out explicitly.
"""
from functools import lru_cache, reduce
import io
import keyword
import operator
import tokenize
from tokenize import TokenError

import sympy as sp
from sympy.parsing.sympy_parser import (
    convert_xor,
    parse_expr,
    standard_transformations,
)

TRANSFORMATIONS = standard_transformations + (convert_xor,)

# Restricted namespace: anything not listed here parses as a plain symbol,
# so component names like ``gamma``, ``beta`` or ``E`` are not hijacked.
NAMESPACE = {
    'Symbol': sp.Symbol,
    'Integer': sp.Integer,
    'Float': sp.Float,
    'Rational': sp.Rational,
    'Function': sp.Function,
    'sqrt': sp.sqrt,
    'exp': sp.exp,
    'log': sp.log,
    'pi': sp.pi,
}

IMAGINARY_UNIT = 'j'

ZERO = sp.Integer(0)
ONE = sp.Integer(1)


def constant(n):
    return sp.sympify(n)


def realify(expr):
    return expr.xreplace({s: sp.Symbol(s.name, real=True) for s in expr.free_symbols if not s.is_real})


# Names the parser's own transformations emit; not usable in a weight.
RESERVED = {'Symbol', 'Integer', 'Float', 'Rational', 'Function'}

OPERATORS = {'+', '-', '*', '/', '**', '^', '(', ')'}

SKIPPED_TOKENS = {tokenize.NEWLINE, tokenize.NL, tokenize.ENDMARKER}


def weight_names(text):
    """
    Check that ``text`` is a plain arithmetic expression and return its names.

    Only numbers, names and ``+ - * / ** ^ ( )`` are accepted, so nothing
    handed to ``parse_expr`` (which evaluates its input) can reach attributes,
    subscripts, strings or keywords.
    """
    names = set()
    for tok in tokenize.generate_tokens(io.StringIO(text).readline):
        if tok.type in SKIPPED_TOKENS or tok.type == tokenize.NUMBER:
            continue
        if tok.type == tokenize.OP and tok.string in OPERATORS:
            continue
        if (tok.type == tokenize.NAME and not tok.string.startswith('_')
                and not keyword.iskeyword(tok.string) and tok.string not in RESERVED):
            names.add(tok.string)
            continue
        raise sp.SympifyError(text, f"unexpected {tok.string!r}")
    return names


@lru_cache(maxsize=1024)
def _parse(text):
    # every other name is bound to a symbol, so builtins are never looked up
    local_dict = {n: sp.Symbol(n) for n in weight_names(text) if n not in NAMESPACE}
    local_dict[IMAGINARY_UNIT] = sp.I
    expr = parse_expr(
        text,
        local_dict=local_dict,
        global_dict=dict(NAMESPACE),
        transformations=TRANSFORMATIONS,
    )
    return realify(sp.sympify(expr))


def parse_weight(weight):
    """Turn an edge weight into a SymPy expression. Raises ``sympy.SympifyError``."""
    if isinstance(weight, sp.Basic):
        return realify(weight)
    if isinstance(weight, (int, float)):
        return constant(weight)
    text = str(weight).strip()
    if not text:
        raise sp.SympifyError(weight)
    try:
        return _parse(text)
    except sp.SympifyError:
        raise
    except (SyntaxError, TypeError, TokenError, AttributeError, ValueError) as exc:
        raise sp.SympifyError(weight, exc) from exc


def gain_of(edges):
    """Product of the edge weights; 1 for an empty edge list."""
    return reduce(operator.mul, (parse_weight(e.weight) for e in edges), ONE)


def add(a, b):
    return a + b


def subtract(a, b):
    return a - b


def multiply(a, b):
    return a * b


def to_string(expr):
    return sp.sstr(expr)


def phase(expr):
    e = sp.expand(expr)
    return sp.atan2(sp.im(e), sp.re(e))


def magnitude(expr):
    return sp.Abs(expr)


def bode_phase(numerator, denominator):
    return phase(numerator) - phase(denominator)


def bode_magnitude(numerator, denominator):
    return 20 * sp.log(magnitude(numerator) / magnitude(denominator), 10)
