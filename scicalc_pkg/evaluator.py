"""Tree-walking evaluator for parsed calculator expressions.

Arithmetic is done on numpy float64 values with floating-point warnings
suppressed, so division by zero, overflow and domain errors yield
``inf``/``nan`` instead of raising. Whether a non-finite result is an error
is decided by the caller.
"""

from __future__ import annotations

import math
from collections.abc import Callable

import numpy as np

from .config import PI_NAME
from .parser import BinaryOp, Call, Name, Node, Number, UnaryOp, check_bindings, parse_canonical
from .types import AngleMode, EvaluationContext

CONSTANTS = {
    PI_NAME: math.pi,
    "E": math.e,
}

_BINARY_OPS: dict[str, Callable[[np.float64, np.float64], np.float64]] = {
    "+": np.add,
    "-": np.subtract,
    "*": np.multiply,
    "/": np.divide,
    "**": np.power,
}

# Largest n whose factorial is finite in double precision
_MAX_FINITE_FACTORIAL = 170


def factorial(n: float) -> float:
    """Iterative factorial with floor truncation.

    Returns NaN for negative ``n`` and the product ``2*3*...*floor(n)``
    otherwise, so ``factorial(0) == factorial(1) == 1`` and
    ``factorial(4.7) == 24``.
    """
    n = float(n)
    if math.isnan(n) or n < 0:
        return math.nan
    if n > _MAX_FINITE_FACTORIAL:
        return math.inf
    result = 1.0
    for i in range(2, int(math.floor(n)) + 1):
        result *= i
    return result


def _trig(func: Callable[[np.float64], np.float64], angle_mode: AngleMode) -> Callable[[float], float]:
    if angle_mode is AngleMode.DEGREES:
        def trig(v: float) -> float:
            return func(np.float64(v) * np.pi / 180)
    else:
        def trig(v: float) -> float:
            return func(np.float64(v))
    trig.__name__ = func.__name__
    return trig


def build_functions(angle_mode: AngleMode) -> dict[str, Callable[[float], float]]:
    """Function bindings for an evaluation under ``angle_mode``."""
    return {
        "sin": _trig(np.sin, angle_mode),
        "cos": _trig(np.cos, angle_mode),
        "tan": _trig(np.tan, angle_mode),
        "sqrt": np.sqrt,
        "ln": np.log,
        "log": np.log10,
        "factorial": factorial,
    }


def make_context(
    angle_mode: AngleMode | str = AngleMode.DEGREES, x: float | None = None
) -> EvaluationContext:
    """Build the evaluation context for one angle mode.

    Args:
        angle_mode: AngleMode or "deg"/"rad"
        x: Value of the free variable; leave as None outside plotting

    Returns:
        Immutable EvaluationContext
    """
    mode = AngleMode.parse(angle_mode)
    return EvaluationContext(
        constants=CONSTANTS,
        functions=build_functions(mode),
        angle_mode=mode,
        x=None if x is None else float(x),
    )


def compile_expression(canonical_expr: str, context: EvaluationContext) -> Node:
    """Parse a canonical expression and check its names against ``context``.

    Raises:
        ParseError: If the expression is malformed or uses an unbound name
    """
    node = parse_canonical(canonical_expr)
    check_bindings(node, context)
    return node


def _eval(root: Node, names: dict) -> np.float64:
    # Post-order walk with an explicit stack; long "1+1+...+1" chains build
    # left-deep trees deeper than the recursion limit.
    values: list[np.float64] = []
    stack: list[tuple[Node, bool]] = [(root, False)]
    while stack:
        node, children_done = stack.pop()
        if isinstance(node, Number):
            values.append(np.float64(node.value))
        elif isinstance(node, Name):
            values.append(np.float64(names[node.name]))
        elif not children_done:
            stack.append((node, True))
            if isinstance(node, BinaryOp):
                stack.append((node.right, False))
                stack.append((node.left, False))
            elif isinstance(node, UnaryOp):
                stack.append((node.operand, False))
            elif isinstance(node, Call):
                stack.append((node.args[0], False))
            else:
                raise TypeError(f"Unsupported node: {type(node).__name__}")
        elif isinstance(node, BinaryOp):
            right = values.pop()
            left = values.pop()
            values.append(_BINARY_OPS[node.op](left, right))
        elif isinstance(node, UnaryOp):
            operand = values.pop()
            values.append(-operand if node.op == "-" else operand)
        else:
            values.append(np.float64(names[node.name](values.pop())))
    return values[0]


def evaluate_node(node: Node, context: EvaluationContext) -> float:
    """Evaluate a compiled tree; the result may be ``inf`` or ``nan``."""
    with np.errstate(all="ignore"):
        return float(_eval(node, context.names))


def evaluate(canonical_expr: str, context: EvaluationContext) -> float:
    """Evaluate a canonical expression under ``context``.

    Args:
        canonical_expr: Normalized expression text (e.g., "2**3+factorial(4)")
        context: Bindings and angle mode; bind ``x`` only for plotting

    Returns:
        The double-precision result, possibly non-finite

    Raises:
        ParseError: If the expression is malformed or uses an unbound name
    """
    return evaluate_node(compile_expression(canonical_expr, context), context)
