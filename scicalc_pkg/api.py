"""Public API for SciCalc - returns structured objects without side effects."""

from __future__ import annotations

import math

from .config import ERROR_TOKEN, PLOT_SAMPLE_COUNT, PLOT_X_MAX, PLOT_X_MIN
from .evaluator import compile_expression, evaluate_node, make_context
from .logging_config import get_logger
from .normalizer import normalize
from .parser import format_result
from .plotting import plot_function
from .types import AngleMode, EvalResult, ParseError, PlotResult

logger = get_logger("api")


def evaluate(
    expression: str, angle_mode: AngleMode | str = AngleMode.DEGREES
) -> EvalResult:
    """Evaluate a calculator expression.

    Args:
        expression: Raw expression string (e.g., "2+2", "sin(90)", "5!", "2π")
        angle_mode: Angle mode for sin/cos/tan

    Returns:
        EvalResult. A finite result has ok=True. A parse failure has
        ok=False and display ERROR_TOKEN. A non-finite result has ok=False,
        code "NON_FINITE", and keeps the value and its literal display
        ("Infinity", "-Infinity", "NaN").

    Example:
        >>> from scicalc_pkg.api import evaluate
        >>> evaluate("2^3^2").value
        512.0
        >>> evaluate("sin(90)", angle_mode="rad").display
        '0.8939966636005579'
    """
    canonical = normalize(expression)
    try:
        context = make_context(angle_mode)
    except ValueError as e:
        return EvalResult(
            ok=False,
            display=ERROR_TOKEN,
            expression=canonical,
            error=str(e),
            code="INVALID_ANGLE_MODE",
        )
    try:
        value = evaluate_node(compile_expression(canonical, context), context)
    except ParseError as e:
        logger.debug(f"Parse error for {expression!r}: {e}")
        return EvalResult(
            ok=False,
            display=ERROR_TOKEN,
            expression=canonical,
            error=str(e),
            code=e.code,
        )
    except Exception as e:
        logger.error(f"Unexpected evaluation error: {e}", exc_info=True)
        return EvalResult(
            ok=False,
            display=ERROR_TOKEN,
            expression=canonical,
            error="Evaluation failed unexpectedly",
            code="UNKNOWN_ERROR",
        )
    if not math.isfinite(value):
        return EvalResult(
            ok=False,
            value=value,
            display=format_result(value),
            expression=canonical,
            error="Result is not a finite number",
            code="NON_FINITE",
        )
    return EvalResult(
        ok=True, value=value, display=format_result(value), expression=canonical
    )


def validate_expression(
    expression: str, allow_x: bool = False
) -> tuple[bool, str | None]:
    """Validate an expression without evaluating it.

    Args:
        expression: Expression string to validate
        allow_x: Treat ``x`` as bound, as when plotting

    Returns:
        Tuple of (is_valid, error_message)

    Example:
        >>> from scicalc_pkg.api import validate_expression
        >>> validate_expression("2 + 2")
        (True, None)
        >>> validate_expression("x + 1")
        (False, "Unknown identifier 'x'")
    """
    context = make_context(x=0.0 if allow_x else None)
    try:
        compile_expression(normalize(expression), context)
    except ParseError as e:
        return False, str(e)
    return True, None


def plot(
    expression: str,
    x_min: float = PLOT_X_MIN,
    x_max: float = PLOT_X_MAX,
    sample_count: int = PLOT_SAMPLE_COUNT,
    angle_mode: AngleMode | str = AngleMode.DEGREES,
    ascii: bool = False,
    output: str | None = None,
) -> PlotResult:
    """Sample and render a function of ``x``.

    Example:
        >>> from scicalc_pkg.api import plot
        >>> result = plot("x^2", x_min=-2, x_max=2, sample_count=5, ascii=True)
        >>> result.ys
        [4.0, 1.0, 0.0, 1.0, 4.0]
    """
    return plot_function(
        expression,
        x_min=x_min,
        x_max=x_max,
        sample_count=sample_count,
        angle_mode=angle_mode,
        ascii=ascii,
        output=output,
    )
