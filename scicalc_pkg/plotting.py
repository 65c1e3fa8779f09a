"""Sampling and rendering of single-variable functions."""

from __future__ import annotations

import math

import numpy as np

try:
    # Set non-GUI backend before importing pyplot to avoid Tkinter issues
    import matplotlib

    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    HAS_MATPLOTLIB = True
except ImportError:
    HAS_MATPLOTLIB = False

from .config import (
    ASCII_PLOT_COLS,
    ASCII_PLOT_ROWS,
    PLOT_DEFAULT_Y_RANGE,
    PLOT_DEGENERATE_PAD,
    PLOT_SAMPLE_COUNT,
    PLOT_X_MAX,
    PLOT_X_MIN,
    PLOT_Y_PADDING,
)
from .evaluator import compile_expression, evaluate_node, make_context
from .logging_config import get_logger
from .normalizer import normalize
from .types import AngleMode, ParseError, PlotResult, ValidationError

logger = get_logger("plotting")


def _open_file_in_viewer(file_path: str) -> bool:
    """Open a file in the system's default application (cross-platform).

    Args:
        file_path: Path to the file to open

    Returns:
        True if successful, False otherwise
    """
    import os
    import subprocess
    import sys

    try:
        if sys.platform == "win32":
            os.startfile(file_path)
        elif sys.platform == "darwin":
            subprocess.run(["open", file_path], check=True)
        else:
            subprocess.run(["xdg-open", file_path], check=True)
        return True
    except (OSError, subprocess.CalledProcessError) as e:
        logger.debug(f"Could not open {file_path}: {e}")
        return False


def sample_x(x_min: float, x_max: float, sample_count: int) -> list[float]:
    """Horizontal sample positions, one per pixel column.

    Sample ``i`` sits at ``x_min + i/(sample_count-1) * (x_max-x_min)``, so
    both ends of the range are included.
    """
    if sample_count == 1:
        return [float(x_min)]
    span = x_max - x_min
    return [x_min + i / (sample_count - 1) * span for i in range(sample_count)]


def validate_range(x_min: float, x_max: float, sample_count: int) -> None:
    """Raise ValidationError for an unusable plot window."""
    if not (math.isfinite(x_min) and math.isfinite(x_max)):
        raise ValidationError("Plot range must be finite", "INVALID_RANGE")
    if x_min >= x_max:
        raise ValidationError(
            f"x min ({x_min}) must be less than x max ({x_max})", "INVALID_RANGE"
        )
    if sample_count < 1:
        raise ValidationError("Sample count must be at least 1", "INVALID_RANGE")


def sample_function(
    expression: str,
    x_min: float = PLOT_X_MIN,
    x_max: float = PLOT_X_MAX,
    sample_count: int = PLOT_SAMPLE_COUNT,
    angle_mode: AngleMode | str = AngleMode.DEGREES,
) -> PlotResult:
    """Evaluate ``expression`` once per sample with ``x`` bound.

    The expression is compiled once; a ParseError there aborts the whole pass.
    Non-finite samples are kept as NaN so a renderer can break the line there.
    The pass always runs over every sample.

    Args:
        expression: Raw expression in ``x`` (e.g., "x^2", "sin(x)")
        x_min: Left end of the range
        x_max: Right end of the range
        sample_count: Number of samples (one per horizontal pixel)
        angle_mode: Angle mode for sin/cos/tan

    Returns:
        PlotResult with samples and the auto-scaled y-range, or ok=False with
        the parse/validation error
    """
    try:
        validate_range(x_min, x_max, sample_count)
    except ValidationError as e:
        return PlotResult(ok=False, expression=expression, error=str(e), code=e.code)

    try:
        context = make_context(angle_mode, x=x_min)
    except ValueError as e:
        return PlotResult(
            ok=False, expression=expression, error=str(e), code="INVALID_ANGLE_MODE"
        )

    canonical = normalize(expression)
    try:
        node = compile_expression(canonical, context)
    except ParseError as e:
        logger.debug(f"Plot aborted for {expression!r}: {e}")
        return PlotResult(ok=False, expression=expression, error=str(e), code=e.code)

    xs = sample_x(x_min, x_max, sample_count)
    ys = []
    for x in xs:
        y = evaluate_node(node, context.with_x(x))
        ys.append(y if math.isfinite(y) else math.nan)

    y_min, y_max = compute_y_range(ys)
    return PlotResult(
        ok=True, xs=xs, ys=ys, y_min=y_min, y_max=y_max, expression=expression
    )


def compute_y_range(ys: list[float]) -> tuple[float, float]:
    """Vertical axis range for a set of samples.

    The finite min/max is padded by PLOT_Y_PADDING of its height; a flat
    range is padded by PLOT_DEGENERATE_PAD instead. Without any finite
    sample the default range is returned.
    """
    values = np.asarray(ys, dtype=float)
    finite = values[np.isfinite(values)]
    if finite.size == 0:
        return PLOT_DEFAULT_Y_RANGE
    low, high = float(finite.min()), float(finite.max())
    pad = (high - low) * PLOT_Y_PADDING
    if pad == 0 or not math.isfinite(pad):
        pad = PLOT_DEGENERATE_PAD
    return low - pad, high + pad


def split_segments(
    xs: list[float], ys: list[float]
) -> list[tuple[list[float], list[float]]]:
    """Split samples into runs of consecutive finite values."""
    segments: list[tuple[list[float], list[float]]] = []
    seg_x: list[float] = []
    seg_y: list[float] = []
    for x, y in zip(xs, ys):
        if math.isfinite(y):
            seg_x.append(x)
            seg_y.append(y)
        elif seg_x:
            segments.append((seg_x, seg_y))
            seg_x, seg_y = [], []
    if seg_x:
        segments.append((seg_x, seg_y))
    return segments


def render_ascii(
    plot: PlotResult, rows: int = ASCII_PLOT_ROWS, cols: int = ASCII_PLOT_COLS
) -> str:
    """Render sampled points as a character grid with axes.

    Args:
        plot: Successful PlotResult
        rows: Height of the plot in characters
        cols: Width of the plot in characters

    Returns:
        Multi-line string, top row first
    """
    x_min, x_max = plot.xs[0], plot.xs[-1]
    y_min, y_max = plot.y_min, plot.y_max
    x_span = (x_max - x_min) or 1.0
    y_span = (y_max - y_min) or 1.0

    def to_col(x: float) -> int:
        return max(0, min(cols - 1, int(round((x - x_min) / x_span * (cols - 1)))))

    def to_row(y: float) -> int:
        # row 0 is the top of the plot
        return max(0, min(rows - 1, int(round((y_max - y) / y_span * (rows - 1)))))

    grid = [[" " for _ in range(cols)] for _ in range(rows)]
    axis_row = to_row(0.0) if y_min <= 0 <= y_max else None
    axis_col = to_col(0.0) if x_min <= 0 <= x_max else None
    if axis_row is not None:
        for c in range(cols):
            grid[axis_row][c] = "-"
    if axis_col is not None:
        for r in range(rows):
            grid[r][axis_col] = "|"
    if axis_row is not None and axis_col is not None:
        grid[axis_row][axis_col] = "+"

    for x, y in zip(plot.xs, plot.ys):
        if math.isfinite(y):
            grid[to_row(y)][to_col(x)] = "*"

    return "\n".join("".join(line) for line in grid)


def render_png(plot: PlotResult, path: str, title: str | None = None) -> str:
    """Draw the samples with matplotlib and save them as a PNG.

    Skipped samples break the line. The y-axis uses the auto-scaled range.

    Returns:
        The path written
    """
    if not HAS_MATPLOTLIB:
        raise RuntimeError("matplotlib not installed. Use ascii=True for ASCII plot.")
    label = plot.expression or "f(x)"
    fig, ax = plt.subplots(figsize=(10, 6))
    try:
        for seg_x, seg_y in split_segments(plot.xs, plot.ys):
            ax.plot(seg_x, seg_y, linewidth=2, color="#44ffee")
        ax.set_xlim(plot.xs[0], plot.xs[-1])
        ax.set_ylim(plot.y_min, plot.y_max)
        ax.set_xlabel("x", fontsize=12, fontweight="bold")
        ax.set_ylabel("y", fontsize=12, fontweight="bold")
        ax.set_title(title or f"y = {label}", fontsize=14, fontweight="bold")
        ax.grid(True, alpha=0.3, linestyle="--")
        ax.axhline(y=0, color="k", linewidth=0.8, linestyle="-", alpha=0.3)
        ax.axvline(x=0, color="k", linewidth=0.8, linestyle="-", alpha=0.3)
        fig.tight_layout()
        fig.savefig(path, dpi=150, bbox_inches="tight")
    finally:
        plt.close(fig)
    return path


def plot_function(
    expression: str,
    x_min: float = PLOT_X_MIN,
    x_max: float = PLOT_X_MAX,
    sample_count: int = PLOT_SAMPLE_COUNT,
    angle_mode: AngleMode | str = AngleMode.DEGREES,
    ascii: bool = False,
    output: str | None = None,
    open_viewer: bool = False,
) -> PlotResult:
    """Sample a function and render it.

    With ``ascii=True`` the text plot is stored in ``PlotResult.rendered``.
    Otherwise the plot is saved as a PNG (to ``output`` or a temporary file)
    and ``rendered`` holds the file path.

    Examples:
        >>> from scicalc_pkg.plotting import plot_function
        >>> result = plot_function("x^2", x_min=-5, x_max=5, ascii=True)
        >>> print(result.rendered)  # ASCII plot text
    """
    result = sample_function(expression, x_min, x_max, sample_count, angle_mode)
    if not result.ok:
        return result

    if ascii:
        result.rendered = render_ascii(result)
        return result

    if not HAS_MATPLOTLIB:
        result.ok = False
        result.error = "matplotlib not installed. Use ascii=True for ASCII plot."
        result.code = "MISSING_DEPENDENCY"
        return result

    path = output
    if path is None:
        import tempfile

        temp_file = tempfile.NamedTemporaryFile(suffix=".png", delete=False)
        path = temp_file.name
        temp_file.close()
    try:
        render_png(result, path)
    except OSError as e:
        logger.error(f"Failed to save plot to {path}: {e}")
        result.ok = False
        result.error = f"Failed to save plot: {e}"
        result.code = "RENDER_ERROR"
        return result
    result.rendered = path
    if open_viewer:
        _open_file_in_viewer(path)
    return result
