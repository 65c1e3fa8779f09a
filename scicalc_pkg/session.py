"""Calculator session state: input buffer, last answer and angle mode."""

from __future__ import annotations

from .api import evaluate
from .config import (
    DEFAULT_ANGLE_MODE,
    EMPTY_DISPLAY,
    ERROR_TOKEN,
    PI_SYMBOL,
    PLOT_SAMPLE_COUNT,
    PLOT_X_MAX,
    PLOT_X_MIN,
)
from .logging_config import get_logger
from .parser import format_result
from .plotting import sample_function
from .types import AngleMode, EvalResult, PlotResult

logger = get_logger("session")


class CalculatorSession:
    """In-memory state behind the calculator keypad.

    The angle mode only changes through ``toggle_angle_mode`` and is read by
    every evaluation and plot started from this session.
    """

    def __init__(self, angle_mode: AngleMode | str = DEFAULT_ANGLE_MODE) -> None:
        self.expr = ""
        self.ans = 0.0
        self.angle_mode = AngleMode.parse(angle_mode)
        self.history = ""
        self._display = EMPTY_DISPLAY

    @property
    def display(self) -> str:
        return self._display

    def _show(self, text: str) -> None:
        self._display = text or EMPTY_DISPLAY

    def push(self, text: str) -> None:
        """Append keypad text to the input buffer."""
        self.expr += text
        self._show(self.expr)

    def clear(self) -> None:
        self.expr = ""
        self._show("")

    def backspace(self) -> None:
        self.expr = self.expr[:-1]
        self._show(self.expr)

    def insert_answer(self) -> None:
        """Append the last answer to the input buffer."""
        self.push(format_result(self.ans))

    def insert_pi(self) -> None:
        self.push(PI_SYMBOL)

    def toggle_angle_mode(self) -> AngleMode:
        self.angle_mode = self.angle_mode.toggled()
        logger.debug(f"Angle mode set to {self.angle_mode.value}")
        return self.angle_mode

    def equals(self) -> EvalResult:
        """Evaluate the input buffer.

        On a finite result the buffer is replaced by the result text and the
        value becomes the last answer. On a parse error the display shows
        ERROR_TOKEN and the buffer is cleared. A non-finite result is shown
        literally (e.g. "Infinity"), the buffer is cleared and the last
        answer is kept.
        """
        result = evaluate(self.expr, self.angle_mode)
        if result.ok:
            self.history = f"{self.expr} ="
            self.ans = result.value
            self.expr = result.display
            self._show(result.display)
        elif result.code == "NON_FINITE":
            self.history = f"{self.expr} ="
            self.expr = ""
            self._show(result.display)
        else:
            self.expr = ""
            self._show(ERROR_TOKEN)
        return result

    def plot(
        self,
        expression: str,
        x_min: float = PLOT_X_MIN,
        x_max: float = PLOT_X_MAX,
        sample_count: int = PLOT_SAMPLE_COUNT,
    ) -> PlotResult:
        """Sample ``expression`` under the session's angle mode."""
        expression = expression.strip()
        if not expression:
            return PlotResult(ok=False, error="Nothing to plot", code="EMPTY_INPUT")
        return sample_function(
            expression, x_min, x_max, sample_count, self.angle_mode
        )
