"""Type definitions and result dataclasses for consistent API responses."""

from __future__ import annotations

import math
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any


class AngleMode(Enum):
    """Unit in which the trigonometric functions read their argument."""

    DEGREES = "deg"
    RADIANS = "rad"

    def toggled(self) -> AngleMode:
        return AngleMode.RADIANS if self is AngleMode.DEGREES else AngleMode.DEGREES

    @classmethod
    def parse(cls, value: str | AngleMode) -> AngleMode:
        """Accept an AngleMode or one of "deg", "degrees", "rad", "radians"."""
        if isinstance(value, AngleMode):
            return value
        key = str(value).strip().lower()
        if key in ("deg", "degree", "degrees"):
            return cls.DEGREES
        if key in ("rad", "radian", "radians"):
            return cls.RADIANS
        raise ValueError(f"Unknown angle mode: {value!r}")


@dataclass(frozen=True)
class EvaluationContext:
    """Bindings visible to one evaluation.

    ``constants`` and ``functions`` are read-only mappings; ``x`` is only set
    while sampling a plot.
    """

    constants: Mapping[str, float]
    functions: Mapping[str, Callable[[float], float]]
    angle_mode: AngleMode = AngleMode.DEGREES
    x: float | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "constants", MappingProxyType(dict(self.constants)))
        object.__setattr__(self, "functions", MappingProxyType(dict(self.functions)))

    @property
    def names(self) -> dict[str, float | Callable[[float], float]]:
        """Identifier lookup table: constants, functions and ``x`` when bound."""
        table: dict[str, float | Callable[[float], float]] = dict(self.constants)
        table.update(self.functions)
        if self.x is not None:
            table["x"] = self.x
        return table

    def with_x(self, x: float) -> EvaluationContext:
        return EvaluationContext(self.constants, self.functions, self.angle_mode, x)


def _number_to_json(value: float | None) -> float | str | None:
    # JSON has no NaN/Infinity literals
    if value is None or math.isfinite(value):
        return value
    return str(value)


@dataclass
class EvalResult:
    """Result of evaluating a single expression."""

    ok: bool
    value: float | None = None
    display: str | None = None
    expression: str | None = None
    error: str | None = None
    code: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result_dict: dict[str, Any] = {"ok": self.ok}
        if self.value is not None:
            result_dict["value"] = _number_to_json(self.value)
        if self.display is not None:
            result_dict["display"] = self.display
        if self.expression is not None:
            result_dict["expression"] = self.expression
        if self.error is not None:
            result_dict["error"] = self.error
        if self.code is not None:
            result_dict["code"] = self.code
        return result_dict

    def __repr__(self) -> str:
        """Return string representation of the result."""
        if not self.ok:
            return f"EvalResult(ok=False, code={self.code!r}, error={self.error!r})"
        return f"EvalResult(ok=True, value={self.value!r}, display={self.display!r})"


@dataclass
class PlotResult:
    """Samples of a one-variable function over a horizontal range.

    Skipped samples (failed or non-finite) are stored as NaN in ``ys``.
    """

    ok: bool
    xs: list[float] = field(default_factory=list)
    ys: list[float] = field(default_factory=list)
    y_min: float | None = None
    y_max: float | None = None
    expression: str | None = None
    rendered: str | None = None
    error: str | None = None
    code: str | None = None

    @property
    def finite_count(self) -> int:
        return sum(1 for y in self.ys if math.isfinite(y))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result_dict: dict[str, Any] = {"ok": self.ok}
        if self.expression is not None:
            result_dict["expression"] = self.expression
        if self.ok:
            result_dict["xs"] = self.xs
            result_dict["ys"] = [y if math.isfinite(y) else None for y in self.ys]
            result_dict["y_range"] = [self.y_min, self.y_max]
        if self.rendered is not None:
            result_dict["rendered"] = self.rendered
        if self.error is not None:
            result_dict["error"] = self.error
        if self.code is not None:
            result_dict["code"] = self.code
        return result_dict

    def __repr__(self) -> str:
        if not self.ok:
            return f"PlotResult(ok=False, code={self.code!r}, error={self.error!r})"
        return (
            f"PlotResult(ok=True, samples={len(self.xs)}, finite={self.finite_count}, "
            f"y_range=({self.y_min!r}, {self.y_max!r}))"
        )


class ValidationError(Exception):
    """Raised when input validation fails."""

    def __init__(self, message: str, code: str = "VALIDATION_ERROR"):
        self.message = message
        self.code = code
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


class ParseError(Exception):
    """Raised when an expression is malformed or names an unbound identifier."""

    def __init__(
        self, message: str, code: str = "PARSE_ERROR", position: int | None = None
    ):
        self.message = message
        self.code = code
        self.position = position
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message
