"""Tests for failure modes and invalid input handling."""

import math

import pytest

from scicalc_pkg.evaluator import evaluate, make_context
from scicalc_pkg.normalizer import normalize
from scicalc_pkg.plotting import sample_function
from scicalc_pkg.types import ParseError


class TestInputValidationFailures:
    """Test input validation failure modes."""

    def test_empty_input(self):
        with pytest.raises(ParseError):
            evaluate(normalize(""), make_context())

    def test_whitespace_only(self):
        with pytest.raises(ParseError):
            evaluate(normalize("   "), make_context())

    def test_unbalanced_parentheses(self):
        with pytest.raises(ParseError):
            evaluate("(1+1", make_context())

    def test_deep_nesting(self):
        with pytest.raises(ParseError) as exc_info:
            evaluate("-" * 1000 + "1", make_context())
        assert exc_info.value.code == "TOO_DEEP"

    def test_long_flat_chain_evaluates(self):
        # left-deep tree far deeper than the recursion limit
        assert evaluate("+".join(["1"] * 4000), make_context()) == 4000

    def test_chained_factorial_is_not_double_factorial(self):
        # n!! nests the calls: (3!)! rather than 3*1
        assert evaluate(normalize("3!!"), make_context()) == 720


class TestCodeInjection:
    """Host-language code must never run."""

    @pytest.mark.parametrize(
        "expr",
        [
            "__import__('os').system('echo hi')",
            "open('/etc/passwd')",
            "(lambda: 1)()",
            "[].__class__",
            "Math.PI",
            "factorial.__globals__",
        ],
    )
    def test_rejected(self, expr):
        with pytest.raises(ParseError):
            evaluate(normalize(expr), make_context())


class TestPlotFailures:
    def test_no_cancellation_of_pass(self):
        # every sample fails; the pass still completes
        result = sample_function("ln(-1-x^2)", -5, 5, 50)
        assert result.ok
        assert len(result.ys) == 50
        assert all(math.isnan(y) for y in result.ys)

    def test_compile_error_reports_message(self):
        result = sample_function("sin(x", -5, 5, 50)
        assert result.ok is False
        assert "(" in result.error
