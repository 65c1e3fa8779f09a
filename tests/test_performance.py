"""Performance tests and benchmarks for SciCalc.

These tests are marked as 'slow' and can be skipped with: pytest -m "not slow"
"""

import time

import pytest

from scicalc_pkg.evaluator import evaluate, make_context
from scicalc_pkg.plotting import sample_function


@pytest.mark.slow
class TestEvaluationPerformance:
    """Test evaluation performance."""

    def test_simple_expression_time(self):
        context = make_context()
        start = time.time()
        for i in range(1000):
            evaluate(f"{i}**2+2*{i}+1", context)
        elapsed = time.time() - start
        assert elapsed < 2.0, f"Evaluation too slow: {elapsed}s"


@pytest.mark.slow
class TestPlotPerformance:
    """Test the per-pixel sampling loop."""

    def test_full_width_plot(self):
        start = time.time()
        result = sample_function("sin(x)*x^2/(1+cos(x)^2)", -360, 360, 600)
        elapsed = time.time() - start
        assert result.ok
        assert len(result.ys) == 600
        assert elapsed < 2.0, f"Plot sampling too slow: {elapsed}s"
