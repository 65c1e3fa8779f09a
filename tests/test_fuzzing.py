"""Fuzzing tests for normalizer and evaluator with random inputs."""

import random
import string
import unittest

from scicalc_pkg.api import evaluate
from scicalc_pkg.normalizer import normalize
from scicalc_pkg.types import EvalResult


class TestNormalizerFuzzing(unittest.TestCase):
    """Fuzz test the normalizer with random inputs."""

    def test_random_strings(self):
        """The normalizer is total and idempotent."""
        rng = random.Random(1234)
        alphabet = string.printable + "×÷π!−"
        for _ in range(200):
            length = rng.randint(1, 60)
            random_str = "".join(rng.choices(alphabet, k=length))
            once = normalize(random_str)
            self.assertIsInstance(once, str)
            self.assertEqual(normalize(once), once, repr(random_str))


class TestEvaluatorFuzzing(unittest.TestCase):
    """Fuzz test the evaluator with random inputs."""

    def test_random_strings_never_raise(self):
        rng = random.Random(4321)
        alphabet = "0123456789.+-*/^()!πx " + "sincotaqrlgfE"
        for _ in range(300):
            length = rng.randint(1, 30)
            expr = "".join(rng.choices(alphabet, k=length))
            result = evaluate(expr)
            self.assertIsInstance(result, EvalResult)
            if not result.ok:
                self.assertIsNotNone(result.code)

    def test_malformed_expressions(self):
        malformed = ["(((", ")))", "1++", "2**", "*/3", "", "   ", "sin(", "!!"]
        for expr in malformed:
            with self.subTest(expr=expr):
                result = evaluate(expr)
                self.assertFalse(result.ok)
                self.assertEqual(result.display, "ERR")


if __name__ == "__main__":
    unittest.main()
