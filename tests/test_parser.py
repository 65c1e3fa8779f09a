"""Unit tests for parser module."""

import unittest

from scicalc_pkg.evaluator import make_context
from scicalc_pkg.parser import (
    BinaryOp,
    Call,
    Name,
    Number,
    UnaryOp,
    check_bindings,
    format_result,
    is_balanced,
    parse_canonical,
    tokenize,
)
from scicalc_pkg.types import ParseError


class TestTokenize(unittest.TestCase):
    """Test tokenizing."""

    def test_basic_tokens(self):
        kinds = [t.kind for t in tokenize("2+sin(x)")]
        self.assertEqual(kinds, ["NUMBER", "OP", "NAME", "LPAREN", "NAME", "RPAREN", "END"])

    def test_power_operator(self):
        texts = [t.text for t in tokenize("2**3^4")]
        self.assertEqual(texts, ["2", "**", "3", "**", "4", ""])

    def test_number_formats(self):
        tokens = tokenize("1.5+.25+3.+1e+21+2.5e-3")
        texts = [t.text for t in tokens if t.kind == "NUMBER"]
        self.assertEqual(texts, ["1.5", ".25", "3.", "1e+21", "2.5e-3"])

    def test_positions(self):
        tokens = tokenize("12 + ab")
        self.assertEqual([t.position for t in tokens], [0, 3, 5, 7])

    def test_invalid_character(self):
        with self.assertRaises(ParseError) as ctx:
            tokenize("2 $ 3")
        self.assertEqual(ctx.exception.code, "INVALID_TOKEN")
        self.assertEqual(ctx.exception.position, 2)

    def test_non_ascii_letters_and_digits(self):
        for expr, position in [("2²", 1), ("θ+1", 0), ("é", 0), ("1٣", 1), ("2*π", 2)]:
            with self.subTest(expr=expr):
                with self.assertRaises(ParseError) as ctx:
                    tokenize(expr)
                self.assertEqual(ctx.exception.code, "INVALID_TOKEN")
                self.assertEqual(ctx.exception.position, position)


class TestParse(unittest.TestCase):
    """Test parsing into syntax trees."""

    def test_precedence(self):
        tree = parse_canonical("2+3*4")
        self.assertEqual(
            tree, BinaryOp("+", Number(2.0), BinaryOp("*", Number(3.0), Number(4.0)))
        )

    def test_left_associative_subtraction(self):
        tree = parse_canonical("8-3-2")
        self.assertEqual(
            tree, BinaryOp("-", BinaryOp("-", Number(8.0), Number(3.0)), Number(2.0))
        )

    def test_right_associative_power(self):
        tree = parse_canonical("2**3**2")
        self.assertEqual(
            tree, BinaryOp("**", Number(2.0), BinaryOp("**", Number(3.0), Number(2.0)))
        )

    def test_unary_minus_binds_looser_than_power(self):
        tree = parse_canonical("-2**2")
        self.assertEqual(
            tree, UnaryOp("-", BinaryOp("**", Number(2.0), Number(2.0)))
        )

    def test_negative_exponent(self):
        tree = parse_canonical("2**-1")
        self.assertEqual(tree, BinaryOp("**", Number(2.0), UnaryOp("-", Number(1.0))))

    def test_function_call(self):
        tree = parse_canonical("sin(x)")
        self.assertIsInstance(tree, Call)
        self.assertEqual(tree.name, "sin")
        self.assertEqual(tree.args, (Name("x", 4),))

    def test_multiple_arguments_parse(self):
        tree = parse_canonical("f(1,2)")
        self.assertEqual(len(tree.args), 2)

    def test_empty_expression(self):
        with self.assertRaises(ParseError) as ctx:
            parse_canonical("")
        self.assertEqual(ctx.exception.code, "EMPTY_INPUT")

    def test_unmatched_open_paren(self):
        with self.assertRaises(ParseError) as ctx:
            parse_canonical("(1+2")
        self.assertEqual(ctx.exception.code, "UNBALANCED_PARENTHESES")
        self.assertEqual(ctx.exception.position, 0)

    def test_unmatched_close_paren(self):
        with self.assertRaises(ParseError) as ctx:
            parse_canonical("1+2)")
        self.assertEqual(ctx.exception.code, "UNBALANCED_PARENTHESES")
        self.assertEqual(ctx.exception.position, 3)
        self.assertEqual(str(ctx.exception), "Unmatched ')' at position 3")

    def test_first_unmatched_paren_is_reported(self):
        with self.assertRaises(ParseError) as ctx:
            parse_canonical("sin(30*(2+1)")
        self.assertEqual(ctx.exception.position, 3)
        self.assertEqual(str(ctx.exception), "Unmatched '(' at position 3")

    def test_balanced_but_empty_group_is_syntax_error(self):
        for expr in ["()", "(1+)"]:
            with self.subTest(expr=expr):
                with self.assertRaises(ParseError) as ctx:
                    parse_canonical(expr)
                self.assertEqual(ctx.exception.code, "SYNTAX_ERROR")

    def test_invalid_token_reported_before_balance(self):
        with self.assertRaises(ParseError) as ctx:
            parse_canonical("2&(")
        self.assertEqual(ctx.exception.code, "INVALID_TOKEN")

    def test_incomplete_expression(self):
        with self.assertRaises(ParseError) as ctx:
            parse_canonical("2+")
        self.assertEqual(ctx.exception.code, "INCOMPLETE_EXPRESSION")

    def test_invalid_sequences(self):
        for expr in ["2(3)", "2PI", "*3", "1..2", "()", "sin()", "3!", "1,2"]:
            with self.subTest(expr=expr):
                with self.assertRaises(ParseError):
                    parse_canonical(expr)

    def test_too_deep(self):
        with self.assertRaises(ParseError) as ctx:
            parse_canonical("(" * 500 + "1" + ")" * 500)
        self.assertEqual(ctx.exception.code, "TOO_DEEP")

    def test_too_long(self):
        from scicalc_pkg.config import MAX_INPUT_LENGTH

        with self.assertRaises(ParseError) as ctx:
            parse_canonical("1" * (MAX_INPUT_LENGTH + 1))
        self.assertEqual(ctx.exception.code, "TOO_LONG")


class TestBindings(unittest.TestCase):
    """Test identifier checks against an evaluation context."""

    def test_bound_names_pass(self):
        check_bindings(parse_canonical("sin(PI)+E"), make_context())

    def test_unbound_x(self):
        with self.assertRaises(ParseError) as ctx:
            check_bindings(parse_canonical("x+1"), make_context())
        self.assertEqual(ctx.exception.code, "UNBOUND_IDENTIFIER")

    def test_bound_x(self):
        check_bindings(parse_canonical("x+1"), make_context(x=2.0))

    def test_unknown_function(self):
        with self.assertRaises(ParseError) as ctx:
            check_bindings(parse_canonical("exp(1)"), make_context())
        self.assertEqual(ctx.exception.code, "UNBOUND_IDENTIFIER")

    def test_constant_called(self):
        with self.assertRaises(ParseError) as ctx:
            check_bindings(parse_canonical("PI(2)"), make_context())
        self.assertEqual(ctx.exception.code, "NOT_CALLABLE")

    def test_function_used_bare(self):
        with self.assertRaises(ParseError) as ctx:
            check_bindings(parse_canonical("sin+1"), make_context())
        self.assertEqual(ctx.exception.code, "NOT_A_VALUE")

    def test_arity(self):
        with self.assertRaises(ParseError) as ctx:
            check_bindings(parse_canonical("sin(1,2)"), make_context())
        self.assertEqual(ctx.exception.code, "ARITY")

    def test_host_names_are_not_reachable(self):
        for expr in ["__import__(1)", "eval(1)", "open(1)", "Math"]:
            with self.subTest(expr=expr):
                with self.assertRaises(ParseError):
                    check_bindings(parse_canonical(expr), make_context())


class TestBalancing(unittest.TestCase):
    def test_parentheses_balancing(self):
        self.assertEqual(is_balanced("(1+2)"), (True, None))
        self.assertEqual(is_balanced("((1+2)*3)"), (True, None))
        self.assertEqual(is_balanced("(1+2"), (False, 0))
        self.assertEqual(is_balanced("1+2)"), (False, 3))


class TestFormatting(unittest.TestCase):
    """Test result formatting."""

    def test_integers(self):
        self.assertEqual(format_result(4.0), "4")
        self.assertEqual(format_result(-120.0), "-120")
        self.assertEqual(format_result(-0.0), "0")

    def test_fractions(self):
        self.assertEqual(format_result(0.5), "0.5")
        self.assertEqual(format_result(0.1 + 0.2), "0.30000000000000004")

    def test_large_and_small(self):
        self.assertEqual(format_result(1e21), "1e+21")
        self.assertEqual(format_result(1.5e-7), "1.5e-07")

    def test_non_finite(self):
        self.assertEqual(format_result(float("inf")), "Infinity")
        self.assertEqual(format_result(float("-inf")), "-Infinity")
        self.assertEqual(format_result(float("nan")), "NaN")


if __name__ == "__main__":
    unittest.main()
