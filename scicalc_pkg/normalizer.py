"""Surface-syntax rewriting of calculator input.

``normalize`` turns what a user types on the keypad (``×``, ``÷``, ``^``,
``5!``, ``π``) into the canonical text understood by the parser. It never
evaluates anything and never fails: malformed input passes through and is
rejected later by the parser.
"""

from __future__ import annotations

from .config import (
    FACTORIAL_FUNCTION,
    GLYPH_REPLACEMENTS,
    NUMBER_TAIL_REGEX,
    PI_NAME,
    PI_SYMBOL,
    WHITESPACE_REGEX,
)


def replace_glyphs(text: str) -> str:
    """Replace alternate operator glyphs with their ASCII operators."""
    for glyph, ascii_op in GLYPH_REPLACEMENTS:
        text = text.replace(glyph, ascii_op)
    return text


def convert_exponent(text: str) -> str:
    """Convert caret exponentiation to ``**``.

    Args:
        text: Expression string (e.g., "2^3")

    Returns:
        String using the evaluator's power operator (e.g., "2**3")
    """
    return text.replace("^", "**")


def _factorial_operand_start(chars: list[str]) -> int | None:
    """Index in ``chars`` where the operand preceding a ``!`` begins.

    The operand is either a maximal numeric literal or a parenthesized group,
    together with a function name written directly before the group.
    Returns None when there is no such operand.
    """
    if not chars:
        return None
    if chars[-1] == ")":
        depth = 0
        for i in range(len(chars) - 1, -1, -1):
            if chars[i] == ")":
                depth += 1
            elif chars[i] == "(":
                depth -= 1
                if depth == 0:
                    start = i
                    while start > 0 and (chars[start - 1].isalnum() or chars[start - 1] == "_"):
                        start -= 1
                    return start
        return None
    match = NUMBER_TAIL_REGEX.search("".join(chars))
    if match is None:
        return None
    start = match.start()
    # digits at the end of an identifier (e.g. "a2") are not a literal
    if start > 0 and (chars[start - 1].isalpha() or chars[start - 1] == "_"):
        return None
    return start


def convert_factorials(text: str) -> str:
    """Rewrite postfix ``!`` as a call to ``factorial``.

    ``5!`` becomes ``factorial(5)`` and ``(2+1)!`` becomes
    ``factorial((2+1))``. A ``!`` with nothing before it is left untouched.
    Chained ``n!!`` nests the calls; double factorial is not supported.
    """
    if "!" not in text:
        return text
    out: list[str] = []
    for char in text:
        if char != "!":
            out.append(char)
            continue
        # match operands as they read once whitespace is stripped ("5 !", "1 e5!")
        out = [c for c in out if not c.isspace()]
        start = _factorial_operand_start(out)
        if start is None:
            out.append(char)
            continue
        operand = "".join(out[start:])
        del out[start:]
        out.extend(f"{FACTORIAL_FUNCTION}({operand})")
    return "".join(out)


def replace_pi(text: str) -> str:
    return text.replace(PI_SYMBOL, PI_NAME)


def strip_whitespace(text: str) -> str:
    return WHITESPACE_REGEX.sub("", text)


def normalize(text: str) -> str:
    """Normalize raw calculator input into a canonical expression string.

    Applies, in order:
    - operator glyphs (×, ÷, −) to ASCII operators
    - ``^`` to ``**``
    - postfix factorial to ``factorial(...)``
    - ``π`` to ``PI``
    - whitespace removal

    Args:
        text: Raw input string

    Returns:
        Canonical expression string ready for parsing
    """
    if not text:
        return ""
    text = replace_glyphs(text)
    text = convert_exponent(text)
    text = convert_factorials(text)
    text = replace_pi(text)
    return strip_whitespace(text)
