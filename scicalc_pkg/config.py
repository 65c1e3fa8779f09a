"""Centralized configuration for SciCalc.

This module defines:
- Input validation limits (length, nesting depth)
- Cache sizes for the parse cache
- Default angle mode and plot window
- Display tokens
- Regex patterns for normalizing and tokenizing

Configuration can be overridden via:
- CLI flags (see cli.py)
- Environment variables (prefixed with SCICALC_)
"""

import os
import re

# Version is defined in pyproject.toml [project] section
try:
    import importlib.metadata

    VERSION = importlib.metadata.version("scicalc")
except Exception:
    # Fallback if package not installed
    VERSION = "1.0.0"

# Input validation limits
MAX_INPUT_LENGTH = int(os.getenv("SCICALC_MAX_INPUT_LENGTH", "10000"))  # characters
MAX_EXPRESSION_DEPTH = int(
    os.getenv("SCICALC_MAX_EXPRESSION_DEPTH", "100")
)  # nesting levels

# Cache configuration
CACHE_SIZE_PARSE = int(os.getenv("SCICALC_CACHE_SIZE_PARSE", "1024"))

# Angle mode used by fresh sessions and one-shot evaluations ("deg" or "rad")
DEFAULT_ANGLE_MODE = os.getenv("SCICALC_DEFAULT_ANGLE_MODE", "deg").lower()

# Plot configuration
PLOT_SAMPLE_COUNT = int(
    os.getenv("SCICALC_PLOT_SAMPLE_COUNT", "600")
)  # one sample per horizontal pixel
PLOT_X_MIN = float(os.getenv("SCICALC_PLOT_X_MIN", "-10"))
PLOT_X_MAX = float(os.getenv("SCICALC_PLOT_X_MAX", "10"))
PLOT_DEFAULT_Y_RANGE = (-10.0, 10.0)  # used when no sample is finite
PLOT_Y_PADDING = float(
    os.getenv("SCICALC_PLOT_Y_PADDING", "0.1")
)  # fraction of the observed range
PLOT_DEGENERATE_PAD = 1.0  # pad for a flat (zero-height) range
ASCII_PLOT_ROWS = 20
ASCII_PLOT_COLS = 60

# Display
ERROR_TOKEN = os.getenv("SCICALC_ERROR_TOKEN", "ERR")
EMPTY_DISPLAY = "0"

# Normalizer patterns
GLYPH_REPLACEMENTS = (
    ("×", "*"),
    ("÷", "/"),
    ("−", "-"),
)
PI_SYMBOL = "π"
PI_NAME = "PI"
FACTORIAL_FUNCTION = "factorial"
WHITESPACE_REGEX = re.compile(r"\s+")

# Tokenizer patterns (ASCII digits only; "²" or "٣" are not numbers)
NUMBER_REGEX = re.compile(r"(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?", re.ASCII)
NAME_REGEX = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
NUMBER_TAIL_REGEX = re.compile(r"(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$", re.ASCII)
