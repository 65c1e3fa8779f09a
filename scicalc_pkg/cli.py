from __future__ import annotations

import argparse
import json
import re
import sys
from typing import Any

from .config import VERSION
from .logging_config import get_logger
from .parser import format_result
from .plotting import plot_function, render_ascii
from .session import CalculatorSession
from .types import AngleMode, EvalResult, PlotResult

logger = get_logger("cli")

# A REPL line starting with one of these continues from the previous result.
# '-' is not one of them: "-5" is a new negative number.
CONTINUATION_OPERATORS = ("+", "*", "/", "^", "×", "÷", "!")
ANS_WORD_REGEX = re.compile(r"\bans\b", re.IGNORECASE)


def _health_check() -> int:
    """Verify dependencies and a few known evaluations."""
    print("SciCalc health check")
    ok = True
    try:
        import numpy

        print(f"  numpy {numpy.__version__}: OK")
    except ImportError:
        print("  numpy: MISSING")
        ok = False
    try:
        import matplotlib

        print(f"  matplotlib {matplotlib.__version__}: OK")
    except ImportError:
        print("  matplotlib: MISSING (ASCII plots only)")

    from .api import evaluate

    checks = [
        ("2+3*4", AngleMode.DEGREES, 14.0),
        ("2^3^2", AngleMode.DEGREES, 512.0),
        ("sin(90)", AngleMode.DEGREES, 1.0),
        ("5!", AngleMode.DEGREES, 120.0),
    ]
    for expr, mode, expected in checks:
        result = evaluate(expr, mode)
        passed = result.ok and abs(result.value - expected) < 1e-9
        print(f"  {expr} = {result.display}: {'OK' if passed else 'FAIL'}")
        ok = ok and passed
    print("Health check passed." if ok else "Health check FAILED.")
    return 0 if ok else 1


def print_result_pretty(res: dict[str, Any], output_format: str = "human") -> None:
    """Print an evaluation result in the specified format.

    Args:
        res: Result dictionary (see EvalResult.to_dict)
        output_format: "json" for JSON output, "human" for human-readable
    """
    if output_format == "json":
        print(json.dumps(res, indent=2, ensure_ascii=False))
        return
    if res.get("code") == "NON_FINITE":
        print(res.get("display"))
        return
    if not res.get("ok"):
        print("Error:", res.get("error"))
        return
    print(res.get("display"))


def print_plot_pretty(plot: PlotResult, output_format: str = "human") -> None:
    if output_format == "json":
        print(json.dumps(plot.to_dict(), indent=2, ensure_ascii=False))
        return
    if not plot.ok:
        print("Error:", plot.error)
        return
    print(plot.rendered)
    print(
        f"x: [{format_result(plot.xs[0])}, {format_result(plot.xs[-1])}]  "
        f"y: [{plot.y_min:.6g}, {plot.y_max:.6g}]  "
        f"({plot.finite_count}/{len(plot.xs)} samples drawn)"
    )


def print_help_text() -> None:
    """Print help text for REPL commands."""
    help_text = f"""SciCalc version {VERSION}

Expressions:
  2+3*4, (1+2)^3, 2^3^2        (^ is right-associative)
  sin(90), cos(π), tan(45)     (degrees or radians, see 'mode')
  sqrt(2), ln(E), log(1000)    (log is base 10)
  5!, (2+1)!                   (factorial)
  PI, π, E                     (constants)
  ans                          (last answer)

A line starting with + * / ^ or ! continues from the previous result,
e.g. '*2' doubles it. A line starting with '-' is a new expression;
use 'ans-5' to subtract.

Commands:
  deg | rad                    set the angle mode
  mode                         toggle the angle mode
  clear                        clear the input buffer
  ans                          show the last answer
  plot <expr> [xmin xmax]      ASCII plot of a function of x
  help                         show this text
  quit | exit                  leave
"""
    print(help_text)


def _parse_plot_command(args: str) -> tuple[str, float | None, float | None]:
    """Split 'plot' arguments into expression and optional range."""
    parts = args.rsplit(None, 2)
    if len(parts) == 3:
        try:
            return parts[0], float(parts[1]), float(parts[2])
        except ValueError:
            pass
    return args, None, None


def handle_repl_line(session: CalculatorSession, raw: str, output_format: str = "human") -> bool:
    """Process one REPL line. Returns False when the REPL should stop."""
    logger.debug(f"REPL input: {raw!r}")
    command = raw.strip().lower()
    if command in ("quit", "exit"):
        return False
    if command == "help":
        print_help_text()
    elif command in ("deg", "rad"):
        session.angle_mode = AngleMode.parse(command)
        print(f"Angle mode: {session.angle_mode.value.upper()}")
    elif command == "mode":
        print(f"Angle mode: {session.toggle_angle_mode().value.upper()}")
    elif command == "clear":
        session.clear()
        print(session.display)
    elif command == "ans":
        print(format_result(session.ans))
    elif command.startswith("plot ") or command == "plot":
        expr, x_min, x_max = _parse_plot_command(raw.strip()[4:].strip())
        if x_min is None:
            plot = session.plot(expr)
        else:
            plot = session.plot(expr, x_min, x_max)
        if plot.ok:
            plot.rendered = render_ascii(plot)
        print_plot_pretty(plot, output_format)
    else:
        text = ANS_WORD_REGEX.sub(f"({format_result(session.ans)})", raw.strip())
        if not text.startswith(CONTINUATION_OPERATORS):
            session.clear()
        elif session.expr.startswith("-"):
            # "-4" then "^2" squares the whole result
            previous = session.expr
            session.clear()
            session.push(f"({previous})")
        session.push(text)
        result = session.equals()
        if output_format == "json":
            print_result_pretty(result.to_dict(), output_format)
        else:
            print(session.display)
    return True


def repl_loop(output_format: str = "human", angle_mode: str | None = None) -> None:
    """Interactive REPL loop with graceful interrupt handling."""
    try:
        import readline  # noqa: F401
    except ImportError:
        # readline not available on Windows - that's fine
        pass

    session = CalculatorSession() if angle_mode is None else CalculatorSession(angle_mode)
    print("SciCalc - type 'help' for commands, 'quit' to exit.")
    while True:
        try:
            raw = input(f"[{session.angle_mode.value.upper()}] >>> ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\nGoodbye.")
            break
        if not raw:
            continue
        if not handle_repl_line(session, raw, output_format):
            print("Goodbye.")
            break


def _eval_once(expr: str, angle_mode: str, output_format: str) -> int:
    from .api import evaluate

    expr = expr.strip()
    if not expr:
        print("Error: Empty input. Please enter a valid expression.")
        return 1
    result: EvalResult = evaluate(expr, angle_mode)
    print_result_pretty(result.to_dict(), output_format)
    return 0 if result.ok else 1


def _plot_once(args: argparse.Namespace, output_format: str) -> int:
    plot = plot_function(
        args.plot_expr,
        x_min=args.xmin,
        x_max=args.xmax,
        sample_count=args.samples,
        angle_mode=args.mode,
        ascii=args.ascii,
        output=args.output,
        open_viewer=args.open,
    )
    if plot.ok and not args.ascii and output_format == "human":
        print(f"Plot saved to: {plot.rendered}")
        return 0
    print_plot_pretty(plot, output_format)
    return 0 if plot.ok else 1


def main_entry(argv: list[str] | None = None) -> int:
    """
    Main entry point for the SciCalc CLI.

    Args:
        argv: Optional command-line arguments (defaults to sys.argv)

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    from . import config as _config

    parser = argparse.ArgumentParser(prog="scicalc")
    parser.add_argument(
        "-e",
        "--eval",
        type=str,
        help="Evaluate one expression and exit (non-interactive)",
        dest="eval_expr",
    )
    parser.add_argument(
        "--mode",
        type=str,
        choices=["deg", "rad"],
        default=_config.DEFAULT_ANGLE_MODE,
        help="Angle mode for sin/cos/tan (default: deg)",
    )
    parser.add_argument(
        "--format",
        type=str,
        choices=["json", "human"],
        default="human",
        help="Output format: json (machine-readable) or human (human-readable)",
    )
    parser.add_argument(
        "--plot", type=str, dest="plot_expr", help="Plot a function of x and exit"
    )
    parser.add_argument("--xmin", type=float, default=_config.PLOT_X_MIN, help="Left end of the plot range")
    parser.add_argument("--xmax", type=float, default=_config.PLOT_X_MAX, help="Right end of the plot range")
    parser.add_argument(
        "--samples",
        type=int,
        default=_config.PLOT_SAMPLE_COUNT,
        help="Number of plot samples (default: 600)",
    )
    parser.add_argument(
        "--ascii", action="store_true", help="Print an ASCII plot instead of a PNG"
    )
    parser.add_argument("--output", type=str, help="PNG file to write the plot to")
    parser.add_argument(
        "--open", action="store_true", help="Open the saved plot in the default viewer"
    )
    parser.add_argument(
        "-v", "--version", action="store_true", help="Show program version"
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Set logging level",
    )
    parser.add_argument("--log-file", type=str, help="Write logs to file")
    parser.add_argument(
        "--health-check",
        action="store_true",
        help="Run health check and verify dependencies",
    )
    args = parser.parse_args(argv)

    from .logging_config import setup_logging

    setup_logging(level=args.log_level, log_file=args.log_file)

    if args.version:
        print(VERSION)
        return 0
    if args.health_check:
        return _health_check()
    if args.eval_expr is not None:
        return _eval_once(args.eval_expr, args.mode, args.format)
    if args.plot_expr is not None:
        return _plot_once(args, args.format)
    repl_loop(args.format, args.mode)
    return 0


if __name__ == "__main__":
    sys.exit(main_entry())
