"""SciCalc package: normalizer, expression evaluator, plotter, session and CLI."""

__all__ = [
    "config",
    "normalizer",
    "parser",
    "evaluator",
    "plotting",
    "session",
    "cli",
    "types",
    "api",
    "logging_config",
]

# Public API exports

__api_exports__ = [
    "evaluate",
    "validate_expression",
    "plot",
]
