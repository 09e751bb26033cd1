"""
Error handling for the CLI.

Maps library exceptions to exit codes and one user-facing message each.
"""

import sys
from collections.abc import Callable

import click

from stylemix import (
    ConfigurationError,
    GenerationError,
    ImageProcessingError,
    MalformedInputError,
    PreconditionError,
    StylemixError,
)
from stylemix.cli import progress
from stylemix.cli.utils import EXIT_INPUT_OR_CONFIG, EXIT_SERVICE_ERROR

FAILURE_PREFIX = "Failed during image creation: "


def map_exception_to_exit(exc: BaseException) -> tuple[int, str]:
    """Map library and known exceptions to (exit_code, user_message)."""
    if isinstance(exc, (PreconditionError, MalformedInputError)):
        msg = exc.args[0] if exc.args else "Invalid input."
        if getattr(exc, "field", None):
            msg = f"{msg} (field: {exc.field})"
        return (EXIT_INPUT_OR_CONFIG, msg)
    if isinstance(exc, ConfigurationError):
        return (EXIT_INPUT_OR_CONFIG, exc.args[0] if exc.args else "Invalid configuration.")
    if isinstance(exc, ImageProcessingError):
        return (EXIT_INPUT_OR_CONFIG, exc.args[0] if exc.args else "Image processing failed.")
    if isinstance(exc, FileNotFoundError):
        return (EXIT_INPUT_OR_CONFIG, str(exc))
    if isinstance(exc, GenerationError):
        return (EXIT_SERVICE_ERROR, FAILURE_PREFIX + (exc.args[0] if exc.args else "service error."))
    if isinstance(exc, StylemixError):
        return (EXIT_SERVICE_ERROR, exc.args[0] if exc.args else "An error occurred.")
    # Unclassified provider or transport error
    return (
        EXIT_SERVICE_ERROR,
        FAILURE_PREFIX + (str(exc) if exc.args else "An unexpected error occurred."),
    )


def run_with_error_handling(
    fn: Callable[[], None],
    *,
    quiet: bool = False,
    debug: bool = False,
) -> None:
    """
    Run fn(); on exception map to exit code and message, print and sys.exit.
    Used so command bodies stay free of try/except for known errors.
    """
    try:
        fn()
    except (StylemixError, FileNotFoundError) as e:
        _report_and_exit(e, quiet)
    except Exception as e:
        if debug:
            raise
        _report_and_exit(e, quiet)


def _report_and_exit(exc: BaseException, quiet: bool) -> None:
    code, msg = map_exception_to_exit(exc)
    if quiet:
        click.echo(msg, err=True)
    else:
        progress.print_error(msg)
    sys.exit(code)


__all__ = [
    "map_exception_to_exit",
    "run_with_error_handling",
]
