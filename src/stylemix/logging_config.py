"""
Logging configuration for stylemix.

Logging is configured lazily: library users who never call set_verbosity or
configure_logging get no stylemix handler unless they configure logging themselves.

Verbosity levels:
- 0 (default): INFO: activity and timing only
- 1 (info): INFO + prompt text (goal, synthesized prompt, edit suggestion)
- 2 (verbose): DEBUG + prompt text, request part summaries and API timing

STYLEMIX_VERBOSITY env (0/1/2) is read when the CLI or UI starts; CLI flags override env.
API keys are never logged; use mask_credential() when a key must be referenced.
"""

import logging
import os

LOG_FORMAT = "%(levelname)s [%(name)s] %(message)s"
ROOT_LOGGER_NAME = "stylemix"
VERBOSITY_ENV = "STYLEMIX_VERBOSITY"

# Large so prompts are effectively never truncated
PROMPT_LOG_MAX = 50_000

_log_prompts: bool = False
_configured: bool = False


def _ensure_handler() -> None:
    """Attach a stderr handler to the root stylemix logger once."""
    global _configured
    if _configured:
        return
    root = logging.getLogger(ROOT_LOGGER_NAME)
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
    _configured = True


def set_verbosity(level: int) -> None:
    """
    Set logging verbosity (0=default, 1=info, 2=verbose).

    - 0: INFO level; activity and timing only (no prompt text).
    - 1: INFO level; same + prompt text.
    - 2: DEBUG level; same + request part summaries (never image payloads or keys).
    """
    global _log_prompts
    _ensure_handler()
    root = logging.getLogger(ROOT_LOGGER_NAME)
    if level <= 0:
        root.setLevel(logging.INFO)
        _log_prompts = False
    elif level == 1:
        root.setLevel(logging.INFO)
        _log_prompts = True
    else:
        root.setLevel(logging.DEBUG)
        _log_prompts = True


def log_prompts() -> bool:
    """Return True if prompt text should be logged at INFO (verbosity 1 or 2)."""
    return _log_prompts


def configure_logging(verbose_level: int = 0, quiet: bool = False) -> None:
    """
    Configure logging from the CLI, the UI or library code.

    When quiet is True the level is WARNING and prompts are never logged;
    otherwise delegates to set_verbosity(verbose_level).
    """
    global _log_prompts
    _ensure_handler()
    if quiet:
        logging.getLogger(ROOT_LOGGER_NAME).setLevel(logging.WARNING)
        _log_prompts = False
        return
    set_verbosity(verbose_level)


def get_verbosity_from_env() -> int:
    """Read STYLEMIX_VERBOSITY (0, 1 or 2). Invalid or missing values return 0."""
    raw = os.environ.get(VERBOSITY_ENV, "0").strip()
    if raw in ("1", "2"):
        return int(raw)
    return 0


def truncate_for_log(text: str, limit: int = PROMPT_LOG_MAX) -> str:
    """Return text cut to limit characters, with an ellipsis when cut."""
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


def mask_credential(credential: str) -> str:
    """Return a log-safe stand-in for an API key (last four characters only)."""
    if not credential:
        return "<empty>"
    if len(credential) <= 8:
        return "****"
    return "****" + credential[-4:]


def get_logger(name: str) -> logging.Logger:
    """Return a child logger under stylemix (e.g. stylemix.core.prompt)."""
    if name.startswith(ROOT_LOGGER_NAME + ".") or name == ROOT_LOGGER_NAME:
        return logging.getLogger(name)
    return logging.getLogger(ROOT_LOGGER_NAME + "." + name)


__all__ = [
    "configure_logging",
    "get_logger",
    "get_verbosity_from_env",
    "log_prompts",
    "mask_credential",
    "set_verbosity",
    "truncate_for_log",
]
