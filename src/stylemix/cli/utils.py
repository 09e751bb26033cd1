"""
Utility functions for the CLI.

This module contains helper functions used by CLI commands,
such as output path generation and exit code constants.
"""

from datetime import datetime
from pathlib import Path

# Exit codes
EXIT_SUCCESS = 0
EXIT_SERVICE_ERROR = 1
EXIT_INPUT_OR_CONFIG = 2


def default_output_path(fmt: str) -> str:
    """Return default output path: stylemix_<YYYYMMDD>_<HHMMSS>.<ext> in current directory."""
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    ext = fmt if fmt else "png"
    if ext == "jpeg":
        ext = "jpg"
    return f"stylemix_{timestamp}.{ext}"


def read_text_file(path: Path) -> str:
    """Read a UTF-8 text file and strip surrounding whitespace."""
    return path.read_text(encoding="utf-8").strip()


__all__ = [
    "EXIT_SUCCESS",
    "EXIT_SERVICE_ERROR",
    "EXIT_INPUT_OR_CONFIG",
    "default_output_path",
    "read_text_file",
]
