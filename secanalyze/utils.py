"""SecAnalyze utility helpers."""

import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler


def read_content(source: str) -> str:
    """Read text to analyse from a file path, or from stdin when *source* is ``-``.

    Args:
        source: Raw path string from the CLI.

    Returns:
        The file content, decoded as UTF-8 with undecodable bytes ignored.

    Raises:
        FileNotFoundError: If the path does not exist.
        IsADirectoryError: If the path is a directory.
    """
    if source == "-":
        return sys.stdin.read()

    resolved = Path(source).resolve()

    if not resolved.exists():
        raise FileNotFoundError(f"Path does not exist: {resolved}")

    if resolved.is_dir():
        raise IsADirectoryError(f"Path is a directory: {resolved}")

    return resolved.read_text(encoding="utf-8", errors="ignore")


def configure_logging(verbose: bool = False) -> None:
    """Route ``secanalyze`` log records to stderr through Rich.

    WARNING and above by default, everything with *verbose*.
    """
    handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))

    root = logging.getLogger("secanalyze")
    root.handlers[:] = [handler]
    root.setLevel(logging.DEBUG if verbose else logging.WARNING)
    root.propagate = False
