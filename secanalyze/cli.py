"""SecAnalyze CLI: entry point for the content risk analyzer."""

import asyncio
import json
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from secanalyze import __app_name__, __version__
from secanalyze.config import API_KEY_ENV_VAR
from secanalyze.core.analyzer import analyze_content
from secanalyze.errors import AnalysisError
from secanalyze.models import EMAIL, HIGH, IMAGE, LOW, MEDIUM, AnalysisResult
from secanalyze.utils import configure_logging, read_content

# ---------------------------------------------------------------------------
# App & Console
# ---------------------------------------------------------------------------

app = typer.Typer(
    name=__app_name__,
    help="🔒 SecAnalyze: LLM security risk analysis for emails and images.",
    add_completion=False,
    rich_markup_mode="rich",
)

console = Console()

# ---------------------------------------------------------------------------
# Risk level → Rich color mapping
# ---------------------------------------------------------------------------

_RISK_COLORS: dict[str, str] = {
    HIGH: "red",
    MEDIUM: "yellow",
    LOW: "green",
}

# ---------------------------------------------------------------------------
# Shared options
# ---------------------------------------------------------------------------

_API_KEY_OPTION = typer.Option(
    None,
    "--api-key",
    envvar=API_KEY_ENV_VAR,
    help=f"API key for the chat-completion endpoint (or set {API_KEY_ENV_VAR}).",
    show_default=False,
)
_JSON_OPTION = typer.Option(
    False,
    "--json",
    help="Output results as JSON instead of Rich panels.",
)
_FAIL_ON_OPTION = typer.Option(
    None,
    "--fail-on",
    help="Exit with code 1 if the risk level meets this threshold (HIGH, MEDIUM, LOW).",
)
_TIMEOUT_OPTION = typer.Option(
    None,
    "--timeout",
    min=0.1,
    help="Give up if no response arrives within this many seconds.",
)
_VERBOSE_OPTION = typer.Option(
    False,
    "--verbose",
    help="Show debug logs, including the raw model reply.",
)

# ---------------------------------------------------------------------------
# Version callback
# ---------------------------------------------------------------------------


def _version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold cyan]{__app_name__}[/bold cyan] v{__version__}")
        raise typer.Exit()


# ---------------------------------------------------------------------------
# Global options
# ---------------------------------------------------------------------------


@app.callback()
def main(
    version: Optional[bool] = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-v",
        help="Show the application version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """SecAnalyze: ask an LLM whether an email or image is a security risk."""


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command()
def email(
    source: str = typer.Argument(
        "-",
        help="File holding the email body, or '-' to read stdin.",
    ),
    api_key: Optional[str] = _API_KEY_OPTION,  # noqa: UP007
    output_json: bool = _JSON_OPTION,
    fail_on: Optional[str] = _FAIL_ON_OPTION,  # noqa: UP007
    timeout: Optional[float] = _TIMEOUT_OPTION,  # noqa: UP007
    verbose: bool = _VERBOSE_OPTION,
) -> None:
    """Analyse an email for phishing, spam and other security risks."""
    try:
        content = read_content(source)
    except OSError as exc:
        console.print(f"[bold red]✗[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=1)

    _run(EMAIL, content, api_key, output_json, fail_on, timeout, verbose)


@app.command()
def image(
    description: str = typer.Argument(
        ...,
        help="Textual description of the image content.",
    ),
    api_key: Optional[str] = _API_KEY_OPTION,  # noqa: UP007
    output_json: bool = _JSON_OPTION,
    fail_on: Optional[str] = _FAIL_ON_OPTION,  # noqa: UP007
    timeout: Optional[float] = _TIMEOUT_OPTION,  # noqa: UP007
    verbose: bool = _VERBOSE_OPTION,
) -> None:
    """Analyse an image description for security implications."""
    _run(IMAGE, description, api_key, output_json, fail_on, timeout, verbose)


def _run(
    content_type: str,
    content: str,
    api_key: Optional[str],  # noqa: UP007
    output_json: bool,
    fail_on: Optional[str],  # noqa: UP007
    timeout: Optional[float],  # noqa: UP007
    verbose: bool,
) -> None:
    """Validate options, run one analysis and report it."""
    configure_logging(verbose)

    # --- Validate --fail-on value ---
    if fail_on is not None:
        fail_on = fail_on.upper()
        if fail_on not in (HIGH.upper(), MEDIUM.upper(), LOW.upper()):
            console.print(
                f"[bold red]✗[/bold red] Invalid --fail-on value: {fail_on}. "
                f"Must be one of: HIGH, MEDIUM, LOW"
            )
            raise typer.Exit(code=1)

    if not output_json:
        console.print(f"[bold]Analysing {content_type}…[/bold]\n")

    try:
        result = asyncio.run(
            analyze_content(api_key or "", content, content_type, timeout=timeout)
        )
    except AnalysisError as exc:
        console.print(f"[bold red]✗[/bold red] {escape(exc.message)}")
        raise typer.Exit(code=1)

    # --- Output ---
    if output_json:
        _print_json(result)
    else:
        _print_rich(result)

    # --- Fail-on check ---
    if fail_on and result.meets(fail_on):
        if not output_json:
            console.print(
                f"\n[bold red]✗ Analysis failed:[/bold red] "
                f"Risk level [bold]{fail_on}[/bold] or above was reported."
            )
        raise typer.Exit(code=1)


# ---------------------------------------------------------------------------
# Output helpers
# ---------------------------------------------------------------------------


def _print_json(result: AnalysisResult) -> None:
    """Print the analysis result as structured JSON."""
    print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))


def _print_rich(result: AnalysisResult) -> None:
    """Render the analysis using Rich panels and a table."""
    color = _RISK_COLORS.get(result.risk_level, "white")

    console.print(
        Panel(
            Text(result.analysis),
            title=f"🔍 {result.type.capitalize()} Analysis",
            subtitle=f"Risk: [bold {color}]{result.risk_level.upper()}[/bold {color}]",
            border_style=color,
        )
    )

    table = Table(
        title="🛡 Recommendations",
        show_lines=True,
        header_style="bold magenta",
    )
    table.add_column("#", style="dim", width=4)
    table.add_column("Recommendation")

    for idx, recommendation in enumerate(result.recommendations, start=1):
        table.add_row(str(idx), Text(recommendation))

    console.print(table)
