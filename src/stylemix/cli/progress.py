"""
Rich progress displays for CLI operations.

All output goes to stderr to preserve stdout for machine-readable output.
"""

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

# Console for stderr output (preserves stdout for machine output)
console = Console(stderr=True)


def _short_model(model: str) -> str:
    return model if len(model) <= 40 else f"{model[:37]}..."


@contextmanager
def _spinner(description: str) -> Iterator[Callable[[str], None]]:
    """Transient spinner; yields a function that replaces its description."""
    progress = Progress(
        SpinnerColumn(spinner_name="dots"),
        TextColumn("{task.description}"),
        TimeElapsedColumn(),
        console=console,
        transient=True,  # Disappears when done
    )
    with progress:
        task = progress.add_task(description, total=None)

        def update(new_description: str) -> None:
            progress.update(task, description=new_description)

        yield update
        progress.update(task, completed=True)


@contextmanager
def validation_progress() -> Iterator[None]:
    """Display a spinner while the API key is checked."""
    with _spinner("[yellow]Validating API key"):
        yield


@contextmanager
def round_progress(
    prompt_model: str | None = None,
    image_model: str | None = None,
    has_subject: bool = False,
    has_style: bool = False,
    enhancing: bool = False,
) -> Iterator[Callable[[str], None]]:
    """
    Display one spinner for a generation round, relabelled as each stage starts.

    Yields a callback taking the stage name ("prompt" or "image"), suitable for
    run_round(on_stage=...).

    Args:
        prompt_model: The prompt synthesis model
        image_model: The image generation model
        has_subject: Whether a subject image is included
        has_style: Whether a style image is included
        enhancing: Whether this is an enhancement round
    """
    prompt_parts = ["[cyan]Refining prompt[/cyan]" if enhancing else "[cyan]Synthesizing prompt[/cyan]"]
    if prompt_model:
        prompt_parts.append(f"[dim]({_short_model(prompt_model)})[/dim]")
    features = []
    if has_subject:
        features.append("[dim cyan]subject[/dim cyan]")
    if has_style:
        features.append("[dim magenta]style[/dim magenta]")
    if features:
        prompt_parts.append("• " + " + ".join(features))

    image_parts = ["[green]Generating image[/green]"]
    if image_model:
        image_parts.append(f"[dim]({_short_model(image_model)})[/dim]")
    if has_subject:
        image_parts.append("• [dim cyan]editing subject[/dim cyan]")

    descriptions = {"prompt": " ".join(prompt_parts), "image": " ".join(image_parts)}

    with _spinner(descriptions["prompt"]) as update:

        def stage(name: str) -> None:
            update(descriptions.get(name, name))

        yield stage


def print_success_result(
    output_path: Path,
    generation_time: float,
    model_used: str,
    prompt_used: str,
    had_subject: bool,
    had_style: bool,
    enhanced: bool,
    goal: str | None = None,
    edit_suggestion: str | None = None,
) -> None:
    """
    Print a rich formatted success message with generation details.

    Args:
        output_path: Path where the image was saved
        generation_time: Time the image call took (seconds)
        model_used: The image model
        prompt_used: The synthesized prompt
        had_subject: Whether a subject image was used
        had_style: Whether a style image was used
        enhanced: Whether this was an enhancement round
        goal: The user's goal text, if any
        edit_suggestion: The applied edit suggestion, if enhanced
    """
    table = Table.grid(padding=(0, 2))
    table.add_column(style="cyan", justify="right", vertical="top")
    table.add_column(style="white")

    table.add_row("Saved to", f"[bold green]{escape(str(output_path))}[/bold green]")
    table.add_row("Model", model_used)
    table.add_row("Time", f"{generation_time:.1f}s")

    features = []
    if had_subject:
        features.append("[cyan]✓[/cyan] Subject image")
    if had_style:
        features.append("[magenta]✓[/magenta] Style image")
    if enhanced:
        features.append("[green]✓[/green] Enhanced")
    if features:
        table.add_row("Inputs", " • ".join(features))

    if goal:
        table.add_row("Goal", f"[dim]{escape(goal)}[/dim]")
    if enhanced and edit_suggestion:
        table.add_row("Suggestion", f"[dim]{escape(edit_suggestion)}[/dim]")
    table.add_row("Prompt", f"[dim]{escape(prompt_used)}[/dim]")

    panel = Panel(
        table,
        title="[bold green]✓ Image Generated[/bold green]",
        border_style="green",
        padding=(1, 2),
    )

    console.print()
    console.print(panel)


def print_info(message: str) -> None:
    """Print an info message in cyan."""
    console.print(f"[cyan]ℹ[/cyan] {message}")


def print_warning(message: str) -> None:
    """Print a warning message in yellow."""
    console.print(f"[yellow]⚠[/yellow] {message}")


def print_error(message: str) -> None:
    """Print an error message in red."""
    console.print(f"[red]✗[/red] {escape(message)}")


def print_success(message: str) -> None:
    """Print a success message in green."""
    console.print(f"[green]✓[/green] {message}")
