"""
Click command definitions for the stylemix CLI.

This module contains the Click command group and all CLI commands
(generate, enhance, validate-key, forget-key, ui, relay).
"""

import os
from collections.abc import Callable
from pathlib import Path
from typing import Any

import click

from stylemix import (
    Config,
    CredentialStore,
    GenerationInputs,
    GenerationSession,
    PreconditionError,
    __version__,
    load_image_as_data_uri,
    run_round,
    validate_credential,
)
from stylemix.cli import progress
from stylemix.cli.handlers import run_with_error_handling
from stylemix.cli.utils import default_output_path, read_text_file
from stylemix.core.session import NO_CREDENTIAL_MESSAGE
from stylemix.logging_config import configure_logging, get_verbosity_from_env

INVALID_KEY_MESSAGE = "The API key is invalid. Please check it and try again."


@click.group(
    help=f"""Remix a subject image, a style image and/or a short goal into a new image (Gemini).

\b
Version: {__version__}
Each run synthesizes a detailed prompt, then generates an image from it.
Use 'enhance' with the saved prompt to refine a result.
"""
)
@click.version_option(version=__version__, package_name="stylemix")
@click.pass_context
def cli(ctx: click.Context) -> None:
    ctx.color = True


def _round_options(fn: Callable[..., Any]) -> Callable[..., Any]:
    """Options shared by generate and enhance."""
    options = [
        click.option(
            "--subject",
            "-s",
            type=click.Path(exists=True, dir_okay=False, path_type=Path),
            help="Subject image: the picture to modify or reimagine.",
        ),
        click.option(
            "--style",
            "-t",
            type=click.Path(exists=True, dir_okay=False, path_type=Path),
            help="Style image: reference for mood, color and texture only.",
        ),
        click.option("--goal", "-g", default="", help="Short description of what you want."),
        click.option("--out", "-o", type=click.Path(path_type=Path), help="Output image path."),
        click.option(
            "--save-prompt",
            type=click.Path(path_type=Path),
            help="Save the synthesized prompt to this file (feed it to 'enhance' later).",
        ),
        click.option(
            "--api-key",
            envvar="GEMINI_API_KEY",
            help="Gemini API key (overrides GEMINI_API_KEY and the stored key).",
        ),
        click.option(
            "--quiet",
            "-q",
            is_flag=True,
            help="Minimize progress messages; only print result path or errors.",
        ),
        click.option(
            "--verbose",
            "-v",
            "verbose_count",
            count=True,
            help="Increase verbosity: -v also show prompts, -vv show request detail.",
        ),
    ]
    for option in reversed(options):
        fn = option(fn)
    return fn


def _resolve_credential(api_key: str | None, config: Config, quiet: bool) -> str:
    """
    Pick the API key (flag/env, then stored) and check it against the service.

    A valid key is stored for later runs; a stored key that fails is removed.
    """
    store = CredentialStore.from_config(config)
    from_store = False
    credential = api_key or config.gemini_api_key
    if not credential:
        credential = store.load() or ""
        from_store = bool(credential)
    if not credential:
        raise PreconditionError(NO_CREDENTIAL_MESSAGE, field="credential")

    if quiet:
        valid = validate_credential(credential, config)
    else:
        with progress.validation_progress():
            valid = validate_credential(credential, config)
    if not valid:
        if from_store:
            store.clear()
        raise PreconditionError(INVALID_KEY_MESSAGE, field="credential")
    if not from_store:
        store.save(credential)
    return credential


def _execute_round(
    *,
    subject: Path | None,
    style: Path | None,
    goal: str,
    out: Path | None,
    save_prompt: Path | None,
    api_key: str | None,
    quiet: bool,
    verbose_count: int,
    session: GenerationSession,
    enhance: bool,
) -> None:
    """Shared body of generate and enhance."""
    verbose_level = min(verbose_count, 2) if verbose_count > 0 else get_verbosity_from_env()
    configure_logging(verbose_level=verbose_level, quiet=quiet)
    suggestion = session.edit_suggestion

    def do_round() -> None:
        # 1. Load and validate config
        config = Config.from_env()
        config.validate()

        # 2. Inputs (fail fast before any network call)
        inputs = GenerationInputs(
            subject=load_image_as_data_uri(subject, "subject", config) if subject else None,
            style=load_image_as_data_uri(style, "style", config) if style else None,
            goal=goal,
        )
        if inputs.is_empty():
            raise PreconditionError(
                "Provide --subject, --style or --goal (at least one).", field="inputs"
            )

        # 3. Credential
        credential = _resolve_credential(api_key, config, quiet)

        # 4. Prompt synthesis + image generation
        if quiet:
            run_round(credential, inputs, session, enhance=enhance, config=config)
        else:
            with progress.round_progress(
                prompt_model=config.prompt_model,
                image_model=config.image_model,
                has_subject=subject is not None,
                has_style=style is not None,
                enhancing=enhance,
            ) as on_stage:
                run_round(
                    credential, inputs, session, enhance=enhance, config=config, on_stage=on_stage
                )
        result = session.image
        assert result is not None

        # 5. Save prompt if requested
        if save_prompt is not None:
            try:
                save_prompt.parent.mkdir(parents=True, exist_ok=True)
                save_prompt.write_text(session.prompt, encoding="utf-8")
                if not quiet:
                    progress.print_info(f"Saved prompt to {save_prompt}")
            except OSError as e:
                # Report error but don't fail the entire operation
                if quiet:
                    click.echo(f"Warning: Could not save prompt to {save_prompt}: {e}", err=True)
                else:
                    progress.print_warning(f"Could not save prompt to {save_prompt}: {e}")

        # 6. Save image
        out_path = out if out is not None else Path(default_output_path(result.format))
        result.save(out_path)

        # 7. Print result
        if not quiet:
            progress.print_success_result(
                output_path=out_path,
                generation_time=result.generation_time,
                model_used=result.model_used,
                prompt_used=session.prompt,
                had_subject=subject is not None,
                had_style=style is not None,
                enhanced=enhance,
                goal=goal or None,
                edit_suggestion=suggestion or None,
            )
        # Path on stdout for scriptability
        click.echo(str(out_path))

    run_with_error_handling(do_round, quiet=quiet)


@cli.command()
@_round_options
def generate(
    subject: Path | None,
    style: Path | None,
    goal: str,
    out: Path | None,
    save_prompt: Path | None,
    api_key: str | None,
    quiet: bool,
    verbose_count: int,
) -> None:
    """Synthesize a prompt from the inputs and generate an image from it."""
    _execute_round(
        subject=subject,
        style=style,
        goal=goal,
        out=out,
        save_prompt=save_prompt,
        api_key=api_key,
        quiet=quiet,
        verbose_count=verbose_count,
        session=GenerationSession(),
        enhance=False,
    )


@cli.command()
@_round_options
@click.option("--suggestion", "-e", required=True, help="How to change the previous result.")
@click.option("--previous-prompt", "-p", help="Prompt of the result being refined.")
@click.option(
    "--previous-prompt-file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="File holding the previous prompt (as written by --save-prompt).",
)
def enhance(
    subject: Path | None,
    style: Path | None,
    goal: str,
    out: Path | None,
    save_prompt: Path | None,
    api_key: str | None,
    quiet: bool,
    verbose_count: int,
    suggestion: str,
    previous_prompt: str | None,
    previous_prompt_file: Path | None,
) -> None:
    """Refine a previous result: merge an edit suggestion into its prompt and regenerate.

    Pass the same --subject/--style/--goal as the original run.
    """
    if previous_prompt and previous_prompt_file:
        raise click.UsageError("Use either --previous-prompt or --previous-prompt-file, not both.")
    if previous_prompt_file is not None:
        previous_prompt = read_text_file(previous_prompt_file)
    if not previous_prompt:
        raise click.UsageError("A previous prompt is required (--previous-prompt or --previous-prompt-file).")
    if not suggestion.strip():
        raise click.UsageError("--suggestion cannot be empty.")

    _execute_round(
        subject=subject,
        style=style,
        goal=goal,
        out=out,
        save_prompt=save_prompt,
        api_key=api_key,
        quiet=quiet,
        verbose_count=verbose_count,
        session=GenerationSession(prompt=previous_prompt, edit_suggestion=suggestion.strip()),
        enhance=True,
    )


@cli.command("validate-key")
@click.argument("api_key", required=False, envvar="GEMINI_API_KEY")
@click.option("--no-save", is_flag=True, help="Do not store the key after it validates.")
def validate_key(api_key: str | None, no_save: bool) -> None:
    """Check a Gemini API key and store it for later runs."""

    def do_validate() -> None:
        config = Config.from_env()
        store = CredentialStore.from_config(config)
        credential = api_key or config.gemini_api_key
        if not credential:
            raise PreconditionError("Please enter an API key.", field="credential")
        with progress.validation_progress():
            valid = validate_credential(credential, config)
        if not valid:
            store.clear()
            raise PreconditionError(INVALID_KEY_MESSAGE, field="credential")
        if no_save:
            progress.print_success("API key is valid.")
        else:
            store.save(credential)
            progress.print_success(f"API key is valid and stored in {store.path}.")

    run_with_error_handling(do_validate)


@cli.command("forget-key")
def forget_key() -> None:
    """Remove the stored API key."""

    def do_forget() -> None:
        store = CredentialStore.from_config(Config.from_env())
        store.clear()
        progress.print_success("Stored API key removed.")

    run_with_error_handling(do_forget)


@cli.command()
@click.option(
    "--port",
    "-p",
    type=int,
    default=None,
    envvar="STYLEMIX_UI_PORT",
    help="Port for the Gradio server (default: 7860 or STYLEMIX_UI_PORT).",
)
@click.option(
    "--host",
    "host",
    type=str,
    default=None,
    envvar="STYLEMIX_UI_HOST",
    help="Host to bind (default: 127.0.0.1 or STYLEMIX_UI_HOST). Use 0.0.0.0 for LAN.",
)
@click.option(
    "--share",
    is_flag=True,
    default=None,
    envvar="STYLEMIX_UI_SHARE",
    help="Create a public share link (e.g. gradio.live).",
)
def ui(port: int | None, host: str | None, share: bool | None) -> None:
    """Launch the Gradio web UI."""
    from stylemix.ui.gradio_app import launch as launch_ui

    configure_logging(verbose_level=get_verbosity_from_env(), quiet=False)

    share_val = share
    if share_val is None:
        env_share = os.environ.get("STYLEMIX_UI_SHARE", "").lower()
        share_val = env_share in ("1", "true", "yes")
    launch_ui(server_name=host, server_port=port, share=share_val)


@cli.command()
@click.option("--port", "-p", type=int, default=8000, envvar="STYLEMIX_RELAY_PORT", show_default=True)
@click.option(
    "--host",
    type=str,
    default="127.0.0.1",
    envvar="STYLEMIX_RELAY_HOST",
    show_default=True,
    help="Host to bind. Use 0.0.0.0 to expose the relay.",
)
def relay(port: int, host: str) -> None:
    """Run the HTTP relay that forwards requests to Gemini with the server's API key."""
    import uvicorn

    from stylemix.api.relay import create_app

    configure_logging(verbose_level=get_verbosity_from_env(), quiet=False)
    uvicorn.run(create_app(), host=host, port=port)


def main() -> None:
    """Entry point for the stylemix console script."""
    cli()


__all__ = ["cli", "main", "generate", "enhance", "validate_key", "forget_key", "ui", "relay"]
