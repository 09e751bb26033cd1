"""
Gradio web UI for stylemix.

Single-page UI: API key panel, subject and style uploads, goal text, Generate,
then edit suggestion + Enhance to refine the result, Reset to start over.
The validated key and the GenerationSession live in gr.State per browser session;
the key is also kept in the visitor's localStorage via gr.BrowserState.
Uses only the public API: from stylemix import ...
"""

import argparse
import atexit
import contextlib
import os
import tempfile
import time
from collections.abc import Generator
from pathlib import Path
from typing import Any, cast

import gradio as gr

from stylemix import (
    Config,
    ConfigurationError,
    GenerationError,
    GenerationInputs,
    GenerationSession,
    ImageProcessingError,
    ImageResult,
    MalformedInputError,
    PreconditionError,
    StylemixError,
    __version__,
    load_image_as_data_uri,
    run_round,
    validate_credential,
)
from stylemix.core.session import NO_CREDENTIAL_MESSAGE, NO_INPUTS_MESSAGE
from stylemix.logging_config import get_logger, log_prompts, truncate_for_log

logger = get_logger(__name__)

# Default server port; overridable via STYLEMIX_UI_PORT
DEFAULT_UI_PORT = 7860
DEFAULT_UI_HOST = "127.0.0.1"

BASE_PAGE_TITLE = "stylemix – Gemini image remixing"

FAILURE_PREFIX = "Failed during image creation: "
EMPTY_KEY_MESSAGE = "Please enter an API key."
# localStorage key for the visitor's own API key (one per browser, never on the server)
BROWSER_KEY_STORAGE_KEY = "gemini-api-key"
INVALID_KEY_MESSAGE = "The API key is invalid. Please check it and try again."
KEY_HINT_HTML = (
    '<p style="font-size: 0.85em; color: #9ca3af; margin: 4px 0;">'
    'Get your key from <a href="https://aistudio.google.com/app/apikey" target="_blank">'
    "Google AI Studio</a>. It is kept in this browser after it validates.</p>"
)

# Temp paths we create (uploads converted from PIL, output images); cleaned on process exit
_temp_paths: set[str] = set()


def _register_temp_path(path: str) -> None:
    _temp_paths.add(path)


def _cleanup_temp_paths() -> None:
    for path in _temp_paths:
        with contextlib.suppress(OSError):
            Path(path).unlink(missing_ok=True)


atexit.register(_cleanup_temp_paths)


def _exception_to_message(exc: BaseException) -> str:
    """Map library and known exceptions to a short user-facing message (same as CLI)."""
    if isinstance(exc, (PreconditionError, MalformedInputError)):
        return exc.args[0] if exc.args else "Invalid input."
    if isinstance(exc, ConfigurationError):
        return exc.args[0] if exc.args else "Invalid configuration."
    if isinstance(exc, ImageProcessingError):
        return exc.args[0] if exc.args else "Image processing failed."
    if isinstance(exc, FileNotFoundError):
        return str(exc)
    if isinstance(exc, GenerationError):
        return FAILURE_PREFIX + (exc.args[0] if exc.args else "service error.")
    if isinstance(exc, StylemixError):
        return exc.args[0] if exc.args else "An error occurred."
    return FAILURE_PREFIX + (str(exc) if exc.args else "An unexpected error occurred.")


def _format_status(message: str, status_type: str = "info") -> str:
    """
    Format a status message with color and icon.

    Args:
        message: The status message text.
        status_type: One of "info", "success", "error", "warning", "idle".

    Returns:
        HTML-formatted status string.
    """
    if status_type == "success":
        icon = "✅"
        color = "#10b981"  # green-500
        bg_color = "#d1fae5"  # green-100
    elif status_type == "error":
        icon = "❌"
        color = "#ef4444"  # red-500
        bg_color = "#fee2e2"  # red-100
    elif status_type == "warning":
        icon = "⚠️"
        color = "#f59e0b"  # amber-500
        bg_color = "#fef3c7"  # amber-100
    elif status_type == "info":
        icon = "ℹ️"
        color = "#3b82f6"  # blue-500
        bg_color = "#dbeafe"  # blue-100
    else:  # idle
        return ""

    # Use inline styles for reliability across themes
    return f"""<div style="padding: 12px 16px; border-radius: 8px; background-color: {bg_color}; border-left: 4px solid {color}; margin: 8px 0;">
    <span style="font-size: 16px; margin-right: 8px;">{icon}</span>
    <span style="color: {color}; font-weight: 500;">{message}</span>
</div>"""


def _image_source(value: Any) -> str | None:
    """
    Get a path or data URL from a Gradio Image value.

    Gradio can return: path str, dict with 'path' or 'url' (data URL), or PIL Image.
    """
    if value is None:
        return None
    # PIL Image (e.g. Gradio type="pil" or some versions): save to temp file and return path
    if hasattr(value, "size") and hasattr(value, "save"):
        fd, path = tempfile.mkstemp(suffix=".png", prefix="stylemix_upload_")
        os.close(fd)
        value.save(path, "PNG")
        _register_temp_path(path)
        return path
    if isinstance(value, str) and not value.strip():
        return None
    if isinstance(value, dict):
        path_val = value.get("path")
        url_val = value.get("url")
        if path_val and isinstance(path_val, str) and path_val.strip():
            return cast(str, path_val)
        if url_val and isinstance(url_val, str) and url_val.strip():
            return cast(str, url_val)
        return None
    return str(value)


def _load_upload(value: Any, label: str, config: Config) -> str | None:
    source = _image_source(value)
    if source is None:
        return None
    return load_image_as_data_uri(source, label, config)


def _result_display_path(result: ImageResult) -> str:
    """Write the generated image to a temp file for gr.Image and return its path."""
    ts = int(time.time() * 1000)
    out_path = Path(tempfile.gettempdir()) / f"stylemix_{ts}.{result.format}"
    result.save(out_path)
    _register_temp_path(str(out_path))
    return str(out_path)


# --- API key panel -----------------------------------------------------------


def _key_panel_updates(credential: str, message: str, status_type: str) -> tuple[Any, ...]:
    """
    Outputs for (key_state, key_tb, validate_btn, change_btn, key_status, browser_key).

    browser_key is the gr.BrowserState copy kept in the visitor's localStorage;
    it always mirrors key_state so a rejected or forgotten key is erased there too.
    """
    valid = bool(credential)
    return (
        credential,
        gr.update(interactive=False, value="") if valid else gr.update(interactive=True),
        gr.update(visible=not valid),
        gr.update(visible=valid),
        _format_status(message, status_type) if message else KEY_HINT_HTML,
        credential,
    )


def _validate_key_handler(key_text: str | None) -> tuple[Any, ...]:
    """Validate button: check the key with one probe request; keep it in the browser when valid."""
    key = (key_text or "").strip()
    if not key:
        return _key_panel_updates("", EMPTY_KEY_MESSAGE, "error")
    if validate_credential(key):
        return _key_panel_updates(key, "API key validated.", "success")
    return _key_panel_updates("", INVALID_KEY_MESSAGE, "error")


def _change_key_handler() -> tuple[Any, ...]:
    """Change key button: forget the key in this browser."""
    return _key_panel_updates("", "", "idle")


def _stored_key_handler(stored: str | None) -> tuple[Any, ...]:
    """Page load: revalidate this browser's stored key silently; a failing key is removed."""
    stored = (stored or "").strip()
    if not stored:
        return _key_panel_updates("", "", "idle")
    if validate_credential(stored):
        return _key_panel_updates(stored, "Using stored API key.", "success")
    logger.info("Stored browser key failed validation; clearing it")
    return _key_panel_updates("", "", "idle")


# --- Generation --------------------------------------------------------------


def _run_round_stream(
    credential: str,
    subject_value: Any,
    style_value: Any,
    goal: str | None,
    suggestion: str | None,
    session: GenerationSession | None,
    enhance: bool,
) -> Generator[tuple[Any, ...], None, None]:
    """
    Run one round and yield UI updates.

    Yields (status_html, out_image, prompt_text, suggestion_text, session, generate_btn, enhance_btn).
    The first yield shows progress and disables the buttons; the last shows the
    result or the error. On error the session is unchanged and the output is cleared.
    """
    session = session if session is not None else GenerationSession()
    goal = goal or ""
    suggestion_text = suggestion or ""

    def failed(message: str) -> tuple[Any, ...]:
        return (
            _format_status(message, "error"),
            None,
            session.prompt,
            suggestion_text,
            session,
            gr.update(interactive=True),
            gr.update(interactive=session.has_result and bool(suggestion_text.strip())),
        )

    if not credential:
        yield failed(NO_CREDENTIAL_MESSAGE)
        return

    config = Config.from_env()
    try:
        config.validate()
        inputs = GenerationInputs(
            subject=_load_upload(subject_value, "subject", config),
            style=_load_upload(style_value, "style", config),
            goal=goal,
        )
    except (StylemixError, FileNotFoundError) as e:
        yield failed(_exception_to_message(e))
        return
    if inputs.is_empty():
        yield failed(NO_INPUTS_MESSAGE)
        return

    status = "Refining prompt and regenerating…" if enhance else "Synthesizing prompt and generating image…"
    yield (
        _format_status(status, "info"),
        None,
        session.prompt,
        suggestion_text,
        session,
        gr.update(interactive=False),
        gr.update(interactive=False),
    )

    pending_suggestion = session.edit_suggestion
    if enhance:
        session.edit_suggestion = suggestion_text.strip()
    try:
        run_round(credential, inputs, session, enhance=enhance, config=config)
    except Exception as e:
        logger.warning("Round failed: %s", e)
        session.edit_suggestion = pending_suggestion
        yield failed(_exception_to_message(e))
        return

    result = session.image
    assert result is not None
    if log_prompts():
        logger.info("UI prompt: %s", truncate_for_log(session.prompt))
    yield (
        _format_status(f"Done in {result.generation_time:.1f}s", "success"),
        _result_display_path(result),
        session.prompt,
        "",
        session,
        gr.update(interactive=True),
        gr.update(interactive=False),
    )


def _generate_click_handler(
    credential: str,
    subject_value: Any,
    style_value: Any,
    goal: str | None,
    suggestion: str | None,
    session: GenerationSession | None,
) -> Generator[tuple[Any, ...], None, None]:
    """Generate button: a fresh round from the inputs."""
    logger.debug("Generate clicked")
    yield from _run_round_stream(
        credential, subject_value, style_value, goal, suggestion, session, enhance=False
    )


def _enhance_click_handler(
    credential: str,
    subject_value: Any,
    style_value: Any,
    goal: str | None,
    suggestion: str | None,
    session: GenerationSession | None,
) -> Generator[tuple[Any, ...], None, None]:
    """Enhance button: fold the edit suggestion into the previous prompt and regenerate."""
    logger.debug("Enhance clicked")
    yield from _run_round_stream(
        credential, subject_value, style_value, goal, suggestion, session, enhance=True
    )


def _suggestion_change_handler(text: str | None, session: GenerationSession | None) -> Any:
    """Enhance is enabled only with a result on screen and a non-empty suggestion."""
    has_result = session is not None and session.has_result
    return gr.update(interactive=has_result and bool((text or "").strip()))


def _reset_handler(session: GenerationSession | None) -> tuple[Any, ...]:
    """Reset button: clear inputs, output, prompt and session (the API key is kept)."""
    session = session if session is not None else GenerationSession()
    session.reset()
    return (
        None,  # subject
        None,  # style
        "",  # goal
        "",  # suggestion
        None,  # output image
        "",  # prompt
        session,
        "",  # status
        gr.update(interactive=True),
        gr.update(interactive=False),
    )


def _build_blocks() -> gr.Blocks:
    """Build the Gradio Blocks UI."""
    header_html = """
<div style="margin: 16px 0 24px 0;">
    <h1 style="
        font-size: 2.5em;
        font-weight: 700;
        margin: 0;
        background: linear-gradient(135deg, #667eea 0%, #764ba2 100%);
        -webkit-background-clip: text;
        -webkit-text-fill-color: transparent;
        background-clip: text;
        letter-spacing: -0.02em;
    ">stylemix</h1>
    <p style="font-size: 1.1em; color: #6b7280; margin: 4px 0 0 0;">Remix a subject, a style and an idea into a new image with Gemini</p>
</div>
"""

    with gr.Blocks(title=BASE_PAGE_TITLE) as app:
        gr.HTML(header_html)

        key_state = gr.State(value="")
        browser_key = gr.BrowserState(default_value="", storage_key=BROWSER_KEY_STORAGE_KEY)
        session_state = gr.State(value=GenerationSession())

        with gr.Group():
            with gr.Row():
                key_tb = gr.Textbox(
                    label="Gemini API key",
                    type="password",
                    placeholder="Paste your API key here",
                    scale=4,
                )
                validate_btn = gr.Button("Save", variant="primary", scale=1)
                change_btn = gr.Button("Change key", visible=False, scale=1)
            key_status = gr.HTML(value=KEY_HINT_HTML)

        with gr.Row():
            with gr.Column():
                subject_image = gr.Image(
                    label="Raw image (subject)",
                    type="filepath",
                    sources=["upload", "clipboard"],
                )
            with gr.Column():
                style_image = gr.Image(
                    label="Style image (aesthetics)",
                    type="filepath",
                    sources=["upload", "clipboard"],
                )
        goal_tb = gr.Textbox(
            label="Describe your idea",
            placeholder="e.g. 'A cat astronaut floating in space', or leave empty to remix the images",
            lines=3,
        )
        generate_btn = gr.Button("Generate", variant="primary")
        status_html = gr.HTML(value="")

        out_image = gr.Image(label="Result", type="filepath", interactive=False, height="60vh")
        prompt_tb = gr.Textbox(
            label="Synthesized prompt",
            lines=6,
            interactive=False,
            show_copy_button=True,
        )
        with gr.Row():
            suggestion_tb = gr.Textbox(
                label="Suggest an edit or enhancement",
                placeholder="e.g. 'Make the sky purple' or 'Add a castle in the background'",
                lines=2,
                scale=4,
            )
            enhance_btn = gr.Button("Enhance", interactive=False, scale=1)
        reset_btn = gr.Button("Start over")

        _UI_CONCURRENCY_ID = "stylemix_ui"
        _key_outputs = [key_state, key_tb, validate_btn, change_btn, key_status, browser_key]
        validate_btn.click(fn=_validate_key_handler, inputs=[key_tb], outputs=_key_outputs)
        key_tb.submit(fn=_validate_key_handler, inputs=[key_tb], outputs=_key_outputs)
        change_btn.click(fn=_change_key_handler, inputs=[], outputs=_key_outputs)
        app.load(fn=_stored_key_handler, inputs=[browser_key], outputs=_key_outputs)

        _round_inputs = [key_state, subject_image, style_image, goal_tb, suggestion_tb, session_state]
        _round_outputs = [
            status_html,
            out_image,
            prompt_tb,
            suggestion_tb,
            session_state,
            generate_btn,
            enhance_btn,
        ]
        generate_btn.click(
            fn=_generate_click_handler,
            inputs=_round_inputs,
            outputs=_round_outputs,
            concurrency_id=_UI_CONCURRENCY_ID,
        )
        enhance_btn.click(
            fn=_enhance_click_handler,
            inputs=_round_inputs,
            outputs=_round_outputs,
            concurrency_id=_UI_CONCURRENCY_ID,
        )
        suggestion_tb.change(
            fn=_suggestion_change_handler,
            inputs=[suggestion_tb, session_state],
            outputs=[enhance_btn],
        )
        reset_btn.click(
            fn=_reset_handler,
            inputs=[session_state],
            outputs=[
                subject_image,
                style_image,
                goal_tb,
                suggestion_tb,
                out_image,
                prompt_tb,
                session_state,
                status_html,
                generate_btn,
                enhance_btn,
            ],
        )

        gr.HTML(f"""
<div style="text-align: center; margin: 40px 0 20px 0; padding-top: 20px; border-top: 1px solid #e5e7eb;">
    <p style="font-size: 0.9em; color: #9ca3af; margin: 0;">stylemix v{__version__}</p>
</div>
""")

    return cast(gr.Blocks, app)


def launch(
    server_name: str | None = None,
    server_port: int | None = None,
    share: bool = False,
) -> None:
    """
    Build the Gradio app and launch the server.

    Args:
        server_name: Host to bind (default: STYLEMIX_UI_HOST or 127.0.0.1).
        server_port: Port (default: STYLEMIX_UI_PORT or 7860).
        share: If True, create a public share link (e.g. gradio.live).
    """
    host = server_name or os.getenv("STYLEMIX_UI_HOST", DEFAULT_UI_HOST)
    port = server_port
    if port is None:
        try:
            port = int(os.getenv("STYLEMIX_UI_PORT", str(DEFAULT_UI_PORT)))
        except ValueError:
            port = DEFAULT_UI_PORT
    print(f"stylemix ui is starting (v{__version__}) on http://{host}:{port}...")
    app = _build_blocks()
    app.launch(server_name=host, server_port=port, share=share, inbrowser=True)


def main() -> None:
    """Entry point for the stylemix-ui console script. Parses --port, --host, --share."""
    parser = argparse.ArgumentParser(
        description="Launch the stylemix Gradio web UI.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        metavar="PORT",
        help=f"Port to bind (default: STYLEMIX_UI_PORT or {DEFAULT_UI_PORT}).",
    )
    parser.add_argument(
        "--host",
        type=str,
        default=None,
        metavar="HOST",
        help=f"Host to bind (default: STYLEMIX_UI_HOST or {DEFAULT_UI_HOST}). Use 0.0.0.0 for LAN.",
    )
    parser.add_argument(
        "--share",
        action="store_true",
        default=None,
        help="Create a public share link (e.g. gradio.live). Overrides STYLEMIX_UI_SHARE.",
    )
    args = parser.parse_args()
    share_val = args.share
    if share_val is None:
        env_share = os.environ.get("STYLEMIX_UI_SHARE", "").lower()
        share_val = env_share in ("1", "true", "yes")
    launch(
        server_name=args.host,
        server_port=args.port,
        share=share_val,
    )
