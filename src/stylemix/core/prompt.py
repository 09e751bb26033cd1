"""
Prompt synthesis for stylemix.

Turns a subject image, a style image and the user's goal (plus, when refining,
the previous prompt and an edit suggestion) into one descriptive prompt for the
image model.
"""

import time

from google.genai import types

from stylemix.core.client import create_client
from stylemix.core.config import Config, get_config
from stylemix.core.errors import classify_error
from stylemix.core.payload import (
    ImageAsset,
    SynthesisMode,
    build_prompt_parts,
    coerce_asset,
    describe_parts,
    to_genai_content,
)
from stylemix.core.prompts_loader import get_synthesis_prompts
from stylemix.logging_config import get_logger, log_prompts, truncate_for_log
from stylemix.utils.exceptions import GenerationError

logger = get_logger(__name__)


def build_system_instruction(mode: SynthesisMode) -> str:
    """Return the synthesis instruction, with the enhancement block appended in ENHANCEMENT mode."""
    prompts = get_synthesis_prompts()
    instruction = prompts.system_instruction
    if mode is SynthesisMode.ENHANCEMENT:
        instruction += "\n" + prompts.enhancement_instruction
    return instruction


def synthesize_prompt(
    credential: str,
    subject: ImageAsset | str | None = None,
    style: ImageAsset | str | None = None,
    goal: str = "",
    previous_prompt: str | None = None,
    edit_suggestion: str | None = None,
    *,
    config: Config | None = None,
) -> str:
    """
    Synthesize a detailed image prompt from the user's inputs.

    Args:
        credential: Gemini API key
        subject: Subject image (ImageAsset or data URI), optional
        style: Style reference image (ImageAsset or data URI), optional
        goal: The user's free-text goal; may be empty
        previous_prompt: Prompt from the previous round (enhancement only)
        edit_suggestion: Requested change (enhancement only)
        config: Optional config; if None, uses shared config from get_config()

    Returns:
        The synthesized prompt, stripped of surrounding whitespace

    Raises:
        MalformedInputError: If an image data URI is malformed (not classified)
        QuotaExceededError: If the service reports quota or billing problems
        InvalidCredentialError: If the service rejects the API key
        GenerationError: If the service returns no text
    """
    config = config or get_config()
    subject_asset = coerce_asset(subject)
    style_asset = coerce_asset(style)

    mode = SynthesisMode.decide(previous_prompt, edit_suggestion)
    parts = build_prompt_parts(subject_asset, style_asset, goal, previous_prompt, edit_suggestion)
    system_instruction = build_system_instruction(mode)

    logger.info(
        "Synthesizing prompt model=%s mode=%s has_subject=%s has_style=%s",
        config.prompt_model,
        mode.value,
        subject_asset is not None,
        style_asset is not None,
    )
    if log_prompts():
        logger.info("Goal: %s", truncate_for_log(goal or ""))
        if mode is SynthesisMode.ENHANCEMENT:
            logger.info("Edit suggestion: %s", truncate_for_log(edit_suggestion or ""))
    logger.debug("Prompt request parts: %s", describe_parts(parts))

    contents = to_genai_content(parts)
    client = create_client(credential, config)
    start_time = time.time()
    try:
        response = client.models.generate_content(
            model=config.prompt_model,
            contents=contents,
            config=types.GenerateContentConfig(
                system_instruction=system_instruction,
                temperature=config.prompt_temperature,
            ),
        )
    except Exception as e:
        classify_error(e)
    elapsed = time.time() - start_time

    text = (response.text or "").strip()
    if not text:
        raise GenerationError("The prompt model returned an empty response.", response=str(response))

    logger.info("Prompt synthesized in %.1fs (%d chars)", elapsed, len(text))
    if log_prompts():
        logger.info("Prompt (synthesized): %s", truncate_for_log(text))
    return text
