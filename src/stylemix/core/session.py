"""
One generation round: synthesize a prompt, then generate an image from it.

The caller owns a GenerationSession and passes it to run_round(); the core
keeps no state of its own between rounds.
"""

from collections.abc import Callable
from dataclasses import dataclass

from stylemix.core.config import Config, get_config
from stylemix.core.image_gen import ImageResult, generate_image
from stylemix.core.payload import ImageAsset, coerce_asset
from stylemix.core.prompt import synthesize_prompt
from stylemix.logging_config import get_logger
from stylemix.utils.exceptions import PreconditionError

logger = get_logger(__name__)

NO_CREDENTIAL_MESSAGE = "Please provide and validate your Gemini API key to start."
NO_INPUTS_MESSAGE = "Please provide a raw image, a style image, or a text description to start."

# Stage names passed to run_round(on_stage=...)
STAGE_PROMPT = "prompt"
STAGE_IMAGE = "image"


@dataclass
class GenerationInputs:
    """What the user supplied for a round. Images are ImageAssets or data URIs."""

    subject: ImageAsset | str | None = None
    style: ImageAsset | str | None = None
    goal: str = ""

    def is_empty(self) -> bool:
        return not (_present(self.subject) or _present(self.style) or _present(self.goal))


def _present(value: ImageAsset | str | None) -> bool:
    # Blank strings count as absent, matching coerce_asset
    if isinstance(value, str):
        return bool(value.strip())
    return value is not None


@dataclass
class GenerationSession:
    """State carried between rounds: the last prompt and image, plus a pending edit suggestion."""

    prompt: str = ""
    image: ImageResult | None = None
    edit_suggestion: str = ""

    @property
    def has_result(self) -> bool:
        return self.image is not None

    def reset(self) -> None:
        self.prompt = ""
        self.image = None
        self.edit_suggestion = ""


def run_round(
    credential: str,
    inputs: GenerationInputs,
    session: GenerationSession,
    *,
    enhance: bool = False,
    config: Config | None = None,
    on_stage: Callable[[str], None] | None = None,
) -> GenerationSession:
    """
    Run one generation round and record its outputs on session.

    With enhance=True the session's prompt and pending edit suggestion are sent
    as the previous prompt and suggestion. A failed prompt synthesis means no
    image request is made. On any failure the session is left as it was.
    on_stage, when given, is called with STAGE_PROMPT and then STAGE_IMAGE just
    before each service call.

    Raises:
        PreconditionError: If there is no credential or no input at all
        plus anything synthesize_prompt() or generate_image() raise
    """
    if not credential:
        raise PreconditionError(NO_CREDENTIAL_MESSAGE, field="credential")
    if inputs.is_empty():
        raise PreconditionError(NO_INPUTS_MESSAGE, field="inputs")

    config = config or get_config()
    subject = coerce_asset(inputs.subject)
    style = coerce_asset(inputs.style)

    previous_prompt = session.prompt if enhance else None
    suggestion = session.edit_suggestion if enhance else None
    logger.info("Starting %s round", "enhancement" if enhance else "generation")

    if on_stage is not None:
        on_stage(STAGE_PROMPT)
    prompt = synthesize_prompt(
        credential,
        subject,
        style,
        inputs.goal,
        previous_prompt,
        suggestion,
        config=config,
    )
    if on_stage is not None:
        on_stage(STAGE_IMAGE)
    image = generate_image(credential, prompt, subject, config=config)

    session.prompt = prompt
    session.image = image
    session.edit_suggestion = ""
    return session
