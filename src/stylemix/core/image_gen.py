"""
Image synthesis via the Gemini image model.

Sends the synthesized prompt (and the subject image, if any) to the image model
and extracts the first inline image from the response.
"""

import base64
import io
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from google.genai import types
from PIL import Image

from stylemix.core.client import create_client
from stylemix.core.config import Config, get_config
from stylemix.core.errors import classify_error
from stylemix.core.payload import (
    ImageAsset,
    ImagePart,
    Part,
    TextPart,
    build_image_parts,
    coerce_asset,
    describe_parts,
    to_genai_content,
)
from stylemix.logging_config import get_logger, log_prompts, truncate_for_log
from stylemix.utils.exceptions import NoImageDataError, PreconditionError

logger = get_logger(__name__)

DEFAULT_RESULT_MIME_TYPE = "image/png"


def _format_from_mime_type(mime_type: str) -> str:
    """Infer image format from a media type (e.g. 'image/jpeg' -> 'jpeg')."""
    if not mime_type or not mime_type.strip().lower().startswith("image/"):
        return "png"
    return mime_type.split("/", 1)[1].lower().split(";")[0].strip() or "png"


@dataclass
class ImageResult:
    """Result of an image synthesis call.

    ``data`` is the bare base64 payload as handed to the presentation layer;
    ``image`` decodes it into a PIL image for saving or display.
    """

    data: str
    generation_time: float
    model_used: str
    prompt_used: str
    had_subject: bool
    mime_type: str = DEFAULT_RESULT_MIME_TYPE

    @property
    def format(self) -> str:
        """Image format from the media type (e.g. 'png', 'jpeg')."""
        return _format_from_mime_type(self.mime_type)

    @property
    def image_bytes(self) -> bytes:
        return base64.b64decode(self.data)

    @property
    def image(self) -> Image.Image:
        return Image.open(io.BytesIO(self.image_bytes)).copy()

    def to_data_uri(self) -> str:
        return ImageAsset(self.mime_type, self.data).to_data_uri()

    def save(self, path: str | Path) -> Path:
        """Write the raw image bytes to path and return it."""
        out = Path(path)
        out.write_bytes(self.image_bytes)
        return out


def response_parts(response: Any) -> list[Part]:
    """Return the first candidate's parts as TextPart / ImagePart values."""
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return []
    content = getattr(candidates[0], "content", None)
    raw_parts = getattr(content, "parts", None) or []

    parts: list[Part] = []
    for raw in raw_parts:
        inline = getattr(raw, "inline_data", None)
        if inline is not None and inline.data:
            data = inline.data
            if isinstance(data, (bytes, bytearray)):
                data = base64.b64encode(data).decode("ascii")
            parts.append(ImagePart(ImageAsset(inline.mime_type or "", data)))
        elif getattr(raw, "text", None):
            parts.append(TextPart(raw.text))
    return parts


def find_first_image(parts: list[Part]) -> ImageAsset | None:
    """Linear scan: the first part tagged with an image/* media type, or None."""
    for part in parts:
        if isinstance(part, ImagePart) and part.asset.mime_type.lower().startswith("image/"):
            return part.asset
    return None


def generate_image(
    credential: str,
    prompt: str,
    subject: ImageAsset | str | None = None,
    *,
    config: Config | None = None,
) -> ImageResult:
    """
    Generate an image from a prompt, optionally editing a subject image.

    Args:
        credential: Gemini API key
        prompt: The synthesized prompt
        subject: Subject image (ImageAsset or data URI) to use as the edit target
        config: Optional config; if None, uses shared config from get_config()

    Returns:
        ImageResult holding the first image the model returned

    Raises:
        PreconditionError: If prompt is empty
        MalformedInputError: If the subject data URI is malformed (not classified)
        QuotaExceededError: If the service reports quota or billing problems
        InvalidCredentialError: If the service rejects the API key
        NoImageDataError: If the response contains no image part
    """
    if not prompt or not prompt.strip():
        raise PreconditionError("Prompt cannot be empty", field="prompt")

    config = config or get_config()
    subject_asset = coerce_asset(subject)
    parts = build_image_parts(prompt, subject_asset)

    logger.info(
        "Generating image model=%s has_subject=%s", config.image_model, subject_asset is not None
    )
    if log_prompts():
        logger.info("Prompt (used): %s", truncate_for_log(prompt))
    logger.debug("Image request parts: %s", describe_parts(parts))

    contents = to_genai_content(parts)
    client = create_client(credential, config)
    start_time = time.time()
    try:
        response = client.models.generate_content(
            model=config.image_model,
            contents=contents,
            config=types.GenerateContentConfig(
                response_modalities=["IMAGE"],
                candidate_count=1,
            ),
        )
    except Exception as e:
        classify_error(e)
    generation_time = time.time() - start_time

    found = response_parts(response)
    logger.debug("Image response parts: %s", describe_parts(found))
    asset = find_first_image(found)
    if asset is None:
        raise NoImageDataError(response=str(response))

    logger.info("Generated in %.1fs model=%s", generation_time, config.image_model)
    return ImageResult(
        data=asset.data,
        mime_type=asset.mime_type,
        generation_time=generation_time,
        model_used=config.image_model,
        prompt_used=prompt,
        had_subject=subject_asset is not None,
    )
