"""
Request payload building for stylemix.

Images cross the library boundary as data URIs (data:<mediaType>;base64,<data>).
This module decodes them into ImageAsset values and assembles the ordered,
multimodal part sequences each service call needs. Everything here is pure:
no network access, no state.
"""

import base64
import binascii
from dataclasses import dataclass
from enum import Enum

from google.genai import types

from stylemix.core.prompts_loader import get_synthesis_prompts
from stylemix.utils.exceptions import MalformedInputError

DATA_URI_SCHEME = "data"
SUPPORTED_ENCODING = "base64"


@dataclass(frozen=True)
class ImageAsset:
    """An image decoded from a data URI: media type plus the base64 payload text."""

    mime_type: str
    data: str

    def to_data_uri(self) -> str:
        return f"{DATA_URI_SCHEME}:{self.mime_type};{SUPPORTED_ENCODING},{self.data}"


@dataclass(frozen=True)
class TextPart:
    """A text fragment of a request or response."""

    text: str


@dataclass(frozen=True)
class ImagePart:
    """Inline image data within a request or response."""

    asset: ImageAsset


Part = TextPart | ImagePart


class SynthesisMode(Enum):
    """Which instruction set a prompt synthesis call runs under."""

    INITIAL = "initial"
    ENHANCEMENT = "enhancement"

    @classmethod
    def decide(cls, previous_prompt: str | None, edit_suggestion: str | None) -> "SynthesisMode":
        """Enhancement needs both a previous prompt and an edit suggestion; anything less is initial."""
        if previous_prompt and edit_suggestion:
            return cls.ENHANCEMENT
        return cls.INITIAL


def decode_data_uri(uri: str) -> ImageAsset:
    """
    Split a data URI into its media type and base64 payload.

    The payload is returned exactly as written; it is not decoded here.

    Args:
        uri: String of the form data:<mediaType>;base64,<data>

    Returns:
        ImageAsset(mime_type, data)

    Raises:
        MalformedInputError: If the meta,data or type:subtype;encoding structure is missing
    """
    if not isinstance(uri, str):
        raise MalformedInputError("Image must be a data URI string", field="image")
    meta, sep, data = uri.strip().partition(",")
    if not sep:
        raise MalformedInputError("Data URI is missing the ',' separator", field="image")
    scheme, colon, media = meta.partition(":")
    if not colon:
        raise MalformedInputError("Data URI is missing the ':' separator", field="image")
    if scheme.strip().lower() != DATA_URI_SCHEME:
        raise MalformedInputError(f"Not a data URI (scheme {scheme!r})", field="image")
    mime_type, _, encoding = media.partition(";")
    mime_type = mime_type.strip()
    if not mime_type:
        raise MalformedInputError("Data URI has an empty media type", field="image")
    if encoding.strip().lower() != SUPPORTED_ENCODING:
        raise MalformedInputError(
            f"Data URI encoding must be {SUPPORTED_ENCODING!r}, got {encoding.strip()!r}",
            field="image",
        )
    return ImageAsset(mime_type=mime_type, data=data)


def coerce_asset(value: ImageAsset | str | None) -> ImageAsset | None:
    """Accept an ImageAsset, a data URI or None; data URIs are decoded."""
    if value is None or isinstance(value, ImageAsset):
        return value
    if isinstance(value, str) and not value.strip():
        return None
    return decode_data_uri(value)


def build_prompt_parts(
    subject: ImageAsset | None,
    style: ImageAsset | None,
    goal: str,
    previous_prompt: str | None = None,
    edit_suggestion: str | None = None,
) -> list[Part]:
    """
    Assemble the parts for a prompt synthesis request.

    Each image is preceded by a label naming its role. The trailing text block
    always carries the goal; the previous prompt and edit suggestion are added
    to it only when both are present.
    """
    prompts = get_synthesis_prompts()
    parts: list[Part] = []

    if subject is not None:
        parts.append(TextPart(prompts.subject_label))
        parts.append(ImagePart(subject))

    if style is not None:
        parts.append(TextPart(prompts.style_label))
        parts.append(ImagePart(style))

    text = prompts.goal_template.format(goal=goal or "")
    if SynthesisMode.decide(previous_prompt, edit_suggestion) is SynthesisMode.ENHANCEMENT:
        text += prompts.enhancement_template.format(
            previous_prompt=previous_prompt, edit_suggestion=edit_suggestion
        )
    parts.append(TextPart(text))
    return parts


def build_image_parts(prompt: str, subject: ImageAsset | None = None) -> list[Part]:
    """Assemble image synthesis parts; the subject goes first so it is taken as the edit target."""
    parts: list[Part] = [TextPart(prompt)]
    if subject is not None:
        parts.insert(0, ImagePart(subject))
    return parts


def decode_payload(data: str) -> bytes:
    """Decode base64 payload text, restoring missing padding."""
    cleaned = "".join(data.split())
    padded = cleaned + "=" * (-len(cleaned) % 4)
    try:
        return base64.b64decode(padded)
    except (binascii.Error, ValueError) as e:
        raise MalformedInputError(f"Invalid base64 image payload: {e}", field="image") from e


def to_genai_part(part: Part) -> types.Part:
    """Convert one tagged part into the SDK's Part."""
    if isinstance(part, TextPart):
        return types.Part.from_text(text=part.text)
    return types.Part.from_bytes(
        data=decode_payload(part.asset.data), mime_type=part.asset.mime_type
    )


def to_genai_content(parts: list[Part]) -> types.Content:
    """Wrap a part sequence as a single user turn, preserving order."""
    return types.Content(role="user", parts=[to_genai_part(p) for p in parts])


def describe_parts(parts: list[Part]) -> list[str]:
    """Log-safe summary of a part sequence: text lengths and image sizes only."""
    summary: list[str] = []
    for part in parts:
        if isinstance(part, TextPart):
            summary.append(f"text({len(part.text)} chars)")
        else:
            summary.append(f"image({part.asset.mime_type}, {len(part.asset.data)} b64 chars)")
    return summary


__all__ = [
    "ImageAsset",
    "ImagePart",
    "Part",
    "SynthesisMode",
    "TextPart",
    "build_image_parts",
    "build_prompt_parts",
    "coerce_asset",
    "decode_data_uri",
    "decode_payload",
    "describe_parts",
    "to_genai_content",
    "to_genai_part",
]
