"""
Subject and style image loading for stylemix.

Turns files, raw bytes or PIL images into the data URIs the core expects,
downscaling anything above the configured pixel budget.
"""

import base64
import io
import time
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from stylemix.core.config import Config, get_config
from stylemix.core.payload import ImageAsset, decode_data_uri
from stylemix.logging_config import get_logger
from stylemix.utils.exceptions import ImageProcessingError, PreconditionError

logger = get_logger(__name__)

# Pillow format name -> media type for formats we send as-is
SUPPORTED_FORMATS = {
    "PNG": "image/png",
    "JPEG": "image/jpeg",
    "WEBP": "image/webp",
    "GIF": "image/gif",
}
# GIFs are re-encoded as PNG (first frame only)
_REENCODE_AS = {"GIF": "PNG"}


def _normalize_format(fmt: str | None) -> str | None:
    """Normalize a format or media type to a SUPPORTED_FORMATS key (JPG -> JPEG, image/png -> PNG)."""
    if not fmt:
        return None
    s = fmt.strip().lower()
    if s.startswith("image/"):
        s = s.split("/", 1)[1]
    u = s.upper()
    if u == "JPG":
        u = "JPEG"
    return u if u in SUPPORTED_FORMATS else None


def _open_image(source: str | Path | bytes, label: str) -> Image.Image:
    """Open a path or bytes with Pillow and fully load it."""
    if isinstance(source, bytes):
        if not source:
            raise PreconditionError("Image data is empty", field=label)
        stream: io.BytesIO | Path = io.BytesIO(source)
        path_str = ""
    else:
        stream = Path(source)
        path_str = str(stream)
        if not stream.exists():
            raise FileNotFoundError(f"Image file not found: {stream}")
    try:
        image = Image.open(stream)
        image.load()
    except (UnidentifiedImageError, OSError) as e:
        raise ImageProcessingError(f"Failed to load image: {e}", image_path=path_str) from e
    return image


def resize_image(image: Image.Image, max_pixels: int) -> Image.Image:
    """Downscale to at most max_pixels, keeping the aspect ratio. Smaller images are untouched."""
    width, height = image.size
    current_pixels = width * height
    if current_pixels <= max_pixels:
        return image
    scale = (max_pixels / current_pixels) ** 0.5
    out_w = max(1, int(width * scale))
    out_h = max(1, int(height * scale))
    logger.debug("Resizing image %dx%d -> %dx%d max_pixels=%s", width, height, out_w, out_h, max_pixels)
    return image.resize((out_w, out_h), Image.Resampling.LANCZOS)


def encode_image(image: Image.Image, fmt: str) -> str:
    """Encode a PIL image to base64 text in the given Pillow format."""
    if fmt == "JPEG" and image.mode not in ("RGB", "L"):
        image = image.convert("RGB")
    try:
        buffer = io.BytesIO()
        image.save(buffer, format=fmt)
    except (OSError, ValueError) as e:
        raise ImageProcessingError(f"Failed to encode image: {e}") from e
    return base64.b64encode(buffer.getvalue()).decode("ascii")


def load_image_as_data_uri(
    source: str | Path | bytes | Image.Image,
    label: str = "image",
    config: Config | None = None,
) -> str:
    """
    Load a subject or style image and return it as a data URI.

    Args:
        source: Path, raw bytes, PIL image, or an existing data URI (validated and returned)
        label: Input name used in error messages ("subject", "style")
        config: Optional config for max_image_pixels; if None, uses get_config()

    Raises:
        PreconditionError: If the format is not supported
        MalformedInputError: If source is a malformed data URI
        ImageProcessingError: If the image cannot be decoded or encoded
        FileNotFoundError: If a path does not exist
    """
    if isinstance(source, str) and source.strip().lower().startswith("data:"):
        return decode_data_uri(source).to_data_uri()

    cfg = config or get_config()
    start_time = time.time()

    image = source if isinstance(source, Image.Image) else _open_image(source, label)
    fmt = _normalize_format(image.format) or ("PNG" if isinstance(source, Image.Image) else None)
    if fmt is None:
        raise PreconditionError(
            f"Unsupported image format: {image.format}. "
            f"Supported formats: {', '.join(sorted(SUPPORTED_FORMATS))}",
            field=label,
        )
    fmt = _REENCODE_AS.get(fmt, fmt)

    resized = resize_image(image, cfg.max_image_pixels)
    asset = ImageAsset(SUPPORTED_FORMATS[fmt], encode_image(resized, fmt))

    w, h = resized.size
    logger.info(
        "Loaded %s image in %.2fs dimensions=%dx%d format=%s",
        label,
        time.time() - start_time,
        w,
        h,
        fmt,
    )
    return asset.to_data_uri()
