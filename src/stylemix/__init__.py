"""
stylemix - subject + style + goal image remixing with Gemini

Each round runs two calls in order: a text/vision model synthesizes a detailed
prompt from a subject image, a style image and/or a short goal, then an image
model renders it. Enhancement rounds fold an edit suggestion into the previous
prompt.

Library usage:
- Every service call takes the API key explicitly; a fresh client is built per call.
- Configuration can be passed per operation (config=my_config) or via the shared
  config: get_config() / set_config().
- Images go in as data URIs (data:<type>;base64,<data>) or ImageAsset values and
  come out as ImageResult (bare base64 plus a PIL accessor).
- Logging: set_verbosity(0|1|2) or configure_logging(verbose_level, quiet);
  STYLEMIX_VERBOSITY env (0/1/2) is read when the CLI or UI starts.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("stylemix")
except PackageNotFoundError:
    # Package is not installed (e.g., running from source in development)
    __version__ = "0.0.0.dev"

from stylemix.core.config import (
    DEFAULT_IMAGE_MODEL,
    DEFAULT_PROMPT_MODEL,
    DEFAULT_VALIDATION_MODEL,
    Config,
    get_config,
    set_config,
)
from stylemix.core.credentials import CredentialStore, validate_credential
from stylemix.core.errors import classify_error
from stylemix.core.image_gen import ImageResult, find_first_image, generate_image
from stylemix.core.payload import (
    ImageAsset,
    ImagePart,
    SynthesisMode,
    TextPart,
    build_image_parts,
    build_prompt_parts,
    decode_data_uri,
)
from stylemix.core.prompt import build_system_instruction, synthesize_prompt
from stylemix.core.reference import load_image_as_data_uri
from stylemix.core.session import GenerationInputs, GenerationSession, run_round
from stylemix.logging_config import configure_logging, set_verbosity
from stylemix.utils.exceptions import (
    ConfigurationError,
    GenerationError,
    ImageProcessingError,
    InvalidCredentialError,
    MalformedInputError,
    NoImageDataError,
    PreconditionError,
    QuotaExceededError,
    StylemixError,
    UnknownError,
)

__all__ = [
    "Config",
    "ConfigurationError",
    "CredentialStore",
    "DEFAULT_IMAGE_MODEL",
    "DEFAULT_PROMPT_MODEL",
    "DEFAULT_VALIDATION_MODEL",
    "GenerationError",
    "GenerationInputs",
    "GenerationSession",
    "ImageAsset",
    "ImagePart",
    "ImageProcessingError",
    "ImageResult",
    "InvalidCredentialError",
    "MalformedInputError",
    "NoImageDataError",
    "PreconditionError",
    "QuotaExceededError",
    "StylemixError",
    "SynthesisMode",
    "TextPart",
    "UnknownError",
    "build_image_parts",
    "build_prompt_parts",
    "build_system_instruction",
    "classify_error",
    "configure_logging",
    "decode_data_uri",
    "find_first_image",
    "generate_image",
    "get_config",
    "load_image_as_data_uri",
    "run_round",
    "set_config",
    "set_verbosity",
    "synthesize_prompt",
    "validate_credential",
]
