"""
Configuration management for stylemix.

This module handles the Gemini API key, model selection, timeouts and the
location of the stored credential.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from stylemix.logging_config import get_logger
from stylemix.utils.exceptions import ConfigurationError

logger = get_logger(__name__)

# Load environment variables from .env file
load_dotenv()

# Default configuration constants
DEFAULT_PROMPT_MODEL = "gemini-2.5-pro"
DEFAULT_IMAGE_MODEL = "gemini-2.5-flash-image"
DEFAULT_VALIDATION_MODEL = "gemini-2.5-flash"
DEFAULT_PROMPT_TEMPERATURE = 0.8
DEFAULT_REQUEST_TIMEOUT = 180  # seconds
DEFAULT_MAX_IMAGE_PIXELS = 4_000_000
DEFAULT_CREDENTIAL_STORE = Path.home() / ".stylemix" / "credentials.json"

MAX_TEMPERATURE = 2.0


@dataclass
class Config:
    """Configuration for stylemix."""

    # API key excluded from repr to avoid leaking secrets
    gemini_api_key: str = field(default="", repr=False)

    # Models: prompt synthesis (text/vision), image synthesis, key validation probe
    prompt_model: str = DEFAULT_PROMPT_MODEL
    image_model: str = DEFAULT_IMAGE_MODEL
    validation_model: str = DEFAULT_VALIDATION_MODEL

    # Favors creative variation in synthesized prompts
    prompt_temperature: float = DEFAULT_PROMPT_TEMPERATURE

    # Per-request timeout in seconds, applied to every SDK client we create
    request_timeout: int = DEFAULT_REQUEST_TIMEOUT

    # Larger uploads are downscaled before they are sent
    max_image_pixels: int = DEFAULT_MAX_IMAGE_PIXELS

    credential_store_path: Path = DEFAULT_CREDENTIAL_STORE

    _validated: bool = field(default=False, repr=False)

    @classmethod
    def from_env(cls) -> "Config":
        """
        Create a Config instance from environment variables.

        Environment variables:
            GEMINI_API_KEY: API key (GOOGLE_API_KEY is used when unset)
            STYLEMIX_PROMPT_MODEL: Model used for prompt synthesis
            STYLEMIX_IMAGE_MODEL: Model used for image synthesis
            STYLEMIX_VALIDATION_MODEL: Model used for the API key probe
            STYLEMIX_TEMPERATURE: Prompt synthesis temperature
            STYLEMIX_TIMEOUT: Request timeout in seconds
            STYLEMIX_MAX_IMAGE_PIXELS: Pixel budget for uploaded images
            STYLEMIX_CREDENTIAL_STORE: Path of the stored credential file

        Returns:
            Config instance populated from environment

        Raises:
            ConfigurationError: If a numeric variable cannot be parsed
        """
        api_key = os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY") or ""

        def _int_env(name: str, default: int) -> int:
            val = os.getenv(name)
            if val is None or val.strip() == "":
                return default
            try:
                return int(val)
            except ValueError as e:
                raise ConfigurationError(f"{name} must be an integer, got {val!r}.") from e

        def _float_env(name: str, default: float) -> float:
            val = os.getenv(name)
            if val is None or val.strip() == "":
                return default
            try:
                return float(val)
            except ValueError as e:
                raise ConfigurationError(f"{name} must be a number, got {val!r}.") from e

        store = os.getenv("STYLEMIX_CREDENTIAL_STORE", "").strip()

        return cls(
            gemini_api_key=api_key,
            prompt_model=os.getenv("STYLEMIX_PROMPT_MODEL", cls.prompt_model),
            image_model=os.getenv("STYLEMIX_IMAGE_MODEL", cls.image_model),
            validation_model=os.getenv("STYLEMIX_VALIDATION_MODEL", cls.validation_model),
            prompt_temperature=_float_env("STYLEMIX_TEMPERATURE", DEFAULT_PROMPT_TEMPERATURE),
            request_timeout=_int_env("STYLEMIX_TIMEOUT", DEFAULT_REQUEST_TIMEOUT),
            max_image_pixels=_int_env("STYLEMIX_MAX_IMAGE_PIXELS", DEFAULT_MAX_IMAGE_PIXELS),
            credential_store_path=Path(store).expanduser() if store else DEFAULT_CREDENTIAL_STORE,
        )

    def validate(self) -> None:
        """
        Validate the configuration.

        The API key is not checked here; it is verified against the service
        by stylemix.core.credentials.validate_credential.

        Raises:
            ConfigurationError: If configuration is invalid
        """
        logger.debug("Validating config")

        for name in ("prompt_model", "image_model", "validation_model"):
            if not getattr(self, name).strip():
                raise ConfigurationError(f"{name} cannot be empty.")

        if not 0.0 <= self.prompt_temperature <= MAX_TEMPERATURE:
            raise ConfigurationError(
                f"prompt_temperature must be between 0 and {MAX_TEMPERATURE}, "
                f"got {self.prompt_temperature}."
            )
        if self.request_timeout <= 0:
            raise ConfigurationError(
                f"request_timeout must be positive, got {self.request_timeout}."
            )
        if self.max_image_pixels <= 0:
            raise ConfigurationError(
                f"max_image_pixels must be positive, got {self.max_image_pixels}."
            )

        self._validated = True

    def is_valid(self) -> bool:
        """Return True if validate() has been called successfully."""
        return self._validated

    def set_api_key(self, api_key: str) -> None:
        """
        Set the Gemini API key.

        Args:
            api_key: The API key to use

        Raises:
            ConfigurationError: If the key is empty
        """
        if not api_key or not api_key.strip():
            raise ConfigurationError("API key cannot be empty")

        self.gemini_api_key = api_key.strip()

    @property
    def request_timeout_ms(self) -> int:
        """Timeout in milliseconds, the unit the SDK's HttpOptions expects."""
        return self.request_timeout * 1000


# Global configuration instance
_global_config: Config | None = None


def get_config() -> Config:
    """
    Get the global configuration instance.

    Returns:
        The global Config instance
    """
    global _global_config
    if _global_config is None:
        _global_config = Config.from_env()
    return _global_config


def set_config(config: Config) -> None:
    """
    Set the global configuration instance.

    Args:
        config: The Config instance to use globally
    """
    global _global_config
    _global_config = config
