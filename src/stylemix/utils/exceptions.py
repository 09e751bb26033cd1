"""
Custom exceptions for stylemix.

This module defines all custom exceptions used throughout the application.
Service failures reach callers either as one of the classified categories
below or as the provider's original exception (see stylemix.core.errors).
"""

QUOTA_EXCEEDED_MESSAGE = (
    "API Quota Exceeded or Billing not enabled. Please ensure the Google Cloud project "
    "for your API key has billing enabled. For more info, see: "
    "ai.google.dev/gemini-api/docs/billing"
)
INVALID_CREDENTIAL_MESSAGE = "Invalid API Key. Please check your key and try again."
UNKNOWN_ERROR_MESSAGE = "An unknown error occurred."
NO_IMAGE_DATA_MESSAGE = "No image data found in the AI's response."


class StylemixError(Exception):
    """Base exception for all stylemix errors."""

    pass


class PreconditionError(StylemixError):
    """Raised when a required input is missing before any network call is made."""

    def __init__(self, message: str, field: str = "") -> None:
        """
        Initialize precondition error.

        Args:
            message: Error message
            field: Name of the input that failed the check (optional)
        """
        self.field = field
        super().__init__(message)


class MalformedInputError(StylemixError):
    """Raised when an image data URI cannot be parsed or decoded."""

    def __init__(self, message: str, field: str = "") -> None:
        self.field = field
        super().__init__(message)


class ConfigurationError(StylemixError):
    """Raised when there is a configuration problem."""

    pass


class ImageProcessingError(StylemixError):
    """Raised when a local image cannot be loaded or re-encoded."""

    def __init__(self, message: str, image_path: str = "") -> None:
        """
        Initialize image processing error.

        Args:
            message: Error message
            image_path: Path to the image that caused the error
        """
        self.image_path = image_path
        super().__init__(message)


class GenerationError(StylemixError):
    """Raised when the generative service fails to produce a usable result."""

    def __init__(self, message: str, status_code: int = 0, response: str = "") -> None:
        """
        Initialize generation error.

        Args:
            message: Error message
            status_code: HTTP status code reported by the provider (if applicable)
            response: Raw provider response or error text (if available)
        """
        self.status_code = status_code
        self.response = response
        super().__init__(message)


class QuotaExceededError(GenerationError):
    """Raised when the provider reports exhausted quota or missing billing."""

    def __init__(
        self, message: str = QUOTA_EXCEEDED_MESSAGE, status_code: int = 0, response: str = ""
    ) -> None:
        super().__init__(message, status_code=status_code, response=response)


class InvalidCredentialError(GenerationError):
    """Raised when the provider rejects the API key."""

    def __init__(
        self, message: str = INVALID_CREDENTIAL_MESSAGE, status_code: int = 0, response: str = ""
    ) -> None:
        super().__init__(message, status_code=status_code, response=response)


class NoImageDataError(GenerationError):
    """Raised when an image response carries no inline image part."""

    def __init__(self, message: str = NO_IMAGE_DATA_MESSAGE, response: str = "") -> None:
        super().__init__(message, response=response)


class UnknownError(StylemixError):
    """Raised when something that is not an exception reaches the classifier."""

    def __init__(self, message: str = UNKNOWN_ERROR_MESSAGE) -> None:
        super().__init__(message)
