"""
Gemini client construction.

Every service call builds its own client from the credential it was given, so
no client handle is shared between calls or between credentials.
"""

from google import genai
from google.genai import types

from stylemix.core.config import Config, get_config
from stylemix.utils.exceptions import PreconditionError


def create_client(credential: str, config: Config | None = None) -> genai.Client:
    """
    Create a Gemini client bound to one API key.

    Args:
        credential: The API key
        config: Optional config (request timeout); defaults to get_config()

    Raises:
        PreconditionError: If the credential is empty
    """
    if not credential or not credential.strip():
        raise PreconditionError("An API key is required.", field="credential")
    config = config or get_config()
    return genai.Client(
        api_key=credential.strip(),
        http_options=types.HttpOptions(timeout=config.request_timeout_ms),
    )
