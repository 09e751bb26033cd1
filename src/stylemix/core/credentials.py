"""
API key validation and local credential storage.

validate_credential() probes the service with one cheap completion request and
reports only a boolean. CredentialStore keeps a single key on disk between runs.
"""

import json
import os
from pathlib import Path

from stylemix.core.client import create_client
from stylemix.core.config import Config, get_config
from stylemix.core.prompts_loader import get_validation_probe
from stylemix.logging_config import get_logger, mask_credential
from stylemix.utils.exceptions import ConfigurationError

logger = get_logger(__name__)

# Fixed name under which the credential is stored
CREDENTIAL_KEY = "gemini-api-key"


def validate_credential(credential: str, config: Config | None = None) -> bool:
    """
    Check that an API key can make a request.

    Returns False immediately for an empty key, without any network call.
    Otherwise sends one minimal request; True if it succeeds, False on any failure.
    Never raises.
    """
    if not credential:
        return False
    try:
        config = config or get_config()
        client = create_client(credential, config)
        client.models.generate_content(
            model=config.validation_model,
            contents=get_validation_probe(),
        )
    except Exception as e:
        logger.warning("API key validation failed for %s: %s", mask_credential(credential), e)
        return False
    logger.info("API key %s validated", mask_credential(credential))
    return True


class CredentialStore:
    """A single API key persisted as JSON under a fixed key name."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path).expanduser()

    @classmethod
    def from_config(cls, config: Config | None = None) -> "CredentialStore":
        config = config or get_config()
        return cls(config.credential_store_path)

    def load(self) -> str | None:
        """Return the stored key, or None when nothing (or nothing readable) is stored."""
        if not self.path.is_file():
            return None
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable credential store %s: %s", self.path, e)
            return None
        value = data.get(CREDENTIAL_KEY) if isinstance(data, dict) else None
        return value if isinstance(value, str) and value else None

    def save(self, credential: str) -> None:
        """
        Store a key, replacing any previous one. The file is readable by the owner only.

        Raises:
            ConfigurationError: If the key is empty or the file cannot be written
        """
        if not credential:
            raise ConfigurationError("Refusing to store an empty API key.")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump({CREDENTIAL_KEY: credential}, f)
        except OSError as e:
            raise ConfigurationError(f"Could not write credential store {self.path}: {e}") from e
        logger.debug("Stored API key %s in %s", mask_credential(credential), self.path)

    def clear(self) -> None:
        """Remove the stored key. Missing files are fine."""
        self.path.unlink(missing_ok=True)
        logger.debug("Cleared credential store %s", self.path)
