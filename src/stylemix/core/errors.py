"""
Classification of service errors into user-actionable categories.

Structured provider status codes are consulted first; matching on the error
message is kept as the fallback for errors that carry no status.
"""

from typing import Any, NoReturn

from google.genai import errors as genai_errors

from stylemix.logging_config import get_logger
from stylemix.utils.exceptions import InvalidCredentialError, QuotaExceededError, UnknownError

logger = get_logger(__name__)

QUOTA_MARKERS = ("quota", "resource_exhausted", "billing")
INVALID_CREDENTIAL_MARKERS = ("api key not valid",)

QUOTA_STATUSES = frozenset({"RESOURCE_EXHAUSTED"})
QUOTA_CODES = frozenset({429})
INVALID_CREDENTIAL_REASON = "API_KEY_INVALID"


def _provider_fields(error: BaseException) -> tuple[int, str, str]:
    """Return (code, status, details text) from a provider error; zeros/empties otherwise."""
    if not isinstance(error, genai_errors.APIError):
        return 0, "", ""
    code: Any = getattr(error, "code", 0)
    status = getattr(error, "status", None) or ""
    details = getattr(error, "details", None)
    return (code if isinstance(code, int) else 0), str(status).upper(), str(details or "")


def is_quota_error(error: BaseException) -> bool:
    code, status, _ = _provider_fields(error)
    if code in QUOTA_CODES or status in QUOTA_STATUSES:
        return True
    message = str(error).lower()
    return any(marker in message for marker in QUOTA_MARKERS)


def is_invalid_credential_error(error: BaseException) -> bool:
    _, _, details = _provider_fields(error)
    if INVALID_CREDENTIAL_REASON in details:
        return True
    message = str(error).lower()
    return any(marker in message for marker in INVALID_CREDENTIAL_MARKERS)


def classify_error(raw: object) -> NoReturn:
    """
    Re-raise a failure as the category a user can act on.

    - quota / billing problems -> QuotaExceededError
    - rejected API key -> InvalidCredentialError
    - any other exception -> raised again unchanged
    - anything that is not an exception -> UnknownError

    Classified errors keep the original as __cause__.
    """
    if not isinstance(raw, BaseException):
        logger.debug("Classifying non-exception value of type %s", type(raw).__name__)
        raise UnknownError()

    code, _, _ = _provider_fields(raw)
    if is_quota_error(raw):
        logger.warning("Service reported quota or billing problem (code=%s)", code or "n/a")
        raise QuotaExceededError(status_code=code, response=str(raw)) from raw
    if is_invalid_credential_error(raw):
        logger.warning("Service rejected the API key (code=%s)", code or "n/a")
        raise InvalidCredentialError(status_code=code, response=str(raw)) from raw
    raise raw
