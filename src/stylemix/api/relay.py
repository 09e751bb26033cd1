"""
HTTP relay that forwards Gemini requests using the server's own API key.

Browsers call POST /api/gemini-proxy with {action, model, contents, config};
the relay calls generate_content and returns {text} for "analyzeIdea" or
{imageData} (bare base64) for "generateImage". The key never leaves the server.

Status codes:
- 400: missing action/model/contents, unknown action, or a body that is not JSON
- 405: any method other than POST
- 500: upstream failure ({error, details}), no text for "analyzeIdea", or no image part
"""

from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from google.genai import types

from stylemix.core.client import create_client
from stylemix.core.config import Config, get_config
from stylemix.core.image_gen import find_first_image, response_parts
from stylemix.logging_config import get_logger
from stylemix.utils.exceptions import NO_IMAGE_DATA_MESSAGE

logger = get_logger(__name__)

RELAY_PATH = "/api/gemini-proxy"
ACTION_ANALYZE_IDEA = "analyzeIdea"
ACTION_GENERATE_IMAGE = "generateImage"
ACTIONS = frozenset({ACTION_ANALYZE_IDEA, ACTION_GENERATE_IMAGE})

MISSING_FIELDS_MESSAGE = "Missing required fields: action, model, contents"
INVALID_ACTION_MESSAGE = "Invalid action type"
UPSTREAM_FAILURE_MESSAGE = "Failed to process request"
NO_TEXT_DETAILS = "The AI's response contained no text."


def _error(status_code: int, message: str, **extra: Any) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message, **extra})


def _parse_config(raw: Any) -> types.GenerateContentConfig | None:
    """Accept the JSON config in either camelCase (as browsers send it) or snake_case."""
    if not raw:
        return None
    return types.GenerateContentConfig.model_validate(raw)


def create_app(config: Config | None = None) -> FastAPI:
    """
    Build the relay application.

    Args:
        config: Config holding the server key and timeout; defaults to get_config()
            resolved on each request
    """
    app = FastAPI(
        title="stylemix relay",
        description="Forwards prompt synthesis and image generation requests to Gemini.",
    )

    @app.api_route(RELAY_PATH, methods=["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"])
    async def gemini_proxy(request: Request) -> JSONResponse:
        if request.method != "POST":
            return _error(405, "Method not allowed")

        try:
            body = await request.json()
        except ValueError:
            return _error(400, MISSING_FIELDS_MESSAGE)
        if not isinstance(body, dict):
            return _error(400, MISSING_FIELDS_MESSAGE)

        action = body.get("action")
        model = body.get("model")
        contents = body.get("contents")
        if not action or not model or not contents:
            return _error(400, MISSING_FIELDS_MESSAGE)
        if action not in ACTIONS:
            return _error(400, INVALID_ACTION_MESSAGE)

        cfg = config or get_config()
        logger.info("Relay request action=%s model=%s", action, model)
        try:
            client = create_client(cfg.gemini_api_key or "", cfg)
            response = await client.aio.models.generate_content(
                model=model,
                contents=contents,
                config=_parse_config(body.get("config")),
            )
        except Exception as e:
            logger.error("Gemini API error for action=%s: %s", action, e)
            return _error(500, UPSTREAM_FAILURE_MESSAGE, details=str(e))

        if action == ACTION_ANALYZE_IDEA:
            text = response.text
            if text is None:
                logger.warning("Relay response for model=%s had no text part", model)
                return _error(500, UPSTREAM_FAILURE_MESSAGE, details=NO_TEXT_DETAILS)
            return JSONResponse(status_code=200, content={"text": text.strip()})

        asset = find_first_image(response_parts(response))
        if asset is None:
            logger.warning("Relay response for model=%s had no image part", model)
            return _error(500, NO_IMAGE_DATA_MESSAGE)
        return JSONResponse(status_code=200, content={"imageData": asset.data})

    return app


__all__ = ["create_app", "RELAY_PATH"]
