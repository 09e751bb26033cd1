"""Unit tests for the HTTP relay (mocked Gemini client)."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient
from google.genai import types

from stylemix.api.relay import RELAY_PATH, create_app
from stylemix.core.config import Config


def _image_response(*parts: types.Part) -> types.GenerateContentResponse:
    return types.GenerateContentResponse(
        candidates=[types.Candidate(content=types.Content(role="model", parts=list(parts)))]
    )


@pytest.fixture
def relay_config() -> Config:
    return Config(gemini_api_key="server-key")


@pytest.fixture
def mock_client():
    with patch("stylemix.api.relay.create_client") as mock_create:
        client = MagicMock()
        client.aio.models.generate_content = AsyncMock()
        mock_create.return_value = client
        yield client


@pytest.fixture
def http(relay_config) -> TestClient:
    return TestClient(create_app(relay_config))


def _body(**overrides):
    body = {
        "action": "analyzeIdea",
        "model": "gemini-2.5-pro",
        "contents": {"parts": [{"text": "hello"}]},
    }
    body.update(overrides)
    return body


@pytest.mark.unit
class TestRelayValidation:
    @pytest.mark.parametrize("method", ["get", "put", "delete"])
    def test_other_methods_405(self, http, mock_client, method):
        response = getattr(http, method)(RELAY_PATH)
        assert response.status_code == 405
        assert response.json() == {"error": "Method not allowed"}
        mock_client.aio.models.generate_content.assert_not_called()

    @pytest.mark.parametrize("missing", ["action", "model", "contents"])
    def test_missing_fields_400(self, http, mock_client, missing):
        body = _body()
        del body[missing]
        response = http.post(RELAY_PATH, json=body)
        assert response.status_code == 400
        assert response.json() == {"error": "Missing required fields: action, model, contents"}
        mock_client.aio.models.generate_content.assert_not_called()

    def test_invalid_action_rejected_before_upstream(self, http, mock_client):
        response = http.post(RELAY_PATH, json=_body(action="deleteEverything"))
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid action type"}
        mock_client.aio.models.generate_content.assert_not_called()

    def test_non_json_body_400(self, http, mock_client):
        response = http.post(RELAY_PATH, content=b"not json", headers={"content-type": "application/json"})
        assert response.status_code == 400


@pytest.mark.unit
class TestRelayForwarding:
    def test_analyze_idea_returns_trimmed_text(self, http, mock_client):
        mock_client.aio.models.generate_content.return_value = MagicMock(text="  a detailed prompt \n")
        response = http.post(RELAY_PATH, json=_body())
        assert response.status_code == 200
        assert response.json() == {"text": "a detailed prompt"}

    def test_analyze_idea_without_text_is_upstream_failure(self, http, mock_client):
        mock_client.aio.models.generate_content.return_value = MagicMock(text=None)
        response = http.post(RELAY_PATH, json=_body())
        assert response.status_code == 500
        assert response.json() == {
            "error": "Failed to process request",
            "details": "The AI's response contained no text.",
        }

    def test_request_forwarded_with_config(self, http, mock_client):
        mock_client.aio.models.generate_content.return_value = MagicMock(text="ok")
        http.post(
            RELAY_PATH,
            json=_body(config={"systemInstruction": "be brief", "temperature": 0.8}),
        )
        kwargs = mock_client.aio.models.generate_content.call_args.kwargs
        assert kwargs["model"] == "gemini-2.5-pro"
        assert kwargs["contents"] == {"parts": [{"text": "hello"}]}
        assert isinstance(kwargs["config"], types.GenerateContentConfig)
        assert kwargs["config"].temperature == 0.8
        assert kwargs["config"].system_instruction == "be brief"

    def test_server_key_used(self, http, mock_client):
        mock_client.aio.models.generate_content.return_value = MagicMock(text="ok")
        with patch("stylemix.api.relay.create_client") as mock_create:
            mock_create.return_value = mock_client
            http.post(RELAY_PATH, json=_body())
        assert mock_create.call_args.args[0] == "server-key"

    def test_generate_image_returns_bare_base64(self, http, mock_client, png_bytes, png_b64):
        mock_client.aio.models.generate_content.return_value = _image_response(
            types.Part.from_text(text="here"),
            types.Part.from_bytes(data=png_bytes, mime_type="image/png"),
        )
        response = http.post(RELAY_PATH, json=_body(action="generateImage"))
        assert response.status_code == 200
        assert response.json() == {"imageData": png_b64}

    def test_generate_image_without_image_part(self, http, mock_client):
        mock_client.aio.models.generate_content.return_value = _image_response(
            types.Part.from_text(text="no can do")
        )
        response = http.post(RELAY_PATH, json=_body(action="generateImage"))
        assert response.status_code == 500
        assert response.json() == {"error": "No image data found in the AI's response."}

    def test_upstream_failure_500(self, http, mock_client):
        mock_client.aio.models.generate_content.side_effect = RuntimeError("upstream exploded")
        response = http.post(RELAY_PATH, json=_body())
        assert response.status_code == 500
        assert response.json() == {"error": "Failed to process request", "details": "upstream exploded"}

    def test_missing_server_key_is_upstream_failure(self, mock_client):
        http = TestClient(create_app(Config(gemini_api_key="")))
        with patch("stylemix.api.relay.create_client", side_effect=ValueError("no key")):
            response = http.post(RELAY_PATH, json=_body())
        assert response.status_code == 500
        assert response.json()["error"] == "Failed to process request"
