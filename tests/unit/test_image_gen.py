"""Unit tests for image generation (result shape, response parsing, mocked API)."""

import base64
import io
from unittest.mock import MagicMock, patch

import pytest
from google.genai import types
from PIL import Image

from stylemix.core.image_gen import (
    ImageResult,
    _format_from_mime_type,
    find_first_image,
    generate_image,
    response_parts,
)
from stylemix.core.payload import ImageAsset, ImagePart, TextPart
from stylemix.utils.exceptions import (
    NO_IMAGE_DATA_MESSAGE,
    NoImageDataError,
    PreconditionError,
    QuotaExceededError,
)

_MINIMAL_JPEG_BUF = io.BytesIO()
Image.new("RGB", (1, 1), color=(0, 0, 0)).save(_MINIMAL_JPEG_BUF, format="JPEG")
MINIMAL_JPEG = _MINIMAL_JPEG_BUF.getvalue()


def _response(*parts: types.Part) -> types.GenerateContentResponse:
    return types.GenerateContentResponse(
        candidates=[types.Candidate(content=types.Content(role="model", parts=list(parts)))]
    )


def _client_returning(response) -> MagicMock:
    client = MagicMock()
    client.models.generate_content.return_value = response
    return client


@pytest.mark.unit
class TestImageResult:
    def test_decodes_payload(self, png_b64, png_bytes):
        r = ImageResult(
            data=png_b64,
            generation_time=1.0,
            model_used="m",
            prompt_used="p",
            had_subject=False,
        )
        assert r.format == "png"
        assert r.image_bytes == png_bytes
        assert r.image.size == (2, 2)
        assert r.to_data_uri() == f"data:image/png;base64,{png_b64}"

    def test_save(self, tmp_path, png_b64, png_bytes):
        r = ImageResult(png_b64, 0.1, "m", "p", False)
        out = r.save(tmp_path / "out.png")
        assert out.read_bytes() == png_bytes

    def test_format_from_mime_type(self):
        assert _format_from_mime_type("image/jpeg") == "jpeg"
        assert _format_from_mime_type("image/png") == "png"
        assert _format_from_mime_type("image/PNG; charset=utf-8") == "png"
        assert _format_from_mime_type("") == "png"
        assert _format_from_mime_type("text/plain") == "png"


@pytest.mark.unit
class TestResponseParsing:
    def test_inline_bytes_become_base64(self, png_bytes, png_b64):
        response = _response(
            types.Part.from_text(text="Here you go"),
            types.Part.from_bytes(data=png_bytes, mime_type="image/png"),
        )
        parts = response_parts(response)
        assert parts == [TextPart("Here you go"), ImagePart(ImageAsset("image/png", png_b64))]

    def test_no_candidates(self):
        assert response_parts(types.GenerateContentResponse(candidates=[])) == []
        assert response_parts(MagicMock(candidates=None)) == []

    def test_find_first_image_skips_non_images(self):
        parts = [
            TextPart("caption"),
            ImagePart(ImageAsset("application/pdf", "AAAA")),
            ImagePart(ImageAsset("image/jpeg", "first")),
            ImagePart(ImageAsset("image/png", "second")),
        ]
        assert find_first_image(parts) == ImageAsset("image/jpeg", "first")

    def test_find_first_image_none(self):
        assert find_first_image([TextPart("sorry")]) is None
        assert find_first_image([]) is None


@pytest.mark.unit
class TestGenerateImage:
    def test_empty_prompt(self, test_config):
        with pytest.raises(PreconditionError) as exc_info:
            generate_image("key", "   ", config=test_config)
        assert exc_info.value.field == "prompt"

    @patch("stylemix.core.image_gen.create_client")
    def test_returns_first_image(self, mock_create, test_config, png_b64, png_bytes):
        mock_create.return_value = _client_returning(
            _response(
                types.Part.from_text(text="ok"),
                types.Part.from_bytes(data=MINIMAL_JPEG, mime_type="image/jpeg"),
                types.Part.from_bytes(data=png_bytes, mime_type="image/png"),
            )
        )
        result = generate_image("key", "a cat", config=test_config)
        assert result.image_bytes == MINIMAL_JPEG
        assert result.mime_type == "image/jpeg"
        assert result.format == "jpeg"
        assert result.model_used == test_config.image_model
        assert result.prompt_used == "a cat"
        assert result.had_subject is False
        assert result.generation_time >= 0

    @patch("stylemix.core.image_gen.create_client")
    def test_subject_sent_before_prompt(self, mock_create, test_config, png_data_uri, png_bytes):
        client = _client_returning(
            _response(types.Part.from_bytes(data=png_bytes, mime_type="image/png"))
        )
        mock_create.return_value = client

        result = generate_image("key", "edit this", png_data_uri, config=test_config)

        kwargs = client.models.generate_content.call_args.kwargs
        assert kwargs["model"] == test_config.image_model
        parts = kwargs["contents"].parts
        assert parts[0].inline_data.data == png_bytes
        assert parts[1].text == "edit this"
        assert kwargs["config"].response_modalities == ["IMAGE"]
        assert kwargs["config"].candidate_count == 1
        assert result.had_subject is True

    @patch("stylemix.core.image_gen.create_client")
    def test_text_only_response(self, mock_create, test_config):
        mock_create.return_value = _client_returning(
            _response(types.Part.from_text(text="I cannot draw that"))
        )
        with pytest.raises(NoImageDataError) as exc_info:
            generate_image("key", "a cat", config=test_config)
        assert str(exc_info.value) == NO_IMAGE_DATA_MESSAGE

    @patch("stylemix.core.image_gen.create_client")
    def test_service_error_classified(self, mock_create, test_config):
        client = MagicMock()
        client.models.generate_content.side_effect = RuntimeError("RESOURCE_EXHAUSTED")
        mock_create.return_value = client
        with pytest.raises(QuotaExceededError):
            generate_image("key", "a cat", config=test_config)

    @patch("stylemix.core.image_gen.create_client")
    def test_result_payload_is_bare_base64(self, mock_create, test_config, png_bytes):
        mock_create.return_value = _client_returning(
            _response(types.Part.from_bytes(data=png_bytes, mime_type="image/png"))
        )
        result = generate_image("key", "a cat", config=test_config)
        assert not result.data.startswith("data:")
        assert base64.b64decode(result.data) == png_bytes
