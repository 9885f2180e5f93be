"""
Tests for the Gemini try-on generation client.
"""

import base64
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from clothy.core.config import Settings
from clothy.core.errors import ConfigurationError, EmptyResponseError, TransportError
from clothy.services.encoder import encode_bytes
from clothy.services.tryon import (
    TRANSPORT_MESSAGE,
    TRYON_PROMPT,
    GenerationClient,
    PartKind,
    first_image,
    response_parts,
)
from tests.conftest import gemini_response, image_part, text_part


@pytest.fixture
def person():
    return encode_bytes(b"person-bytes", "person.jpg", "image/jpeg")


@pytest.fixture
def clothing():
    return encode_bytes(b"shirt-bytes", "shirt.png", "image/png")


@pytest.fixture
def mock_genai():
    """Mock google-genai; models.generate_content is what the client calls."""
    with patch("clothy.services.tryon.genai") as mock:
        sdk_client = MagicMock()
        mock.Client.return_value = sdk_client
        yield sdk_client


class TestResponseParts:

    def test_parts_are_tagged_in_order(self):
        response = gemini_response(
            text_part("here you go"),
            SimpleNamespace(inline_data=SimpleNamespace(data=b"%PDF", mime_type="application/pdf"), text=None),
            image_part(b"png-bytes"),
        )
        kinds = [p.kind for p in response_parts(response)]
        assert kinds == [PartKind.TEXT, PartKind.OTHER, PartKind.IMAGE]

    def test_image_without_data_is_not_an_image(self):
        parts = response_parts(gemini_response(image_part(b"")))
        assert parts[0].kind is PartKind.OTHER
        assert first_image(parts) is None

    def test_no_candidates(self):
        assert response_parts(SimpleNamespace(candidates=None)) == []
        assert response_parts(SimpleNamespace(candidates=[])) == []

    def test_first_image_wins(self):
        parts = response_parts(gemini_response(image_part(b"one"), image_part(b"two", "image/jpeg")))
        assert first_image(parts).data == b"one"

    def test_base64_text_payload_is_decoded(self):
        part = image_part(base64.b64encode(b"raw").decode())
        assert response_parts(gemini_response(part))[0].data == b"raw"

    def test_undecodable_text_payload_is_not_an_image(self):
        parts = response_parts(gemini_response(image_part("not*base64!")))
        assert parts[0].kind is PartKind.OTHER
        assert first_image(parts) is None


class TestGenerationClient:

    def test_from_settings(self):
        settings = Settings(GEMINI_API_KEY="k", TRYON_MODEL="some-model")
        client = GenerationClient.from_settings(settings)
        assert client.api_key == "k"
        assert client.model == "some-model"

    @pytest.mark.asyncio
    async def test_missing_key_is_configuration_error(self, mock_genai, person, clothing):
        client = GenerationClient(api_key="")
        with pytest.raises(ConfigurationError):
            await client.generate(person, clothing)
        mock_genai.models.generate_content.assert_not_called()

    @pytest.mark.asyncio
    async def test_success_returns_base64_image(self, mock_genai, person, clothing):
        mock_genai.models.generate_content.return_value = gemini_response(
            text_part("Sure!"), image_part(b"foo"),
        )

        result = await GenerationClient(api_key="test_key").generate(person, clothing)

        assert result == "Zm9v"
        mock_genai.models.generate_content.assert_called_once()

    @pytest.mark.asyncio
    async def test_request_shape(self, mock_genai, person, clothing):
        mock_genai.models.generate_content.return_value = gemini_response(image_part(b"foo"))

        await GenerationClient(api_key="test_key", model="m").generate(person, clothing)

        kwargs = mock_genai.models.generate_content.call_args.kwargs
        assert kwargs["model"] == "m"
        assert kwargs["config"].response_modalities == ["IMAGE"]
        person_part, clothing_part, prompt = kwargs["contents"]
        assert person_part.inline_data.mime_type == "image/jpeg"
        assert person_part.inline_data.data == b"person-bytes"
        assert clothing_part.inline_data.mime_type == "image/png"
        assert clothing_part.inline_data.data == b"shirt-bytes"
        assert prompt == TRYON_PROMPT

    @pytest.mark.asyncio
    async def test_text_only_response_is_empty_response(self, mock_genai, person, clothing):
        mock_genai.models.generate_content.return_value = gemini_response(
            text_part("I can't help with that."),
        )
        with pytest.raises(EmptyResponseError) as exc:
            await GenerationClient(api_key="test_key").generate(person, clothing)
        assert "did not return a valid image" in exc.value.message

    @pytest.mark.asyncio
    async def test_blocked_response_without_candidates(self, mock_genai, person, clothing):
        mock_genai.models.generate_content.return_value = SimpleNamespace(candidates=[])
        with pytest.raises(EmptyResponseError):
            await GenerationClient(api_key="test_key").generate(person, clothing)

    @pytest.mark.asyncio
    async def test_undecodable_image_payload_is_empty_response(self, mock_genai, person, clothing):
        mock_genai.models.generate_content.return_value = gemini_response(image_part("not*base64!"))
        with pytest.raises(EmptyResponseError):
            await GenerationClient(api_key="test_key").generate(person, clothing)

    @pytest.mark.asyncio
    async def test_sdk_failure_is_transport_error(self, mock_genai, person, clothing):
        mock_genai.models.generate_content.side_effect = ConnectionError("503 backend secret detail")

        with pytest.raises(TransportError) as exc:
            await GenerationClient(api_key="test_key").generate(person, clothing)

        assert exc.value.message == TRANSPORT_MESSAGE
        assert "secret detail" not in exc.value.message
        assert isinstance(exc.value.__cause__, ConnectionError)

    @pytest.mark.asyncio
    async def test_sdk_client_is_reused(self, mock_genai, person, clothing):
        mock_genai.models.generate_content.return_value = gemini_response(image_part(b"foo"))
        client = GenerationClient(api_key="test_key")

        await client.generate(person, clothing)
        await client.generate(person, clothing)

        assert mock_genai.models.generate_content.call_count == 2
        with patch("clothy.services.tryon.genai") as fresh:
            client._get_client()
            fresh.Client.assert_not_called()
