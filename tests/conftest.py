"""
Shared fixtures for the try-on tests.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from clothy.services.workflow import WorkflowController


class FakeUpload:
    """Stand-in for fastapi.UploadFile: async read(), filename, content_type."""

    def __init__(self, data: bytes, filename: str, content_type: str = None, error: Exception = None):
        self.data = data
        self.filename = filename
        self.content_type = content_type
        self.error = error

    async def read(self) -> bytes:
        if self.error is not None:
            raise self.error
        return self.data


def image_part(data: bytes, mime_type: str = "image/png"):
    return SimpleNamespace(inline_data=SimpleNamespace(data=data, mime_type=mime_type), text=None)


def text_part(text: str):
    return SimpleNamespace(inline_data=None, text=text)


def gemini_response(*parts):
    return SimpleNamespace(
        candidates=[SimpleNamespace(content=SimpleNamespace(parts=list(parts)))]
    )


@pytest.fixture
def person_upload():
    return FakeUpload(b"\xff\xd8\xffperson-jpeg-bytes", "person.jpg", "image/jpeg")


@pytest.fixture
def shirt_upload():
    return FakeUpload(b"\x89PNGshirt-png-bytes", "shirt.png", "image/png")


@pytest.fixture
def mock_client():
    """GenerationClient double returning base64 "foo"."""
    client = MagicMock()
    client.generate = AsyncMock(return_value="Zm9v")
    return client


@pytest.fixture
def controller(mock_client):
    return WorkflowController(client=mock_client)
