"""Shared test fixtures for the pasteup test suite."""

from __future__ import annotations

import pytest

from pasteup.config import PasteUpConfig
from pasteup.models import ImageBlob, UploadTarget

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + bytes(range(256)) * 4


@pytest.fixture
def config() -> PasteUpConfig:
    """Default test configuration pointing at a dummy HTTPS host."""
    return PasteUpConfig(
        endpoint_url="https://img.example.com/api/1/upload",
        api_key="test_key_1234",
    )


@pytest.fixture
def target(config: PasteUpConfig) -> UploadTarget:
    return config.target()


@pytest.fixture
def png_blob() -> ImageBlob:
    """A small PNG-looking blob with every byte value in it."""
    return ImageBlob(data=PNG_BYTES, filename="image.png", mime_type="image/png")
