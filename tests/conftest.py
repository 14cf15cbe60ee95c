# Test fixtures and configuration
import asyncio
import sys
from pathlib import Path

import pytest

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from styles_outfit.config import StylesConfig, StageScheduleConfig
from styles_outfit.models import GatewayOutcome, GenerateOutfitData, RawError, UploadedImage


MINIMAL_PNG = bytes([
    0x89, 0x50, 0x4E, 0x47, 0x0D, 0x0A, 0x1A, 0x0A,  # PNG signature
    0x00, 0x00, 0x00, 0x0D, 0x49, 0x48, 0x44, 0x52,  # IHDR chunk
    0x00, 0x00, 0x00, 0x01, 0x00, 0x00, 0x00, 0x01,  # 1x1 dimensions
    0x08, 0x02, 0x00, 0x00, 0x00, 0x90, 0x77, 0x53,
    0xDE, 0x00, 0x00, 0x00, 0x0C, 0x49, 0x44, 0x41,  # IDAT chunk
    0x54, 0x08, 0xD7, 0x63, 0xF8, 0xCF, 0xC0, 0x00,
    0x00, 0x00, 0x03, 0x00, 0x01, 0x00, 0x05, 0xFE,
    0xD4, 0xAA, 0x00, 0x00, 0x00, 0x00, 0x49, 0x45,  # IEND chunk
    0x4E, 0x44, 0xAE, 0x42, 0x60, 0x82
])

JPEG_HEADER = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00"


class FakeGateway:
    """Records requests and replays canned outcomes.

    When ``release`` is set, ``send`` blocks until the event fires.
    """

    def __init__(self, outcomes=None, release=None, supports_image_output=False):
        self.outcomes = list(outcomes or [])
        self.release = release
        self.requests = []
        self.supports_image_output = supports_image_output

    async def send(self, request):
        self.requests.append(request)
        if self.release is not None:
            await self.release.wait()
        else:
            await asyncio.sleep(0)
        if len(self.outcomes) > 1:
            return self.outcomes.pop(0)
        return self.outcomes[0]


def success_outcome(description="A relaxed look with the navy blazer.", elapsed_ms=4200):
    return GatewayOutcome(
        response=GenerateOutfitData(description=description, processing_time=elapsed_ms),
        elapsed_ms=elapsed_ms,
    )


def error_outcome(status=None, provider_code=None, elapsed_ms=120, **flags):
    return GatewayOutcome(
        error=RawError(
            message=f"HTTP {status}" if status else "failure",
            status=status,
            provider_code=provider_code,
            **flags,
        ),
        elapsed_ms=elapsed_ms,
    )


@pytest.fixture
def minimal_png_bytes():
    """Minimal valid PNG image bytes."""
    return MINIMAL_PNG


@pytest.fixture
def person_image():
    """A 500 KB JPEG person photo."""
    data = JPEG_HEADER + b"\x00" * (500 * 1024 - len(JPEG_HEADER))
    return UploadedImage.from_bytes(data, "person.jpg")


@pytest.fixture
def clothing_image():
    """A 300 KB PNG clothing photo."""
    data = MINIMAL_PNG + b"\x00" * (300 * 1024 - len(MINIMAL_PNG))
    return UploadedImage.from_bytes(data, "blazer.png")


@pytest.fixture
def oversized_image():
    data = JPEG_HEADER + b"\x00" * (10 * 1024 * 1024 + 1 - len(JPEG_HEADER))
    return UploadedImage.from_bytes(data, "huge.jpg")


@pytest.fixture
def fast_config(tmp_path):
    """Config whose stage schedule runs 100x faster (0/10/20/80/150 ms)."""
    return StylesConfig(
        openrouter_api_key="sk-or-test",
        stages=StageScheduleConfig().scaled(0.01),
        download_dir=tmp_path / "downloads",
        body_data_path=tmp_path / "body_data.json",
    )


@pytest.fixture
def temp_image_file(tmp_path, minimal_png_bytes):
    """Create a temporary PNG file."""
    img_path = tmp_path / "test_image.png"
    img_path.write_bytes(minimal_png_bytes)
    return img_path
