"""Export of generated images to local files."""

import base64
import binascii
import io
from datetime import datetime
from pathlib import Path

import httpx
from PIL import Image, UnidentifiedImageError

from ..exceptions import DownloadError
from ..models import DownloadOptions, GeneratedResult


DEFAULT_PREFIX = "styles-outfit"


def generate_filename(prefix: str = DEFAULT_PREFIX, fmt: str = "png") -> str:
    """Timestamped filename, e.g. ``styles-outfit-2024-05-01-14-03-22.png``."""
    stamp = datetime.now().strftime("%Y-%m-%d-%H-%M-%S")
    return f"{prefix}-{stamp}.{fmt}"


def _decode_base64(data: str) -> bytes:
    if data.startswith("data:"):
        _, sep, data = data.partition(",")
        if not sep:
            raise DownloadError("Generated image data URL carries no payload")
    try:
        return base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DownloadError(f"Generated image is not valid base64: {e}") from e


async def fetch_image_bytes(result: GeneratedResult, timeout: float = 30.0) -> bytes:
    """Get the raw image bytes from a result (inline data first, then URL)."""
    if result.image_base64:
        return _decode_base64(result.image_base64)

    if result.image_url.startswith("data:"):
        return _decode_base64(result.image_url)

    if result.image_url:
        try:
            async with httpx.AsyncClient(timeout=timeout) as client:
                response = await client.get(result.image_url, follow_redirects=True)
                response.raise_for_status()
                return response.content
        except httpx.HTTPError as e:
            raise DownloadError(f"Could not fetch generated image: {e}") from e

    raise DownloadError("This result has no image to download")


def convert_image(image_bytes: bytes, options: DownloadOptions) -> bytes:
    """Re-encode image bytes as PNG or JPEG."""
    try:
        img = Image.open(io.BytesIO(image_bytes))
        output = io.BytesIO()
        if options.format == "jpeg":
            # JPEG has no alpha channel
            if img.mode in ("RGBA", "P", "LA"):
                img = img.convert("RGB")
            quality = max(1, min(95, int(options.effective_quality * 100)))
            img.save(output, format="JPEG", quality=quality)
        else:
            img.save(output, format="PNG")
        return output.getvalue()
    except (UnidentifiedImageError, OSError) as e:
        raise DownloadError(f"Generated image could not be converted: {e}") from e


async def export_result(
    result: GeneratedResult,
    options: DownloadOptions,
    directory: Path,
) -> Path:
    """Write the result image to ``directory`` and return its path.

    Raises:
        DownloadError: no image, unreadable image, or the file could not be written
    """
    image_bytes = await fetch_image_bytes(result)
    converted = convert_image(image_bytes, options)

    filename = options.filename or generate_filename(DEFAULT_PREFIX, options.format)
    if not Path(filename).suffix:
        filename = f"{filename}.{options.format}"

    path = directory / filename
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(converted)
    except OSError as e:
        raise DownloadError(f"Could not save image to {path}: {e}") from e
    return path
