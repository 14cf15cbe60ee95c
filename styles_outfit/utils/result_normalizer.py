"""Converts raw gateway responses into presentation-ready results."""

from datetime import datetime

from ..config import GenerationConfig
from ..models import (
    GeneratedResult,
    GenerateOutfitData,
    OriginalImages,
    ResultMetadata,
)


def normalize(
    raw_response: GenerateOutfitData,
    person_image_name: str,
    clothing_image_name: str,
    elapsed_ms: int,
    generation: GenerationConfig | None = None,
) -> GeneratedResult:
    """Build a GeneratedResult stamped with timing and provenance.

    ``elapsed_ms`` is the caller's own measurement; the provider's
    processing time is not trusted.
    """
    generation = generation or GenerationConfig()
    return GeneratedResult(
        image_url=raw_response.generated_image_url or "",
        image_base64=raw_response.generated_image_base64 or None,
        description=raw_response.description,
        processing_time=max(0, elapsed_ms),
        generated_at=datetime.now(),
        metadata=ResultMetadata(
            model_used=generation.model_label,
            prompt_version=generation.prompt_version,
            original_images=OriginalImages(
                person_image_name=person_image_name,
                clothing_image_name=clothing_image_name,
            ),
        ),
    )


def format_processing_time(milliseconds: int) -> str:
    """Human-readable duration: ``850ms``, ``4s``, ``2m 5s``."""
    if milliseconds < 1000:
        return f"{milliseconds}ms"
    seconds = int(milliseconds / 1000 + 0.5)
    if seconds < 60:
        return f"{seconds}s"
    minutes, remaining = divmod(seconds, 60)
    return f"{minutes}m {remaining}s"
