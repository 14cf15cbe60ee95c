"""Checks uploaded images against type and size constraints."""

from dataclasses import dataclass
from typing import Literal

from ..config import UploadConfig
from ..models import UploadedImage


FileValidationError = Literal["no-file-selected", "invalid-file-type", "file-too-large"]

DEFAULT_UPLOAD_CONFIG = UploadConfig()


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    error: FileValidationError | None = None


def validate_image(
    image: UploadedImage | None,
    config: UploadConfig = DEFAULT_UPLOAD_CONFIG,
) -> ValidationResult:
    """Validate a single image. Pure, never touches the network."""
    if image is None:
        return ValidationResult(False, "no-file-selected")

    if image.mime_type not in config.supported_types:
        return ValidationResult(False, "invalid-file-type")

    if image.size > config.max_file_size:
        return ValidationResult(False, "file-too-large")

    return ValidationResult(True)


def validate_pair(
    person_image: UploadedImage | None,
    clothing_image: UploadedImage | None,
    config: UploadConfig = DEFAULT_UPLOAD_CONFIG,
) -> tuple[ValidationResult, ValidationResult]:
    """Validate the person and clothing images independently."""
    return validate_image(person_image, config), validate_image(clothing_image, config)
