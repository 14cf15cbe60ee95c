"""Validation, classification, normalization and persistence helpers."""

from .image_validator import ValidationResult, validate_image, validate_pair
from .error_classifier import (
    classify,
    classify_api_error,
    classify_raw_error,
    error_category,
    is_retryable,
    make_error_state,
    suggested_action,
    to_api_error,
)
from .result_normalizer import format_processing_time, normalize
from .body_data_store import BODY_DATA_KEY, BodyDataStore
from .download import export_result, generate_filename

__all__ = [
    "ValidationResult",
    "validate_image",
    "validate_pair",
    "classify",
    "classify_api_error",
    "classify_raw_error",
    "error_category",
    "is_retryable",
    "make_error_state",
    "suggested_action",
    "to_api_error",
    "format_processing_time",
    "normalize",
    "BODY_DATA_KEY",
    "BodyDataStore",
    "export_result",
    "generate_filename",
]
