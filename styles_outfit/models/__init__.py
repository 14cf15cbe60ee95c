"""Data models for the Styles outfit generator."""

from .image import BodyData, UploadedImage, sniff_mime_type
from .generation import (
    DownloadOptions,
    ErrorCode,
    ErrorState,
    GeneratedResult,
    GenerationRequest,
    GenerationState,
    LoadingStage,
    OriginalImages,
    ResultMetadata,
)
from .api import (
    ApiError,
    ApiErrorBody,
    GatewayOutcome,
    GenerateOutfitData,
    GenerateOutfitResponse,
    RawError,
)

__all__ = [
    "BodyData",
    "UploadedImage",
    "sniff_mime_type",
    "DownloadOptions",
    "ErrorCode",
    "ErrorState",
    "GeneratedResult",
    "GenerationRequest",
    "GenerationState",
    "LoadingStage",
    "OriginalImages",
    "ResultMetadata",
    "ApiError",
    "ApiErrorBody",
    "GatewayOutcome",
    "GenerateOutfitData",
    "GenerateOutfitResponse",
    "RawError",
]
