"""Generation lifecycle models: request, stages, results and errors."""

import base64
from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field

from .image import BodyData


class GenerationState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


class LoadingStage(str, Enum):
    """Simulated progress phases shown while a generation is in flight."""
    PREPARING = "preparing"
    UPLOADING = "uploading"
    PROCESSING = "processing"
    GENERATING = "generating"
    FINISHING = "finishing"

    @property
    def progress(self) -> int:
        return STAGE_PROGRESS[self]

    @property
    def message(self) -> str:
        return STAGE_MESSAGES[self]


STAGE_PROGRESS = {
    LoadingStage.PREPARING: 10,
    LoadingStage.UPLOADING: 25,
    LoadingStage.PROCESSING: 50,
    LoadingStage.GENERATING: 80,
    LoadingStage.FINISHING: 95,
}

STAGE_MESSAGES = {
    LoadingStage.PREPARING: "Preparing images for AI processing...",
    LoadingStage.UPLOADING: "Uploading images to the AI service...",
    LoadingStage.PROCESSING: "AI is analyzing your images...",
    LoadingStage.GENERATING: "Creating your personalized outfit...",
    LoadingStage.FINISHING: "Finalizing your generated image...",
}


class GenerationRequest(BaseModel):
    """Provider-agnostic request for one generation attempt. Never mutated."""

    model_config = ConfigDict(frozen=True)

    person_image: bytes = Field(repr=False)
    person_mime_type: str
    person_image_name: str
    clothing_image: bytes = Field(repr=False)
    clothing_mime_type: str
    clothing_image_name: str
    body_data: BodyData | None = None
    prompt: str

    @staticmethod
    def _data_url(data: bytes, mime_type: str) -> str:
        encoded = base64.b64encode(data).decode("ascii")
        return f"data:{mime_type};base64,{encoded}"

    @property
    def person_data_url(self) -> str:
        return self._data_url(self.person_image, self.person_mime_type)

    @property
    def clothing_data_url(self) -> str:
        return self._data_url(self.clothing_image, self.clothing_mime_type)


class OriginalImages(BaseModel):
    model_config = ConfigDict(frozen=True)

    person_image_name: str
    clothing_image_name: str


class ResultMetadata(BaseModel):
    """Provenance of a generated result. Not used in generation logic."""

    model_config = ConfigDict(frozen=True)

    model_used: str
    prompt_version: str
    original_images: OriginalImages


class GeneratedResult(BaseModel):
    """Presentation-ready output of one successful attempt."""

    model_config = ConfigDict(frozen=True)

    image_url: str = ""
    image_base64: str | None = None
    description: str | None = None
    processing_time: int = Field(ge=0, description="Milliseconds, measured by the caller")
    generated_at: datetime = Field(default_factory=datetime.now)
    metadata: ResultMetadata

    @computed_field
    @property
    def has_image(self) -> bool:
        return bool(self.image_url or self.image_base64)


class ErrorCode(str, Enum):
    VALIDATION_ERROR = "VALIDATION_ERROR"
    FILE_TOO_LARGE = "FILE_TOO_LARGE"
    INVALID_API_KEY = "INVALID_API_KEY"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    INSUFFICIENT_CREDITS = "INSUFFICIENT_CREDITS"
    PROCESSING_ERROR = "PROCESSING_ERROR"
    DOWNLOAD_ERROR = "DOWNLOAD_ERROR"
    UNEXPECTED_ERROR = "UNEXPECTED_ERROR"


class ErrorState(BaseModel):
    """User-facing description of a failed attempt."""

    model_config = ConfigDict(frozen=True)

    message: str
    code: ErrorCode
    status: int
    details: str | None = None
    is_retryable: bool
    timestamp: datetime = Field(default_factory=datetime.now)


class DownloadOptions(BaseModel):
    format: Literal["png", "jpeg"] = "png"
    quality: float | None = Field(default=None, ge=0.0, le=1.0)  # jpeg only
    filename: str | None = None

    @property
    def effective_quality(self) -> float:
        return 0.9 if self.quality is None else self.quality
