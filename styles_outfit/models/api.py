"""Wire envelopes and raw gateway outcomes."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class GenerateOutfitData(BaseModel):
    """Raw successful payload returned by the generation capability."""

    model_config = ConfigDict(populate_by_name=True)

    generated_image_url: str = Field(default="", alias="generatedImageUrl")
    generated_image_base64: str | None = Field(default=None, alias="generatedImageBase64")
    description: str | None = None
    processing_time: int = Field(default=0, ge=0, alias="processingTime")


class GenerateOutfitResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: Literal[True] = True
    data: GenerateOutfitData
    message: str = "Outfit visualization generated successfully"


class ApiErrorBody(BaseModel):
    message: str
    code: str
    status: int
    details: str | None = None


class ApiError(BaseModel):
    success: Literal[False] = False
    error: ApiErrorBody


class RawError(BaseModel):
    """Structured failure signal handed to the error classifier.

    Condition flags may be combined; the classifier resolves them in
    precedence order.
    """

    message: str = ""
    status: int | None = None
    provider_code: str | None = None
    details: str | None = None

    credentials_missing: bool = False
    images_missing: bool = False
    invalid_image_type: bool = False
    image_too_large: bool = False


class GatewayOutcome(BaseModel):
    """Result of one gateway round trip. Exactly one of response/error is set."""

    response: GenerateOutfitData | None = None
    error: RawError | None = None
    elapsed_ms: int = Field(ge=0)

    @property
    def ok(self) -> bool:
        return self.response is not None
