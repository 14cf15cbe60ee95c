"""FastAPI server for the Styles outfit generator.

Receives multipart requests with:
- personImage: photo of the user
- clothingImage: photo of the clothing item
- bodyData: optional JSON string with body measurements
"""

import json

from fastapi import FastAPI, File, Form, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from styles_outfit import __version__
from styles_outfit.config import StylesConfig
from styles_outfit.logging import configure_logging, get_logger
from styles_outfit.models import BodyData, GenerateOutfitResponse, RawError, UploadedImage
from styles_outfit.prompts import build_request
from styles_outfit.services import OpenRouterGateway
from styles_outfit.utils import classify, to_api_error


log = get_logger(__name__)

app = FastAPI(
    title="Styles API",
    description="AI outfit visualization from a person photo and a clothing photo",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Initialized on first request
_config: StylesConfig | None = None
_gateway: OpenRouterGateway | None = None


def get_config() -> StylesConfig:
    global _config
    if _config is None:
        _config = StylesConfig()  # Loads from .env automatically via pydantic-settings
        configure_logging(_config.log_level)
    return _config


def get_gateway() -> OpenRouterGateway:
    """Get or create the gateway instance."""
    global _gateway
    if _gateway is None:
        config = get_config()
        _gateway = OpenRouterGateway(
            config=config.openrouter,
            generation=config.generation,
            api_key=config.openrouter_api_key,
        )
    return _gateway


def error_response(raw: RawError) -> JSONResponse:
    state = classify(raw)
    log.warning("generate_outfit.failed", code=state.code.value, status=state.status)
    return JSONResponse(
        to_api_error(state).model_dump(exclude_none=True),
        status_code=state.status,
    )


def parse_body_data(raw: str | None) -> BodyData | None:
    """Parse the optional bodyData field; malformed input is ignored."""
    if not raw:
        return None
    try:
        return BodyData.model_validate(json.loads(raw))
    except (json.JSONDecodeError, ValidationError) as e:
        log.info("generate_outfit.body_data_ignored", error=str(e))
        return None


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "Styles API", "version": __version__}


@app.get("/health")
async def health():
    """Detailed health check."""
    gateway = get_gateway()
    reachable = await gateway.check_connection()

    return {
        "status": "ok" if reachable and gateway.has_credentials() else "degraded",
        "openrouter": "connected" if reachable else "disconnected",
        "credentials": "configured" if gateway.has_credentials() else "missing",
        "image_output": gateway.supports_image_output,
    }


@app.post("/api/generate-outfit")
async def generate_outfit(
    personImage: UploadFile | None = File(None),
    clothingImage: UploadFile | None = File(None),
    bodyData: str | None = Form(None),
):
    """Generate an outfit visualization.

    Preflight checks run in classifier precedence order (credentials, both
    images, size) before anything is sent upstream.

    Returns:
        Success or failure envelope, with the classified HTTP status
    """
    try:
        config = get_config()
        gateway = get_gateway()

        person_bytes = await personImage.read() if personImage is not None else None
        clothing_bytes = await clothingImage.read() if clothingImage is not None else None
        max_size = config.upload.max_file_size

        preflight = RawError(
            message="Request rejected before generation",
            credentials_missing=not gateway.has_credentials(),
            images_missing=not person_bytes or not clothing_bytes,
            image_too_large=any(
                data is not None and len(data) > max_size
                for data in (person_bytes, clothing_bytes)
            ),
        )
        if (
            preflight.credentials_missing
            or preflight.images_missing
            or preflight.image_too_large
        ):
            return error_response(preflight)

        request = build_request(
            UploadedImage.from_bytes(
                person_bytes,
                personImage.filename or "person",
                personImage.content_type,
            ),
            UploadedImage.from_bytes(
                clothing_bytes,
                clothingImage.filename or "clothing",
                clothingImage.content_type,
            ),
            parse_body_data(bodyData),
        )

        outcome = await gateway.send(request)
        if not outcome.ok:
            return error_response(outcome.error)

        log.info("generate_outfit.succeeded", processing_time=outcome.elapsed_ms)
        envelope = GenerateOutfitResponse(data=outcome.response)
        return JSONResponse(envelope.model_dump(by_alias=True, exclude_none=True))

    except Exception as e:
        log.exception("generate_outfit.unexpected_error")
        return error_response(RawError(message=str(e), details=str(e)))


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
