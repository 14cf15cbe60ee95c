"""Maps raw failure signals into the closed error taxonomy.

Classification is a total function over structured data: a ``RawError``
(condition flags, numeric status, provider error code) or an API error
envelope. Conditions are evaluated in a fixed precedence order so that
simultaneous failures always resolve the same way:

1. missing credentials        -> INVALID_API_KEY      500
2. image missing / wrong type -> VALIDATION_ERROR     400
3. image over the size limit  -> FILE_TOO_LARGE       400
4. upstream rate limiting     -> RATE_LIMIT_EXCEEDED  429
5. upstream auth rejection    -> INVALID_API_KEY      401
6. insufficient credits       -> INSUFFICIENT_CREDITS 402
7. anything else              -> PROCESSING_ERROR     500
"""

from typing import Any

from ..models import ApiError, ErrorCode, ErrorState, RawError


NON_RETRYABLE_CODES = frozenset({
    ErrorCode.INVALID_API_KEY,
    ErrorCode.INSUFFICIENT_CREDITS,
    ErrorCode.VALIDATION_ERROR,
    ErrorCode.FILE_TOO_LARGE,
})

RATE_LIMIT_PROVIDER_CODES = {"429", "rate_limit_exceeded", "rate_limited"}
AUTH_PROVIDER_CODES = {"401", "invalid_api_key", "unauthorized"}
CREDITS_PROVIDER_CODES = {"402", "insufficient_credits", "insufficient_quota"}

DEFAULT_MESSAGES = {
    ErrorCode.VALIDATION_ERROR: "Both person image and clothing image are required.",
    ErrorCode.FILE_TOO_LARGE: "Image files must be less than 10MB.",
    ErrorCode.RATE_LIMIT_EXCEEDED: "Rate limit exceeded. Please try again later.",
    ErrorCode.INSUFFICIENT_CREDITS: "Insufficient credits on the OpenRouter account.",
    ErrorCode.PROCESSING_ERROR: "Failed to generate outfit visualization.",
    ErrorCode.DOWNLOAD_ERROR: "Failed to download the image. Please try again.",
    ErrorCode.UNEXPECTED_ERROR: (
        "An unexpected error occurred while generating your outfit. Please try again."
    ),
}

MISSING_KEY_MESSAGE = (
    "OpenRouter API key not configured. "
    "Please add OPENROUTER_API_KEY to your environment variables."
)
REJECTED_KEY_MESSAGE = "Invalid OpenRouter API key."
INVALID_TYPE_MESSAGE = "Images must be JPEG, PNG or WebP files."

CATEGORIES = {
    ErrorCode.INVALID_API_KEY: "Configuration Error",
    ErrorCode.INSUFFICIENT_CREDITS: "Configuration Error",
    ErrorCode.RATE_LIMIT_EXCEEDED: "Rate Limit Error",
    ErrorCode.VALIDATION_ERROR: "Validation Error",
    ErrorCode.FILE_TOO_LARGE: "Validation Error",
    ErrorCode.DOWNLOAD_ERROR: "Download Error",
}

SUGGESTIONS = {
    ErrorCode.INVALID_API_KEY: "Please check your OpenRouter API key in the .env file.",
    ErrorCode.INSUFFICIENT_CREDITS: "Please add credits to your OpenRouter account.",
    ErrorCode.RATE_LIMIT_EXCEEDED: "Please wait a few minutes before trying again.",
    ErrorCode.VALIDATION_ERROR: "Please upload both a person photo and a clothing item.",
    ErrorCode.FILE_TOO_LARGE: "Please choose images smaller than 10MB.",
}


def is_retryable(code: ErrorCode) -> bool:
    """Retryability depends on the code alone, never on status or message."""
    return code not in NON_RETRYABLE_CODES


def error_category(code: ErrorCode) -> str:
    return CATEGORIES.get(code, "Processing Error")


def suggested_action(code: ErrorCode) -> str:
    return SUGGESTIONS.get(
        code, "Please try again. If the problem persists, check your setup."
    )


def make_error_state(
    code: ErrorCode,
    status: int,
    message: str | None = None,
    details: str | None = None,
) -> ErrorState:
    return ErrorState(
        message=message or DEFAULT_MESSAGES.get(code, DEFAULT_MESSAGES[ErrorCode.PROCESSING_ERROR]),
        code=code,
        status=status,
        details=details,
        is_retryable=is_retryable(code),
    )


def _provider_code(raw: RawError) -> str:
    return (raw.provider_code or "").strip().lower()


def classify_raw_error(raw: RawError) -> ErrorState:
    """Resolve a structured gateway or preflight failure."""
    provider_code = _provider_code(raw)
    details = raw.details or raw.message or None

    if raw.credentials_missing:
        return make_error_state(ErrorCode.INVALID_API_KEY, 500, MISSING_KEY_MESSAGE)

    if raw.images_missing:
        return make_error_state(ErrorCode.VALIDATION_ERROR, 400, details=raw.details)

    if raw.invalid_image_type:
        return make_error_state(
            ErrorCode.VALIDATION_ERROR, 400, INVALID_TYPE_MESSAGE, details=raw.details
        )

    if raw.image_too_large:
        return make_error_state(ErrorCode.FILE_TOO_LARGE, 400, details=raw.details)

    if raw.status == 429 or provider_code in RATE_LIMIT_PROVIDER_CODES:
        return make_error_state(ErrorCode.RATE_LIMIT_EXCEEDED, 429, details=details)

    if raw.status == 401 or provider_code in AUTH_PROVIDER_CODES:
        return make_error_state(
            ErrorCode.INVALID_API_KEY, 401, REJECTED_KEY_MESSAGE, details=details
        )

    if raw.status == 402 or provider_code in CREDITS_PROVIDER_CODES:
        return make_error_state(ErrorCode.INSUFFICIENT_CREDITS, 402, details=details)

    if raw.status is not None and details:
        details = f"HTTP {raw.status}: {details}"
    return make_error_state(ErrorCode.PROCESSING_ERROR, 500, details=details)


def classify_api_error(payload: ApiError | dict[str, Any]) -> ErrorState:
    """Convert a ``{success: false, error: {...}}`` envelope into an ErrorState.

    The envelope's code is trusted when it belongs to the taxonomy;
    anything else becomes UNEXPECTED_ERROR.
    """
    if isinstance(payload, ApiError):
        body: dict[str, Any] = payload.error.model_dump()
    else:
        body = payload.get("error") or {}

    try:
        code = ErrorCode(body.get("code"))
    except ValueError:
        code = ErrorCode.UNEXPECTED_ERROR

    status = body.get("status")
    if not isinstance(status, int):
        status = 500

    return make_error_state(
        code,
        status,
        message=body.get("message") or "An unknown error occurred",
        details=body.get("details"),
    )


def classify(error: RawError | ApiError | dict[str, Any]) -> ErrorState:
    """Classify any supported failure shape."""
    if isinstance(error, RawError):
        return classify_raw_error(error)
    return classify_api_error(error)


def to_api_error(state: ErrorState) -> ApiError:
    """Render an ErrorState as the failure envelope."""
    return ApiError.model_validate({
        "error": {
            "message": state.message,
            "code": state.code.value,
            "status": state.status,
            "details": state.details,
        }
    })
