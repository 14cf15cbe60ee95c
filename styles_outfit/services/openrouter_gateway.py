"""OpenRouter gateway for vision-language outfit generation."""

import time
from typing import Any

import httpx

from ..config import GenerationConfig, OpenRouterConfig
from ..logging import get_logger
from ..models import GatewayOutcome, GenerateOutfitData, GenerationRequest, RawError


log = get_logger(__name__)


class MalformedResponseError(ValueError):
    """The provider answered 2xx but the body is not a usable completion."""


class OpenRouterGateway:
    """Sends one generation request to OpenRouter and reports the outcome.

    The gateway never retries and never raises for provider or transport
    failures; every failure comes back as a ``RawError`` inside the outcome.
    Cancelling the awaiting task aborts the in-flight HTTP request.
    """

    def __init__(
        self,
        config: OpenRouterConfig,
        generation: GenerationConfig,
        api_key: str | None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config
        self.generation = generation
        self.api_key = api_key
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def supports_image_output(self) -> bool:
        """Whether results may carry image bytes/URL, or only a description."""
        return self.generation.image_output

    @property
    def client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self.config.timeout,
                transport=self._transport,
            )
        return self._client

    def has_credentials(self) -> bool:
        return bool(self.api_key and self.api_key.strip())

    async def check_connection(self) -> bool:
        """Verify OpenRouter is reachable."""
        try:
            response = await self.client.get(f"{self.config.base_url.rstrip('/')}/models")
            return response.status_code == 200
        except httpx.HTTPError:
            return False

    async def send(self, request: GenerationRequest) -> GatewayOutcome:
        """Run a single round trip for ``request``.

        Returns:
            GatewayOutcome with either the raw response or a RawError, plus the
            wall-clock duration in milliseconds.
        """
        started = time.perf_counter()

        def elapsed_ms() -> int:
            return max(0, int((time.perf_counter() - started) * 1000))

        if not self.has_credentials():
            log.warning("gateway.credentials_missing")
            return GatewayOutcome(
                error=RawError(
                    message="OpenRouter API key not configured",
                    credentials_missing=True,
                ),
                elapsed_ms=elapsed_ms(),
            )

        log.info(
            "gateway.dispatch",
            model=self.generation.model,
            person_bytes=len(request.person_image),
            clothing_bytes=len(request.clothing_image),
            image_output=self.supports_image_output,
        )

        try:
            response = await self.client.post(
                self.config.completions_url,
                json=self._build_payload(request),
                headers=self._headers(),
            )
        except httpx.TimeoutException as e:
            log.warning("gateway.timeout", elapsed_ms=elapsed_ms())
            return GatewayOutcome(
                error=RawError(
                    message="Request to OpenRouter timed out",
                    provider_code="timeout",
                    details=str(e) or type(e).__name__,
                ),
                elapsed_ms=elapsed_ms(),
            )
        except httpx.RequestError as e:
            log.warning("gateway.network_error", error=str(e), elapsed_ms=elapsed_ms())
            return GatewayOutcome(
                error=RawError(
                    message="Could not reach OpenRouter",
                    provider_code="network_error",
                    details=str(e) or type(e).__name__,
                ),
                elapsed_ms=elapsed_ms(),
            )

        duration = elapsed_ms()
        log.info("gateway.response", status=response.status_code, elapsed_ms=duration)

        if not response.is_success:
            return GatewayOutcome(error=self._error_from_response(response), elapsed_ms=duration)

        try:
            body = response.json()
        except ValueError as e:
            return GatewayOutcome(error=self._malformed_error(response, e), elapsed_ms=duration)

        if isinstance(body, dict) and isinstance(body.get("error"), dict) and not body.get("choices"):
            # OpenRouter may report provider failures inside a 200 body
            return GatewayOutcome(
                error=self._provider_error(body["error"], response),
                elapsed_ms=duration,
            )

        try:
            data = self._parse_completion(body, duration)
        except MalformedResponseError as e:
            return GatewayOutcome(error=self._malformed_error(response, e), elapsed_ms=duration)

        return GatewayOutcome(response=data, elapsed_ms=duration)

    def _headers(self) -> dict[str, str]:
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "X-Title": self.config.app_title,
        }
        if self.config.referer:
            headers["HTTP-Referer"] = self.config.referer
        return headers

    def _build_payload(self, request: GenerationRequest) -> dict[str, Any]:
        """Build the chat-completions body: prompt first, then person, then clothing."""
        payload: dict[str, Any] = {
            "model": self.generation.model,
            "messages": [
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": request.prompt},
                        {"type": "image_url", "image_url": {"url": request.person_data_url}},
                        {"type": "image_url", "image_url": {"url": request.clothing_data_url}},
                    ],
                }
            ],
        }
        if self.supports_image_output:
            payload["modalities"] = ["image", "text"]
        return payload

    def _parse_completion(self, body: Any, elapsed_ms: int) -> GenerateOutfitData:
        if not isinstance(body, dict):
            raise MalformedResponseError("Response body is not a JSON object")

        choices = body.get("choices")
        if not isinstance(choices, list) or not choices:
            raise MalformedResponseError("Response contains no choices")

        message = choices[0].get("message") if isinstance(choices[0], dict) else None
        if not isinstance(message, dict):
            raise MalformedResponseError("First choice has no message")

        description = self._message_text(message.get("content"))

        image_url = ""
        image_base64 = None
        if self.supports_image_output:
            image_url, image_base64 = self._message_image(message)

        if not description and not (image_url or image_base64):
            raise MalformedResponseError("Completion contains neither text nor image")

        return GenerateOutfitData(
            generated_image_url=image_url,
            generated_image_base64=image_base64,
            description=description or None,
            processing_time=elapsed_ms,
        )

    @staticmethod
    def _message_text(content: Any) -> str:
        if isinstance(content, str):
            return content.strip()
        if isinstance(content, list):
            parts = [
                part["text"]
                for part in content
                if isinstance(part, dict)
                and part.get("type") == "text"
                and isinstance(part.get("text"), str)
            ]
            return "".join(parts).strip()
        return ""

    @staticmethod
    def _message_image(message: dict[str, Any]) -> tuple[str, str | None]:
        """Extract the first returned image as (url, base64)."""
        images = message.get("images")
        if not isinstance(images, list):
            return "", None
        for image in images:
            image_url = image.get("image_url") if isinstance(image, dict) else None
            url = image_url.get("url") if isinstance(image_url, dict) else image_url
            if not isinstance(url, str) or not url:
                continue
            if url.startswith("data:"):
                _, sep, encoded = url.partition(",")
                if not sep or not encoded:
                    raise MalformedResponseError("Image data URL carries no payload")
                return "", encoded
            return url, None
        return "", None

    def _error_from_response(self, response: httpx.Response) -> RawError:
        """Map a non-2xx response, keeping whatever the provider told us."""
        try:
            body = response.json()
        except ValueError:
            body = None

        if isinstance(body, dict) and isinstance(body.get("error"), dict):
            return self._provider_error(body["error"], response)

        message = response.reason_phrase or f"HTTP {response.status_code}"
        log.warning("gateway.provider_error", status=response.status_code)
        return RawError(
            message=message,
            status=response.status_code,
            details=response.text[:500] or message,
        )

    @staticmethod
    def _provider_error(error: dict[str, Any], response: httpx.Response) -> RawError:
        """Build a RawError from an OpenRouter ``{"error": {...}}`` object.

        A numeric HTTP-like code in the body wins over the transport status,
        since errors raised mid-generation arrive with a 200.
        """
        code = error.get("code")
        status = response.status_code
        if isinstance(code, int) and 400 <= code <= 599:
            status = code
        message = error.get("message") or response.reason_phrase or f"HTTP {status}"

        log.warning(
            "gateway.provider_error",
            status=status,
            provider_code=code,
        )
        return RawError(
            message=message,
            status=status,
            provider_code=str(code) if code is not None else None,
            details=message,
        )

    @staticmethod
    def _malformed_error(response: httpx.Response, error: Exception) -> RawError:
        log.warning("gateway.malformed_response", error=str(error))
        return RawError(
            message="Malformed response from OpenRouter",
            status=response.status_code,
            provider_code="malformed_response",
            details=str(error)[:500] or response.text[:500],
        )

    async def close(self):
        """Close the HTTP client."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None
