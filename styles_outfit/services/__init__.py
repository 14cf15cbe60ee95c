"""External service clients."""

from typing import Protocol

from ..models import GatewayOutcome, GenerationRequest
from .openrouter_gateway import MalformedResponseError, OpenRouterGateway


class GenerationGateway(Protocol):
    """Anything that can turn a GenerationRequest into a GatewayOutcome."""

    @property
    def supports_image_output(self) -> bool: ...

    async def send(self, request: GenerationRequest) -> GatewayOutcome: ...


__all__ = [
    "GenerationGateway",
    "MalformedResponseError",
    "OpenRouterGateway",
]
