"""Styles - AI outfit generator.

Validates a person photo and a clothing photo, asks a vision-language model
to describe (or render) the person wearing the clothing, and manages the
lifecycle of each attempt.
"""

from .config import StylesConfig, load_config
from .pipeline import GenerationOrchestrator, SessionView
from .services import OpenRouterGateway

__version__ = "1.0.0"

__all__ = [
    "GenerationOrchestrator",
    "OpenRouterGateway",
    "SessionView",
    "StylesConfig",
    "load_config",
]
