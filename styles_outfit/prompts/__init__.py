"""Prompt and request construction."""

from .request_builder import NOT_PROVIDED, build_prompt, build_request

__all__ = [
    "NOT_PROVIDED",
    "build_prompt",
    "build_request",
]
