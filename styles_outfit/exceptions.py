"""Exceptions raised by the generation session."""


class StylesOutfitError(Exception):
    """Base class for errors raised by styles_outfit."""


class InvalidTransitionError(StylesOutfitError):
    """An operation was requested from a state that does not allow it."""

    def __init__(self, operation: str, state: str):
        super().__init__(f"Cannot {operation} while generation state is '{state}'")
        self.operation = operation
        self.state = state


class GenerationInProgressError(InvalidTransitionError):
    """A generation attempt is already in flight for this session."""

    def __init__(self, operation: str = "start a new generation"):
        super().__init__(operation, "loading")


class DownloadError(StylesOutfitError):
    """The generated image could not be exported."""
