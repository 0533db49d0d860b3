"""
Exceptions raised by the painter core
"""


class PainterError(Exception):
    """Base class for painter errors. `message` is safe to show to the user."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class DetectionError(PainterError):
    """Raised inside the pipeline when part detection fails; never leaves detect()."""


class GenerationError(PainterError):
    """Texture generation failed on the service side or returned no image."""


class EditError(GenerationError):
    """Editing an existing texture failed."""


class ValidationError(PainterError):
    """A request was rejected before any network call."""


class BusyError(PainterError):
    """Another detect/generate/edit call is still in flight."""
