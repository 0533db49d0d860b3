"""
UV Texture Painter core
Annotation canvas, Gemini generation pipeline and session state
"""

from .annotations import Annotation, AnnotationStore
from .canvas import CanvasController, CanvasMode, PointerPosition, Surface
from .errors import (
    PainterError, DetectionError, GenerationError, EditError,
    ValidationError, BusyError
)
from .pipeline import TexturePipeline
from .state import GenerationState, PainterSession

__all__ = [
    'Annotation', 'AnnotationStore',
    'CanvasController', 'CanvasMode', 'PointerPosition', 'Surface',
    'PainterError', 'DetectionError', 'GenerationError', 'EditError',
    'ValidationError', 'BusyError',
    'TexturePipeline',
    'GenerationState', 'PainterSession',
]
