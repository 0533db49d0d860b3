"""
Session state for the texture painter

Holds the uploaded layout, the annotations, and the generation state, and
enforces the workflow order: upload (auto-detect) -> annotate -> generate -> edit.
Only one of detect/generate/edit may be in flight at a time.
"""

import threading
from dataclasses import dataclass, replace
from typing import Any, Dict, Optional

from .annotations import AnnotationStore
from .canvas import CanvasController
from .errors import BusyError, EditError, GenerationError, ValidationError

STYLE_REQUIRED_MESSAGE = "Please describe the texture style."
IMAGE_REQUIRED_MESSAGE = "Please upload a UV layout image first."
RESULT_REQUIRED_MESSAGE = "Generate a texture before requesting edits."
INSTRUCTION_REQUIRED_MESSAGE = "Please describe the edit."
GENERATION_FALLBACK_MESSAGE = "Texture generation failed"
EDIT_FALLBACK_MESSAGE = "Texture edit failed"


@dataclass(frozen=True)
class GenerationState:
    """Status of the generate/edit calls"""
    is_loading: bool = False
    result_image: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'is_loading': self.is_loading,
            'result_image': self.result_image,
            'error': self.error,
        }


# Pure transitions. Failures never touch result_image, so a failed edit keeps
# the previous texture and a failed first generation leaves it None.

def reset_generation() -> GenerationState:
    return GenerationState()


def generation_started(state: GenerationState) -> GenerationState:
    return replace(state, is_loading=True, error=None)


def generation_succeeded(state: GenerationState, result_image: str) -> GenerationState:
    return GenerationState(is_loading=False, result_image=result_image, error=None)


def generation_failed(state: GenerationState, message: str) -> GenerationState:
    return replace(state, is_loading=False, error=message)


def validation_failed(state: GenerationState, message: str) -> GenerationState:
    return replace(state, is_loading=False, error=message)


class PainterSession:
    """
    Single-user session coordinator

    Args:
        pipeline: Object exposing detect/generate/edit (see TexturePipeline)
    """

    def __init__(self, pipeline):
        self.pipeline = pipeline
        self.source_image: Optional[str] = None
        self.annotations = AnnotationStore()
        self.canvas = CanvasController(self.annotations, has_image=lambda: self.source_image is not None)
        self.generation = GenerationState()
        self.is_detecting = False
        self.style_prompt = ''
        self.edit_prompt = ''
        self._lock = threading.Lock()

    @property
    def is_busy(self) -> bool:
        return self.generation.is_loading or self.is_detecting

    def _claim_detection(self) -> None:
        with self._lock:
            if self.is_busy:
                raise BusyError("Another request is still in progress")
            self.is_detecting = True

    def upload(self, image: str) -> int:
        """
        Replace the source image and auto-detect body parts

        Args:
            image: Layout image as a data URI

        Returns:
            int: Number of detected parts added to the annotations
        """
        self._claim_detection()
        try:
            self.source_image = image
            self.canvas.reset()
            self.annotations.clear()
            self.generation = reset_generation()
            self.edit_prompt = ''

            detected = self.pipeline.detect(image)
            if detected:
                self.annotations.extend(detected)
            return len(detected)
        finally:
            self.is_detecting = False

    def generate(self, style_prompt: str) -> str:
        """
        Generate a texture from the current layout and annotations

        Raises:
            BusyError: Another call is in flight
            ValidationError: No image or blank style; nothing is sent
            GenerationError: The service failed; the previous result is kept
        """
        with self._lock:
            if self.is_busy:
                raise BusyError("Another request is still in progress")
            self.style_prompt = style_prompt or ''
            if self.source_image is None:
                self.generation = validation_failed(self.generation, IMAGE_REQUIRED_MESSAGE)
                raise ValidationError(IMAGE_REQUIRED_MESSAGE)
            if not self.style_prompt.strip():
                self.generation = validation_failed(self.generation, STYLE_REQUIRED_MESSAGE)
                raise ValidationError(STYLE_REQUIRED_MESSAGE)
            self.generation = generation_started(self.generation)

        try:
            result = self.pipeline.generate(self.source_image, self.style_prompt, list(self.annotations))
        except GenerationError as e:
            self.generation = generation_failed(self.generation, e.message or GENERATION_FALLBACK_MESSAGE)
            raise
        except Exception as e:
            self.generation = generation_failed(self.generation, str(e) or GENERATION_FALLBACK_MESSAGE)
            raise GenerationError(str(e) or GENERATION_FALLBACK_MESSAGE) from e

        self.generation = generation_succeeded(self.generation, result)
        return result

    def edit(self, instruction: str) -> str:
        """
        Apply a follow-up edit to the current result

        Raises:
            BusyError: Another call is in flight
            ValidationError: No result yet or blank instruction
            EditError: The service failed; the previous result is kept
        """
        with self._lock:
            if self.is_busy:
                raise BusyError("Another request is still in progress")
            self.edit_prompt = instruction or ''
            if self.generation.result_image is None:
                self.generation = validation_failed(self.generation, RESULT_REQUIRED_MESSAGE)
                raise ValidationError(RESULT_REQUIRED_MESSAGE)
            if not self.edit_prompt.strip():
                self.generation = validation_failed(self.generation, INSTRUCTION_REQUIRED_MESSAGE)
                raise ValidationError(INSTRUCTION_REQUIRED_MESSAGE)
            self.generation = generation_started(self.generation)
            current = self.generation.result_image

        try:
            result = self.pipeline.edit(current, self.edit_prompt)
        except GenerationError as e:
            self.generation = generation_failed(self.generation, e.message or EDIT_FALLBACK_MESSAGE)
            raise
        except Exception as e:
            self.generation = generation_failed(self.generation, str(e) or EDIT_FALLBACK_MESSAGE)
            raise EditError(str(e) or EDIT_FALLBACK_MESSAGE) from e

        self.generation = generation_succeeded(self.generation, result)
        self.edit_prompt = ''
        return result

    def snapshot(self, include_images: bool = True) -> Dict[str, Any]:
        generation = self.generation.to_dict()
        if not include_images:
            generation['result_image'] = generation['result_image'] is not None
        return {
            'has_image': self.source_image is not None,
            'source_image': self.source_image if include_images else None,
            'is_detecting': self.is_detecting,
            'annotations': self.annotations.to_list(),
            'canvas': self.canvas.to_dict(),
            'generation': generation,
            'style_prompt': self.style_prompt,
            'edit_prompt': self.edit_prompt,
        }
