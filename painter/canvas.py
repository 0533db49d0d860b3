"""
Annotation Canvas Controller
Turns pointer gestures on the layout preview into annotation edits.

The controller is a small state machine:

    IDLE --surface click--> PLACING_PENDING --commit/cancel--> IDLE
    IDLE / PLACING_PENDING --pointer down on pin--> DRAGGING --pointer up--> IDLE

Pointer-move handling is bound when DRAGGING is entered and unbound when it
is left, so moves outside a drag gesture never touch the store.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Any, Optional, Tuple

from .annotations import COORD_MAX, COORD_MIN, Annotation, AnnotationStore, clamp_percent


class CanvasMode(Enum):
    IDLE = 'idle'
    PLACING_PENDING = 'placing_pending'
    DRAGGING = 'dragging'


@dataclass(frozen=True)
class PointerPosition:
    """Pointer location in client (page) pixels"""
    x: float
    y: float


@dataclass(frozen=True)
class Surface:
    """Bounding rectangle of the rendered layout image, in client pixels"""
    left: float
    top: float
    width: float
    height: float

    def __post_init__(self):
        if not all(math.isfinite(v) for v in (self.left, self.top, self.width, self.height)):
            raise ValueError("Surface bounds must be finite numbers")
        if self.width <= 0 or self.height <= 0:
            raise ValueError("Surface width and height must be positive")

    def normalize(self, pointer: PointerPosition) -> Tuple[float, float]:
        """Convert client pixels to percentages of the surface, unclamped."""
        x = (pointer.x - self.left) / self.width * 100
        y = (pointer.y - self.top) / self.height * 100
        return x, y

    def normalize_clamped(self, pointer: PointerPosition) -> Tuple[float, float]:
        x, y = self.normalize(pointer)
        return clamp_percent(x), clamp_percent(y)


class CanvasController:
    """
    Pointer-driven editing of an AnnotationStore

    Args:
        store: The annotations being edited
        has_image: Callable reporting whether a source image is loaded
    """

    def __init__(self, store: AnnotationStore, has_image: Callable[[], bool] = lambda: True):
        self.store = store
        self._has_image = has_image
        self.mode = CanvasMode.IDLE
        self.pending: Optional[Tuple[float, float]] = None
        self.pending_label = ''
        self.dragging_id: Optional[str] = None
        self._move_handler: Optional[Callable[[PointerPosition, Surface], None]] = None

    # -- pending placement --

    def surface_click(self, pointer: PointerPosition, surface: Surface) -> bool:
        """
        Open a pending annotation at the clicked spot. Clicks that land
        outside the surface are ignored.

        Returns:
            bool: True if a pending annotation was opened
        """
        if self.mode is CanvasMode.DRAGGING or not self._has_image():
            return False
        x, y = surface.normalize(pointer)
        if not (COORD_MIN <= x <= COORD_MAX and COORD_MIN <= y <= COORD_MAX):
            return False
        self.pending = (x, y)
        self.mode = CanvasMode.PLACING_PENDING
        return True

    def type_label(self, text: str) -> None:
        if self.pending is not None:
            self.pending_label = text

    def commit_pending(self, label: Optional[str] = None) -> Optional[Annotation]:
        """
        Turn the pending placement into an Annotation

        Args:
            label: Label to use; defaults to the label typed so far

        Returns:
            Annotation: The new annotation, or None if nothing was committed
        """
        if self.pending is None:
            return None
        text = (self.pending_label if label is None else label).strip()
        if not text:
            return None

        x, y = self.pending
        annotation = self.store.add(Annotation(x=x, y=y, label=text))
        self._clear_pending()
        return annotation

    def cancel_pending(self) -> None:
        self._clear_pending()

    def _clear_pending(self) -> None:
        self.pending = None
        self.pending_label = ''
        if self.mode is CanvasMode.PLACING_PENDING:
            self.mode = CanvasMode.IDLE

    # -- dragging --

    def begin_drag(self, annotation_id: str) -> bool:
        if annotation_id not in self.store:
            return False
        self._clear_pending()
        self.dragging_id = annotation_id
        self.mode = CanvasMode.DRAGGING
        self._move_handler = self._drag_to
        return True

    def update_drag(self, pointer: PointerPosition, surface: Surface) -> bool:
        """Forward a pointer move to the bound drag handler, if any."""
        if self._move_handler is None:
            return False
        self._move_handler(pointer, surface)
        return True

    def _drag_to(self, pointer: PointerPosition, surface: Surface) -> None:
        x, y = surface.normalize_clamped(pointer)
        self.store.move(self.dragging_id, x, y)

    def end_drag(self) -> None:
        self._move_handler = None
        self.dragging_id = None
        if self.mode is CanvasMode.DRAGGING:
            self.mode = CanvasMode.IDLE

    @property
    def is_dragging(self) -> bool:
        return self.mode is CanvasMode.DRAGGING

    # -- removal --

    def remove_annotation(self, annotation_id: str) -> bool:
        removed = self.store.remove(annotation_id)
        if removed and annotation_id == self.dragging_id:
            self.end_drag()
        return removed

    def clear_all(self) -> None:
        self.end_drag()
        self.store.clear()

    def reset(self) -> None:
        self.end_drag()
        self._clear_pending()

    def to_dict(self) -> Dict[str, Any]:
        pending = None
        if self.pending is not None:
            pending = {'x': self.pending[0], 'y': self.pending[1], 'label': self.pending_label}
        return {
            'mode': self.mode.value,
            'pending': pending,
            'dragging_id': self.dragging_id,
        }
