"""
Annotation Data Models
Labeled body-part points over the normalized (0-100) image space
"""

import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Optional

COORD_MIN = 0.0
COORD_MAX = 100.0


def clamp_percent(value: float) -> float:
    """Pin a percentage to the nearest edge of [0, 100]."""
    return max(COORD_MIN, min(COORD_MAX, float(value)))


def new_annotation_id() -> str:
    return uuid.uuid4().hex[:12]


def auto_annotation_id(index: int, timestamp_ms: Optional[int] = None) -> str:
    """Synthetic id for a detected annotation, e.g. auto-1718000000000-3"""
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    return f"auto-{timestamp_ms}-{index}"


@dataclass
class Annotation:
    """
    A labeled point on the UV layout

    Attributes:
        x: Horizontal offset as a percentage of the image width (0 = left)
        y: Vertical offset as a percentage of the image height (0 = top)
        label: Free-form body part name ("Face", "Torso", ...)
        id: Unique identifier, stable for the session
    """
    x: float
    y: float
    label: str
    id: str = field(default_factory=new_annotation_id)

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "x": self.x, "y": self.y, "label": self.label}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Annotation":
        return cls(
            id=str(data["id"]),
            x=float(data["x"]),
            y=float(data["y"]),
            label=str(data["label"]),
        )


class AnnotationStore:
    """Ordered collection of annotations, keyed by id"""

    def __init__(self, annotations: Optional[Iterable[Annotation]] = None):
        self._items: List[Annotation] = []
        if annotations:
            self.extend(annotations)

    def __iter__(self) -> Iterator[Annotation]:
        return iter(list(self._items))

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, annotation_id: object) -> bool:
        return self.get(annotation_id) is not None

    def add(self, annotation: Annotation) -> Annotation:
        if annotation.id in self:
            raise ValueError(f"Duplicate annotation id: {annotation.id}")
        self._items.append(annotation)
        return annotation

    def extend(self, annotations: Iterable[Annotation]) -> None:
        """Bulk insert, e.g. the output of part detection"""
        for annotation in annotations:
            self.add(annotation)

    def get(self, annotation_id) -> Optional[Annotation]:
        for annotation in self._items:
            if annotation.id == annotation_id:
                return annotation
        return None

    def move(self, annotation_id: str, x: float, y: float) -> bool:
        """Update coordinates in place. Returns False if the id is unknown."""
        annotation = self.get(annotation_id)
        if annotation is None:
            return False
        annotation.x = x
        annotation.y = y
        return True

    def remove(self, annotation_id: str) -> bool:
        """Remove an annotation by id. Returns True if found and removed."""
        for i, annotation in enumerate(self._items):
            if annotation.id == annotation_id:
                self._items.pop(i)
                return True
        return False

    def clear(self) -> None:
        self._items.clear()

    def to_list(self) -> List[Dict[str, Any]]:
        return [a.to_dict() for a in self._items]
