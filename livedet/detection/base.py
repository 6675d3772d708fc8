"""Base detection protocol and data structures."""

from dataclasses import dataclass
from typing import List, Protocol, Sequence

import numpy as np


@dataclass(frozen=True)
class Box:
    """Axis-aligned box in frame pixel coordinates.

    Attributes:
        x: Left edge. May be negative for objects cut by the frame border.
        y: Top edge.
        w: Width.
        h: Height.
    """

    x: int
    y: int
    w: int
    h: int

    @property
    def right(self) -> int:
        return self.x + self.w

    @property
    def bottom(self) -> int:
        return self.y + self.h

    @property
    def area(self) -> int:
        return max(self.w, 0) * max(self.h, 0)

    def to_xyxy(self) -> np.ndarray:
        """Return the box as an [x1, y1, x2, y2] array."""
        return np.array([self.x, self.y, self.right, self.bottom])


@dataclass(frozen=True)
class Candidate:
    """Decoded detection before non-maximum suppression.

    Attributes:
        class_id: Index into the class name table.
        confidence: Maximum class score of the row that produced it.
        box: Bounding box in frame pixel coordinates.
    """

    class_id: int
    confidence: float
    box: Box


@dataclass(frozen=True)
class Detection(Candidate):
    """Candidate that survived non-maximum suppression."""

    @classmethod
    def from_candidate(cls, candidate: Candidate) -> "Detection":
        return cls(
            class_id=candidate.class_id,
            confidence=candidate.confidence,
            box=candidate.box,
        )


class Detector(Protocol):
    """Protocol for networks that map a frame to raw output tensors."""

    def infer(self, frame: np.ndarray) -> List[np.ndarray]:
        """Run one forward pass.

        Args:
            frame: Input frame (BGR, uint8).

        Returns:
            Raw output tensors, one 2-D array of rows per output layer.
        """
        ...


RawOutputs = Sequence[np.ndarray]
