"""Draw detections onto frames."""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import cv2
import numpy as np

from .detection.base import Detection
from .detection.classes import ClassNameTable
from .errors import UnknownClassId

logger = logging.getLogger(__name__)

Color = Tuple[int, int, int]

# BGR
RED: Color = (0, 0, 255)
YELLOW: Color = (0, 255, 255)
LIME_GREEN: Color = (50, 205, 50)


@dataclass(frozen=True)
class AnnotationStyle:
    """Colours and font settings for boxes, labels and the counter."""

    box_color: Color = RED
    box_thickness: int = 2
    label_color: Color = YELLOW
    label_scale: float = 0.5
    label_thickness: int = 2
    label_offset: int = 5
    counter_color: Color = LIME_GREEN
    counter_scale: float = 1.0
    counter_thickness: int = 2
    counter_origin: Tuple[int, int] = (10, 30)
    font: int = cv2.FONT_HERSHEY_SIMPLEX


DEFAULT_STYLE = AnnotationStyle()


def label_for(detection: Detection, class_names: ClassNameTable) -> str:
    """Format ``"{name}: {confidence:.2f}"``, with a placeholder for unknown ids."""
    try:
        name = class_names.name_for(detection.class_id)
    except UnknownClassId as e:
        logger.warning("%s; drawing placeholder label", e)
        name = f"class {detection.class_id}"
    return f"{name}: {detection.confidence:.2f}"


def annotate(
    frame: np.ndarray,
    detections: Sequence[Detection],
    class_names: ClassNameTable,
    style: Optional[AnnotationStyle] = None,
) -> np.ndarray:
    """Draw boxes, labels and a detection counter on a copy of the frame.

    Boxes are drawn as decoded; parts outside the frame are clipped by OpenCV.

    Args:
        frame: Input frame (BGR). Not modified.
        detections: Detections to draw.
        class_names: Table used to look up labels.
        style: Drawing style; defaults to red boxes with yellow labels.

    Returns:
        Annotated copy of the frame.
    """
    style = style or DEFAULT_STYLE
    output = frame.copy()

    for detection in detections:
        box = detection.box
        cv2.rectangle(
            output,
            (box.x, box.y),
            (box.right, box.bottom),
            style.box_color,
            style.box_thickness,
        )
        cv2.putText(
            output,
            label_for(detection, class_names),
            (box.x, box.y - style.label_offset),
            style.font,
            style.label_scale,
            style.label_color,
            style.label_thickness,
        )

    cv2.putText(
        output,
        f"Objects Detected: {len(detections)}",
        style.counter_origin,
        style.font,
        style.counter_scale,
        style.counter_color,
        style.counter_thickness,
    )
    return output
