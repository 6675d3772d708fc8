"""Greedy non-maximum suppression."""

from typing import List, Sequence

import numpy as np

from .base import Box, Candidate, Detection


def iou(a: Box, b: Box) -> float:
    """Intersection over union of two boxes; 0.0 when either has no area."""
    inter_w = min(a.right, b.right) - max(a.x, b.x)
    inter_h = min(a.bottom, b.bottom) - max(a.y, b.y)
    if inter_w <= 0 or inter_h <= 0:
        return 0.0
    intersection = inter_w * inter_h
    union = a.area + b.area - intersection
    if union <= 0:
        return 0.0
    return intersection / union


def _iou_many(box: np.ndarray, others: np.ndarray) -> np.ndarray:
    """IoU between one [x1, y1, x2, y2] box and an (N, 4) array of them."""
    inter_w = np.minimum(box[2], others[:, 2]) - np.maximum(box[0], others[:, 0])
    inter_h = np.minimum(box[3], others[:, 3]) - np.maximum(box[1], others[:, 1])
    intersection = np.clip(inter_w, 0, None) * np.clip(inter_h, 0, None)

    box_area = max(box[2] - box[0], 0) * max(box[3] - box[1], 0)
    other_areas = (
        np.clip(others[:, 2] - others[:, 0], 0, None)
        * np.clip(others[:, 3] - others[:, 1], 0, None)
    )
    union = box_area + other_areas - intersection
    with np.errstate(divide="ignore", invalid="ignore"):
        overlap = np.where(union > 0, intersection / union, 0.0)
    return overlap


def suppress(
    candidates: Sequence[Candidate],
    score_threshold: float = 0.5,
    iou_threshold: float = 0.4,
) -> List[Detection]:
    """Select non-overlapping detections, highest confidence first.

    Candidates at or below ``score_threshold`` are dropped first. The rest
    are ordered by confidence (stable, so equal scores keep input order);
    the best remaining candidate is kept and every other candidate whose
    IoU with it is at least ``iou_threshold`` is discarded, until none
    remain. Suppression is class-agnostic.

    Args:
        candidates: Decoded candidates.
        score_threshold: Confidence a candidate must exceed.
        iou_threshold: Overlap at which a lower-scored box is discarded.

    Returns:
        Kept detections by descending confidence.
    """
    kept = [c for c in candidates if c.confidence > score_threshold]
    if not kept:
        return []

    scores = np.array([c.confidence for c in kept], dtype=np.float64)
    boxes = np.array([c.box.to_xyxy() for c in kept], dtype=np.float64)
    order = np.argsort(-scores, kind="stable")

    selected: List[int] = []
    while order.size:
        best = order[0]
        selected.append(int(best))
        rest = order[1:]
        if not rest.size:
            break
        overlap = _iou_many(boxes[best], boxes[rest])
        order = rest[overlap < iou_threshold]

    return [Detection.from_candidate(kept[i]) for i in selected]
