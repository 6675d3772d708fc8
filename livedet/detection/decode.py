"""Decode raw Darknet output rows into detection candidates."""

from typing import List, Optional

import numpy as np

from .base import Box, Candidate, RawOutputs

OBJECTNESS_INDEX = 4
CLASS_SCORES_OFFSET = 5


def decode(
    raw_outputs: RawOutputs,
    frame_width: int,
    frame_height: int,
    objectness_threshold: float = 0.5,
    class_score_threshold: float = 0.5,
    num_classes: Optional[int] = None,
) -> List[Candidate]:
    """Turn raw network output into candidates in frame pixel coordinates.

    Each row is ``[cx, cy, w, h, objectness, score_0, ..., score_N-1]`` with
    all values normalized to the network input. Rows below the objectness
    threshold are dropped before the class scan. Surviving rows yield at most
    one candidate, for the class with the highest score (first index wins on
    ties), and only if that score exceeds the class score threshold.

    Args:
        raw_outputs: One 2-D array of rows per output layer.
        frame_width: Width of the frame the boxes map onto.
        frame_height: Height of the frame the boxes map onto.
        objectness_threshold: Minimum objectness for a row to be considered.
        class_score_threshold: Score the best class must exceed.
        num_classes: Only scan this many class scores per row.

    Returns:
        Candidates in output order.

    Raises:
        ValueError: If an output tensor is not a 2-D array of rows.
    """
    candidates: List[Candidate] = []
    for output in raw_outputs:
        rows = np.asarray(output, dtype=np.float32)
        if rows.ndim != 2 or rows.shape[1] <= CLASS_SCORES_OFFSET:
            raise ValueError(f"Unexpected output tensor shape: {rows.shape}")

        rows = rows[rows[:, OBJECTNESS_INDEX] >= objectness_threshold]
        if not len(rows):
            continue

        scores = rows[:, CLASS_SCORES_OFFSET:]
        if num_classes is not None:
            scores = scores[:, :num_classes]
        class_ids = np.argmax(scores, axis=1)
        max_scores = scores[np.arange(len(rows)), class_ids]

        accepted = max_scores > class_score_threshold
        for row, class_id, score in zip(rows[accepted], class_ids[accepted], max_scores[accepted]):
            candidates.append(
                Candidate(
                    class_id=int(class_id),
                    confidence=float(score),
                    box=_to_pixel_box(row, frame_width, frame_height),
                )
            )
    return candidates


def _to_pixel_box(row: np.ndarray, frame_width: int, frame_height: int) -> Box:
    # Box arithmetic stays in float32, the precision the network emits.
    scale = np.array([frame_width, frame_height, frame_width, frame_height], dtype=np.float32)
    center_x, center_y, width, height = row[:4] * scale
    return Box(
        x=int(center_x - width / 2),
        y=int(center_y - height / 2),
        w=int(width),
        h=int(height),
    )
