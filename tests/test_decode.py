import numpy as np
import pytest

from livedet.detection.base import Box
from livedet.detection.decode import decode

from fakes import make_row


def tensor(*rows) -> np.ndarray:
    return np.array(rows, dtype=np.float32)


def test_single_row_decodes_to_pixel_box():
    raw = tensor(make_row(0.5, 0.5, 0.2, 0.2, 0.9, [0.0, 0.0, 0.8, 0.0]))

    candidates = decode([raw], 640, 480)

    assert len(candidates) == 1
    candidate = candidates[0]
    assert candidate.class_id == 2
    assert candidate.confidence == pytest.approx(0.8)
    assert candidate.box == Box(x=256, y=192, w=128, h=96)


def test_low_objectness_rows_are_dropped_before_class_scan():
    raw = tensor(
        make_row(0.5, 0.5, 0.2, 0.2, 0.49, [0.99, 0.0]),
        make_row(0.5, 0.5, 0.2, 0.2, 0.1, [0.0, 0.99]),
    )

    assert decode([raw], 640, 480) == []


def test_objectness_at_threshold_is_kept():
    raw = tensor(make_row(0.5, 0.5, 0.2, 0.2, 0.5, [0.9]))

    assert len(decode([raw], 100, 100)) == 1


def test_class_score_must_exceed_threshold():
    raw = tensor(
        make_row(0.5, 0.5, 0.2, 0.2, 0.9, [0.5, 0.2]),
        make_row(0.5, 0.5, 0.2, 0.2, 0.9, [0.3, 0.4]),
    )

    assert decode([raw], 100, 100) == []


def test_confidence_is_row_maximum():
    rng = np.random.default_rng(7)
    rows = rng.random((200, 5 + 6), dtype=np.float32)

    candidates = decode([rows], 320, 240, objectness_threshold=0.3, class_score_threshold=0.6)

    accepted = rows[rows[:, 4] >= 0.3]
    expected = accepted[accepted[:, 5:].max(axis=1) > 0.6]
    assert len(candidates) == len(expected)
    for candidate, row in zip(candidates, expected):
        assert candidate.confidence == pytest.approx(float(row[5:].max()))
        assert candidate.class_id == int(np.argmax(row[5:]))
        assert candidate.confidence > 0.6


def test_argmax_tie_keeps_first_class():
    raw = tensor(make_row(0.5, 0.5, 0.2, 0.2, 0.9, [0.1, 0.7, 0.7]))

    (candidate,) = decode([raw], 100, 100)

    assert candidate.class_id == 1


def test_one_candidate_per_row_across_outputs():
    first = tensor(
        make_row(0.25, 0.25, 0.1, 0.1, 0.9, [0.9, 0.9, 0.9]),
        make_row(0.75, 0.75, 0.1, 0.1, 0.9, [0.0, 0.6, 0.0]),
    )
    second = tensor(make_row(0.5, 0.5, 0.1, 0.1, 0.95, [0.0, 0.0, 0.7]))

    candidates = decode([first, second], 200, 200)

    assert [c.class_id for c in candidates] == [0, 1, 2]


def test_num_classes_limits_scan():
    raw = tensor(make_row(0.5, 0.5, 0.2, 0.2, 0.9, [0.6, 0.0, 0.95]))

    (candidate,) = decode([raw], 100, 100, num_classes=2)

    assert candidate.class_id == 0
    assert candidate.confidence == pytest.approx(0.6)


def test_boxes_are_not_clipped_to_frame():
    raw = tensor(make_row(0.05, 0.98, 0.4, 0.2, 0.9, [0.9]))

    (candidate,) = decode([raw], 100, 100)

    assert candidate.box.x < 0
    assert candidate.box.bottom > 100


def test_empty_output_yields_nothing():
    assert decode([np.zeros((0, 85), dtype=np.float32)], 640, 480) == []


def test_malformed_output_raises():
    with pytest.raises(ValueError):
        decode([np.zeros((4,), dtype=np.float32)], 640, 480)
