import threading
import time
import unittest
from pathlib import Path
from tempfile import TemporaryDirectory
from unittest.mock import MagicMock, patch

import cv2
import numpy as np
import pytest

from livedet.config import ModelConfig
from livedet.detection.darknet import DarknetDetector, preprocess, resolve_model_files
from livedet.errors import DetectionError, ModelLoadError


def make_net(outputs=None):
    net = MagicMock()
    net.getUnconnectedOutLayersNames.return_value = ("yolo_82", "yolo_94", "yolo_106")
    net.forward.return_value = outputs if outputs is not None else [
        np.zeros((3, 85), dtype=np.float32),
        np.zeros((12, 85), dtype=np.float32),
        np.zeros((48, 85), dtype=np.float32),
    ]
    return net


class TestDarknetDetectorLoad(unittest.TestCase):
    def setUp(self):
        self._tmp = TemporaryDirectory()
        model_dir = Path(self._tmp.name)
        self.cfg = model_dir / "yolov3.cfg"
        self.weights = model_dir / "yolov3.weights"
        self.cfg.write_text("[net]\n")
        self.weights.write_bytes(b"\x00")

    def tearDown(self):
        self._tmp.cleanup()

    @patch("livedet.detection.darknet.cv2.dnn.readNetFromDarknet")
    def test_load_configures_backend_and_target(self, mock_read):
        net = make_net()
        mock_read.return_value = net

        detector = DarknetDetector.load(self.cfg, self.weights)

        mock_read.assert_called_once_with(str(self.cfg), str(self.weights))
        net.setPreferableBackend.assert_called_once_with(cv2.dnn.DNN_BACKEND_OPENCV)
        net.setPreferableTarget.assert_called_once_with(cv2.dnn.DNN_TARGET_CPU)
        self.assertEqual(detector.output_names, ["yolo_82", "yolo_94", "yolo_106"])
        self.assertEqual(detector.input_size, 416)

    @patch("livedet.detection.darknet.cv2.dnn.readNetFromDarknet")
    def test_parse_failure_is_model_load_error(self, mock_read):
        mock_read.side_effect = cv2.error("Failed to parse NetParameter file")

        with self.assertRaises(ModelLoadError) as ctx:
            DarknetDetector.load(self.cfg, self.weights)
        self.assertIn("Failed to parse", str(ctx.exception))

    def test_missing_weights_is_model_load_error(self):
        with self.assertRaises(ModelLoadError):
            DarknetDetector.load(self.cfg, Path(self._tmp.name) / "missing.weights")

    def test_unknown_backend_is_model_load_error(self):
        with self.assertRaises(ModelLoadError):
            DarknetDetector.load(self.cfg, self.weights, backend="cuda")

    @patch("livedet.detection.darknet.cv2.dnn.readNetFromDarknet")
    def test_from_config(self, mock_read):
        mock_read.return_value = make_net()
        config = ModelConfig(
            model_dir=self._tmp.name,
            target="opencl",
            input_size=608,
        )

        detector = DarknetDetector.from_config(config)

        self.assertEqual(detector.input_size, 608)
        mock_read.return_value.setPreferableTarget.assert_called_once_with(
            cv2.dnn.DNN_TARGET_OPENCL
        )


def test_preprocess_resizes_scales_and_swaps_channels():
    frame = np.zeros((480, 640, 3), dtype=np.uint8)
    frame[..., 0] = 255  # blue in BGR

    blob = preprocess(frame, 416)

    assert blob.shape == (1, 3, 416, 416)
    assert blob.dtype == np.float32
    np.testing.assert_allclose(blob[0, 2], 1.0)
    np.testing.assert_allclose(blob[0, 0], 0.0)


def test_infer_returns_one_array_per_output_layer():
    net = make_net()
    detector = DarknetDetector(net)

    outputs = detector.infer(np.zeros((480, 640, 3), dtype=np.uint8))

    assert [o.shape for o in outputs] == [(3, 85), (12, 85), (48, 85)]
    blob = net.setInput.call_args[0][0]
    assert blob.shape == (1, 3, 416, 416)
    net.forward.assert_called_once_with(["yolo_82", "yolo_94", "yolo_106"])


def test_infer_failure_is_detection_error():
    net = make_net()
    net.forward.side_effect = cv2.error("forward failed")
    detector = DarknetDetector(net)

    with pytest.raises(DetectionError):
        detector.infer(np.zeros((48, 64, 3), dtype=np.uint8))


def test_infer_after_close_is_detection_error():
    detector = DarknetDetector(make_net())
    detector.close()
    detector.close()

    with pytest.raises(DetectionError):
        detector.infer(np.zeros((48, 64, 3), dtype=np.uint8))


def test_concurrent_infer_calls_do_not_overlap():
    active = 0
    max_active = 0
    guard = threading.Lock()

    def forward(names):
        nonlocal active, max_active
        with guard:
            active += 1
            max_active = max(max_active, active)
        time.sleep(0.02)
        with guard:
            active -= 1
        return [np.zeros((1, 85), dtype=np.float32)]

    net = make_net()
    net.forward.side_effect = forward
    detector = DarknetDetector(net)
    frame = np.zeros((48, 64, 3), dtype=np.uint8)

    threads = [threading.Thread(target=detector.infer, args=(frame,)) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert net.forward.call_count == 4
    assert max_active == 1


def test_resolve_model_files(model_dir):
    cfg, weights, names = resolve_model_files(model_dir)

    assert cfg == model_dir / "yolov3.cfg"
    assert weights == model_dir / "yolov3.weights"
    assert names == model_dir / "coco.names"


def test_resolve_model_files_missing_directory(tmp_path):
    with pytest.raises(ModelLoadError, match="does not exist"):
        resolve_model_files(tmp_path / "nope")


def test_resolve_model_files_names_missing_file(model_dir):
    (model_dir / "coco.names").unlink()

    with pytest.raises(ModelLoadError, match="coco.names"):
        resolve_model_files(model_dir)


def test_close_waits_for_inflight_infer():
    entered = threading.Event()

    def forward(names):
        entered.set()
        time.sleep(0.1)
        return [np.zeros((1, 85), dtype=np.float32)]

    net = make_net()
    net.forward.side_effect = forward
    detector = DarknetDetector(net)
    results = []
    worker = threading.Thread(
        target=lambda: results.append(detector.infer(np.zeros((48, 64, 3), dtype=np.uint8)))
    )

    worker.start()
    assert entered.wait(2.0)
    detector.close()
    worker.join(2.0)

    assert len(results) == 1
    assert results[0][0].shape == (1, 85)
    assert detector.net is None
