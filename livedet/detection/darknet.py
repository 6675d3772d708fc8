"""Darknet (YOLOv3-style) network run through OpenCV's DNN module."""

import threading
from pathlib import Path
from typing import List, Tuple, Union

import cv2
import numpy as np

from ..config import ModelConfig
from ..errors import DetectionError, ModelLoadError

BACKENDS = {
    "opencv": cv2.dnn.DNN_BACKEND_OPENCV,
    "default": cv2.dnn.DNN_BACKEND_DEFAULT,
}

TARGETS = {
    "cpu": cv2.dnn.DNN_TARGET_CPU,
    "opencl": cv2.dnn.DNN_TARGET_OPENCL,
    "opencl_fp16": cv2.dnn.DNN_TARGET_OPENCL_FP16,
}


def resolve_model_files(
    model_dir: Union[str, Path],
    config_name: str = "yolov3.cfg",
    weights_name: str = "yolov3.weights",
    names_name: str = "coco.names",
) -> Tuple[Path, Path, Path]:
    """Check that the model directory holds every artifact.

    Returns:
        Tuple of (config_path, weights_path, names_path).

    Raises:
        ModelLoadError: Naming the first missing directory or file.
    """
    model_dir = Path(model_dir)
    if not model_dir.is_dir():
        raise ModelLoadError(f"The model directory '{model_dir}' does not exist.")

    paths = []
    for name in (config_name, weights_name, names_name):
        path = model_dir / name
        if not path.is_file():
            raise ModelLoadError(
                f"The file '{name}' is missing in the model directory '{model_dir}'."
            )
        paths.append(path)
    return paths[0], paths[1], paths[2]


def preprocess(frame: np.ndarray, input_size: int = 416) -> np.ndarray:
    """Convert a BGR frame into a network input blob.

    Resizes to ``input_size`` x ``input_size``, scales pixels to [0, 1] and
    swaps BGR to RGB.

    Returns:
        Blob of shape (1, 3, input_size, input_size), float32.
    """
    return cv2.dnn.blobFromImage(
        frame,
        1 / 255.0,
        (input_size, input_size),
        (0, 0, 0),
        swapRB=True,
        crop=False,
    )


class DarknetDetector:
    """Darknet network loaded with ``cv2.dnn`` implementing the Detector protocol.

    Attributes:
        net: Loaded OpenCV network.
        input_size: Square input resolution of the network.
        output_names: Names of the unconnected output layers.
    """

    def __init__(self, net: "cv2.dnn.Net", input_size: int = 416):
        """Wrap an already loaded network.

        Args:
            net: OpenCV DNN network.
            input_size: Square input resolution the network was built for.
        """
        self.net = net
        self.input_size = input_size
        self.output_names = list(net.getUnconnectedOutLayersNames())
        # The compute graph is not reentrant.
        self._lock = threading.Lock()

    @classmethod
    def load(
        cls,
        config_path: Union[str, Path],
        weights_path: Union[str, Path],
        backend: str = "opencv",
        target: str = "cpu",
        input_size: int = 416,
    ) -> "DarknetDetector":
        """Load a Darknet network from its config and weights files.

        Raises:
            ModelLoadError: If a file is missing, cannot be parsed, or the
                backend/target name is unknown.
        """
        if backend not in BACKENDS:
            raise ModelLoadError(f"Unknown DNN backend: {backend}")
        if target not in TARGETS:
            raise ModelLoadError(f"Unknown DNN target: {target}")
        for path in (config_path, weights_path):
            if not Path(path).is_file():
                raise ModelLoadError(f"Model file not found: {path}")

        print(f"Loading Darknet model from {config_path}...")
        try:
            net = cv2.dnn.readNetFromDarknet(str(config_path), str(weights_path))
            net.setPreferableBackend(BACKENDS[backend])
            net.setPreferableTarget(TARGETS[target])
            detector = cls(net, input_size=input_size)
        except cv2.error as e:
            raise ModelLoadError(f"Failed to load model: {e}") from e
        print(f"Model loaded ({backend}/{target}, outputs: {', '.join(detector.output_names)})")
        return detector

    @classmethod
    def from_config(cls, config: ModelConfig) -> "DarknetDetector":
        """Create DarknetDetector from ModelConfig."""
        return cls.load(
            config.config_path,
            config.weights_path,
            backend=config.backend,
            target=config.target,
            input_size=config.input_size,
        )

    def infer(self, frame: np.ndarray) -> List[np.ndarray]:
        """Run one forward pass on a frame.

        Args:
            frame: Input frame (BGR, uint8).

        Returns:
            One 2-D array of raw rows per output layer.

        Raises:
            DetectionError: If preprocessing or the forward pass fails.
        """
        with self._lock:
            if self.net is None:
                raise DetectionError("Detector has been closed")
            blob = None
            try:
                blob = preprocess(frame, self.input_size)
                self.net.setInput(blob)
                outputs = self.net.forward(self.output_names)
            except cv2.error as e:
                raise DetectionError(f"Inference failed: {e}") from e
            finally:
                del blob
        return [np.asarray(output) for output in outputs]

    def close(self) -> None:
        """Release the network once any in-flight inference has finished."""
        with self._lock:
            self.net = None
