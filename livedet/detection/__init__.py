"""Detection module: network inference, decoding and suppression."""

from .base import Box, Candidate, Detection, Detector
from .classes import ClassNameTable
from .decode import decode
from .nms import iou, suppress

# Lazy import for the cv2.dnn-backed detector
def __getattr__(name):
    if name in ("DarknetDetector", "preprocess", "resolve_model_files"):
        from . import darknet
        return getattr(darknet, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

__all__ = [
    "Box",
    "Candidate",
    "ClassNameTable",
    "DarknetDetector",
    "Detection",
    "Detector",
    "decode",
    "iou",
    "preprocess",
    "resolve_model_files",
    "suppress",
]
