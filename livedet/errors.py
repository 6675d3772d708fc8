"""Exceptions raised by the detection pipeline."""


class LivedetError(Exception):
    """Base livedet exception."""


class ModelLoadError(LivedetError):
    """Raised when model artifacts are missing or cannot be parsed."""


class DeviceUnavailable(LivedetError):
    """Raised when the camera device cannot be opened."""


class FrameReadError(LivedetError):
    """Base class for frame acquisition failures."""


class TransientReadError(FrameReadError):
    """Raised when a single frame could not be read; retrying is expected to work."""


class EndOfStream(FrameReadError):
    """Raised when the source has no more frames to give."""


class DetectionError(LivedetError):
    """Raised when preprocessing, inference or decoding fails for one frame."""


class UnknownClassId(LivedetError, LookupError):
    """Raised when a class id falls outside the class name table."""

    def __init__(self, class_id: int, num_classes: int):
        super().__init__(
            f"Class id {class_id} outside class name table of size {num_classes}"
        )
        self.class_id = class_id
        self.num_classes = num_classes
