"""Camera capture and video output."""

import logging
from typing import Optional, Union

import cv2
import numpy as np

from ..errors import DeviceUnavailable, EndOfStream, TransientReadError

logger = logging.getLogger(__name__)


def parse_source(value: str) -> Union[int, str]:
    """Interpret a CLI source string as a device index or a path/URL."""
    return int(value) if value.isdigit() else value


class CameraSource:
    """Read frames from a camera device, video file or stream URL.

    Frames are returned in OpenCV's native BGR order.
    """

    def __init__(
        self,
        source: Union[int, str] = 0,
        width: Optional[int] = None,
        height: Optional[int] = None,
    ):
        """Initialize the source without opening it.

        Args:
            source: Device index, video file path or stream URL.
            width: Requested capture width, if any.
            height: Requested capture height, if any.
        """
        self.source = source
        self.width = width
        self.height = height
        self._cap: Optional[cv2.VideoCapture] = None

    @property
    def is_open(self) -> bool:
        return self._cap is not None and self._cap.isOpened()

    def open(self) -> "CameraSource":
        """Open the device.

        Raises:
            DeviceUnavailable: If the capture cannot be opened.
        """
        if self.is_open:
            return self

        cap = cv2.VideoCapture(self.source)
        if not cap.isOpened():
            cap.release()
            raise DeviceUnavailable(f"Camera not accessible: {self.source}")

        if self.width:
            cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.width)
        if self.height:
            cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.height)

        self._cap = cap
        logger.info(
            "Opened source %s (%dx%d)",
            self.source,
            int(cap.get(cv2.CAP_PROP_FRAME_WIDTH)),
            int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT)),
        )
        return self

    def read_frame(self) -> np.ndarray:
        """Read the next frame.

        Returns:
            Frame as a BGR numpy array (H, W, 3).

        Raises:
            TransientReadError: If the driver dropped this frame.
            EndOfStream: If the source is closed or exhausted.
        """
        if self._cap is None:
            raise EndOfStream(f"Source {self.source} is not open")

        ret, frame = self._cap.read()
        if ret and frame is not None and frame.size:
            return frame
        if not self._cap.isOpened():
            raise EndOfStream(f"Source {self.source} closed")
        if isinstance(self.source, str) and self._at_end_of_file():
            raise EndOfStream(f"Reached end of {self.source}")
        raise TransientReadError(f"Failed to read frame from {self.source}")

    def _at_end_of_file(self) -> bool:
        total = self._cap.get(cv2.CAP_PROP_FRAME_COUNT)
        position = self._cap.get(cv2.CAP_PROP_POS_FRAMES)
        return total > 0 and position >= total

    def close(self) -> None:
        """Release the device. Safe to call more than once."""
        if self._cap is not None:
            self._cap.release()
            self._cap = None
            logger.info("Released source %s", self.source)

    def __enter__(self):
        return self.open()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class VideoWriter:
    """Write frames to a video file."""

    def __init__(self, path: str, width: int, height: int, fps: float = 15.0):
        """Initialize the writer.

        Args:
            path: Output video path.
            width: Frame width.
            height: Frame height.
            fps: Frames per second.

        Raises:
            IOError: If the writer cannot be created.
        """
        self.path = path
        self.width = width
        self.height = height
        self.fps = fps

        fourcc = cv2.VideoWriter_fourcc(*"mp4v")
        self._writer = cv2.VideoWriter(path, fourcc, fps, (width, height))
        if not self._writer.isOpened():
            raise IOError(f"Cannot create video writer: {path}")

    def write_frame(self, frame: np.ndarray):
        """Write a BGR frame, resizing it if its size differs from the writer's."""
        if frame.shape[:2] != (self.height, self.width):
            frame = cv2.resize(frame, (self.width, self.height))
        self._writer.write(frame)

    def close(self):
        """Release resources."""
        self._writer.release()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
