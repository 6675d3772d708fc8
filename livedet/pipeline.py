"""Capture, detect, annotate and publish loop running on its own thread."""

import enum
import logging
import threading
import time
from dataclasses import dataclass
from typing import List, Optional, Protocol

import numpy as np

from .annotator import AnnotationStyle, annotate
from .config import DetectionConfig
from .core.io import CameraSource
from .detection.base import Detection, Detector
from .detection.classes import ClassNameTable
from .detection.decode import decode
from .detection.nms import suppress
from .errors import DetectionError, EndOfStream, TransientReadError

logger = logging.getLogger(__name__)

STATS_LOG_INTERVAL = 100


class DisplaySink(Protocol):
    """Consumer of annotated frames."""

    def publish(self, frame: np.ndarray) -> None:
        ...


class FrameMailbox:
    """Single-slot handoff between the pipeline thread and a display.

    The producer overwrites the slot with each new frame; the consumer takes
    the frame and clears the slot. The lock only guards the reference swap,
    so rendering never happens while it is held.
    """

    def __init__(self):
        self._condition = threading.Condition(threading.Lock())
        self._frame: Optional[np.ndarray] = None
        self._published = 0

    @property
    def published(self) -> int:
        """Total number of frames published so far."""
        with self._condition:
            return self._published

    def publish(self, frame: np.ndarray) -> None:
        with self._condition:
            self._frame = frame
            self._published += 1
            self._condition.notify_all()

    def take(self, timeout: Optional[float] = None) -> Optional[np.ndarray]:
        """Return the newest frame and clear the slot.

        Args:
            timeout: Seconds to wait for a frame; ``None`` returns immediately.

        Returns:
            The frame, or None if nothing was published in time.
        """
        with self._condition:
            if self._frame is None and timeout is not None:
                self._condition.wait_for(lambda: self._frame is not None, timeout)
            frame, self._frame = self._frame, None
            return frame


class PipelineState(enum.Enum):
    STOPPED = "stopped"
    RUNNING = "running"
    STOPPING = "stopping"


@dataclass
class PipelineStats:
    """Counters kept by the pipeline thread."""

    cycles: int = 0
    frames_published: int = 0
    read_failures: int = 0
    detection_failures: int = 0
    cycle_failures: int = 0
    last_cycle_seconds: float = 0.0
    fps: float = 0.0

    def record_cycle(self, seconds: float) -> None:
        self.last_cycle_seconds = seconds
        if seconds > 0:
            current = 1.0 / seconds
            self.fps = current if self.fps == 0.0 else 0.9 * self.fps + 0.1 * current


class PipelineLoop:
    """Drive source -> detector -> decode -> suppress -> annotate -> sink.

    ``start()`` opens the source and spawns the pipeline thread. Each cycle
    checks the stop flag first, then reads, detects, annotates and
    publishes one frame. ``stop()`` lets the in-flight cycle finish, waits
    up to ``stop_timeout`` seconds and releases the source.
    """

    def __init__(
        self,
        source: CameraSource,
        detector: Detector,
        class_names: ClassNameTable,
        sink: DisplaySink,
        detection: Optional[DetectionConfig] = None,
        style: Optional[AnnotationStyle] = None,
        retry_delay: float = 0.01,
        stop_timeout: float = 1.0,
    ):
        """Initialize the loop.

        Args:
            source: Frame source; opened by ``start()``, closed by ``stop()``.
            detector: Network producing raw output tensors.
            class_names: Labels for decoded class ids.
            sink: Receives every annotated frame.
            detection: Decoding and suppression thresholds.
            style: Annotation style.
            retry_delay: Seconds to back off after a dropped frame.
            stop_timeout: Seconds ``stop()`` waits for the thread.
        """
        self.source = source
        self.detector = detector
        self.class_names = class_names
        self.sink = sink
        self.detection = detection or DetectionConfig()
        self.style = style
        self.retry_delay = retry_delay
        self.stop_timeout = stop_timeout
        self.stats = PipelineStats()

        self._state = PipelineState.STOPPED
        self._state_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def state(self) -> PipelineState:
        with self._state_lock:
            return self._state

    @property
    def is_running(self) -> bool:
        return self.state is PipelineState.RUNNING

    def start(self) -> None:
        """Open the source and start the pipeline thread.

        Raises:
            RuntimeError: If the loop is not stopped, or a previous
                pipeline thread is still alive.
            DeviceUnavailable: If the source cannot be opened.
        """
        with self._state_lock:
            if self._state is not PipelineState.STOPPED:
                raise RuntimeError(f"Cannot start pipeline in state {self._state.value}")

            if self._thread is not None and self._thread.is_alive():
                self._thread.join(self.stop_timeout)
                if self._thread.is_alive():
                    raise RuntimeError("Previous pipeline thread is still running")

            self.source.open()
            self.stats = PipelineStats()
            self._stop_event = threading.Event()
            self._thread = threading.Thread(
                target=self._run,
                args=(self._stop_event,),
                name="livedet-pipeline",
                daemon=True,
            )
            self._state = PipelineState.RUNNING
            self._thread.start()
        logger.info("Pipeline started")

    def stop(self) -> None:
        """Signal the pipeline to stop and release the source.

        Waits up to ``stop_timeout`` seconds for the in-flight cycle. The
        source is released even if the thread does not finish in time.
        """
        with self._state_lock:
            if self._state is PipelineState.STOPPED:
                return
            self._state = PipelineState.STOPPING
            self._stop_event.set()
            thread = self._thread

        if thread is not None and thread is not threading.current_thread():
            thread.join(self.stop_timeout)
            if thread.is_alive():
                logger.warning(
                    "Pipeline thread did not finish within %.1fs; releasing resources",
                    self.stop_timeout,
                )

        self._release()
        logger.info("Pipeline stopped after %d cycles", self.stats.cycles)

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the pipeline thread exits. Returns True if it did."""
        thread = self._thread
        if thread is None:
            return True
        thread.join(timeout)
        return not thread.is_alive()

    def detect(self, frame: np.ndarray) -> List[Detection]:
        """Run inference, decoding and suppression for one frame.

        Raises:
            DetectionError: If any step fails.
        """
        config = self.detection
        try:
            outputs = self.detector.infer(frame)
            height, width = frame.shape[:2]
            candidates = decode(
                outputs,
                width,
                height,
                objectness_threshold=config.objectness_threshold,
                class_score_threshold=config.class_score_threshold,
                num_classes=len(self.class_names) or None,
            )
            return suppress(
                candidates,
                score_threshold=config.nms_score_threshold,
                iou_threshold=config.nms_iou_threshold,
            )
        except DetectionError:
            raise
        except Exception as e:
            raise DetectionError(f"Detection error: {e}") from e

    def run_cycle(self, stop_event: Optional[threading.Event] = None) -> bool:
        """Process one frame.

        Returns:
            False once the source is exhausted, True otherwise.
        """
        stop_event = stop_event or self._stop_event
        started = time.monotonic()
        try:
            frame = self.source.read_frame()
        except TransientReadError as e:
            self.stats.read_failures += 1
            logger.debug("%s; retrying in %.3fs", e, self.retry_delay)
            stop_event.wait(self.retry_delay)
            return True
        except EndOfStream as e:
            logger.info("%s", e)
            return False
        except Exception:
            self.stats.cycle_failures += 1
            logger.exception("Frame read failed; skipping cycle")
            stop_event.wait(self.retry_delay)
            return True

        self.stats.cycles += 1
        try:
            detections = self.detect(frame)
        except DetectionError as e:
            self.stats.detection_failures += 1
            logger.warning("%s", e)
            return True

        try:
            annotated = annotate(frame, detections, self.class_names, self.style)
            self.sink.publish(annotated)
        except Exception:
            self.stats.cycle_failures += 1
            logger.exception("Annotating or publishing frame failed; skipping cycle")
            return True
        self.stats.frames_published += 1
        self.stats.record_cycle(time.monotonic() - started)

        if self.stats.cycles % STATS_LOG_INTERVAL == 0:
            logger.debug(
                "cycles=%d fps=%.1f read_failures=%d detection_failures=%d cycle_failures=%d",
                self.stats.cycles,
                self.stats.fps,
                self.stats.read_failures,
                self.stats.detection_failures,
                self.stats.cycle_failures,
            )
        return True

    def _run(self, stop_event: threading.Event) -> None:
        try:
            while not stop_event.is_set():
                if not self.run_cycle(stop_event):
                    break
        except Exception:
            logger.exception("Pipeline thread crashed")
        finally:
            if not stop_event.is_set():
                # Ended on its own (end of stream or crash).
                self._release()

    def _release(self) -> None:
        with self._state_lock:
            self.source.close()
            self._state = PipelineState.STOPPED

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
