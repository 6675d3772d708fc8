"""Configuration dataclasses for livedet."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union


@dataclass
class CameraConfig:
    """Configuration for the frame source."""

    source: Union[int, str] = 0
    width: Optional[int] = None
    height: Optional[int] = None
    retry_delay: float = 0.01


@dataclass
class ModelConfig:
    """Configuration for the Darknet model artifacts."""

    model_dir: str = "model"
    config_file: str = "yolov3.cfg"
    weights_file: str = "yolov3.weights"
    names_file: str = "coco.names"
    backend: str = "opencv"
    target: str = "cpu"
    input_size: int = 416

    @property
    def config_path(self) -> Path:
        return Path(self.model_dir) / self.config_file

    @property
    def weights_path(self) -> Path:
        return Path(self.model_dir) / self.weights_file

    @property
    def names_path(self) -> Path:
        return Path(self.model_dir) / self.names_file


@dataclass
class DetectionConfig:
    """Thresholds for decoding and non-maximum suppression."""

    objectness_threshold: float = 0.5
    class_score_threshold: float = 0.5
    nms_score_threshold: float = 0.5
    nms_iou_threshold: float = 0.4


@dataclass
class DisplayConfig:
    """Configuration for the display window."""

    fps: int = 30
    caption: str = "Object Detection"


@dataclass
class OutputConfig:
    """Configuration for headless video output."""

    path: Optional[str] = None
    frames: int = 300
    fps: float = 15.0


@dataclass
class PipelineConfig:
    """Combined configuration for a pipeline run."""

    camera: CameraConfig = field(default_factory=CameraConfig)
    model: ModelConfig = field(default_factory=ModelConfig)
    detection: DetectionConfig = field(default_factory=DetectionConfig)
    display: DisplayConfig = field(default_factory=DisplayConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    headless: bool = False
    stop_timeout: float = 1.0
    log_level: str = "INFO"

    @classmethod
    def from_args(
        cls,
        source: Union[int, str] = 0,
        capture_width: Optional[int] = None,
        capture_height: Optional[int] = None,
        retry_delay: float = 0.01,
        # Model config
        model_dir: str = "model",
        config_file: str = "yolov3.cfg",
        weights_file: str = "yolov3.weights",
        names_file: str = "coco.names",
        backend: str = "opencv",
        target: str = "cpu",
        input_size: int = 416,
        # Detection config
        objectness_threshold: float = 0.5,
        class_score_threshold: float = 0.5,
        nms_score_threshold: float = 0.5,
        nms_iou_threshold: float = 0.4,
        # Display config
        display_fps: int = 30,
        caption: str = "Object Detection",
        # Output config
        headless: bool = False,
        output_path: Optional[str] = None,
        frames: int = 300,
        output_fps: float = 15.0,
        stop_timeout: float = 1.0,
        log_level: str = "INFO",
    ) -> "PipelineConfig":
        """Create PipelineConfig from CLI arguments."""
        return cls(
            camera=CameraConfig(
                source=source,
                width=capture_width,
                height=capture_height,
                retry_delay=retry_delay,
            ),
            model=ModelConfig(
                model_dir=model_dir,
                config_file=config_file,
                weights_file=weights_file,
                names_file=names_file,
                backend=backend,
                target=target,
                input_size=input_size,
            ),
            detection=DetectionConfig(
                objectness_threshold=objectness_threshold,
                class_score_threshold=class_score_threshold,
                nms_score_threshold=nms_score_threshold,
                nms_iou_threshold=nms_iou_threshold,
            ),
            display=DisplayConfig(fps=display_fps, caption=caption),
            output=OutputConfig(path=output_path, frames=frames, fps=output_fps),
            headless=headless,
            stop_timeout=stop_timeout,
            log_level=log_level,
        )
