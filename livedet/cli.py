"""Command-line interface for livedet."""

import argparse
import logging

from . import __version__
from .config import PipelineConfig
from .core.io import parse_source

BACKEND_CHOICES = ["opencv", "default"]
TARGET_CHOICES = ["cpu", "opencl", "opencl_fp16"]
LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]

EPILOG = """\
Examples:
  livedet
  livedet --source 1 --model-dir ~/models/yolov3
  livedet --source clip.mp4 --headless -o annotated.mp4 --frames 200

The model directory must contain the Darknet config, the weights and a
class names file (one name per line). Press ESC to close the window.
"""


def _unit_interval(value: str) -> float:
    number = float(value)
    if not 0.0 <= number <= 1.0:
        raise argparse.ArgumentTypeError(f"{value} is not between 0.0 and 1.0")
    return number


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging for the command-line tool."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def parse_args(args=None) -> PipelineConfig:
    """Parse command-line arguments.

    Args:
        args: Arguments to parse (defaults to sys.argv).

    Returns:
        PipelineConfig with parsed options.
    """
    parser = argparse.ArgumentParser(
        prog="livedet",
        description="Real-time object detection on a live camera feed.",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "-V", "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    parser.add_argument(
        "--source",
        type=str,
        default="0",
        help="Camera index, video file or stream URL (default: 0)",
    )

    parser.add_argument(
        "--width",
        type=int,
        default=None,
        help="Requested capture width in pixels (default: driver default)",
    )

    parser.add_argument(
        "--height",
        type=int,
        default=None,
        help="Requested capture height in pixels (default: driver default)",
    )

    # Model arguments
    parser.add_argument(
        "--model-dir",
        type=str,
        default="model",
        help="Directory holding the model files (default: model)",
    )

    parser.add_argument(
        "--cfg",
        type=str,
        default="yolov3.cfg",
        help="Darknet network config file name (default: yolov3.cfg)",
    )

    parser.add_argument(
        "--weights",
        type=str,
        default="yolov3.weights",
        help="Darknet weights file name (default: yolov3.weights)",
    )

    parser.add_argument(
        "--names",
        type=str,
        default="coco.names",
        help="Class names file name (default: coco.names)",
    )

    parser.add_argument(
        "--backend",
        type=str,
        default="opencv",
        choices=BACKEND_CHOICES,
        help="OpenCV DNN backend (default: opencv)",
    )

    parser.add_argument(
        "--target",
        type=str,
        default="cpu",
        choices=TARGET_CHOICES,
        help="OpenCV DNN target device (default: cpu)",
    )

    parser.add_argument(
        "--input-size",
        type=int,
        default=416,
        help="Square network input size; a multiple of 32 (default: 416)",
    )

    # Threshold arguments
    parser.add_argument(
        "--objectness",
        type=_unit_interval,
        default=0.5,
        help="Minimum objectness for a box to be considered; 0.0-1.0 (default: 0.5)",
    )

    parser.add_argument(
        "--class-score",
        type=_unit_interval,
        default=0.5,
        help="Score the best class must exceed; 0.0-1.0 (default: 0.5)",
    )

    parser.add_argument(
        "--nms-score",
        type=_unit_interval,
        default=0.5,
        help="Confidence a box must exceed to enter NMS; 0.0-1.0 (default: 0.5)",
    )

    parser.add_argument(
        "--nms-iou",
        type=_unit_interval,
        default=0.4,
        help="Overlap at which NMS discards a weaker box; 0.0-1.0 (default: 0.4)",
    )

    # Output arguments
    parser.add_argument(
        "--headless",
        action="store_true",
        help="Write annotated frames to a video instead of opening a window",
    )

    parser.add_argument(
        "-o", "--output",
        type=str,
        default=None,
        help="Output video file for --headless",
    )

    parser.add_argument(
        "--frames",
        type=int,
        default=300,
        help="Frames to write in headless mode (default: 300)",
    )

    parser.add_argument(
        "--fps",
        type=float,
        default=15.0,
        help="Output video frames per second in headless mode (default: 15)",
    )

    parser.add_argument(
        "--display-fps",
        type=int,
        default=30,
        help="Maximum window refresh rate (default: 30)",
    )

    parser.add_argument(
        "--log-level",
        type=str.upper,
        default="INFO",
        choices=LOG_LEVELS,
        help="Logging level (default: INFO)",
    )

    parsed = parser.parse_args(args)

    if parsed.headless and not parsed.output:
        parser.error("--headless requires --output")
    if parsed.input_size <= 0 or parsed.input_size % 32:
        parser.error("--input-size must be a positive multiple of 32")
    if parsed.frames <= 0:
        parser.error("--frames must be positive")

    return PipelineConfig.from_args(
        source=parse_source(parsed.source),
        capture_width=parsed.width,
        capture_height=parsed.height,
        model_dir=parsed.model_dir,
        config_file=parsed.cfg,
        weights_file=parsed.weights,
        names_file=parsed.names,
        backend=parsed.backend,
        target=parsed.target,
        input_size=parsed.input_size,
        objectness_threshold=parsed.objectness,
        class_score_threshold=parsed.class_score,
        nms_score_threshold=parsed.nms_score,
        nms_iou_threshold=parsed.nms_iou,
        display_fps=parsed.display_fps,
        headless=parsed.headless,
        output_path=parsed.output,
        frames=parsed.frames,
        output_fps=parsed.fps,
        log_level=parsed.log_level,
    )
