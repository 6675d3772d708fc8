"""Startup shared by the live and headless runners."""

import sys
from typing import NoReturn

from ..config import PipelineConfig
from ..core.io import CameraSource
from ..detection.classes import ClassNameTable
from ..detection.darknet import DarknetDetector, resolve_model_files
from ..errors import DeviceUnavailable, ModelLoadError
from ..pipeline import DisplaySink, PipelineLoop


def build_pipeline(config: PipelineConfig, sink: DisplaySink) -> PipelineLoop:
    """Load the model and class names and assemble a stopped PipelineLoop.

    Raises:
        ModelLoadError: If a model artifact is missing or cannot be parsed.
    """
    model = config.model
    resolve_model_files(
        model.model_dir,
        config_name=model.config_file,
        weights_name=model.weights_file,
        names_name=model.names_file,
    )
    detector = DarknetDetector.from_config(model)
    class_names = ClassNameTable.from_file(model.names_path)
    print(f"Loaded {len(class_names)} class names from {model.names_path}")

    source = CameraSource(
        config.camera.source,
        width=config.camera.width,
        height=config.camera.height,
    )
    return PipelineLoop(
        source=source,
        detector=detector,
        class_names=class_names,
        sink=sink,
        detection=config.detection,
        retry_delay=config.camera.retry_delay,
        stop_timeout=config.stop_timeout,
    )


def exit_with_startup_error(error: Exception) -> NoReturn:
    """Print a diagnostic for a fatal startup failure and exit."""
    if isinstance(error, ModelLoadError):
        print(f"Failed to load model: {error}", file=sys.stderr)
        print("\nCheck --model-dir, --cfg, --weights and --names.", file=sys.stderr)
    elif isinstance(error, DeviceUnavailable):
        print(f"Failed to start camera: {error}", file=sys.stderr)
        print("\nCheck that the camera is connected or pass --source.", file=sys.stderr)
    else:
        print(f"Startup failed: {error}", file=sys.stderr)
    sys.exit(1)


def start_pipeline(config: PipelineConfig, sink: DisplaySink) -> PipelineLoop:
    """Build and start the pipeline, exiting with a diagnostic on failure."""
    try:
        loop = build_pipeline(config, sink)
        loop.start()
    except (ModelLoadError, DeviceUnavailable) as e:
        exit_with_startup_error(e)
    return loop
