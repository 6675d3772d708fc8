"""Headless runner: camera in, annotated video file out."""

import sys

from tqdm import tqdm

from ..config import PipelineConfig
from ..core.io import VideoWriter
from ..pipeline import FrameMailbox
from .common import start_pipeline

TAKE_TIMEOUT = 0.1


def run_headless(config: PipelineConfig) -> None:
    """Run the pipeline without a window, writing annotated frames to video.

    Stops after ``config.output.frames`` frames or when the source ends.

    Args:
        config: Processing configuration.

    Raises:
        SystemExit: If the model or camera cannot be loaded, or no output
            path is configured.
    """
    if not config.output.path:
        print("Headless mode requires an output path (-o)", file=sys.stderr)
        sys.exit(1)

    mailbox = FrameMailbox()
    loop = start_pipeline(config, mailbox)

    writer = None
    written = 0
    try:
        with tqdm(total=config.output.frames, desc="Processing") as progress:
            while written < config.output.frames:
                frame = mailbox.take(timeout=TAKE_TIMEOUT)
                if frame is None:
                    if loop.is_running:
                        continue
                    # The last frame may land between the timeout and the check.
                    frame = mailbox.take()
                    if frame is None:
                        break
                if writer is None:
                    height, width = frame.shape[:2]
                    writer = VideoWriter(config.output.path, width, height, config.output.fps)
                writer.write_frame(frame)
                written += 1
                progress.update(1)
    finally:
        loop.stop()
        loop.detector.close()
        if writer is not None:
            writer.close()

    if written:
        print(f"Output saved to: {config.output.path} ({written} frames)")
    else:
        print("No frames were produced", file=sys.stderr)
