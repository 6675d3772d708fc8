"""Interactive runner: camera in, pygame window out."""

from ..config import PipelineConfig
from ..pipeline import FrameMailbox
from .common import start_pipeline


def run_live(config: PipelineConfig) -> None:
    """Run the pipeline and show annotated frames until the window closes.

    Args:
        config: Pipeline configuration.

    Raises:
        SystemExit: If the model or camera cannot be loaded.
    """
    from ..display import PygameDisplay

    mailbox = FrameMailbox()
    loop = start_pipeline(config, mailbox)
    display = PygameDisplay(caption=config.display.caption, fps=config.display.fps)

    print("Press ESC or close the window to quit.")
    try:
        display.run(mailbox, keep_running=lambda: loop.is_running)
    finally:
        loop.stop()
        loop.detector.close()
    print(f"Processed {loop.stats.cycles} frames")
