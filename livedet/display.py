"""Pygame window that renders frames taken from a FrameMailbox."""

import logging
from typing import Callable, Optional, Tuple

import cv2
import numpy as np
import pygame

from .pipeline import FrameMailbox

logger = logging.getLogger(__name__)


class PygameDisplay:
    """Presentation side of the pipeline; owns no pipeline state.

    Runs on the main thread, takes the newest frame from the mailbox once per
    tick and shows it. Keeps showing the last frame when nothing new arrived.
    """

    def __init__(self, caption: str = "Object Detection", fps: int = 30):
        """Initialize the display.

        Args:
            caption: Window title.
            fps: Maximum render rate.
        """
        self.caption = caption
        self.fps = fps
        self._screen: Optional[pygame.Surface] = None
        self._size: Optional[Tuple[int, int]] = None

    def _ensure_window(self, width: int, height: int) -> pygame.Surface:
        if self._screen is None or self._size != (width, height):
            self._screen = pygame.display.set_mode((width, height))
            self._size = (width, height)
            pygame.display.set_caption(self.caption)
            logger.info("Pygame window initialized with size %dx%d", width, height)
        return self._screen

    def show(self, frame: np.ndarray) -> None:
        """Blit a BGR frame to the window."""
        height, width = frame.shape[:2]
        screen = self._ensure_window(width, height)
        rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        surface = pygame.surfarray.make_surface(np.swapaxes(rgb, 0, 1))
        screen.blit(surface, (0, 0))
        pygame.display.flip()

    def run(
        self,
        mailbox: FrameMailbox,
        keep_running: Callable[[], bool] = lambda: True,
    ) -> None:
        """Render frames until the window closes, ESC is pressed or
        ``keep_running`` returns False."""
        pygame.init()
        clock = pygame.time.Clock()
        try:
            running = True
            while running and keep_running():
                for event in pygame.event.get():
                    if event.type == pygame.QUIT:
                        running = False
                    elif event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
                        running = False

                frame = mailbox.take()
                if frame is not None:
                    self.show(frame)
                clock.tick(self.fps)
        finally:
            pygame.quit()
            self._screen = None
            self._size = None
