"""livedet - real-time object detection on a live camera feed."""

__version__ = "0.1.0"
