"""Runners that wire the pipeline to a window or a video file."""
