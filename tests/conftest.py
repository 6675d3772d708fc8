"""Shared fixtures for livedet tests."""
from __future__ import annotations

from pathlib import Path

import pytest

from livedet.detection.classes import ClassNameTable


@pytest.fixture()
def class_names() -> ClassNameTable:
    return ClassNameTable(["person", "bicycle", "car"])


@pytest.fixture()
def model_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "model"
    directory.mkdir()
    (directory / "yolov3.cfg").write_text("[net]\n")
    (directory / "yolov3.weights").write_bytes(b"\x00" * 16)
    (directory / "coco.names").write_text("person\nbicycle\ncar\n")
    return directory
