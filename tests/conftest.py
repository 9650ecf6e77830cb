"""Shared test fixtures."""

import os
import shutil
import tempfile

import pytest
from PIL import Image

from MaterialBrew.config import PipelineConfig
from MaterialBrew.graph import MemoryDocument


ROCK_FILES = [
    "rock_albedo.png",
    "rock_rough.png",
    "rock_normal.png",
    "rock_ao.png",
    "rock_height.png",
]


def save_test_png(path, width=8, height=8, color=(128, 128, 128)):
    """Create a small solid-color PNG."""
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    Image.new("RGB", (width, height), color).save(path)
    return path


def make_texture_folder(root, name, files, real_images=False):
    """Create ``root/name`` holding ``files`` and return its path.

    Files are empty unless ``real_images`` is set; the pipeline only reads
    names, so empty files are enough for most tests.
    """
    folder = os.path.join(root, name)
    os.makedirs(folder, exist_ok=True)
    for fname in files:
        path = os.path.join(folder, fname)
        if real_images and fname.lower().endswith(".png"):
            save_test_png(path)
        else:
            with open(path, "wb"):
                pass
    return folder


@pytest.fixture
def tmp_dir():
    d = tempfile.mkdtemp()
    yield d
    shutil.rmtree(d, ignore_errors=True)


@pytest.fixture
def default_config():
    return PipelineConfig()


@pytest.fixture
def generic_document():
    return MemoryDocument.with_generic_template()


@pytest.fixture
def rock_folder(tmp_dir):
    return make_texture_folder(tmp_dir, "rock_wall", ROCK_FILES)
