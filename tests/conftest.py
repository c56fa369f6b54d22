"""
Shared fixtures for the ImageStudio test suite.
"""

import io
import sys
from pathlib import Path

import numpy as np
import pytest
from PIL import Image

# Add the project root to Python path so the root cli module is importable
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from imagestudio.processing.models import MimeType, SourceImage


def make_source(width, height, color=(200, 100, 50, 255), mime_type=MimeType.PNG):
    """Solid-color RGBA source image."""
    pixels = np.empty((height, width, 4), dtype=np.uint8)
    pixels[:, :] = color
    return SourceImage(pixels=pixels, mime_type=mime_type)


def encode_pil(image, fmt, **kwargs):
    out = io.BytesIO()
    image.save(out, format=fmt, **kwargs)
    return out.getvalue()


@pytest.fixture
def random_source():
    """Opaque 64x64 PNG source with reproducible noise."""
    rng = np.random.default_rng(1234)
    pixels = rng.integers(0, 256, size=(64, 64, 4), dtype=np.uint8)
    pixels[:, :, 3] = 255
    return SourceImage(pixels=pixels, mime_type=MimeType.PNG)


@pytest.fixture
def quadrant_source():
    """64x64 opaque source: red top-left quadrant, blue everywhere else."""
    pixels = np.zeros((64, 64, 4), dtype=np.uint8)
    pixels[:, :] = (0, 0, 255, 255)
    pixels[:32, :32] = (255, 0, 0, 255)
    return SourceImage(pixels=pixels, mime_type=MimeType.PNG)


@pytest.fixture
def png_bytes():
    """Encoded 40x20 RGB PNG."""
    return encode_pil(Image.new('RGB', (40, 20), color=(10, 200, 30)), 'PNG')


@pytest.fixture
def jpeg_bytes():
    """Encoded 48x32 JPEG."""
    return encode_pil(Image.new('RGB', (48, 32), color=(120, 120, 120)), 'JPEG', quality=95)


@pytest.fixture
def image_dir(tmp_path):
    """Directory with a PNG, a JPEG and an undecodable .png file."""
    directory = tmp_path / "images"
    directory.mkdir()
    (directory / "wide.png").write_bytes(encode_pil(Image.new('RGB', (80, 40), 'red'), 'PNG'))
    (directory / "tall.jpg").write_bytes(encode_pil(Image.new('RGB', (30, 60), 'blue'), 'JPEG'))
    (directory / "broken.png").write_bytes(b"not an image")
    (directory / "notes.txt").write_text("ignored")
    return directory
