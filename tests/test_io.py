"""
Tests for image decoding, encoding and saving.
"""

import io

import numpy as np
import pytest
from PIL import Image

from imagestudio.io import decode_output, encode_image, load_source, output_filename, save_output
from imagestudio.processing.compositor import Compositor
from imagestudio.processing.errors import CompositionError, SourceDecodeFailed
from imagestudio.processing.models import MimeType, OutputImage

from conftest import encode_pil


class TestLoadSource:
    """Test decoding into SourceImage."""

    def test_png_bytes(self, png_bytes):
        source = load_source(png_bytes)
        assert (source.width, source.height) == (40, 20)
        assert source.pixels.shape == (20, 40, 4)
        assert source.mime_type is MimeType.PNG
        assert source.size_bytes == len(png_bytes)
        assert source.path is None
        assert np.all(source.pixels[:, :, 3] == 255)

    def test_jpeg_file(self, tmp_path, jpeg_bytes):
        path = tmp_path / "photo.jpg"
        path.write_bytes(jpeg_bytes)
        source = load_source(path)
        assert source.mime_type is MimeType.JPEG
        assert source.path == path
        assert (source.width, source.height) == (48, 32)

    def test_mime_type_override(self, png_bytes):
        assert load_source(png_bytes, mime_type="image/jpeg").mime_type is MimeType.JPEG

    def test_other_formats_are_other(self):
        data = encode_pil(Image.new('RGB', (8, 8), 'green'), 'GIF')
        assert load_source(data).mime_type is MimeType.OTHER

    def test_multi_picture_jpeg_is_jpeg(self, tmp_path):
        path = tmp_path / "camera.jpg"
        frames = [Image.new('RGB', (32, 24), color) for color in ('red', 'blue')]
        frames[0].save(path, format='MPO', save_all=True, append_images=frames[1:])

        source = load_source(path)
        assert source.mime_type is MimeType.JPEG
        assert (source.width, source.height) == (32, 24)

        output = Compositor(output_width=32).compose(source)
        assert output.mime_type is MimeType.JPEG
        assert output.data[:2] == b"\xff\xd8"

    def test_sixteen_bit_grey_is_scaled(self):
        data = encode_pil(Image.fromarray(np.full((8, 8), 32768, dtype=np.uint16)), 'PNG')
        source = load_source(data)
        assert source.mime_type is MimeType.PNG
        assert np.all(source.pixels[:, :, :3] == 128)
        assert np.all(source.pixels[:, :, 3] == 255)

    def test_sixteen_bit_extremes(self):
        values = np.array([[0, 255, 65535]], dtype=np.uint16)
        source = load_source(encode_pil(Image.fromarray(values), 'PNG'))
        assert source.pixels[0, :, 0].tolist() == [0, 0, 255]

    def test_exif_orientation_applied(self):
        exif = Image.Exif()
        exif[0x0112] = 6  # rotate 90 CW on display
        data = encode_pil(Image.new('RGB', (40, 20), 'white'), 'JPEG', exif=exif)
        source = load_source(data)
        assert (source.width, source.height) == (20, 40)

    def test_transparency_kept(self):
        image = Image.new('RGBA', (4, 4), (255, 0, 0, 0))
        source = load_source(encode_pil(image, 'PNG'))
        assert np.all(source.pixels[:, :, 3] == 0)

    def test_garbage_bytes(self):
        with pytest.raises(SourceDecodeFailed, match="Failed to load image"):
            load_source(b"definitely not an image")

    def test_missing_file(self, tmp_path):
        with pytest.raises(SourceDecodeFailed):
            load_source(tmp_path / "missing.png")

    def test_truncated_file(self, tmp_path, png_bytes):
        path = tmp_path / "truncated.png"
        path.write_bytes(png_bytes[:30])
        with pytest.raises(CompositionError):
            load_source(path)


class TestEncodeImage:
    """Test encoding of premultiplied buffers."""

    def _buffer(self, rgb, alpha):
        buffer = np.empty((6, 6, 4), dtype=np.float32)
        buffer[:, :, :3] = np.array(rgb, dtype=np.float32) * alpha
        buffer[:, :, 3] = alpha
        return buffer

    def test_png_unpremultiplies(self):
        data = encode_image(self._buffer((1.0, 0.5, 0.0), 0.5), MimeType.PNG)
        decoded = np.asarray(Image.open(io.BytesIO(data)).convert('RGBA'))
        assert np.all(np.abs(decoded[0, 0].astype(int) - [255, 128, 0, 128]) <= 1)

    def test_png_transparent_pixels_are_zero(self):
        data = encode_image(self._buffer((1.0, 1.0, 1.0), 0.0), MimeType.PNG)
        decoded = np.asarray(Image.open(io.BytesIO(data)).convert('RGBA'))
        assert np.all(decoded == 0)

    def test_jpeg_composites_over_black(self):
        data = encode_image(self._buffer((1.0, 1.0, 1.0), 0.5), MimeType.JPEG, jpeg_quality=100)
        decoded = np.asarray(Image.open(io.BytesIO(data)))
        assert decoded.shape == (6, 6, 3)
        assert np.all(np.abs(decoded.astype(int) - 128) <= 2)

    def test_other_type_written_as_png(self):
        data = encode_image(self._buffer((0.2, 0.2, 0.2), 1.0), MimeType.OTHER)
        assert data[:8] == b"\x89PNG\r\n\x1a\n"

    def test_decode_output_channels(self):
        buffer = self._buffer((0.2, 0.4, 0.6), 1.0)
        png = OutputImage(encode_image(buffer, MimeType.PNG), MimeType.PNG, 6, 6, "1:1")
        jpeg = OutputImage(encode_image(buffer, MimeType.JPEG), MimeType.JPEG, 6, 6, "1:1")
        assert decode_output(png).shape == (6, 6, 4)
        assert decode_output(jpeg).shape == (6, 6, 3)


class TestSaveOutput:
    """Test writing outputs to disk."""

    def test_output_filename(self):
        assert output_filename("photo", MimeType.JPEG) == "photo.jpeg"
        assert output_filename("photo", MimeType.OTHER) == "photo.png"

    def test_creates_parent_directories(self, tmp_path):
        output = OutputImage(b"payload", MimeType.PNG, 1, 1, "1:1")
        path = save_output(output, tmp_path / "nested" / "dir" / "out.png")
        assert path.read_bytes() == b"payload"
