"""
Tests for pipeline data models.
"""

import base64

import numpy as np
import pytest

from imagestudio.processing.errors import InvalidDimensions
from imagestudio.processing.models import (
    FilterSettings,
    ImageProperties,
    MimeType,
    OutputImage,
    SourceImage,
    TransformParameters,
)


class TestMimeType:
    """Test MIME type mapping."""

    def test_from_string(self):
        assert MimeType.from_string("image/jpeg") is MimeType.JPEG
        assert MimeType.from_string("IMAGE/JPG") is MimeType.JPEG
        assert MimeType.from_string("image/png") is MimeType.PNG
        assert MimeType.from_string("image/webp") is MimeType.OTHER
        assert MimeType.from_string(None) is MimeType.OTHER

    def test_output_type(self):
        assert MimeType.JPEG.output_type is MimeType.JPEG
        assert MimeType.PNG.output_type is MimeType.PNG
        assert MimeType.OTHER.output_type is MimeType.PNG

    def test_extension(self):
        assert MimeType.JPEG.extension == ".jpeg"
        assert MimeType.OTHER.extension == ".png"


class TestFilterSettings:
    """Test filter validation and CSS rendering."""

    def test_defaults_are_identity(self):
        assert FilterSettings().is_identity()
        assert not FilterSettings(hue_rotate=10).is_identity()

    def test_css_string(self):
        css = FilterSettings(brightness=120, sepia=35.5, hue_rotate=-90).to_css()
        assert css == ("brightness(120%) contrast(100%) saturate(100%) grayscale(0%) "
                       "sepia(35.5%) invert(0%) hue-rotate(-90deg)")

    @pytest.mark.parametrize("name", ["brightness", "contrast", "saturate", "grayscale", "sepia", "invert"])
    def test_negative_rejected(self, name):
        with pytest.raises(ValueError):
            FilterSettings(**{name: -1})

    def test_negative_hue_allowed(self):
        assert FilterSettings(hue_rotate=-45).hue_rotate == -45.0

    def test_non_finite_rejected(self):
        with pytest.raises(ValueError):
            FilterSettings(brightness=float('nan'))
        with pytest.raises(ValueError):
            FilterSettings(hue_rotate=float('inf'))

    def test_percentages_clamped(self):
        settings = FilterSettings(grayscale=150, sepia=101, invert=1000, brightness=300)
        assert (settings.grayscale, settings.sepia, settings.invert) == (100.0, 100.0, 100.0)
        assert settings.brightness == 300.0

    def test_dict_round_trip_ignores_unknown_keys(self):
        settings = FilterSettings.from_dict({'contrast': 80, 'rotate': 90})
        assert settings.contrast == 80.0
        assert settings.to_dict()['contrast'] == 80.0
        assert FilterSettings.from_dict(settings.to_dict()) == settings


class TestTransformParameters:
    """Test transform validation."""

    def test_css_transform(self):
        assert TransformParameters(90).to_css_transform() == "rotate(90deg)"
        assert TransformParameters(-12.5, True).to_css_transform() == "rotate(-12.5deg) scaleX(-1)"

    def test_non_finite_rotation_rejected(self):
        with pytest.raises(ValueError):
            TransformParameters(float('inf'))

    def test_defaults(self):
        transform = TransformParameters()
        assert transform.rotation_degrees == 0.0
        assert not transform.mirrored
        assert transform.filters.is_identity()


class TestSourceImage:
    """Test source normalization and immutability."""

    def test_rgb_gets_opaque_alpha(self):
        source = SourceImage(np.zeros((3, 5, 3), dtype=np.uint8), "image/png")
        assert source.pixels.shape == (3, 5, 4)
        assert np.all(source.pixels[:, :, 3] == 255)
        assert (source.width, source.height) == (5, 3)
        assert source.mime_type is MimeType.PNG

    def test_grayscale_expanded(self):
        pixels = np.full((2, 2), 77, dtype=np.uint8)
        source = SourceImage(pixels)
        assert source.pixels.shape == (2, 2, 4)
        assert np.all(source.pixels[:, :, :3] == 77)

    def test_pixels_read_only_copy(self):
        pixels = np.zeros((2, 2, 4), dtype=np.uint8)
        source = SourceImage(pixels)
        pixels[0, 0] = 255
        assert source.pixels[0, 0, 0] == 0
        with pytest.raises(ValueError):
            source.pixels[0, 0, 0] = 1

    def test_rejects_non_uint8(self):
        with pytest.raises(InvalidDimensions):
            SourceImage(np.zeros((2, 2, 4), dtype=np.float32))

    def test_rejects_unsupported_channels(self):
        with pytest.raises(InvalidDimensions):
            SourceImage(np.zeros((2, 2, 2), dtype=np.uint8))

    def test_empty_source_has_no_dimensions(self):
        assert not SourceImage(np.zeros((0, 0, 4), dtype=np.uint8)).has_dimensions


class TestOutputImage:
    """Test output hand-off helpers."""

    def test_data_url(self):
        output = OutputImage(b"\x89PNGdata", MimeType.PNG, 1024, 576, "16:9")
        url = output.to_data_url()
        assert url.startswith("data:image/png;base64,")
        assert base64.b64decode(url.split(",", 1)[1]) == b"\x89PNGdata"
        assert output.size == (1024, 576)

    def test_properties_dict(self):
        properties = ImageProperties(1920, 1080, "image/jpeg", 2048, "16:9", "1920:1080")
        assert properties.to_dict() == {
            'width': 1920,
            'height': 1080,
            'type': "image/jpeg",
            'size': 2048,
            'simplified_ratio': "16:9",
            'auto_ratio': "1920:1080",
        }
