"""
Image decoding and encoding for ImageStudio
Turns files or bytes into SourceImage objects and composed buffers into bytes
"""

import io
import logging
from pathlib import Path
from typing import Optional, Union

import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

from imagestudio.processing.errors import SourceDecodeFailed
from imagestudio.processing.models import MimeType, OutputImage, SourceImage

logger = logging.getLogger(__name__)

DEFAULT_JPEG_QUALITY = 92

_PIL_FORMATS = {
    MimeType.JPEG: "JPEG",
    MimeType.PNG: "PNG",
}

# Multi-picture JPEGs (camera MPO files) are plain JPEGs to a browser
_JPEG_FORMATS = ("JPEG", "MPO")


def _detect_mime_type(pil_image: Image.Image) -> Optional[str]:
    if pil_image.format in _JPEG_FORMATS:
        return MimeType.JPEG.value
    return Image.MIME.get(pil_image.format or "")


def _to_rgba(pil_image: Image.Image) -> Image.Image:
    """Convert to 8-bit RGBA, scaling 16-bit integer modes instead of clamping them."""
    if pil_image.mode.startswith("I"):
        wide = np.asarray(pil_image, dtype=np.int64)
        pil_image = Image.fromarray(np.clip(wide >> 8, 0, 255).astype(np.uint8))
    return pil_image.convert("RGBA")


def load_source(source: Union[str, Path, bytes],
                mime_type: Optional[str] = None) -> SourceImage:
    """
    Decode an image file or byte string into a SourceImage

    EXIF orientation is applied so width and height match what a browser
    reports as the natural size.

    Args:
        source: File path or encoded image bytes
        mime_type: MIME type hint; detected from the data when omitted

    Returns:
        SourceImage with RGBA pixels

    Raises:
        SourceDecodeFailed: If the data cannot be read or decoded
    """
    path = None
    try:
        if isinstance(source, (bytes, bytearray)):
            data = bytes(source)
        else:
            path = Path(source)
            data = path.read_bytes()

        with Image.open(io.BytesIO(data)) as pil_image:
            detected = _detect_mime_type(pil_image)
            oriented = ImageOps.exif_transpose(pil_image)
            pixels = np.asarray(_to_rgba(oriented), dtype=np.uint8)
    except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as e:
        where = path if path is not None else "image data"
        raise SourceDecodeFailed(f"Failed to load image file for processing: {where} ({e})") from e

    resolved = MimeType.from_string(mime_type or detected)
    logger.debug(f"Decoded {path or 'bytes'}: {pixels.shape[1]}x{pixels.shape[0]} {resolved.value}")

    return SourceImage(
        pixels=pixels,
        mime_type=resolved,
        path=path,
        size_bytes=len(data),
    )


def _to_uint8(values: np.ndarray) -> np.ndarray:
    return np.clip(np.rint(values * 255.0), 0, 255).astype(np.uint8)


def encode_image(buffer: np.ndarray, mime_type: MimeType,
                 jpeg_quality: int = DEFAULT_JPEG_QUALITY) -> bytes:
    """
    Encode a premultiplied float RGBA buffer

    JPEG output drops alpha by compositing over black, which is what the
    premultiplied color channels already hold. PNG output keeps alpha.

    Args:
        buffer: float32 array (H, W, 4) in [0, 1], premultiplied alpha
        mime_type: Target encoding; anything but JPEG is written as PNG
        jpeg_quality: JPEG quality (1-100)

    Returns:
        Encoded bytes
    """
    output_type = mime_type.output_type
    rgb = buffer[:, :, :3]
    alpha = buffer[:, :, 3:4]

    if output_type is MimeType.JPEG:
        pil_image = Image.fromarray(_to_uint8(rgb))
        save_kwargs = {"quality": int(jpeg_quality)}
    else:
        straight = np.where(alpha > 0, rgb / np.maximum(alpha, 1e-12), 0.0)
        rgba = np.concatenate([straight, alpha], axis=2)
        pil_image = Image.fromarray(_to_uint8(rgba))
        save_kwargs = {}

    out = io.BytesIO()
    pil_image.save(out, format=_PIL_FORMATS[output_type], **save_kwargs)
    return out.getvalue()


def decode_output(output: OutputImage) -> np.ndarray:
    """Decode an OutputImage back to a uint8 array (RGB for JPEG, RGBA for PNG)."""
    with Image.open(io.BytesIO(output.data)) as pil_image:
        mode = "RGB" if output.mime_type is MimeType.JPEG else "RGBA"
        return np.asarray(pil_image.convert(mode), dtype=np.uint8)


def output_filename(stem: str, mime_type: MimeType) -> str:
    """File name for an output, with the extension of its encoding."""
    return f"{stem}{mime_type.output_type.extension}"


def save_output(output: OutputImage, path: Union[str, Path]) -> Path:
    """
    Write an encoded output to disk

    Args:
        output: Composed image
        path: Destination file; parent directories are created

    Returns:
        The written path
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(output.data)
    logger.info(f"Saved {output.width}x{output.height} {output.mime_type.value} to {path}")
    return path
