"""
Image input/output for ImageStudio
"""

from .images import (
    decode_output,
    encode_image,
    load_source,
    output_filename,
    save_output,
)

__all__ = [
    "decode_output",
    "encode_image",
    "load_source",
    "output_filename",
    "save_output",
]
