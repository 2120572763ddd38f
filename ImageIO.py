"""
Pillow boundary: decode images into flat B,G,R[,A] buffers and encode the
filtered buffers back into files named "<sequence>_<kernel>.<extension>".
"""
from pathlib import Path
from typing import List, Tuple

import numpy as np
from PIL import Image

MODES = {3: "RGB", 4: "RGBA"}
# Formats Pillow cannot write with an alpha channel
NO_ALPHA_FORMATS = {"jpeg", "jpg", "bmp"}


def as_flat(buffer):
    """Flat uint8 view of bytes, bytearray, memoryview or array-like input."""
    if isinstance(buffer, (bytes, bytearray, memoryview)):
        return np.frombuffer(buffer, dtype=np.uint8)
    return np.asarray(buffer, dtype=np.uint8).reshape(-1)


def _mode(bytes_per_pixel):
    try:
        return MODES[bytes_per_pixel]
    except KeyError:
        raise ValueError(f"bytes_per_pixel must be 3 or 4, got {bytes_per_pixel}") from None


def load_image(path, bytes_per_pixel=4) -> Tuple[np.ndarray, int, int]:
    """Decode `path` and return (buffer, width, height) with B,G,R[,A] channel order."""
    mode = _mode(bytes_per_pixel)
    with Image.open(path) as img:
        arr = np.array(img.convert(mode))

    height, width = arr.shape[:2]
    # RGB(A) -> BGR(A)
    arr[:, :, :3] = arr[:, :, 2::-1].copy()
    return arr.reshape(-1), width, height


def buffer_to_image(buffer, width, height, bytes_per_pixel) -> Image.Image:
    _mode(bytes_per_pixel)
    arr = as_flat(buffer)
    if arr.size != width * height * bytes_per_pixel:
        raise ValueError(f"buffer holds {arr.size} bytes, expected "
                         f"{width * height * bytes_per_pixel}")
    arr = arr.reshape(height, width, bytes_per_pixel).copy()
    arr[:, :, :3] = arr[:, :, 2::-1].copy()
    return Image.fromarray(arr)


def output_filename(sequence, name, extension="jpeg"):
    return f"{sequence}_{name}.{extension}"


def save_image(buffer, width, height, bytes_per_pixel, name, sequence,
               output_dir=".", extension="jpeg") -> Path:
    img = buffer_to_image(buffer, width, height, bytes_per_pixel)
    if img.mode == "RGBA" and extension.lower() in NO_ALPHA_FORMATS:
        img = img.convert("RGB")
    path = Path(output_dir) / output_filename(sequence, name, extension)
    img.save(path)
    return path


def clean_outputs(directory=".", patterns=("*.jpeg", "*.tiff"), keep=()) -> List[Path]:
    """Delete results of a previous run; returns the removed paths.

    Files listed in `keep` (e.g. the input image) are left in place.
    """
    kept = {Path(path).resolve() for path in keep}
    removed = []
    for pattern in patterns:
        for path in sorted(Path(directory).glob(pattern)):
            if path.is_file() and path.resolve() not in kept:
                path.unlink()
                removed.append(path)
    return removed
