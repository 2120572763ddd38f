#!/usr/bin/env python3
"""
Sequential image convolution with edge extension.

Pixel buffers are flat uint8 arrays in row-major order with channel order
B, G, R[, A]. Every function returns a freshly allocated buffer; inputs are
never written.
"""
import sys

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view

from ImageIO import as_flat, buffer_to_image, load_image
from KernelCatalog import DEFAULT_CATALOG

# Luminosity weights in percent for B, G, R
GRAY_WEIGHTS = np.array([11, 59, 30], dtype=np.uint32)


def as_pixels(buffer, width, height, bytes_per_pixel):
    """View a flat buffer as a (height, width, bytes_per_pixel) uint8 array."""
    if bytes_per_pixel not in (3, 4):
        raise ValueError(f"bytes_per_pixel must be 3 or 4, got {bytes_per_pixel}")
    if width <= 0 or height <= 0:
        raise ValueError(f"image dimensions must be positive, got {width}x{height}")
    flat = as_flat(buffer)
    expected = width * height * bytes_per_pixel
    if flat.size != expected:
        raise ValueError(f"buffer holds {flat.size} bytes, expected {expected} "
                         f"for {width}x{height}x{bytes_per_pixel}")
    return flat.reshape(height, width, bytes_per_pixel)


def to_grayscale(buffer, bytes_per_pixel):
    """Luminosity grayscale: 0.11*B + 0.59*G + 0.30*R, truncated to a byte."""
    flat = as_flat(buffer)
    if bytes_per_pixel not in (3, 4):
        raise ValueError(f"bytes_per_pixel must be 3 or 4, got {bytes_per_pixel}")
    if flat.size % bytes_per_pixel:
        raise ValueError(f"buffer length {flat.size} is not a multiple of {bytes_per_pixel}")
    pixels = flat.reshape(-1, bytes_per_pixel)

    # Integer percentages keep the truncation exact, so the transform is idempotent.
    # A float32 sum of the same weights can land just below an integer luminosity
    # and truncate one lower; this differs from such a sum by 1 in those cases.
    luminosity = (pixels[:, :3].astype(np.uint32) @ GRAY_WEIGHTS) // 100
    luminosity = np.clip(luminosity, 0, 255).astype(np.uint8)

    out = np.empty_like(pixels)
    out[:, :3] = luminosity[:, None]
    if bytes_per_pixel == 4:
        out[:, 3] = 255
    return out.reshape(-1)


def pad_edges(pixels, offset):
    """Color channels as float64, extended by `offset` copies of the edge pixels."""
    color = pixels[:, :, :3].astype(np.float64)
    return np.pad(color, ((offset, offset), (offset, offset), (0, 0)), mode="edge")


def weighted_sum(padded, matrix):
    """Correlate every window of `padded` with `matrix` (no kernel flip)."""
    side = matrix.shape[0]
    # windows shape: (out_h, out_w, 3, side, side)
    windows = sliding_window_view(padded, (side, side), axis=(0, 1))
    return np.einsum("ijckl,kl->ijc", windows, matrix)


def apply_kernel(padded, descriptor):
    """Convolve an edge-padded block and return the clamped uint8 color block."""
    value = descriptor.factor * weighted_sum(padded, descriptor.matrix_primary) + descriptor.bias
    if descriptor.matrix_secondary is not None:
        value_secondary = (descriptor.factor * weighted_sum(padded, descriptor.matrix_secondary)
                           + descriptor.bias)
        value = np.sqrt(value * value + value_secondary * value_secondary)
    # astype truncates toward zero after the clamp
    return np.clip(value, 0, 255).astype(np.uint8)


def assemble(color, bytes_per_pixel):
    """Pack a (h, w, 3) color block into a flat buffer with opaque alpha."""
    height, width = color.shape[:2]
    out = np.empty((height, width, bytes_per_pixel), dtype=np.uint8)
    out[:, :, :3] = color
    if bytes_per_pixel == 4:
        out[:, :, 3] = 255
    return out.reshape(-1)


def convolve(buffer, descriptor, width, height, bytes_per_pixel):
    pixels = as_pixels(buffer, width, height, bytes_per_pixel)
    padded = pad_edges(pixels, descriptor.offset)
    return assemble(apply_kernel(padded, descriptor), bytes_per_pixel)


if __name__ == "__main__":
    # Configuration
    input_path = sys.argv[1] if len(sys.argv) > 1 else "0_input.png"
    output_path = "output_sequential.jpeg"
    kernel_name = "Sobel3x3"

    buffer, width, height = load_image(input_path, bytes_per_pixel=3)
    print(f"Processing image: {width}x{height} pixels")

    result = convolve(buffer, DEFAULT_CATALOG.lookup(kernel_name), width, height, 3)

    buffer_to_image(result, width, height, 3).save(output_path)
    print(f"Saved: {output_path}")
