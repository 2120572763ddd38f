#!/usr/bin/env python3
"""
Simple image convolution script.

Per-pixel nested loops over the kernel window, sampling the input with
edge extension. Slow; kept as the readable reference and benchmark baseline
for the vectorised engines.
"""
import math
import sys
import time

import numpy as np

from ConvSeq import as_pixels
from ImageIO import buffer_to_image, load_image
from KernelCatalog import DEFAULT_CATALOG


def _clamp_byte(value):
    return int(min(255.0, max(0.0, value)))


def convolve(buffer, descriptor, width, height, bytes_per_pixel):

    # ==== SETUP PARAMETERS ====
    pixels = as_pixels(buffer, width, height, bytes_per_pixel)
    primary = descriptor.matrix_primary
    secondary = descriptor.matrix_secondary
    side = descriptor.side
    offset = descriptor.offset
    out = np.empty_like(pixels)

    # ==== NESTED LOOPS CONVOLUTION ====
    for y in range(height):
        for x in range(width):
            sum_primary = [0.0, 0.0, 0.0]
            sum_secondary = [0.0, 0.0, 0.0]

            for f_y in range(side):
                row = min(max(y + f_y - offset, 0), height - 1)
                for f_x in range(side):
                    col = min(max(x + f_x - offset, 0), width - 1)
                    for c in range(3):
                        sample = float(pixels[row, col, c])
                        sum_primary[c] += primary[f_y, f_x] * sample
                        if secondary is not None:
                            sum_secondary[c] += secondary[f_y, f_x] * sample

            for c in range(3):
                value = descriptor.factor * sum_primary[c] + descriptor.bias
                if secondary is not None:
                    value_secondary = descriptor.factor * sum_secondary[c] + descriptor.bias
                    value = math.sqrt(value * value + value_secondary * value_secondary)
                out[y, x, c] = _clamp_byte(value)
            if bytes_per_pixel == 4:
                out[y, x, 3] = 255

    return out.reshape(-1)


def convolve_timed(buffer, descriptor, width, height, bytes_per_pixel):
    """Run convolve() and return (result, elapsed_seconds) measured inside this module."""
    t0 = time.perf_counter()
    out = convolve(buffer, descriptor, width, height, bytes_per_pixel)
    t1 = time.perf_counter()
    return out, (t1 - t0)


# ============================================
# ================ MAIN ======================
# ============================================
if __name__ == "__main__":

    # ==== PARAMETERS ====
    input_path = sys.argv[1] if len(sys.argv) > 1 else "0_input.png"
    output_path = "output_sequential_dumb.jpeg"
    kernel_name = "GaussianBlur5x5"

    # ===== LOAD IMAGE =====
    buffer, width, height = load_image(input_path, bytes_per_pixel=3)

    # ===== RUN CONVOLUTION =====
    result, elapsed = convolve_timed(buffer, DEFAULT_CATALOG.lookup(kernel_name), width, height, 3)
    print(f"{kernel_name}: {elapsed:.4f} seconds")

    buffer_to_image(result, width, height, 3).save(output_path)
    print(f"Saved: {output_path}")
