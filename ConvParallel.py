#!/usr/bin/env python3
"""
Parallel image convolution script using joblib.

The output is split into horizontal bands of rows. Each worker receives its
band of the edge-padded input plus `offset` rows of halo on either side, so
workers only read the shared input and each writes a disjoint set of rows.
"""
import sys

import numpy as np
from joblib import Parallel, delayed, effective_n_jobs

from ConvSeq import apply_kernel, as_pixels, assemble, pad_edges
from ImageIO import buffer_to_image, load_image
from KernelCatalog import DEFAULT_CATALOG


def process_band(padded_band, descriptor, start_row, end_row):
    """Process a band of output rows for all color channels."""
    return start_row, end_row, apply_kernel(padded_band, descriptor)


def band_rows(height, n_jobs=-1, block_rows=None):
    """Split [0, height) into (start, end) row ranges."""
    if block_rows is None:
        n_cores = effective_n_jobs(n_jobs)
        # Aim for ~4 bands per core for better load balancing
        block_rows = max(16, -(-height // (n_cores * 4)))
    if block_rows < 1:
        raise ValueError(f"block_rows must be positive, got {block_rows}")
    return [(start, min(start + block_rows, height)) for start in range(0, height, block_rows)]


def convolve(buffer, descriptor, width, height, bytes_per_pixel,
             n_jobs=-1, block_rows=None, backend=None):
    pixels = as_pixels(buffer, width, height, bytes_per_pixel)
    offset = descriptor.offset
    padded = pad_edges(pixels, offset)

    bands = band_rows(height, n_jobs=n_jobs, block_rows=block_rows)

    # Process all bands in parallel; each band reads its rows plus the halo
    results = Parallel(n_jobs=n_jobs, backend=backend)(
        delayed(process_band)(
            padded[start:end + 2 * offset], descriptor, start, end
        ) for start, end in bands
    )

    # Assemble results into output array
    color = np.empty((height, width, 3), dtype=np.uint8)
    for start, end, block in results:
        color[start:end] = block

    return assemble(color, bytes_per_pixel)


if __name__ == "__main__":
    # Configuration
    input_path = sys.argv[1] if len(sys.argv) > 1 else "0_input.png"
    output_path = "output_parallel.jpeg"
    kernel_name = "Sobel3x3"
    n_jobs = -1  # -1 uses all available cores
    block_rows = None  # None = automatic, or set manually (e.g., 64, 128)

    buffer, width, height = load_image(input_path, bytes_per_pixel=3)

    print(f"Processing image: {width}x{height} pixels")
    print(f"Parallelization: row bands")

    result = convolve(buffer, DEFAULT_CATALOG.lookup(kernel_name), width, height, 3,
                      n_jobs=n_jobs, block_rows=block_rows)

    buffer_to_image(result, width, height, 3).save(output_path)
    print(f"Saved: {output_path}")
