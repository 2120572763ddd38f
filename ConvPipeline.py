#!/usr/bin/env python3
"""
Apply every kernel of the catalog to one image.

For each catalog entry, in declaration order, a fresh copy of the source
buffer goes through the optional grayscale transform, the optional blur
pre-pass (another catalog entry, looked up by name) and finally the entry's
own convolution. Results are numbered from 1 across the whole run.
"""
import sys
from pathlib import Path
from typing import Iterator, List, NamedTuple

import numpy as np
from joblib import Parallel, delayed

import ConvSeq
from ImageIO import as_flat, clean_outputs, load_image, save_image
from KernelCatalog import DEFAULT_CATALOG, KernelError, describe

# Configuration defaults
INPUT_PATH = "0_input.png"
OUTPUT_DIR = "."
BYTES_PER_PIXEL = 4
N_JOBS = 1  # > 1 (or -1) processes catalog entries on joblib workers


class PipelineResult(NamedTuple):
    sequence: int
    name: str
    buffer: np.ndarray


def process_entry(source, descriptor, catalog, width, height, bytes_per_pixel,
                  convolve=ConvSeq.convolve):
    """RAW -> (GRAYSCALE) -> (BLUR) -> CONVOLVE for a single catalog entry."""
    working = as_flat(source).copy()

    if descriptor.grayscale:
        working = ConvSeq.to_grayscale(working, bytes_per_pixel)

    if descriptor.blur_reference:
        blur = catalog.lookup(descriptor.blur_reference)
        working = convolve(working, blur, width, height, bytes_per_pixel)

    return convolve(working, descriptor, width, height, bytes_per_pixel)


def run(source, catalog, width, height, bytes_per_pixel,
        convolve=ConvSeq.convolve, start=1) -> Iterator[PipelineResult]:
    """Yield one PipelineResult per catalog entry, in catalog order."""
    ConvSeq.as_pixels(source, width, height, bytes_per_pixel)
    for sequence, descriptor in enumerate(catalog, start=start):
        output = process_entry(source, descriptor, catalog, width, height,
                               bytes_per_pixel, convolve=convolve)
        yield PipelineResult(sequence, descriptor.name, output)


def run_parallel(source, catalog, width, height, bytes_per_pixel,
                 convolve=ConvSeq.convolve, start=1, n_jobs=-1,
                 backend=None) -> List[PipelineResult]:
    """Process the catalog entries concurrently; results keep catalog order."""
    ConvSeq.as_pixels(source, width, height, bytes_per_pixel)
    source = as_flat(source)
    descriptors = list(catalog)
    outputs = Parallel(n_jobs=n_jobs, backend=backend)(
        delayed(process_entry)(
            source, descriptor, catalog, width, height, bytes_per_pixel, convolve
        ) for descriptor in descriptors
    )
    return [
        PipelineResult(sequence, descriptor.name, output)
        for sequence, (descriptor, output) in enumerate(zip(descriptors, outputs), start=start)
    ]


def main(input_path=INPUT_PATH, output_dir=OUTPUT_DIR, bytes_per_pixel=BYTES_PER_PIXEL,
         catalog=DEFAULT_CATALOG, n_jobs=N_JOBS, extension="jpeg", backend=None):
    source, width, height = load_image(input_path, bytes_per_pixel=bytes_per_pixel)
    print(f"Loaded image {input_path} ({width}x{height})")

    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    for path in clean_outputs(output_dir, keep=[input_path]):
        print(f"Removed {path}")
    print()

    if n_jobs == 1:
        results = run(source, catalog, width, height, bytes_per_pixel)
    else:
        print(f"Processing {len(catalog)} kernels on {n_jobs} jobs...")
        results = run_parallel(source, catalog, width, height, bytes_per_pixel,
                               n_jobs=n_jobs, backend=backend)

    saved = []
    for result in results:
        print(f"Applied {describe(catalog.lookup(result.name))}")
        path = save_image(result.buffer, width, height, bytes_per_pixel,
                          result.name, result.sequence, output_dir, extension)
        print(f"Saved image file {path.name}")
        print()
        saved.append(path)
    return saved


def cli(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    input_path = argv[0] if argv else INPUT_PATH
    try:
        main(input_path=input_path)
    except (KernelError, OSError) as e:
        print(f"Error: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(cli())
