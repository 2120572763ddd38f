#!/usr/bin/env python3
"""
Benchmark script to compare sequential vs parallel convolution engines
over the kernel catalog.
"""
import json
import multiprocessing
import sys
import time
from functools import partial

import numpy as np

import ConvParallel
import ConvSeq
import ConvSeqDumb
from ImageIO import load_image
from KernelCatalog import DEFAULT_CATALOG


def benchmark_catalog(buffer, width, height, bytes_per_pixel, catalog, engines, n_runs=3):
    """Time every engine on every catalog entry.

    `engines` maps a label to a convolve(buffer, descriptor, width, height,
    bytes_per_pixel) callable; the first engine is the speedup baseline and
    the reference for the output check. Returns a JSON-serialisable dict.
    """
    labels = list(engines)
    if not labels:
        raise ValueError("at least one engine is required")
    baseline_label = labels[0]

    print(f"Image size: {width}x{height} pixels, {bytes_per_pixel} bytes per pixel")
    print(f"Kernels: {len(catalog)}")
    print(f"Number of runs: {n_runs}")
    print(f"CPU cores: {multiprocessing.cpu_count()}")
    print("=" * 70)

    results = []
    for descriptor in catalog:
        print(f"\n{descriptor.name} ({descriptor.side}x{descriptor.side})")
        print("-" * 70)

        reference = None
        baseline_avg = None
        for label in labels:
            convolve = engines[label]
            times = []
            for _ in range(n_runs):
                start = time.perf_counter()
                output = convolve(buffer, descriptor, width, height, bytes_per_pixel)
                times.append(time.perf_counter() - start)

            avg = float(np.mean(times))
            std = float(np.std(times))
            if reference is None:
                reference, baseline_avg = output, avg
                max_diff = 0.0
            else:
                max_diff = float(np.abs(reference.astype(float) - output.astype(float)).max())
            speedup = baseline_avg / avg if avg > 0 else 0.0

            print(f"  {label:25s}: {avg:.4f} ± {std:.4f} s  ({speedup:.2f}x)  max diff {max_diff}")
            results.append({
                "kernel": descriptor.name,
                "kernel_size": descriptor.side,
                "engine": label,
                "seconds": avg,
                "std": std,
                "speedup": speedup,
                "max_diff": max_diff,
            })

    return {
        "metadata": {
            "width": width,
            "height": height,
            "bytes_per_pixel": bytes_per_pixel,
            "n_runs": n_runs,
            "baseline": baseline_label,
            "cpu_count": multiprocessing.cpu_count(),
        },
        "results": results,
    }


if __name__ == "__main__":
    # Configuration
    input_path = sys.argv[1] if len(sys.argv) > 1 else "0_input.png"
    output_path = "benchmark_results.json"
    bytes_per_pixel = 3
    n_runs = 3
    include_dumb = False  # per-pixel loops; only for small images

    print("=" * 70)
    print("CONVOLUTION BENCHMARK: Sequential vs Parallel Versions")
    print("=" * 70)

    buffer, width, height = load_image(input_path, bytes_per_pixel=bytes_per_pixel)

    engines = {}
    if include_dumb:
        engines["ConvSeqDumb"] = ConvSeqDumb.convolve
    engines["ConvSeq"] = ConvSeq.convolve
    engines["ConvParallel"] = partial(ConvParallel.convolve, n_jobs=-1)

    data = benchmark_catalog(buffer, width, height, bytes_per_pixel, DEFAULT_CATALOG,
                             engines, n_runs=n_runs)

    with open(output_path, "w") as f:
        json.dump(data, f, indent=2)
    print(f"\n✓ Results saved to {output_path}")
