#!/usr/bin/env python3
"""
Visualize benchmark results from benchmark_results.json
Creates bar charts comparing execution times across engines for every kernel.
"""

import json
import sys
from pathlib import Path

import matplotlib
import matplotlib.pyplot as plt
import numpy as np

# Define colors for engines
COLORS = {
    'ConvSeqDumb': '#87CEEB',
    'ConvSeq': '#2E86AB',
    'ConvParallel': '#A23B72',
}


def load_results(json_path='benchmark_results.json'):
    """Load benchmark results from JSON file."""
    with open(json_path, 'r') as f:
        data = json.load(f)
    return data


def organize_data(data):
    """Organize results as {kernel: {engine: time_ms}}, keeping catalog order."""
    results = {}
    for entry in data['results']:
        results.setdefault(entry['kernel'], {})[entry['engine']] = entry['seconds'] * 1000
    return results


def engine_order(data):
    engines = []
    for entry in data['results']:
        if entry['engine'] not in engines:
            engines.append(entry['engine'])
    return engines


def plot_benchmark_results(data, output_path='benchmark_plot.png', show=True):
    """Create execution time and speedup charts; returns the saved path."""
    results = organize_data(data)
    engines = engine_order(data)
    kernels = list(results)
    baseline = data.get('metadata', {}).get('baseline', engines[0])

    fig, (ax_time, ax_speedup) = plt.subplots(2, 1, figsize=(max(10, len(kernels) * 0.8), 12))
    fig.suptitle('Kernel Catalog Convolution Benchmark', fontsize=16, fontweight='bold')

    x = np.arange(len(kernels))
    width = 0.8 / len(engines)

    # Row 1: Execution times
    for i, engine in enumerate(engines):
        times = [results[k].get(engine, 0) for k in kernels]
        offset = (i - len(engines) / 2 + 0.5) * width
        ax_time.bar(x + offset, times, width, label=engine,
                    color=COLORS.get(engine, '#999999'), alpha=0.8)

    ax_time.set_ylabel('Time (ms)', fontsize=11, fontweight='bold')
    ax_time.set_title('Execution Time', fontsize=12, fontweight='bold')
    ax_time.set_yscale('log')

    # Row 2: Speedups relative to the baseline engine
    for i, engine in enumerate(engines):
        if engine == baseline:
            continue
        speedups = []
        for k in kernels:
            base, t = results[k].get(baseline), results[k].get(engine)
            speedups.append(base / t if base and t else 0)
        offset = (i - len(engines) / 2 + 0.5) * width
        ax_speedup.bar(x + offset, speedups, width, label=engine,
                       color=COLORS.get(engine, '#999999'), alpha=0.8)

    ax_speedup.axhline(y=1.0, color='red', linestyle='--', linewidth=1, alpha=0.7,
                       label=f'Baseline ({baseline})')
    ax_speedup.set_ylabel(f'Speedup vs {baseline}', fontsize=11, fontweight='bold')
    ax_speedup.set_title('Speedup', fontsize=12, fontweight='bold')

    for ax in (ax_time, ax_speedup):
        ax.set_xticks(x)
        ax.set_xticklabels(kernels, rotation=60, ha='right', fontsize=8)
        ax.legend(fontsize=8, loc='best')
        ax.grid(True, alpha=0.3, axis='y')

    fig.tight_layout()
    fig.savefig(output_path, dpi=150, bbox_inches='tight')
    print(f"✓ Execution times plot saved to: {output_path}")
    if show:
        plt.show()
    plt.close(fig)
    return Path(output_path)


def print_summary(data):
    """Print summary statistics."""
    results = organize_data(data)
    baseline = data.get('metadata', {}).get('baseline')

    print("\n" + "=" * 80)
    print("BENCHMARK SUMMARY")
    print("=" * 80)

    for kernel, times in results.items():
        print(f"\nKernel: {kernel}")
        print("-" * 80)
        for engine, time_ms in sorted(times.items(), key=lambda x: x[1]):
            line = f"  {engine:30s}: {time_ms:10.2f} ms"
            if baseline in times and engine != baseline and time_ms > 0:
                line += f"  ({times[baseline] / time_ms:6.2f}x vs {baseline})"
            print(line)


def main(json_path='benchmark_results.json'):
    # Load results
    json_path = Path(json_path)
    if not json_path.exists():
        print(f"Error: {json_path} not found!")
        print("Run 'python benchmark.py <image>' first to generate results.")
        return 1

    data = load_results(json_path)

    print_summary(data)

    print("\nGenerating plot...")
    plot_benchmark_results(data, show=matplotlib.get_backend().lower() != 'agg')

    print("\n✓ Visualization complete!")
    return 0


if __name__ == '__main__':
    sys.exit(main(*sys.argv[1:2]))
