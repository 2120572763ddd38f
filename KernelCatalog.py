#!/usr/bin/env python3
"""
Named convolution kernels applied by the pipeline.

Each entry is plain data: one or two weight matrices plus factor, bias and
the grayscale / blur pre-pass flags. The catalog is built once at import time
and never mutated afterwards.
"""
from dataclasses import dataclass
from typing import Iterable, Optional

import numpy as np


class KernelError(Exception):
    """Base class for catalog configuration errors."""


class UnknownKernel(KernelError, KeyError):
    """Raised when a lookup names a kernel that is not in the catalog."""

    def __str__(self):
        return Exception.__str__(self)


class MalformedKernel(KernelError, ValueError):
    """Raised when a kernel's matrices or references are invalid."""


def _as_matrix(values, name, label):
    try:
        matrix = np.array(values, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise MalformedKernel(f"{name}: {label} matrix is not a numeric 2-D array") from e
    if matrix.ndim != 2 or matrix.shape[0] != matrix.shape[1]:
        raise MalformedKernel(f"{name}: {label} matrix must be square, got shape {matrix.shape}")
    side = matrix.shape[0]
    if side < 1 or side % 2 == 0:
        raise MalformedKernel(f"{name}: {label} matrix must have an odd positive side, got {side}")
    matrix.setflags(write=False)
    return matrix


@dataclass(frozen=True, eq=False)
class KernelDescriptor:
    name: str
    matrix_primary: np.ndarray
    matrix_secondary: Optional[np.ndarray] = None
    factor: float = 1.0
    bias: int = 0
    grayscale: bool = False
    blur_reference: Optional[str] = None

    def __post_init__(self):
        if not self.name:
            raise MalformedKernel("kernel name must be a non-empty string")
        primary = _as_matrix(self.matrix_primary, self.name, "primary")
        object.__setattr__(self, "matrix_primary", primary)
        if self.matrix_secondary is not None:
            secondary = _as_matrix(self.matrix_secondary, self.name, "secondary")
            if secondary.shape != primary.shape:
                raise MalformedKernel(
                    f"{self.name}: secondary matrix shape {secondary.shape} "
                    f"does not match primary {primary.shape}"
                )
            object.__setattr__(self, "matrix_secondary", secondary)

    @property
    def side(self) -> int:
        return self.matrix_primary.shape[0]

    @property
    def offset(self) -> int:
        """Half-width of the window, (side - 1) / 2."""
        return (self.side - 1) // 2

    @property
    def is_gradient(self) -> bool:
        return self.matrix_secondary is not None


class KernelCatalog:
    """Ordered, read-only collection of kernels with lookup by name."""

    def __init__(self, descriptors: Iterable[KernelDescriptor]):
        self._descriptors = tuple(descriptors)
        self._by_name = {}
        for descriptor in self._descriptors:
            if descriptor.name in self._by_name:
                raise MalformedKernel(f"duplicate kernel name: {descriptor.name}")
            self._by_name[descriptor.name] = descriptor
        self._check_blur_references()

    def _check_blur_references(self):
        # Only a single level of blur indirection is defined.
        for descriptor in self._descriptors:
            if descriptor.blur_reference is None:
                continue
            blur = self.lookup(descriptor.blur_reference)
            if blur.blur_reference is not None:
                raise MalformedKernel(
                    f"{descriptor.name}: blur filter {blur.name} has its own "
                    f"blur filter {blur.blur_reference}"
                )
            if blur.is_gradient:
                raise MalformedKernel(
                    f"{descriptor.name}: blur filter {blur.name} is a gradient kernel"
                )

    def lookup(self, name: str) -> KernelDescriptor:
        try:
            return self._by_name[name]
        except KeyError:
            raise UnknownKernel(f"unknown kernel: {name!r}") from None

    def names(self):
        return [descriptor.name for descriptor in self._descriptors]

    def __iter__(self):
        return iter(self._descriptors)

    def __len__(self):
        return len(self._descriptors)

    def __contains__(self, name):
        return name in self._by_name

    def __repr__(self):
        return f"KernelCatalog({len(self)} kernels)"


def describe(descriptor: KernelDescriptor) -> str:
    """Progress label, e.g. 'Laplacian5x5 + Grayscale + Blur filter: GaussianBlur3x3'."""
    message = descriptor.name
    if descriptor.grayscale:
        message += " + Grayscale"
    if descriptor.blur_reference:
        message += f" + Blur filter: {descriptor.blur_reference}"
    return message


# Kernel presets
SHARPEN_3x3 = [[0, -1, 0], [-1, 5, -1], [0, -1, 0]]
SHARPEN_5x5 = [
    [ 0,  0, -1,  0,  0],
    [ 0, -1, -1, -1,  0],
    [-1, -1, 13, -1, -1],
    [ 0, -1, -1, -1,  0],
    [ 0,  0, -1,  0,  0],
]
BOX_BLUR_3x3 = np.ones((3, 3))
BOX_BLUR_9x9 = np.ones((9, 9))
GAUSSIAN_3x3 = [[1, 2, 1], [2, 4, 2], [1, 2, 1]]
GAUSSIAN_5x5 = [
    [2,  4,  5,  4, 2],
    [4,  9, 12,  9, 4],
    [5, 12, 15, 12, 5],
    [4,  9, 12,  9, 4],
    [2,  4,  5,  4, 2],
]
UNSHARP_BOX_3x3 = [[-1, -1, -1], [-1, 17, -1], [-1, -1, -1]]
UNSHARP_GAUSSIAN_3x3 = [
    [-0.0023, -0.0432, -0.0023],
    [-0.0432,  1.182,  -0.0432],
    [-0.0023, -0.0432, -0.0023],
]
LAPLACIAN_3x3_V1 = [[0, -1, 0], [-1, 4, -1], [0, -1, 0]]
LAPLACIAN_3x3_V2 = [[-1, -1, -1], [-1, 8, -1], [-1, -1, -1]]
LAPLACIAN_5x5 = np.full((5, 5), -1.0)
LAPLACIAN_5x5[2, 2] = 24
SOBEL_X = [[-1, 0, 1], [-2, 0, 2], [-1, 0, 1]]
SOBEL_Y = [[1, 2, 1], [0, 0, 0], [-1, -2, -1]]
PREWITT_X = [[-1, 0, 1], [-1, 0, 1], [-1, 0, 1]]
PREWITT_Y = [[1, 1, 1], [0, 0, 0], [-1, -1, -1]]
KIRSCH_N = [[5, 5, 5], [-3, 0, -3], [-3, -3, -3]]
KIRSCH_W = [[5, -3, -3], [5, 0, -3], [5, -3, -3]]


DEFAULT_CATALOG = KernelCatalog([
    KernelDescriptor("Sharpen3x3", SHARPEN_3x3),
    KernelDescriptor("Sharpen5x5", SHARPEN_5x5),
    KernelDescriptor("BoxBlur3x3", BOX_BLUR_3x3, factor=1.0 / 9.0),
    KernelDescriptor("BoxBlur9x9", BOX_BLUR_9x9, factor=1.0 / 81.0),
    KernelDescriptor("GaussianBlur3x3", GAUSSIAN_3x3, factor=1.0 / 16.0),
    KernelDescriptor("GaussianBlur5x5", GAUSSIAN_5x5, factor=1.0 / 159.0),
    KernelDescriptor("UnsharpMask_BoxBlur3x3", UNSHARP_BOX_3x3, factor=1.0 / 9.0),
    KernelDescriptor("UnsharpMask_GaussianBlur3x3", UNSHARP_GAUSSIAN_3x3),
    KernelDescriptor("Laplacian3x3_v1", LAPLACIAN_3x3_V1),
    KernelDescriptor("Laplacian3x3_v1_Grayscale", LAPLACIAN_3x3_V1, grayscale=True),
    KernelDescriptor("Laplacian3x3_v2", LAPLACIAN_3x3_V2),
    KernelDescriptor("Laplacian3x3_v2_Grayscale", LAPLACIAN_3x3_V2, grayscale=True),
    KernelDescriptor("Laplacian5x5", LAPLACIAN_5x5),
    KernelDescriptor("Laplacian5x5_GaussianBlur3x3", LAPLACIAN_5x5,
                     blur_reference="GaussianBlur3x3"),
    KernelDescriptor("Laplacian5x5_Grayscale", LAPLACIAN_5x5, grayscale=True),
    KernelDescriptor("Laplacian5x5_GaussianBlur3x3_Grayscale", LAPLACIAN_5x5,
                     grayscale=True, blur_reference="GaussianBlur3x3"),
    KernelDescriptor("Laplacian5x5_GaussianBlur5x5_Grayscale", LAPLACIAN_5x5,
                     grayscale=True, blur_reference="GaussianBlur5x5"),
    KernelDescriptor("Sobel3x3", SOBEL_X, SOBEL_Y),
    KernelDescriptor("Sobel3x3_Grayscale", SOBEL_X, SOBEL_Y, grayscale=True),
    KernelDescriptor("Prewitt3x3", PREWITT_X, PREWITT_Y),
    KernelDescriptor("Prewitt3x3_Grayscale", PREWITT_X, PREWITT_Y, grayscale=True),
    KernelDescriptor("Kirsch3x3", KIRSCH_N, KIRSCH_W),
    KernelDescriptor("Kirsch3x3_Grayscale", KIRSCH_N, KIRSCH_W, grayscale=True),
])
