#!/usr/bin/env python3
"""Load a tabulated Fourier BSDF and upload it for Taichi kernels.

This script demonstrates the material life cycle: a SCATFUN file is read
once into a FourierMaterial, the material is attached to a surface
interaction, and its table is uploaded to Taichi fields where a kernel
reads the cached zeroth coefficients in O(1).

Without a path, a small synthetic monochromatic table is written to a
temporary file first.

Usage:
    python -m examples.load_fourier_material [path] [options]

Options:
    --elevations N      Elevation samples of the synthetic table (default: 8)
    --cpu               Force the CPU backend

Example:
    python -m examples.load_fourier_material coated_copper.bsdf
"""

from __future__ import annotations

import argparse
import logging
import sys
import tempfile
from pathlib import Path

import numpy as np
import taichi as ti


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Load a tabulated Fourier BSDF and upload it to Taichi fields.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("path", nargs="?", type=Path, help="SCATFUN file (optional)")
    parser.add_argument(
        "--elevations",
        type=int,
        default=8,
        help="Elevation samples of the synthetic table (default: 8)",
    )
    parser.add_argument("--cpu", action="store_true", help="Force the CPU backend")
    return parser.parse_args()


def write_synthetic_table(path: Path, elevation_count: int) -> Path:
    """Write a monochromatic table whose slice lengths vary from pair to pair."""
    from scatfun.io.writer import build_table, write_table

    n = elevation_count
    elevations = np.linspace(-1.0, 1.0, n)
    cdf_row = np.linspace(0.0, 1.0, n)
    marginal_cdf = np.tile(cdf_row, (n, 1))

    rng = np.random.default_rng(7)
    slices = []
    for i in range(n):
        for o in range(n):
            order = 1 + (i + o) % 4
            slices.append(list(rng.uniform(0.0, 1.0, size=order) / (1.0 + np.arange(order))))

    table = build_table(elevations, marginal_cdf, slices, channel_count=1, relative_ior=1.5)
    return write_table(path, table)


def main() -> int:
    """Main entry point."""
    args = parse_args()
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    if args.cpu:
        ti.init(arch=ti.cpu)
    else:
        try:
            ti.init(arch=ti.gpu)
        except Exception:
            ti.init(arch=ti.cpu)

    from scatfun.materials.fourier import (
        FourierMaterial,
        SurfaceInteraction,
        get_fourier_table_fields,
    )

    path = args.path
    if path is None:
        path = write_synthetic_table(Path(tempfile.mkdtemp()) / "synthetic.bsdf", args.elevations)
        print(f"Wrote synthetic table to {path}")

    material = FourierMaterial(path)
    if not material.is_active:
        print(f"Error: {material.load_error}", file=sys.stderr)
        return 1

    interaction = SurfaceInteraction(position=(0.0, 0.0, 0.0), normal=(0.0, 0.0, 1.0))
    bsdf = material.compute_scattering_functions(interaction)
    print(f"Attached BSDF with {bsdf.num_components} component(s), eta = {bsdf.components[0].eta:.3f}")

    index = material.upload()
    fields = get_fourier_table_fields(index)
    n = fields.elevation_count
    zeroth = ti.field(dtype=fields.dtype, shape=(n, n))

    @ti.kernel
    def gather_zeroth():
        for i, o in zeroth:
            zeroth[i, o] = fields.zeroth_coefficient(fields.pair_index(i, o))

    gather_zeroth()
    print("Zeroth coefficients (incoming x outgoing):")
    print(np.array2string(zeroth.to_numpy(), precision=3))
    return 0


if __name__ == "__main__":
    sys.exit(main())
