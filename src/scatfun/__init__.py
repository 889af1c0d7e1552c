"""Tabulated Fourier BSDF tables for the Taichi path tracer.

This package reads the SCATFUN format written by the layerlab material
designer: an isotropic BSDF stored as splines in elevation and Fourier
series in azimuth. Tables are decoded into read-only NumPy arrays plus
derived lookup arrays, and can be uploaded to Taichi fields for kernels.

Subpackages:
    core: ScatteringTable data container and error types
    io: SCATFUN header codec, reader, and writer
    materials: FourierMaterial and Taichi field storage
    cli: The scatfun-info command
"""

__version__ = "0.1.0"
