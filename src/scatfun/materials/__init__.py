"""Materials module for tabulated Fourier BSDFs.

Components:
    fourier: FourierMaterial, which loads a SCATFUN table once and attaches
        a FourierBSDF lobe to surface interactions, plus the Fourier
        material registry
    fields: FourierTableFields, the Taichi field copy of a table with O(1)
        lookup functions for kernels

A material whose file could not be read holds the sentinel table and
contributes no scattering; the failure is logged once at load time.
"""

from .fields import FourierTableFields
from .fourier import (
    BSDF,
    MAX_FOURIER_MATERIALS,
    BumpMap,
    FourierBSDF,
    FourierMaterial,
    SurfaceInteraction,
    TransportMode,
    add_fourier_material,
    clear_fourier_materials,
    create_fourier_material,
    get_fourier_material_count,
    get_fourier_table_fields,
)

__all__ = [
    # Fields
    "FourierTableFields",
    # Material
    "FourierMaterial",
    "FourierBSDF",
    "BSDF",
    "BumpMap",
    "SurfaceInteraction",
    "TransportMode",
    "create_fourier_material",
    # Registry
    "MAX_FOURIER_MATERIALS",
    "add_fourier_material",
    "clear_fourier_materials",
    "get_fourier_material_count",
    "get_fourier_table_fields",
]
