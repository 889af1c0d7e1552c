"""Tabulated Fourier BSDF material.

FourierMaterial wraps a measured or simulated BSDF stored in a SCATFUN
file (see scatfun.io.header for the layout). The table is read once when
the material is created. A file that cannot be read is reported once and
replaced by the sentinel table, so the material simply contributes no
scattering instead of aborting the render.

At shading time, compute_scattering_functions attaches a BSDF to the
surface interaction and, when the table is active, adds a FourierBSDF lobe
that hands the table to the evaluator by reference.

Example:
    >>> from scatfun.materials.fourier import FourierMaterial, SurfaceInteraction
    >>> material = FourierMaterial("coated_copper.bsdf")
    >>> si = SurfaceInteraction(position=(0.0, 0.0, 0.0), normal=(0.0, 0.0, 1.0))
    >>> bsdf = material.compute_scattering_functions(si)
    >>> bsdf.num_components
    1
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import IntEnum
from pathlib import Path
from typing import Any

from scatfun.core.errors import FormatError
from scatfun.core.table import ScatteringTable
from scatfun.io.reader import ReadOptions, load_table
from scatfun.materials.fields import FourierTableFields

logger = logging.getLogger(__name__)


class TransportMode(IntEnum):
    """Quantity carried along a path: radiance from cameras or importance from lights."""

    RADIANCE = 0
    IMPORTANCE = 1


@dataclass
class FourierBSDF:
    """Scattering lobe backed by a tabulated Fourier BSDF.

    Holds the table by reference; evaluation and sampling are done by the
    integrator using the table's lookup arrays.

    Attributes:
        table: The (non-sentinel) scattering table.
        mode: Transport mode of the path being traced.
    """

    table: ScatteringTable
    mode: TransportMode = TransportMode.RADIANCE

    @property
    def eta(self) -> float:
        return float(self.table.relative_ior)


@dataclass
class BSDF:
    """Set of scattering lobes attached to one surface interaction."""

    components: list[FourierBSDF] = field(default_factory=list)

    def add(self, component: FourierBSDF) -> None:
        self.components.append(component)

    @property
    def num_components(self) -> int:
        return len(self.components)


@dataclass
class SurfaceInteraction:
    """Shading point handed to a material.

    Attributes:
        position: World-space hit point.
        normal: Shading normal (normalized). Bump maps may perturb it.
        uv: Surface parameterization at the hit point.
        bsdf: Set by the material's compute_scattering_functions.
    """

    position: tuple[float, float, float]
    normal: tuple[float, float, float]
    uv: tuple[float, float] = (0.0, 0.0)
    bsdf: BSDF | None = None


# Perturbs the interaction's shading frame in place
BumpMap = Callable[[SurfaceInteraction], None]


class FourierMaterial:
    """Material whose scattering comes from a SCATFUN table.

    Attributes:
        filename: The BSDF file the table was loaded from.
        bump_map: Optional callable applied to every interaction first.
        table: The decoded table, or the sentinel if loading failed.
        load_error: The FormatError of a failed load, otherwise None.
    """

    def __init__(
        self,
        filename: str | Path,
        bump_map: BumpMap | None = None,
        *,
        options: ReadOptions | None = None,
    ) -> None:
        self.filename = Path(filename)
        self.bump_map = bump_map
        result = load_table(self.filename, options=options)
        self.table: ScatteringTable = result.table
        self.load_error: FormatError | None = result.error
        self._material_index: int | None = None

    @property
    def is_active(self) -> bool:
        """True if the table was loaded and the material scatters light."""
        return not self.table.is_sentinel

    def compute_scattering_functions(
        self,
        interaction: SurfaceInteraction,
        mode: TransportMode = TransportMode.RADIANCE,
    ) -> BSDF:
        """Attach this material's BSDF to ``interaction``.

        Args:
            interaction: The shading point. Its ``bsdf`` attribute is replaced.
            mode: Transport mode of the current path.

        Returns:
            The attached BSDF. It has no components if the table failed to load.
        """
        if self.bump_map is not None:
            self.bump_map(interaction)

        bsdf = BSDF()
        interaction.bsdf = bsdf
        # Zero channels marks a table that could not be read
        if self.is_active:
            bsdf.add(FourierBSDF(self.table, mode))
        return bsdf

    def upload(self) -> int | None:
        """Copy the table into Taichi fields and register it for kernels.

        Uploading is done once per material; later calls return the same
        index.

        Returns:
            The Fourier material index, or None if the table is the sentinel.
        """
        if not self.is_active:
            return None
        if self._material_index is None:
            self._material_index = add_fourier_material(self.table)
        return self._material_index


def create_fourier_material(
    params: dict[str, Any],
    *,
    base_dir: str | Path | None = None,
) -> FourierMaterial:
    """Create a FourierMaterial from scene parameters.

    Recognized keys:
        bsdffile: Path of the SCATFUN file (required). Relative paths are
            resolved against ``base_dir`` when it is given.
        bumpmap: Optional BumpMap callable.
        precision: Optional "float32" or "float64".

    Raises:
        ValueError: If ``bsdffile`` is missing or ``bumpmap`` is not callable.
    """
    filename = params.get("bsdffile")
    if not filename:
        raise ValueError("Fourier material requires a 'bsdffile' parameter")

    path = Path(filename)
    if base_dir is not None and not path.is_absolute():
        path = Path(base_dir) / path

    bump_map = params.get("bumpmap")
    if bump_map is not None and not callable(bump_map):
        raise ValueError(f"bumpmap must be callable, got {type(bump_map).__name__}")

    options = ReadOptions(precision=params.get("precision", "float32"))
    return FourierMaterial(path, bump_map, options=options)


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of Fourier materials in the scene
MAX_FOURIER_MATERIALS = 64

_fourier_tables: list[FourierTableFields] = []


def clear_fourier_materials() -> None:
    """Clear all Fourier materials.

    Drops the uploaded fields; Taichi frees them once unreferenced.
    """
    _fourier_tables.clear()


def add_fourier_material(table: ScatteringTable) -> int:
    """Upload a table to Taichi fields and add it to the material registry.

    Args:
        table: The scattering table to upload.

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If ``table`` is the sentinel table.
    """
    idx = len(_fourier_tables)
    if idx >= MAX_FOURIER_MATERIALS:
        raise RuntimeError(
            f"Maximum number of Fourier materials ({MAX_FOURIER_MATERIALS}) exceeded"
        )

    _fourier_tables.append(FourierTableFields(table))
    logger.debug("Uploaded Fourier material %d: %s", idx, table.summary())
    return idx


def get_fourier_material_count() -> int:
    """Get the number of Fourier materials in the registry."""
    return len(_fourier_tables)


def get_fourier_table_fields(material_idx: int) -> FourierTableFields:
    """Get the uploaded fields of a Fourier material by index.

    Raises:
        ValueError: If ``material_idx`` is not a registered material.
    """
    if not 0 <= material_idx < len(_fourier_tables):
        raise ValueError(f"Invalid Fourier material index: {material_idx}")
    return _fourier_tables[material_idx]
