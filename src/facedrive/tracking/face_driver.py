"""Drives blendshape channels on one or more meshes from a weights provider.

Per mesh: provider weights -> NameMapper -> rig drivers -> rig logic ->
per-blendshape weights (0-1) -> scaled channel writes (0-100 by default).
Channel writes are skipped when the value has not changed since the last
frame.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Optional, Protocol, Sequence

import numpy as np
from numpy.typing import NDArray

from facedrive.constants import BLENDSHAPE_WEIGHT_SCALE, WEIGHT_CACHE_EPS, WEIGHT_CACHE_INVALID
from facedrive.retarget.name_mapper import NameMapper
from facedrive.rig.base import RigLogicBase, RigType
from facedrive.rig.factory import make_rig
from facedrive.tracking.weights_provider import WeightsProvider

logger = logging.getLogger(__name__)


class BlendshapeMesh(Protocol):
    """Anything exposing named blendshape channels that accept weights."""
    name: str

    @property
    def blendshape_names(self) -> Sequence[str]:
        ...

    def set_blendshape_weight(self, index: int, weight: float) -> None:
        ...


@dataclass
class BlendshapeChannels:
    """In-memory blendshape channel sink; counts writes for diagnostics."""
    name: str
    blendshape_names: list[str]
    weights: NDArray[np.float64] = field(default=None)
    write_count: int = 0

    def __post_init__(self):
        if self.weights is None:
            self.weights = np.zeros(len(self.blendshape_names), dtype=np.float64)

    def set_blendshape_weight(self, index: int, weight: float) -> None:
        self.weights[index] = weight
        self.write_count += 1


def strip_namespace(name: str) -> str:
    """``"head_geo.jawOpen"`` -> ``"jawOpen"``."""
    return name[name.rfind(".") + 1:]


@dataclass
class _MeshBinding:
    mesh: BlendshapeMesh
    rig: RigLogicBase
    mapper: NameMapper
    drivers: NDArray[np.float64]
    outputs: NDArray[np.float64]
    cached: NDArray[np.float64]


class FaceDriver:
    """Applies rig-logic output to every mesh in ``meshes``."""

    def __init__(
        self,
        meshes: Sequence[BlendshapeMesh],
        weights_provider: Optional[WeightsProvider],
        rig_type: RigType = RigType.NAMING_CONVENTION,
        weight_scale: float = BLENDSHAPE_WEIGHT_SCALE,
        name: str = "face_driver",
    ) -> None:
        self.name = name
        self.meshes = list(meshes)
        self.weights_provider = weights_provider
        self.rig_type = rig_type
        self.weight_scale = weight_scale

        self._bindings: list[_MeshBinding] = []
        self._weights: Optional[NDArray[np.float64]] = None

    @property
    def initialized(self) -> bool:
        return len(self.meshes) > 0 and len(self._bindings) == len(self.meshes)

    @property
    def rigs(self) -> list[RigLogicBase]:
        return [b.rig for b in self._bindings]

    def initialize(self) -> None:
        """Build a rig and an input mapper for every mesh."""
        if self.weights_provider is None:
            raise ValueError(f"FaceDriver {self.name}: no weights provider")
        input_names = self.weights_provider.get_weight_names()

        missed_inputs: Counter[str] = Counter()
        missed_blendshapes: set[str] = set()

        bindings = []
        for mesh in self.meshes:
            names = [strip_namespace(n) for n in mesh.blendshape_names]
            rig = make_rig(self.rig_type, names)

            def _collect_inputs(unmatched: list[str]) -> None:
                missed_inputs.update(unmatched)

            def _collect_blendshapes(unmatched: list[str], mesh_name: str = mesh.name) -> None:
                missed_blendshapes.update(f"{mesh_name}.{d}" for d in unmatched)

            mapper = NameMapper(input_names, rig.drivers, _collect_inputs, _collect_blendshapes)
            bindings.append(_MeshBinding(
                mesh=mesh,
                rig=rig,
                mapper=mapper,
                drivers=np.zeros(len(rig.drivers), dtype=np.float64),
                outputs=np.zeros(len(names), dtype=np.float64),
                cached=np.full(len(names), WEIGHT_CACHE_INVALID, dtype=np.float64),
            ))
        self._bindings = bindings
        self._weights = np.zeros(len(input_names), dtype=np.float64)

        # Meshes use different subsets of the inputs (e.g. tongue shapes only on
        # the mouth mesh), so an input is unused only if every mesh missed it.
        unused = sorted(n for n, count in missed_inputs.items() if count == len(self.meshes))
        if unused:
            logger.warning(
                "FaceDriver %s: some input signals are not driving any blendshapes: %s",
                self.name, ", ".join(unused),
            )
        if missed_blendshapes:
            logger.warning(
                "FaceDriver %s: blendshapes are not driven by any signals: %s",
                self.name, ", ".join(sorted(missed_blendshapes)),
            )

    def update(self) -> None:
        """Pull the provider's weights and write changed channels on every mesh."""
        if self.weights_provider is None or not self.weights_provider.is_valid:
            return

        if not self.initialized:
            logger.error("FaceDriver %s is not initialized properly", self.name)
            return

        self._weights = WeightsProvider.copy_weights(self.weights_provider.get_weights(), self._weights)
        self.drive(self._weights)

    def drive(self, input_signals: Sequence[float]) -> None:
        """Evaluate every mesh's rig from ``input_signals`` and apply the results."""
        for b in self._bindings:
            b.mapper.map(input_signals, b.drivers)
            b.rig.eval(b.drivers, b.outputs)

            for j, value in enumerate(b.outputs):
                final_value = float(value) * self.weight_scale
                if abs(final_value - b.cached[j]) < WEIGHT_CACHE_EPS:
                    continue
                b.cached[j] = final_value
                b.mesh.set_blendshape_weight(j, final_value)
