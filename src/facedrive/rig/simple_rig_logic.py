"""Pass-through rig logic: every blendshape is its own driver."""

from __future__ import annotations

from typing import MutableSequence, Sequence

from facedrive.rig.base import RigLogicBase


class SimpleRigLogic(RigLogicBase):
    """Identity mapping from driver weights to blendshape weights."""

    def __init__(self, names: Sequence[str]) -> None:
        self._drivers = tuple(names)

    @property
    def drivers(self) -> tuple[str, ...]:
        return self._drivers

    @property
    def output_signals_count(self) -> int:
        return len(self._drivers)

    def eval(self, driver_weights: Sequence[float], output_signals: MutableSequence[float]) -> None:
        if len(driver_weights) != len(self._drivers):
            raise ValueError(f"Expected {len(self._drivers)} driver weights, got {len(driver_weights)}")
        if len(output_signals) != len(self._drivers):
            raise ValueError(f"Expected {len(self._drivers)} output signals, got {len(output_signals)}")

        for i in range(len(self._drivers)):
            output_signals[i] = driver_weights[i]
