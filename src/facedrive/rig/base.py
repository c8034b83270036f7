"""Rig-logic capability shared by the naming-convention and pass-through rigs."""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import MutableSequence, Sequence


class RigType(Enum):
    SIMPLE = "simple"
    NAMING_CONVENTION = "naming_convention"


class RigLogicBase(ABC):
    """Turns a compact driver-weight vector into one weight per blendshape."""

    @property
    @abstractmethod
    def drivers(self) -> tuple[str, ...]:
        """Names of the driver weights ``eval`` expects, in order."""

    @property
    @abstractmethod
    def output_signals_count(self) -> int:
        ...

    @abstractmethod
    def eval(self, driver_weights: Sequence[float], output_signals: MutableSequence[float]) -> None:
        ...
