"""Sources of named expression weights."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Mapping, Optional, Sequence

import numpy as np
from numpy.typing import NDArray


class WeightsProvider(ABC):
    """Supplies a fixed list of named weights, refreshed by its owner each frame."""

    @property
    @abstractmethod
    def is_valid(self) -> bool:
        ...

    @abstractmethod
    def get_weights(self) -> NDArray[np.float64]:
        """Current weights, ordered like ``get_weight_names()``."""

    @abstractmethod
    def get_weight_names(self) -> tuple[str, ...]:
        ...

    @staticmethod
    def copy_weights(src: Sequence[float], dest: Optional[NDArray[np.float64]]) -> NDArray[np.float64]:
        """Copy ``src`` into ``dest``, reallocating ``dest`` when the sizes differ."""
        if dest is None or len(dest) != len(src):
            dest = np.zeros(len(src), dtype=np.float64)
        dest[:] = src
        return dest


class StaticWeightsProvider(WeightsProvider):
    """In-memory provider whose weights are set explicitly."""

    def __init__(self, names: Sequence[str], weights: Optional[Sequence[float]] = None) -> None:
        self._names = tuple(names)
        self._index = {name: i for i, name in enumerate(self._names)}
        self._weights = np.zeros(len(self._names), dtype=np.float64)
        if weights is not None:
            if len(weights) != len(self._names):
                raise ValueError(f"Expected {len(self._names)} weights, got {len(weights)}")
            self._weights[:] = weights

    @property
    def is_valid(self) -> bool:
        return True

    def get_weights(self) -> NDArray[np.float64]:
        return self._weights

    def get_weight_names(self) -> tuple[str, ...]:
        return self._names

    def set_weight(self, name: str, value: float) -> None:
        self._weights[self._index[name]] = value

    def set_weights(self, values: Mapping[str, float]) -> None:
        for name, value in values.items():
            self.set_weight(name, value)

    def reset(self) -> None:
        self._weights[:] = 0.0
