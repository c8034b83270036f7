"""Naming-convention rig logic: direct, in-between and corrective blendshapes.

Given only the blendshape names of a mesh, works out which shapes are driven
directly, which are in-betweens of a driver (``jawOpen50`` peaks when
``jawOpen`` is at 50%) and which are correctives (``jawOpen_mouthSmile_L`` is
the product of its components).  See ``facedrive.rig.naming`` for the grammar.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import MutableSequence, Sequence

from facedrive.constants import FULL_PERCENT
from facedrive.rig.base import RigLogicBase
from facedrive.rig.naming import CorrMatch, Driver, InbwMatch, NameKind, classify

logger = logging.getLogger(__name__)

# Bracket ends that interpolate against nothing
_SENTINEL = -1


class RigValidationError(ValueError):
    """Raised in strict mode when blendshape names do not all classify."""


@dataclass(frozen=True)
class InBetweenInfo:
    """Brackets for one driver, sorted by weight; ``-1`` indices are sentinels."""
    driver_index: int
    indices: tuple[int, ...]
    weights: tuple[float, ...]


@dataclass(frozen=True)
class CorrectiveInfo:
    """Output index of a corrective and the outputs it multiplies.

    ``resolved`` is False when any component could not be found; such a
    corrective still counts as handled but its output stays at 0.
    """
    key: int
    correctives: tuple[int, ...]
    resolved: bool = True


class RigLogic(RigLogicBase):
    """Evaluates a blendshape set classified purely by naming convention."""

    def __init__(self, names: Sequence[str], strict: bool = False) -> None:
        self._names = tuple(names)
        matches = [classify(name) for name in self._names]

        # Pass-through signals
        direct: list[int] = []
        drivers: list[Driver] = []
        for i, m in enumerate(matches):
            if m is not None and m[0] is NameKind.DIRECT:
                direct.append(i)
                drivers.append(m[1])
        self._direct = tuple(direct)
        self._drivers = tuple(drivers)
        self._driver_names = tuple(str(d) for d in drivers)

        self._inbw, self._inbw_count = self._collect_inbetweens(matches)
        self._corr = self._collect_correctives(matches)

        handled = self.output_signals_count
        if handled != len(self._names):
            message = (
                f"All shapes should be matched, each only once - "
                f"expected {len(self._names)}, handling only {handled}"
            )
            if strict:
                raise RigValidationError(message)
            logger.warning(message)

        logger.debug(
            "RigLogic: %d direct, %d in-between, %d corrective shapes",
            len(self._direct), self._inbw_count, len(self._corr),
        )

    def _collect_inbetweens(self, matches) -> tuple[tuple[InBetweenInfo, ...], int]:
        driver_lookup = {name: k for k, name in reversed(list(enumerate(self._driver_names)))}
        brackets: dict[int, list[tuple[int, float]]] = {}
        count = 0
        for i, m in enumerate(matches):
            if m is None or m[0] is not NameKind.INBETWEEN:
                continue
            inbw: InbwMatch = m[1]
            k = driver_lookup.get(inbw.driver)
            if k is None:
                logger.warning("Could not find driver %s for inbetween %s", inbw.driver, self._names[i])
                continue

            driver_index = self._direct[k]
            if driver_index not in brackets:
                brackets[driver_index] = [(_SENTINEL, 0.0), (_SENTINEL, 1.0)]
            brackets[driver_index].append((i, inbw.value / 100.0))
            count += 1

        infos = []
        for driver_index, pairs in brackets.items():
            pairs.sort(key=lambda p: p[1])
            infos.append(InBetweenInfo(
                driver_index=driver_index,
                indices=tuple(p[0] for p in pairs),
                weights=tuple(p[1] for p in pairs),
            ))
        return tuple(infos), count

    def _find_driver(self, name: str, suffix: str) -> int:
        # An unsuffixed driver is shared by every side
        for k, d in enumerate(self._drivers):
            if d.name == name and d.suffix in suffix:
                return k
        return -1

    def _collect_correctives(self, matches) -> tuple[CorrectiveInfo, ...]:
        name_lookup = {name: i for i, name in reversed(list(enumerate(self._names)))}
        infos = []
        for i, m in enumerate(matches):
            if m is None or m[0] is not NameKind.CORRECTIVE:
                continue
            corr: CorrMatch = m[1]

            dependencies = []
            resolved = True
            for source in corr.drivers:
                k = self._find_driver(source.driver, corr.suffix)
                if k < 0:
                    logger.warning("Driver for %s from %s not found!", source, corr)
                    resolved = False
                    continue

                if source.value == FULL_PERCENT:
                    dependencies.append(self._direct[k])
                    continue

                driver = self._drivers[k]
                inbw_name = f"{driver.name}{source.value}" + (f"_{driver.suffix}" if driver.suffix else "")
                inbw_index = name_lookup.get(inbw_name)
                if inbw_index is None:
                    logger.warning("Inbetween %s from %s not found!", inbw_name, corr)
                    resolved = False
                    continue
                dependencies.append(inbw_index)

            infos.append(CorrectiveInfo(key=i, correctives=tuple(dependencies), resolved=resolved))
        return tuple(infos)

    @property
    def names(self) -> tuple[str, ...]:
        return self._names

    @property
    def drivers(self) -> tuple[str, ...]:
        return self._driver_names

    @property
    def output_signals_count(self) -> int:
        return len(self._direct) + self._inbw_count + len(self._corr)

    def eval(self, driver_weights: Sequence[float], output_signals: MutableSequence[float]) -> None:
        """Produce one weight per blendshape name from the direct driver weights.

        Passes run strictly in order: direct, then in-betweens (which read the
        driver outputs), then correctives (which read both).
        """
        if len(driver_weights) != len(self._direct):
            raise ValueError(f"Expected {len(self._direct)} driver weights, got {len(driver_weights)}")
        if len(output_signals) != len(self._names):
            raise ValueError(f"Expected {len(self._names)} output signals, got {len(output_signals)}")

        for i in range(len(output_signals)):
            output_signals[i] = 0.0

        # Pass-through signals
        for i, index in enumerate(self._direct):
            output_signals[index] = driver_weights[i]

        # Inbetween signals
        for info in self._inbw:
            weights = info.weights
            indices = info.indices
            value = output_signals[info.driver_index]

            index = 0
            while index < len(weights) and weights[index] < value:
                index += 1
            if index < 1 or index >= len(weights):
                continue

            w = (value - weights[index - 1]) / (weights[index] - weights[index - 1])
            assert 0.0 <= w <= 1.0

            if indices[index] >= 0:
                output_signals[indices[index]] = w
            if indices[index - 1] >= 0:
                output_signals[indices[index - 1]] = 1.0 - w

        # Corrective signals
        for c in self._corr:
            if not c.resolved:
                continue
            w = 1.0
            for i in c.correctives:
                w *= output_signals[i]
            output_signals[c.key] = w
