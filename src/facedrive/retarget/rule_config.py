"""Retargeting rule configuration parser.

Two JSON shapes are accepted; the shape itself is the version marker.

V1 -- object keyed by input signal, each value mapping target name to weight::

    {"jawOpen": {"jaw_open": 1.0, "mouth_stretch": 0.3}}

V2 -- array of rules, each with ``drivers`` and ``targets`` weight maps::

    [{"drivers": {"jawOpen": 0.5}, "targets": {"jaw_open_half": 1.0}}]

Every distinct signal and target name receives a stable integer id in order of
first appearance.  Rules without drivers or without targets are discarded.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, MutableSequence, Sequence

from facedrive.constants import PEAK_EPS

logger = logging.getLogger(__name__)


class RuleConfigError(ValueError):
    """Raised when a rule configuration cannot be parsed."""


@dataclass(frozen=True)
class Item:
    """One driver or target contribution of a rule."""
    index: int
    weight: float

    def eval(self, signal: float) -> float:
        """Tent response: 1 at the peak weight, falling linearly to 0 at 0 and 1."""
        if abs(signal - self.weight) < PEAK_EPS:
            return 1.0
        if signal <= self.weight:
            return signal / self.weight if self.weight > 0.0 else 0.0
        return (1.0 - signal) / (1.0 - self.weight) if self.weight < 1.0 else 0.0


@dataclass(frozen=True)
class Rule:
    """Drive ``targets`` to their weights when ``drivers`` reach their peaks."""
    drivers: tuple[Item, ...]
    targets: tuple[Item, ...]

    def peak(self, signals: MutableSequence[float], targets: MutableSequence[float]) -> None:
        """Write this rule's peak signal values and target weights into the given rows."""
        for d in self.drivers:
            signals[d.index] = d.weight
        for t in self.targets:
            targets[t.index] = t.weight

    def eval(self, signals: Sequence[float]) -> float:
        """Activation of this rule for the given signal values (drivers combine as AND)."""
        weight = 1.0
        for d in self.drivers:
            weight *= d.eval(signals[d.index]) * d.weight
        return weight


@dataclass
class NameIndexAllocator:
    """Assigns consecutive ids to names in order of first appearance."""
    _indices: dict[str, int] = field(default_factory=dict)

    def index_of(self, name: str) -> int:
        """Return the id for ``name``, allocating the next one if it is new."""
        index = self._indices.get(name)
        if index is None:
            if not name:
                raise RuleConfigError("Signal and target names must not be empty")
            index = len(self._indices)
            self._indices[name] = index
        return index

    @property
    def names(self) -> tuple[str, ...]:
        """Names ordered by id."""
        names = [""] * len(self._indices)
        for name, index in self._indices.items():
            names[index] = name
        assert "" not in names, "Unassigned name index"
        return tuple(names)

    def __len__(self) -> int:
        return len(self._indices)

    def __contains__(self, name: object) -> bool:
        return name in self._indices


@dataclass
class ParsedRules:
    """Result of parsing a rule configuration."""
    rules: list[Rule]
    signals: NameIndexAllocator
    targets: NameIndexAllocator


def _load_weights(weights: Any, allocator: NameIndexAllocator, where: str) -> tuple[Item, ...]:
    if not isinstance(weights, dict):
        raise RuleConfigError(f"{where}: expected an object of name/weight pairs")

    items = []
    for name, value in weights.items():
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise RuleConfigError(f"{where}: weight for '{name}' is not a number: {value!r}")
        items.append(Item(allocator.index_of(name), float(value)))
    return tuple(items)


def _load_v1(root: Any, signals: NameIndexAllocator, targets: NameIndexAllocator) -> list[Rule]:
    if not isinstance(root, dict):
        raise RuleConfigError("V1 config root must be an object")

    rules = []
    for signal, target_weights in root.items():
        signal_index = signals.index_of(signal)

        target_items = _load_weights(target_weights, targets, f"signal '{signal}'")
        if not target_items:
            logger.warning("Discarding rule for signal '%s': no targets", signal)
            continue

        rules.append(Rule(drivers=(Item(signal_index, 1.0),), targets=target_items))
    return rules


def _load_v2(root: Any, signals: NameIndexAllocator, targets: NameIndexAllocator) -> list[Rule]:
    if not isinstance(root, list):
        raise RuleConfigError("V2 config root must be an array")

    rules = []
    for i, entry in enumerate(root):
        if not isinstance(entry, dict):
            raise RuleConfigError(f"rule {i}: expected an object with 'drivers' and 'targets'")

        driver_items = _load_weights(entry.get("drivers", {}), signals, f"rule {i} drivers")
        if not driver_items:
            logger.warning("Discarding rule %d: no drivers", i)
            continue

        target_items = _load_weights(entry.get("targets", {}), targets, f"rule {i} targets")
        if not target_items:
            logger.warning("Discarding rule %d: no targets", i)
            continue

        rules.append(Rule(drivers=driver_items, targets=target_items))
    return rules


def parse_rule_config(text: str) -> ParsedRules:
    """Parse V1 or V2 rule configuration text.

    Raises RuleConfigError for empty or malformed text.
    """
    stripped = text.lstrip()
    if not stripped:
        raise RuleConfigError("Empty rule configuration")

    try:
        root = json.loads(stripped)
    except json.JSONDecodeError as e:
        raise RuleConfigError(f"Malformed rule configuration: {e}") from e

    signals = NameIndexAllocator()
    targets = NameIndexAllocator()
    # V1 roots are objects, V2 roots are arrays
    if stripped[0] == "{":
        rules = _load_v1(root, signals, targets)
    else:
        rules = _load_v2(root, signals, targets)

    return ParsedRules(rules=rules, signals=signals, targets=targets)
