"""Rule-based signal retargeter.

Compiles a rule configuration into a "deltas" matrix once, then maps input
signals to output blendshape weights each frame:

1. ``peaks[r]`` holds rule ``r``'s peak signal values, ``targets[r]`` its target
   weights.
2. ``M[r, c]`` is the activation of rule ``r`` when fed rule ``c``'s peaks.
3. ``deltas = (M^-1)^T * targets``, so ``activations * deltas`` reproduces every
   rule's targets exactly at its own peak.

Per frame: ``activations[r] = rules[r].eval(signals)``,
``outputs = clamp(activations * deltas, 0, 1)``.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import MutableSequence, Sequence

import numpy as np

from facedrive.core.config_loader import load_text
from facedrive.core.matrix import DenseMatrix, Matrix, SparseMatrix, format_matrix
from facedrive.retarget.rule_config import Rule, parse_rule_config

logger = logging.getLogger(__name__)


class Retargeter:
    """Maps named input signals to named output signals through compiled rules.

    Not thread-safe: ``eval`` reuses per-instance scratch buffers.
    """

    def __init__(self, config_text: str, use_sparse_deltas: bool = True) -> None:
        parsed = parse_rule_config(config_text)
        rules = parsed.rules

        peaks = DenseMatrix(len(rules), len(parsed.signals))
        targets = DenseMatrix(len(rules), len(parsed.targets))
        for i, rule in enumerate(rules):
            rule.peak(peaks.row(i), targets.row(i))

        m = DenseMatrix(len(rules), len(rules))
        for r, rule in enumerate(rules):
            for c in range(len(rules)):
                m[r, c] = rule.eval(peaks.row(c))

        m.invert()
        m.transpose()
        deltas = DenseMatrix.matmul(m, targets)

        self._rules: tuple[Rule, ...] = tuple(rules)
        self._deltas: Matrix = SparseMatrix(deltas) if use_sparse_deltas else deltas
        self._input_signals = parsed.signals.names
        self._output_signals = parsed.targets.names

        self._activations = np.zeros(len(self._rules), dtype=np.float64)
        self._outputs = np.zeros(len(self._output_signals), dtype=np.float64)

        logger.info(
            "Retargeter compiled %d rules: %d input signals -> %d output signals",
            len(self._rules), len(self._input_signals), len(self._output_signals),
        )
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("Retargeter deltas:\n%s", format_matrix(self._deltas))

    @classmethod
    def from_file(cls, path: Path, use_sparse_deltas: bool = True) -> "Retargeter":
        """Build a retargeter from a rule config file on disk."""
        return cls(load_text(Path(path)), use_sparse_deltas=use_sparse_deltas)

    @property
    def input_signals(self) -> tuple[str, ...]:
        return self._input_signals

    @property
    def output_signals(self) -> tuple[str, ...]:
        return self._output_signals

    @property
    def rules(self) -> tuple[Rule, ...]:
        return self._rules

    @property
    def deltas(self) -> Matrix:
        return self._deltas

    def eval(self, signals: Sequence[float], outputs: MutableSequence[float]) -> None:
        """Compute output weights in ``[0, 1]`` from input signal values."""
        if len(signals) != len(self._input_signals):
            raise ValueError(
                f"Expected {len(self._input_signals)} input signals, got {len(signals)}"
            )
        if len(outputs) != len(self._output_signals):
            raise ValueError(
                f"Expected {len(self._output_signals)} output signals, got {len(outputs)}"
            )

        activations = self._activations
        for i, rule in enumerate(self._rules):
            activations[i] = rule.eval(signals)

        Matrix.mult(activations, self._deltas, self._outputs)
        np.clip(self._outputs, 0.0, 1.0, out=self._outputs)
        outputs[:] = self._outputs
