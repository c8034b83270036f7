"""Weights provider that retargets another provider's signals through rules."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import numpy as np
from numpy.typing import NDArray

from facedrive.core.config_loader import resolve_config_text
from facedrive.core.matrix import NonInvertibleMatrixError
from facedrive.retarget.name_mapper import NameMapper
from facedrive.retarget.retargeter import Retargeter
from facedrive.retarget.rule_config import RuleConfigError
from facedrive.tracking.weights_provider import WeightsProvider

logger = logging.getLogger(__name__)


class RetargeterWeightsProvider(WeightsProvider):
    """Maps a source provider's weights onto rig drivers using a rule config.

    The config is taken from ``override_path`` if that file exists, otherwise
    from ``config_path``, otherwise from ``config_text``.  A missing or broken
    config leaves the provider invalid instead of raising, so a caller can
    simply skip driving blendshapes.
    """

    def __init__(
        self,
        source: WeightsProvider,
        config_text: Optional[str] = None,
        config_path: Optional[Path] = None,
        override_path: Optional[Path] = None,
        name: str = "retargeter",
    ) -> None:
        self.name = name
        self._source = source
        self._retargeter: Optional[Retargeter] = None
        self._input_mapper: Optional[NameMapper] = None
        self._input: NDArray[np.float64] = np.zeros(0, dtype=np.float64)
        self._output: NDArray[np.float64] = np.zeros(0, dtype=np.float64)

        try:
            text = resolve_config_text(config_text, config_path, override_path)
        except OSError as e:
            logger.error("%s: could not read retargeter config: %s", self.name, e)
            return

        if not text:
            logger.error(
                "%s: a valid retargeter configuration not found (config=%s, override=%s)",
                self.name, config_path, override_path,
            )
            return

        try:
            retargeter = Retargeter(text)
        except (RuleConfigError, NonInvertibleMatrixError) as e:
            logger.error("%s: failed to build retargeter: %s", self.name, e)
            return

        self._input_mapper = NameMapper(
            source.get_weight_names(), retargeter.input_signals,
            self._warn_unused_inputs, self._warn_undriven_outputs,
        )
        self._input = np.zeros(len(retargeter.input_signals), dtype=np.float64)
        self._output = np.zeros(len(retargeter.output_signals), dtype=np.float64)
        self._retargeter = retargeter

    def _warn_unused_inputs(self, names: list[str]) -> None:
        logger.warning(
            "%s: input signals %s are not set up in the retargeter config, and will not be used",
            self.name, ", ".join(names),
        )

    def _warn_undriven_outputs(self, names: list[str]) -> None:
        logger.warning(
            "%s: signals %s are set up in the retargeter config but have no driving signals, "
            "and will not be used",
            self.name, ", ".join(names),
        )

    @property
    def retargeter(self) -> Optional[Retargeter]:
        return self._retargeter

    @property
    def is_valid(self) -> bool:
        return self._retargeter is not None

    def get_weight_names(self) -> tuple[str, ...]:
        if self._retargeter is None:
            return ()
        return self._retargeter.output_signals

    def get_input_names(self) -> tuple[str, ...]:
        if self._retargeter is None:
            return ()
        return self._retargeter.input_signals

    def get_weights(self) -> NDArray[np.float64]:
        """Map the source weights, run the retargeter and return its outputs."""
        if self._retargeter is None:
            return self._output

        self._input_mapper.map(self._source.get_weights(), self._input)
        self._retargeter.eval(self._input, self._output)
        return self._output
