"""Rule configuration file loading utilities."""

import logging
from pathlib import Path
from typing import Optional

from facedrive.constants import RULE_CONFIG_DIR

logger = logging.getLogger(__name__)


def load_text(path: Path) -> str:
    """Load and return the contents of a text file."""
    with open(path, encoding="utf-8") as f:
        return f.read()


def load_rule_config(name: str) -> str:
    """Load a retargeting rule config from assets/config/rules/ as raw text."""
    return load_text(RULE_CONFIG_DIR / name)


def resolve_config_text(
    config_text: Optional[str] = None,
    config_path: Optional[Path] = None,
    override_path: Optional[Path] = None,
) -> str:
    """Pick the rule configuration text to use.

    An existing override file wins, then ``config_path``, then the inline
    ``config_text``.  Returns an empty string when none of them is usable.
    """
    if override_path is not None and Path(override_path).is_file():
        logger.info("Loading retargeter config from override: %s", override_path)
        return load_text(Path(override_path))

    if config_path is not None:
        logger.info("Loading retargeter config from file: %s", config_path)
        return load_text(Path(config_path))

    if config_text:
        return config_text

    return ""
