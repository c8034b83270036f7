"""Shared constants and paths for facedrive."""

from pathlib import Path

# Project paths
PROJECT_ROOT = Path(__file__).parent.parent.parent
ASSETS_DIR = PROJECT_ROOT / "assets"
CONFIG_DIR = ASSETS_DIR / "config"
RULE_CONFIG_DIR = CONFIG_DIR / "rules"

# Matrix tolerances
MATRIX_EPS = 1e-5        # Equality tolerance and smallest usable pivot
SPARSE_THRESHOLD = 1e-3  # Entries at or below this magnitude are dropped

# Rule evaluation
PEAK_EPS = 1e-4  # Signal within this distance of a peak counts as fully active

# In-between percentage used for a plain driver token inside a corrective name
FULL_PERCENT = 100

# Blendshape channel output
BLENDSHAPE_WEIGHT_SCALE = 100.0  # Channels take 0-100, rigs produce 0-1
WEIGHT_CACHE_EPS = 1e-6          # Skip channel writes that change less than this
WEIGHT_CACHE_INVALID = -1.0      # Forces a write on the first frame
