"""Rig logic selection by rig type."""

from typing import Sequence

from facedrive.rig.base import RigLogicBase, RigType
from facedrive.rig.rig_logic import RigLogic
from facedrive.rig.simple_rig_logic import SimpleRigLogic


def make_rig(rig_type: RigType, names: Sequence[str]) -> RigLogicBase:
    """Create the rig logic variant for ``rig_type`` over blendshape ``names``."""
    if rig_type is RigType.SIMPLE:
        return SimpleRigLogic(names)
    if rig_type is RigType.NAMING_CONVENTION:
        return RigLogic(names)
    raise ValueError(f"Unsupported rig type: {rig_type}")
