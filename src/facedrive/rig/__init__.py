"""Rig logic -- turns driver weights into per-blendshape weights."""

from facedrive.rig.base import RigLogicBase, RigType
from facedrive.rig.factory import make_rig
from facedrive.rig.rig_logic import RigLogic, RigValidationError
from facedrive.rig.simple_rig_logic import SimpleRigLogic
