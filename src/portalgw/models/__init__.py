"""Data models for portal status feeds and attached controllers."""

from portalgw.models._base import GwBaseModel, GwEnum
from portalgw.models.device import DeviceRole, classify_role
from portalgw.models.portal import Faction, LocationState, ModSlot, ResonatorState

__all__ = [
    "DeviceRole",
    "Faction",
    "GwBaseModel",
    "GwEnum",
    "LocationState",
    "ModSlot",
    "ResonatorState",
    "classify_role",
]
