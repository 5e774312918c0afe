"""Serial controller roles."""

from __future__ import annotations

from portalgw.models._base import GwEnum


class DeviceRole(GwEnum):
    """Role a controller reports in reply to the handshake probe."""

    UNKNOWN = "unknown"
    CORE = "core"
    RESONATOR_CLUSTER = "resonator-cluster"


# Spellings seen in controller firmware replies.
_ROLE_ALIASES: dict[str, DeviceRole] = {
    "core": DeviceRole.CORE,
    "portal": DeviceRole.CORE,
    "resonator-cluster": DeviceRole.RESONATOR_CLUSTER,
    "resonator cluster": DeviceRole.RESONATOR_CLUSTER,
    "resonator_cluster": DeviceRole.RESONATOR_CLUSTER,
    "resonators": DeviceRole.RESONATOR_CLUSTER,
    "resonator": DeviceRole.RESONATOR_CLUSTER,
}


def classify_role(response: str) -> DeviceRole:
    """Map a handshake reply line to a :class:`DeviceRole`.

    Any non-empty reply without a known spelling yields ``UNKNOWN``;
    such controllers still receive frames.
    """
    return _ROLE_ALIASES.get(response.strip().casefold(), DeviceRole.UNKNOWN)
