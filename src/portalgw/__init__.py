"""portalgw - Bridge portal status feeds to serial display controllers and audio."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("portalgw")
except PackageNotFoundError:
    __version__ = "0+local"

from portalgw.config import GatewayConfig
from portalgw.devices import DeviceRecord, DeviceRegistry, HotplugSupervisor
from portalgw.dispatch import CommandDispatcher, DispatchReport
from portalgw.encoding import build_frame, encode_percent
from portalgw.exceptions import (
    ConfigError,
    DeviceError,
    DeviceWriteError,
    DiscoveryError,
    GatewayError,
    HandshakeError,
    StatusSourceError,
)
from portalgw.gateway import GatewayLoop
from portalgw.models import DeviceRole, Faction, LocationState, ModSlot, ResonatorState
from portalgw.state.diff import StatusDiffEngine
from portalgw.state.events import Transition
from portalgw.state.store import LocationStore

__all__ = [
    "__version__",
    "CommandDispatcher",
    "ConfigError",
    "DeviceError",
    "DeviceRecord",
    "DeviceRegistry",
    "DeviceRole",
    "DeviceWriteError",
    "DiscoveryError",
    "DispatchReport",
    "Faction",
    "GatewayConfig",
    "GatewayError",
    "GatewayLoop",
    "HandshakeError",
    "HotplugSupervisor",
    "LocationState",
    "LocationStore",
    "ModSlot",
    "ResonatorState",
    "StatusDiffEngine",
    "StatusSourceError",
    "Transition",
    "build_frame",
    "encode_percent",
]
