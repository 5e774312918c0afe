"""Serial controller lifecycle: connections, registry, discovery and hotplug."""

from portalgw.devices.discovery import DeviceCandidate, discover_devices
from portalgw.devices.handle import DeviceHandle, DeviceRecord, SendResult, open_device
from portalgw.devices.hotplug import HotplugSupervisor, make_opener
from portalgw.devices.registry import DeviceRegistry

__all__ = [
    "DeviceCandidate",
    "DeviceHandle",
    "DeviceRecord",
    "DeviceRegistry",
    "HotplugSupervisor",
    "SendResult",
    "discover_devices",
    "make_opener",
    "open_device",
]
