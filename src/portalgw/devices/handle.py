"""Serial controller connections.

A controller is a microcontroller attached over a USB serial line. After
the port is opened (which usually resets the board) the gateway waits a
short settle delay, writes the ``*`` probe and reads one reply line naming
the controller's role. From then on the gateway only writes command
frames.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

import serial_asyncio

from portalgw._constants import BAUDRATE, HANDSHAKE_TIMEOUT_S, PROBE, SEND_TIMEOUT_S, SETTLE_DELAY_S
from portalgw.exceptions import DeviceWriteError, HandshakeError
from portalgw.models.device import DeviceRole, classify_role

_logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SendResult:
    """Outcome of writing one frame to one controller."""

    path: str
    error: DeviceWriteError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class DeviceHandle:
    """One open connection to a serial controller.

    The handle is closed at most once; later calls to :meth:`close` are
    no-ops and :meth:`send` on a closed handle reports a failure.
    """

    def __init__(
        self,
        path: str,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        *,
        send_timeout: float = SEND_TIMEOUT_S,
    ) -> None:
        self.path = path
        self._reader = reader
        self._writer = writer
        self._send_timeout = send_timeout
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def ping(self, timeout: float = HANDSHAKE_TIMEOUT_S) -> str:
        """Send the probe and return the stripped reply line.

        Raises
        ------
        HandshakeError
            On I/O failure, timeout, or an empty reply.
        """
        try:
            self._writer.write(PROBE)
            await asyncio.wait_for(self._writer.drain(), timeout)
            line = await asyncio.wait_for(self._reader.readline(), timeout)
        except TimeoutError as exc:
            raise HandshakeError(f"no reply from {self.path} within {timeout}s", path=self.path) from exc
        except (OSError, ValueError) as exc:
            raise HandshakeError(f"unable to ping controller at {self.path}: {exc}", path=self.path) from exc

        reply = line.decode("ascii", errors="replace").strip()
        if not reply:
            raise HandshakeError(f"empty reply from {self.path}", path=self.path)
        return reply

    async def send(self, frame: bytes) -> SendResult:
        """Write *frame*; failures are returned, not raised."""
        if self._closed:
            return SendResult(self.path, DeviceWriteError(f"{self.path} is closed", path=self.path))
        try:
            self._writer.write(frame)
            await asyncio.wait_for(self._writer.drain(), self._send_timeout)
        except TimeoutError:
            return SendResult(
                self.path,
                DeviceWriteError(f"write to {self.path} timed out after {self._send_timeout}s", path=self.path),
            )
        except Exception as exc:
            # Anything escaping the write path takes the device offline.
            return SendResult(self.path, DeviceWriteError(f"write to {self.path} failed: {exc!r}", path=self.path))
        return SendResult(self.path)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._writer.close()
        try:
            await self._writer.wait_closed()
        except OSError:
            _logger.debug("error while closing %s", self.path, exc_info=True)


@dataclass(frozen=True, slots=True)
class DeviceRecord:
    """A classified controller attached to a portal."""

    path: str
    location: str
    role: DeviceRole
    handle: DeviceHandle = field(compare=False, repr=False)
    reply: str = ""

    async def send(self, frame: bytes) -> SendResult:
        return await self.handle.send(frame)

    async def close(self) -> None:
        await self.handle.close()


async def open_device(
    path: str,
    location: str,
    *,
    baudrate: int = BAUDRATE,
    settle_delay: float = SETTLE_DELAY_S,
    handshake_timeout: float = HANDSHAKE_TIMEOUT_S,
    send_timeout: float = SEND_TIMEOUT_S,
) -> DeviceRecord:
    """Open *path*, run the handshake and return the classified controller.

    The connection is closed again before any error propagates.

    Raises
    ------
    HandshakeError
        If the port cannot be opened or the controller does not answer.
    """
    try:
        reader, writer = await serial_asyncio.open_serial_connection(url=path, baudrate=baudrate)
    except (OSError, ValueError) as exc:
        raise HandshakeError(f"unable to open controller at {path}: {exc}", path=path) from exc

    handle = DeviceHandle(path, reader, writer, send_timeout=send_timeout)
    try:
        # Opening the port resets most boards; let them boot first.
        if settle_delay > 0:
            await asyncio.sleep(settle_delay)
        reply = await handle.ping(handshake_timeout)
    except BaseException:
        await handle.close()
        raise

    return DeviceRecord(path=path, location=location, role=classify_role(reply), handle=handle, reply=reply)
