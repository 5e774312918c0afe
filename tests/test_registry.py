from __future__ import annotations

import asyncio

import pytest

from portalgw.devices.handle import DeviceHandle, DeviceRecord
from portalgw.devices.registry import DeviceRegistry
from portalgw.models.device import DeviceRole


class _FakeWriter:
    def __init__(self, *, close_error: Exception | None = None) -> None:
        self.close_error = close_error

    def write(self, data: bytes) -> None:
        return None

    async def drain(self) -> None:
        return None

    def close(self) -> None:
        if self.close_error is not None:
            raise self.close_error

    async def wait_closed(self) -> None:
        return None


def _record(path: str, location: str = "Alpha", writer: _FakeWriter | None = None) -> DeviceRecord:
    handle = DeviceHandle(path, asyncio.StreamReader(), writer or _FakeWriter())  # type: ignore[arg-type]
    return DeviceRecord(path=path, location=location, role=DeviceRole.CORE, handle=handle)


@pytest.mark.asyncio
async def test_concurrent_register_keeps_one_and_closes_the_other() -> None:
    registry = DeviceRegistry()
    first = _record("/dev/ttyUSB0")
    second = _record("/dev/ttyUSB0")

    results = await asyncio.gather(registry.register_if_absent(first), registry.register_if_absent(second))

    assert sorted(results) == [False, True]
    assert len(registry) == 1
    winner, loser = (first, second) if results[0] else (second, first)
    assert [record is winner for record in registry.snapshot("Alpha")] == [True]
    assert loser.handle.closed
    assert not winner.handle.closed


@pytest.mark.asyncio
async def test_same_path_for_different_locations() -> None:
    registry = DeviceRegistry()

    assert await registry.register_if_absent(_record("/dev/ttyUSB0", "Alpha"))
    assert await registry.register_if_absent(_record("/dev/ttyUSB0", "Beta"))

    assert sorted(registry.locations()) == ["Alpha", "Beta"]


@pytest.mark.asyncio
async def test_snapshot_is_a_copy() -> None:
    registry = DeviceRegistry()
    await registry.register_if_absent(_record("/dev/ttyUSB0"))

    snapshot = registry.snapshot("Alpha")
    snapshot.clear()

    assert len(registry.snapshot("Alpha")) == 1
    assert registry.snapshot("Nowhere") == []


@pytest.mark.asyncio
async def test_remove_closes_and_is_idempotent() -> None:
    registry = DeviceRegistry()
    record = _record("/dev/ttyUSB0")
    await registry.register_if_absent(record)

    assert await registry.remove("Alpha", "/dev/ttyUSB0") is record
    assert await registry.remove("Alpha", "/dev/ttyUSB0") is None
    assert record.handle.closed
    assert registry.paths("Alpha") == set()


@pytest.mark.asyncio
async def test_remove_expected_keeps_replacement() -> None:
    registry = DeviceRegistry()
    stale = _record("/dev/ttyUSB0")
    fresh = _record("/dev/ttyUSB0")
    await registry.register_if_absent(fresh)

    assert await registry.remove("Alpha", "/dev/ttyUSB0", expected=stale) is None
    assert [record is fresh for record in registry.snapshot("Alpha")] == [True]
    assert not fresh.handle.closed

    assert await registry.remove("Alpha", "/dev/ttyUSB0", expected=fresh) is fresh
    assert fresh.handle.closed


@pytest.mark.asyncio
async def test_close_errors_do_not_propagate() -> None:
    registry = DeviceRegistry()
    record = _record("/dev/ttyUSB0", writer=_FakeWriter(close_error=RuntimeError("already gone")))
    await registry.register_if_absent(record)

    assert await registry.remove("Alpha", "/dev/ttyUSB0") is record
    assert len(registry) == 0


@pytest.mark.asyncio
async def test_close_all() -> None:
    registry = DeviceRegistry()
    records = [_record("/dev/ttyUSB0"), _record("/dev/ttyUSB1"), _record("/dev/ttyUSB0", "Beta")]
    for record in records:
        await registry.register_if_absent(record)

    closed = await registry.close_all()

    assert len(closed) == 3
    assert len(registry) == 0
    assert registry.locations() == []
    assert all(record.handle.closed for record in records)
