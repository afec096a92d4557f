"""Shared pytest fixtures for influxdbstats tests."""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, MagicMock, Mock

import pytest

from influxdbstats import HostHandles, InfluxDbStatsConfig, Location, ZWaveInstance, ZWaveNode
from influxdbstats.const import COMMAND_CLASS_BATTERY


class FakeReading:
    """Device reading as exposed by the host registry."""

    def __init__(self, device_id: Any, attributes: dict[str, Any]) -> None:
        self.id = device_id
        self._attributes = attributes

    def get(self, key: str) -> Any:
        return self._attributes.get(key)


class FakeRegistry:
    """Host device registry recording subscriptions."""

    def __init__(self, devices: list[FakeReading] | None = None) -> None:
        self.devices = devices or []
        self.handlers: dict[str, list[Any]] = {}

    def __iter__(self):
        return iter(self.devices)

    def on(self, event: str, handler: Any) -> None:
        self.handlers.setdefault(event, []).append(handler)

    def off(self, event: str, handler: Any) -> None:
        self.handlers.get(event, []).remove(handler)

    def fire(self, event: str, reading: Any) -> None:
        for handler in list(self.handlers.get(event, [])):
            handler(reading)


def make_reading(device_id: str = "ZWayVDev_zway_5-0-49-1", **overrides: Any) -> FakeReading:
    """Create a tagged temperature reading."""
    attributes = {
        "tags": ["temperature", "livingroom"],
        "metrics:level": 21.5,
        "metrics:scaleTitle": "°C",
        "metrics:probeTitle": "Temperature",
        "probeType": "temperature",
        "metrics:title": "Living Room Temp",
        "location": 2,
        "deviceType": "sensorMultilevel",
    }
    attributes.update(overrides)
    return FakeReading(device_id, attributes)


@pytest.fixture
def locations() -> list[Location]:
    """Rooms known to the host."""
    return [Location(id=1, title="Kitchen"), Location(id=2, title="Living Room")]


@pytest.fixture
def sensor_node() -> ZWaveNode:
    """Battery powered Z-Wave sensor."""
    return ZWaveNode(
        given_name="Kitchen Sensor",
        basic_type=4,
        count_failed=1,
        failure_count=0,
        count_success=120,
        queue_length=0,
        instances=[ZWaveInstance(command_classes={COMMAND_CLASS_BATTERY: {"last": 85}})],
    )


@pytest.fixture
def controller_node() -> ZWaveNode:
    """The Z-Wave controller itself."""
    return ZWaveNode(
        given_name="Controller",
        basic_type=2,
        count_failed=0,
        failure_count=0,
        count_success=0,
        queue_length=0,
        instances=[ZWaveInstance()],
    )


@pytest.fixture
def config() -> InfluxDbStatsConfig:
    """Configuration without periodic updates."""
    return InfluxDbStatsConfig(
        server="http://influx.local",
        port=8086,
        database="home",
        tags=frozenset({"temperature"}),
    )


@pytest.fixture
def response() -> MagicMock:
    """Successful write response."""
    response_mock = MagicMock()
    response_mock.status = 204
    response_mock.text = AsyncMock(return_value="")
    return response_mock


@pytest.fixture
def websession(response: MagicMock) -> MagicMock:
    """Mock aiohttp session returning the response fixture."""
    session = MagicMock()
    session.post.return_value.__aenter__ = AsyncMock(return_value=response)
    session.post.return_value.__aexit__ = AsyncMock(return_value=False)
    session.close = AsyncMock()
    return session


@pytest.fixture
def registry() -> FakeRegistry:
    """Empty device registry."""
    return FakeRegistry()


@pytest.fixture
def notify() -> Mock:
    """Host notification sink."""
    return Mock()


@pytest.fixture
def host(
    registry: FakeRegistry,
    notify: Mock,
    locations: list[Location],
    websession: MagicMock,
) -> HostHandles:
    """Host handles wired to the fakes."""
    return HostHandles(
        devices=registry,
        notify=notify,
        locations=lambda: locations,
        websession=websession,
    )
