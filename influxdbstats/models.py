"""Data models for the InfluxDbStats module."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol
from urllib.parse import quote

import aiohttp

from .const import ENDPOINT_WRITE
from .exceptions import InfluxDbStatsConfigError

# Characters left alone by JavaScript's encodeURIComponent
_URI_COMPONENT_SAFE = "-_.!~*'()"


class DeviceReading(Protocol):
    """Live device object owned by the host registry."""

    id: Any

    def get(self, key: str) -> Any:
        """Return a device attribute such as ``metrics:level``."""


class DeviceRegistry(Protocol):
    """Host device registry with change subscriptions."""

    def __iter__(self) -> Any:
        """Iterate over all device readings."""

    def on(self, event: str, handler: Callable[[Any], None]) -> None:
        """Subscribe a handler to a registry event."""

    def off(self, event: str, handler: Callable[[Any], None]) -> None:
        """Unsubscribe a handler from a registry event."""


@dataclass(frozen=True)
class InfluxDbStatsConfig:
    """Module configuration, fixed after init."""

    server: str
    port: int
    database: str
    username: str | None = None
    password: str | None = None
    interval: int | None = None  # Minutes between full updates, None disables polling
    tags: frozenset[str] = frozenset()

    @classmethod
    def from_dict(cls, config: Mapping[str, Any]) -> InfluxDbStatsConfig:
        """Build a config from the host's raw option mapping."""
        for key in ("server", "port", "database"):
            if config.get(key) in (None, ""):
                raise InfluxDbStatsConfigError(f"Missing required option '{key}'")

        try:
            port = int(config["port"])
        except (TypeError, ValueError) as err:
            raise InfluxDbStatsConfigError(f"Invalid port: {config['port']!r}") from err

        interval = config.get("interval")
        if interval in (None, ""):
            interval = None
        else:
            try:
                interval = int(interval)
            except (TypeError, ValueError) as err:
                raise InfluxDbStatsConfigError(f"Invalid interval: {interval!r}") from err

        return cls(
            server=str(config["server"]),
            port=port,
            database=str(config["database"]),
            username=config.get("username"),
            password=config.get("password"),
            interval=interval,
            tags=frozenset(config.get("tags") or ()),
        )

    @property
    def url(self) -> str:
        """Write endpoint including the database and credentials."""
        server = self.server
        if not server.startswith("http"):
            server = f"http://{server}"
        url = (
            f"{server}:{self.port}{ENDPOINT_WRITE}"
            f"?db={quote(self.database, safe=_URI_COMPONENT_SAFE)}"
        )
        if self.username is not None:
            url += f"&u={quote(self.username, safe=_URI_COMPONENT_SAFE)}"
        if self.password is not None:
            url += f"&p={quote(self.password, safe=_URI_COMPONENT_SAFE)}"
        return url


@dataclass
class Location:
    """A room known to the host."""

    id: int
    title: str


@dataclass
class ZWaveInstance:
    """One instance of a Z-Wave device with its command class records."""

    command_classes: dict[int, dict[str, Any]] = field(default_factory=dict)


@dataclass
class ZWaveNode:
    """Counters and metadata of a Z-Wave device."""

    given_name: str | None = None
    basic_type: int | None = None
    count_failed: int | None = None
    failure_count: int | None = None
    count_success: int | None = None
    queue_length: int | None = None
    instances: list[ZWaveInstance] = field(default_factory=list)

    @classmethod
    def from_zway(cls, payload: Mapping[str, Any]) -> ZWaveNode:
        """Build a node from a raw Z-Way device record."""
        data = payload.get("data", {})

        def value(name: str) -> Any:
            return (data.get(name) or {}).get("value")

        instances = []
        raw_instances = payload.get("instances", {})
        for key in sorted(raw_instances, key=int):
            command_classes = {}
            for cc_id, cc in raw_instances[key].get("commandClasses", {}).items():
                cc_data = cc.get("data", {})
                command_classes[int(cc_id)] = {
                    name: item.get("value")
                    for name, item in cc_data.items()
                    if isinstance(item, Mapping)
                }
            instances.append(ZWaveInstance(command_classes=command_classes))

        return cls(
            given_name=value("givenName"),
            basic_type=value("basicType"),
            count_failed=value("countFailed"),
            failure_count=value("failureCount"),
            count_success=value("countSuccess"),
            queue_length=value("queueLength"),
            instances=instances,
        )


@dataclass
class SendResult:
    """Outcome of a single batch write."""

    success: bool
    lines: int = 0
    status: int | None = None
    error: str | None = None


@dataclass
class HostHandles:
    """Interfaces the hosting runtime provides to the module."""

    devices: DeviceRegistry
    notify: Callable[[str, str, str, str], None]
    locations: Callable[[], Iterable[Location]] = list
    zwave: Callable[[], Mapping[str, Mapping[Any, ZWaveNode | None] | None]] | None = None
    websession: aiohttp.ClientSession | None = None
