"""Python module forwarding home-automation device stats to InfluxDB."""

from .exceptions import (
    InfluxDbStatsAuthenticationError,
    InfluxDbStatsConfigError,
    InfluxDbStatsConnectionError,
    InfluxDbStatsError,
    InfluxDbStatsWriteError,
)
from .influxdbstats import InfluxDbStats
from .line_protocol import encode_device, encode_zwave_node, escape
from .models import (
    HostHandles,
    InfluxDbStatsConfig,
    Location,
    SendResult,
    ZWaveInstance,
    ZWaveNode,
)

__all__ = [
    "HostHandles",
    "InfluxDbStats",
    "InfluxDbStatsAuthenticationError",
    "InfluxDbStatsConfig",
    "InfluxDbStatsConfigError",
    "InfluxDbStatsConnectionError",
    "InfluxDbStatsError",
    "InfluxDbStatsWriteError",
    "Location",
    "SendResult",
    "ZWaveInstance",
    "ZWaveNode",
    "encode_device",
    "encode_zwave_node",
    "escape",
]
