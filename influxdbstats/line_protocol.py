"""Line protocol encoding for device and Z-Wave readings."""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import Any

from .const import COMMAND_CLASS_BATTERY
from .models import DeviceReading, Location, ZWaveNode

_ESCAPE_RE = re.compile(r"(,|\s+)")


def escape(value: Any) -> str | int | float:
    """Escape a tag or field value.

    Numbers are returned unchanged, strings get a backslash in front of every
    comma and whitespace run, anything else becomes ``null``.
    """
    if isinstance(value, bool):
        return "null"
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        return _ESCAPE_RE.sub(r"\\\1", value)
    return "null"


def _room_title(location: Any, locations: Iterable[Location]) -> Any:
    """Resolve a location id to the room title, or return the id itself."""
    try:
        location = int(location)
    except (TypeError, ValueError):
        return location
    for room in locations:
        if room.id == location:
            return room.title
    return location


def encode_device(reading: DeviceReading, locations: Iterable[Location] = ()) -> str:
    """Encode a virtual device reading as a ``device.<id>`` record."""
    probe = reading.get("metrics:probeTitle") or reading.get("probeType")
    room = _room_title(reading.get("location"), locations)

    return (
        f"device.{escape(reading.id)}"
        f",probe={escape(probe)}"
        f",room={escape(room)}"
        f",scale={escape(reading.get('metrics:scaleTitle'))}"
        f",title={escape(reading.get('metrics:title'))}"
        f",type={reading.get('deviceType')}"
        f" level={escape(reading.get('metrics:level'))}"
    )


def encode_zwave_node(index: Any, node: ZWaveNode | None) -> str | None:
    """Encode Z-Wave node counters as a ``zwave.<index>`` record.

    Returns None for a node that vanished from the network table.
    """
    if node is None:
        return None

    line = (
        f"zwave.{escape(index)}"
        f",title={escape(node.given_name)}"  # Tags
        f",type={escape(node.basic_type)}"
        f" failed={escape(node.count_failed)}"  # Values
        f",failure={escape(node.failure_count)}"
        f",success={escape(node.count_success)}"
        f",queue={escape(node.queue_length)}"
    )

    battery = None
    if node.instances:
        battery = node.instances[0].command_classes.get(COMMAND_CLASS_BATTERY)
    if battery is not None:
        line += f",battery={escape(battery.get('last'))}"
    return line
