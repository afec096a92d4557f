"""Main InfluxDbStats class for forwarding device stats to InfluxDB."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Mapping
from typing import Any

import aiohttp

from .const import (
    CONTROLLER_NODE_ID,
    EVENT_DEVICE_CHANGE,
    MODULE_NAME,
    NOTIFICATION_LEVEL_ERROR,
    NOTIFICATION_SOURCE_TYPE,
    NOTIFICATION_WRITE_FAILED,
    SECONDS_PER_MINUTE,
)
from .exceptions import (
    InfluxDbStatsAuthenticationError,
    InfluxDbStatsConnectionError,
    InfluxDbStatsError,
    InfluxDbStatsWriteError,
)
from .line_protocol import encode_device, encode_zwave_node
from .models import DeviceReading, HostHandles, InfluxDbStatsConfig, SendResult

_LOGGER = logging.getLogger(__name__)

# Ends the worker once everything queued before it has been sent
_STOP = object()


class InfluxDbStats:
    """Collects tagged device readings and writes them to InfluxDB."""

    def __init__(
        self,
        module_id: str = MODULE_NAME,
        error_message: str = NOTIFICATION_WRITE_FAILED,
    ) -> None:
        """Initialize an idle module instance.

        Args:
            module_id: Identity used as notification source
            error_message: Notification text for a failed write, localized by the host
        """
        self.module_id = module_id
        self.error_message = error_message
        self.config: InfluxDbStatsConfig | None = None
        self.url: str | None = None

        self._host: HostHandles | None = None
        self._websession: aiohttp.ClientSession | None = None
        self._own_session = False
        self._queue: asyncio.Queue[Any] | None = None
        self._worker: asyncio.Task[None] | None = None
        self._timer: asyncio.Task[None] | None = None
        self._stopping: asyncio.Event | None = None

    @property
    def running(self) -> bool:
        """Check if the module is subscribed to the host."""
        return self._host is not None

    async def init(
        self,
        config: InfluxDbStatsConfig | Mapping[str, Any],
        host: HostHandles,
    ) -> None:
        """Start collecting.

        Args:
            config: Module configuration or the host's raw option mapping
            host: Registry, notification and network handles of the host
        """
        if not isinstance(config, InfluxDbStatsConfig):
            config = InfluxDbStatsConfig.from_dict(config)
        self.config = config
        self.url = config.url
        self._host = host

        if host.websession is not None:
            self._websession = host.websession
            self._own_session = False
        await self._ensure_session()

        self._queue = asyncio.Queue()
        self._worker = asyncio.create_task(self._run_worker())

        self._stopping = asyncio.Event()
        if config.interval is not None:
            self._timer = asyncio.create_task(self._run_timer(config.interval * SECONDS_PER_MINUTE))

        host.devices.on(EVENT_DEVICE_CHANGE, self.on_device_change)
        _LOGGER.info(
            "Started %s for database %s (interval: %s, tags: %s)",
            self.module_id,
            config.database,
            config.interval,
            sorted(config.tags),
        )

    async def stop(self) -> None:
        """Stop collecting.

        Queued batches are still sent, a request already in flight is not
        cancelled.
        """
        if self._host is not None:
            self._host.devices.off(EVENT_DEVICE_CHANGE, self.on_device_change)

        if self._stopping is not None:
            self._stopping.set()
        if self._timer is not None:
            await self._timer
            self._timer = None

        if self._worker is not None and self._queue is not None:
            self._queue.put_nowait(_STOP)
            await self._worker
            self._worker = None
            self._queue = None

        self._host = None
        await self.close_connection()
        self._stopping = None
        _LOGGER.info("Stopped %s", self.module_id)

    async def close_connection(self) -> None:
        """Close the connection and clean up resources."""
        if self._own_session and self._websession:
            await self._websession.close()
        self._websession = None
        self._own_session = False

    async def _ensure_session(self) -> None:
        """Ensure a websession exists."""
        if self._websession is None:
            self._websession = aiohttp.ClientSession()
            self._own_session = True

    async def __aenter__(self) -> InfluxDbStats:
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.stop()

    def matches(self, reading: DeviceReading) -> bool:
        """Check if a reading carries at least one of the configured tags."""
        if self.config is None:
            return False
        return not self.config.tags.isdisjoint(reading.get("tags") or ())

    def on_device_change(self, reading: DeviceReading | None) -> None:
        """Handle a metrics change event from the host registry.

        Runs inside the host's change dispatch, so the write is only queued.
        """
        if reading is None:
            _LOGGER.error("Invalid event: no device")
            return
        if self._queue is None or not self.matches(reading):
            return

        _LOGGER.info("Update device %s", reading.id)
        self._queue.put_nowait([encode_device(reading, self._locations())])

    def collect(self) -> list[str]:
        """Encode every tagged device and every Z-Wave node."""
        lines: list[str] = []
        if self._host is None:
            return lines

        locations = self._locations()
        for reading in self._host.devices:
            if self.matches(reading):
                lines.append(encode_device(reading, locations))

        if self._host.zwave is not None:
            for name, devices in self._host.zwave().items():
                if not devices:
                    _LOGGER.debug("Z-Wave network %s has no device table", name)
                    continue
                _LOGGER.debug("Collecting Z-Wave network %s", name)
                for index, node in devices.items():
                    if str(index) == str(CONTROLLER_NODE_ID):
                        continue
                    line = encode_zwave_node(index, node)
                    if line is not None:
                        lines.append(line)
        return lines

    async def update_all(self) -> SendResult:
        """Collect all tagged devices and Z-Wave nodes and send them at once."""
        _LOGGER.info("Update all")
        return await self.send_batch(self.collect())

    async def send_batch(self, lines: Iterable[str | None]) -> SendResult:
        """Send line protocol records in a single write.

        Failures are logged and reported to the host, never raised.
        """
        records = [line for line in lines if line is not None]
        if not records:
            return SendResult(success=True)
        if self._websession is None:
            _LOGGER.warning("Dropping %s stats lines, %s is not running", len(records), self.module_id)
            return SendResult(success=False, lines=len(records), error="Module is not running")

        try:
            status = await self._post("\n".join(records))
        except InfluxDbStatsError as err:
            _LOGGER.error("Could not post stats: %s", err)
            self._notify_failure()
            return SendResult(
                success=False,
                lines=len(records),
                status=getattr(err, "status", None),
                error=str(err),
            )
        return SendResult(success=True, lines=len(records), status=status)

    async def _post(self, data: str) -> int:
        """Post a payload to the write endpoint and return the status."""
        assert self._websession is not None
        assert self.url is not None

        _LOGGER.debug("Posting stats: %s", data)
        try:
            async with self._websession.post(
                self.url,
                data=data.encode("utf-8"),
                headers={"Content-Type": "text/plain; charset=utf-8"},
            ) as response:
                if response.status in (401, 403):
                    raise InfluxDbStatsAuthenticationError("Authentication failed")
                if response.status >= 300:
                    body = await response.text()
                    raise InfluxDbStatsWriteError(
                        f"Write failed with status {response.status}: {body}",
                        status=response.status,
                    )
                _LOGGER.debug("Stats posted with status %s", response.status)
                return response.status
        except InfluxDbStatsError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as err:
            raise InfluxDbStatsConnectionError(f"Failed to connect to InfluxDB: {err}") from err

    def _notify_failure(self) -> None:
        if self._host is None:
            return
        self._host.notify(
            NOTIFICATION_LEVEL_ERROR,
            self.error_message,
            NOTIFICATION_SOURCE_TYPE,
            self.module_id,
        )

    def _locations(self) -> list:
        if self._host is None:
            return []
        return list(self._host.locations())

    async def _run_worker(self) -> None:
        """Send queued change batches one at a time."""
        assert self._queue is not None
        while True:
            lines = await self._queue.get()
            if lines is _STOP:
                return
            try:
                await self.send_batch(lines)
            except Exception:
                _LOGGER.exception("Unexpected error sending device update")

    async def _run_timer(self, seconds: float) -> None:
        """Run a full update every interval until stop is requested.

        Only the wait between updates is interrupted, a running update
        finishes its write.
        """
        assert self._stopping is not None
        while True:
            try:
                await asyncio.wait_for(self._stopping.wait(), seconds)
            except asyncio.TimeoutError:
                pass
            else:
                return
            try:
                await self.update_all()
            except Exception:
                _LOGGER.exception("Unexpected error during full update")
