"""Exceptions for the InfluxDbStats module."""

from __future__ import annotations


class InfluxDbStatsError(Exception):
    """Base exception for InfluxDbStats errors."""


class InfluxDbStatsConfigError(InfluxDbStatsError, ValueError):
    """Raised when the module configuration is incomplete or invalid."""


class InfluxDbStatsConnectionError(InfluxDbStatsError):
    """Raised when the InfluxDB server cannot be reached."""


class InfluxDbStatsAuthenticationError(InfluxDbStatsError):
    """Raised when InfluxDB rejects the configured credentials."""


class InfluxDbStatsWriteError(InfluxDbStatsError):
    """Raised when InfluxDB answers a write with an error status."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status
