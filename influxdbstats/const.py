"""Constants for the InfluxDbStats module."""

MODULE_NAME = "InfluxDbStats"

# API endpoints
ENDPOINT_WRITE = "/write"

# Host event fired when a device reports a real metrics update
EVENT_DEVICE_CHANGE = "change:metrics:changeTime"

# Z-Wave command class carrying the battery level
COMMAND_CLASS_BATTERY = 0x80

# Device index of the Z-Wave controller itself
CONTROLLER_NODE_ID = 1

# Notification sent to the host on a failed write
NOTIFICATION_LEVEL_ERROR = "error"
NOTIFICATION_SOURCE_TYPE = "module"
NOTIFICATION_WRITE_FAILED = "Could not post stats to InfluxDB"

SECONDS_PER_MINUTE = 60
