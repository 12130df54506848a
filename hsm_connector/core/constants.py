"""Core application constants."""

# Time constants
MILLISECONDS_PER_SECOND = 1000

# Device status reported on the status route
STATUS_OK = "OK"
STATUS_NO_DEVICE = "NO_DEVICE"

# Reported instead of a serial when any device is accepted
ANY_SERIAL = "*"
