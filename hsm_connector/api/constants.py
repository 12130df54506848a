"""API-related constants."""

# Routes
STATUS_PATH = "/connector/status"
API_PATH = "/connector/api"

# HTTP Headers
REQUEST_ID_HEADER = "X-Request-ID"
REAL_IP_HEADER = "X-Real-IP"

# Content types
OCTET_STREAM = "application/octet-stream"

# Command frames: 1 byte command + 2 bytes length, up to 2048 bytes of payload.
# Three extra bytes are accepted so that oversized frames reach the length
# check instead of being cut off.
MIN_COMMAND_LENGTH = 3
MAX_COMMAND_LENGTH = 2048 + 3

# Methods the connector routes are registered for. The routes match any other
# method too and leave the 405 to the endpoint.
ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]
