"""Internal constants shared across the library."""

DEFAULT_URL = "http://localhost/"
DEFAULT_TIMEOUT = 10.0
DEFAULT_NAME = "Pondsensors"
USER_AGENT = "pypond"

# Water level is reported as a percentage.
WATER_LEVEL_MIN = 0.0
WATER_LEVEL_MAX = 100.0

# Longest slice of a response body quoted in error messages and debug logs.
BODY_PREVIEW_CHARS = 200
