"""Service-wide constants."""

SERVICE_NAME = "coding-threads"
