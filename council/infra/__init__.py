"""Infrastructure: telemetry and caching."""
