"""Adapters – concrete backends for the kernel ports (Redis, OpenTelemetry)."""
