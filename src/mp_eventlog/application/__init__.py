"""Application – event-log use cases (framework-agnostic)."""
