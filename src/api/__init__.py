"""HTTP API consumed by the dashboard."""
