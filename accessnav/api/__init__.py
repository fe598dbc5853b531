"""HTTP API for AccessNav."""
