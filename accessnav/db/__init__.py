"""Database layer for AccessNav."""
