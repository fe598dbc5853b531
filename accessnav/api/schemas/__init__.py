"""Pydantic schemas for the AccessNav API."""
