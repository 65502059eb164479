"""Data models for the Actions URI server."""
