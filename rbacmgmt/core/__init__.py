"""Core management API modules."""
