"""Service layer for restpager."""
