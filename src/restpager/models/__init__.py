"""Pydantic models for restpager."""

from .page import Page
from .token import Token

__all__ = ["Page", "Token"]
