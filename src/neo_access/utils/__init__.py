"""Utility helpers for neo-access."""

from .datetime import Clock, parse_iso, to_iso, utc_now
from .uuid import generate_uuid_v7

__all__ = [
    "Clock",
    "generate_uuid_v7",
    "parse_iso",
    "to_iso",
    "utc_now",
]
