"""Scoring rules for table tennis."""

from . import table_tennis

__all__ = ["table_tennis"]
