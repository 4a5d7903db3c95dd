"""Parsers for coordinate text input."""

from eovtrans.core.parsers.coordinates import parse_coordinate_input

__all__ = ["parse_coordinate_input"]
