"""Taquero: food-safety compliance records for a small restaurant."""

__version__ = "1.0.0"
