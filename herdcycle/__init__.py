"""Breeding-cycle tracking for cattle, horse and sheep farms."""

__version__ = "0.5.0"
