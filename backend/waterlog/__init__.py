"""Waterlog: household plant-watering tracker with an adaptive check schedule."""

__version__ = "1.0.0"
