"""Warehouse operator action wizard: guided step resolution and fact submission."""

__version__ = "0.1.0"
