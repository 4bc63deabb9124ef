"""Rental car price search over pickup/return date grids."""

__version__ = "0.1.0"
