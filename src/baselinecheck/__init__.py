"""Baseline Check — scan web sources for platform feature usage."""

__version__ = "0.1.0"
