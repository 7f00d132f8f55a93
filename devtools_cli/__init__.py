"""Command line driver for Chrome DevTools Protocol sessions."""

__version__ = "0.1.0"
