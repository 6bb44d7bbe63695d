"""Asynchronous image resize, crop and compress service."""

__version__ = "1.0.0"
