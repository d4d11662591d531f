"""Module Atlas: catalogue and graph snapshot service."""

__version__ = "0.1.0"
