"""Module Atlas command-line interface."""
