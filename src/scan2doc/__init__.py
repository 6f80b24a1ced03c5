"""Assemble folders of scanned pages into AI-processed documents."""

__version__ = "0.1.0"
