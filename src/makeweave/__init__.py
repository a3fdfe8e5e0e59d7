"""Makeweave - incremental Makefile generator with header dependency tracking."""

__version__ = "0.3.0"
