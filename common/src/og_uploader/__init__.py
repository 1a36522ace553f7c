"""Batch uploader: random image -> 0G storage -> on-chain record."""

__version__ = "0.1.0"
