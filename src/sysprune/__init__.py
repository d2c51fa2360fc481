"""Policy-driven resource pruning and concurrent OS junk cleanup."""

__version__ = "0.1.0"
