"""Version information for :mod:`spinquery`."""

__all__ = [
    "VERSION",
]

VERSION = "0.1.0"
