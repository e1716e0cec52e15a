"""Router package exports."""

from . import health, screen

__all__ = ["health", "screen"]
