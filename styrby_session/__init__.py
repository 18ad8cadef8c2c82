"""Styrby Session.

End-to-end encryption for agent session messages.
"""
from .version import __version__

__all__ = ("__version__",)
