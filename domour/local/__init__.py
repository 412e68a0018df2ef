"""
Local package for the Domour Copilot control plane.

This package provides the merged runtime configuration through the
effective_settings object, plus the supervisor, update and collaborator modules.
"""

from .config import effective_settings

__all__ = ["effective_settings"]
