"""
Logging module for the control plane.
This module provides the function that configures console and file logging.
"""

from .setup import setup_logging

__all__ = ["setup_logging"]
