"""
The Supervisor package.
Manages the lifecycle of the external vlink helper process.

It contains the HelperSupervisor class and the helpers it uses to locate the
helper binary and its configuration, launch it and shut it down.
"""
from .supervisor import HelperState, HelperSupervisor

__all__ = ['HelperState', 'HelperSupervisor']
