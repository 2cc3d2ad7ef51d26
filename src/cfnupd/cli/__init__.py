"""
Command line interface for cfnupd.
"""

from .update import main

__all__ = ["main"]
