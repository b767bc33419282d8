"""
CLI Package.

Exports the offboardctl command group.
"""

from .offboardctl import cli, main

__all__ = ["cli", "main"]
