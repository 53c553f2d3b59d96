"""
Seigniorage command line tools.
"""

from .simulate import cli

__all__ = ["cli"]
