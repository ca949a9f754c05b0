"""
Bridgegate CLI Tools
"""

from .validator import cli as validator_cli

__all__ = ["validator_cli"]
