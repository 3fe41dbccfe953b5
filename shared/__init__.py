"""
ElfProbe Shared Module
======================

Configuration, logging and console utilities shared by every ElfProbe
component.
"""

from shared.config import ProbeConfig

__all__ = ["ProbeConfig"]
