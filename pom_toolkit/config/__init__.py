"""Configuration files (YAML) and the helper that loads them.

Packaged defaults live next to this module; user overrides are merged on top
by :class:`ConfigManager`.
"""

from .manager import ConfigManager

__all__ = [
    "ConfigManager",
]
