"""
Settings for fsgate.
"""

from fsgate.settings.config import FsgateSettings

__all__ = ["FsgateSettings"]
