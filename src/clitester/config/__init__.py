#
# config/__init__.py
#
"""
Configuration handling sub-package for clitester.

Exports the loading function and the configuration model.
"""

from .loader import load_config
from .models import HarnessConfig

__all__ = [
    "HarnessConfig",
    "load_config",
]

# 🔼⚙️
