# src/clitester/telemetry/__init__.py

"""
Logging setup and logger types for clitester.
"""

from .logger import StructLogger, setup_logging

__all__ = ["StructLogger", "setup_logging"]
