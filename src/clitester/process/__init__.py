#
# src/clitester/process/__init__.py
#
"""
Interactive process control: output buffers, background tasks and the controller.
"""

from .buffer import OutputBuffer
from .completion import CompletionSignal
from .interactive import InteractiveProcess
from .tasks import ExitWatcher, OutputDrainTask

__all__ = [
    "CompletionSignal",
    "ExitWatcher",
    "InteractiveProcess",
    "OutputBuffer",
    "OutputDrainTask",
]

# 🔼⚙️
