#
# tests/support.py
#
"""
Child programs used by the interactive process tests.
"""

import sys
import textwrap


def python_command(script: str) -> list[str]:
    """Argument list running `script` with the current interpreter."""
    return [sys.executable, "-c", textwrap.dedent(script)]


# Prompt, read a line, greet.
GREETER = python_command(
    """
    import sys
    sys.stdout.write("Enter name:")
    sys.stdout.flush()
    name = sys.stdin.readline().strip()
    sys.stdout.write("Hello " + name + "\\n")
    sys.stdout.flush()
    """
)

# Echoes every input line back on stdout until stdin closes.
ECHO = python_command(
    """
    import sys
    for line in sys.stdin:
        sys.stdout.write(line)
        sys.stdout.flush()
    """
)

SLEEPER = python_command(
    """
    import time
    time.sleep(10)
    """
)
