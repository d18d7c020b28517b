#
# src/clitester/protocols.py
#
"""
Protocols for pluggable collaborators of the test environment.
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class MockAdapter(Protocol):
    """
    Sets up mocks that should be active while a block of test code runs.

    Implementations may also define `teardown_mocks()`; `Environment.with_mocks`
    calls it when the block ends.

    Example:
        class FakeApi:
            def apply_mocks(self) -> None:
                os.environ["MY_CLI_API_URL"] = server.url

        with env.with_mocks(FakeApi()):
            env.execute("my-cli fetch")
    """

    def apply_mocks(self) -> None:
        ...


# 🔼⚙️
