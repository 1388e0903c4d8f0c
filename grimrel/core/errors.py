"""Error codes for CLI exit status.

Every command maps its failure class onto one of these codes so that CI jobs
can tell a bad invocation apart from a broken toolchain or an unreachable
release host.
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes for CLI commands.

    These values are used as process exit codes and should remain stable:
    - 0: Success
    - 1: User error (dirty tree, invalid bump class, tag already exists)
    - 2: Environment error (git failure, missing project root)
    - 3: Build error (toolchain, packaging or checksum failure)
    - 4: Network error (release host unreachable, publish rejected)
    - 5: I/O error (version file unreadable, config unreadable)
    """

    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    BUILD_ERROR = 3
    NETWORK_ERROR = 4
    IO_ERROR = 5

    def __str__(self) -> str:
        """Return human-readable name."""
        return self.name.lower().replace("_", " ")
