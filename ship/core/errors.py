"""Process exit codes.

Each pipeline failure family maps to a stable exit status so that wrapping
scripts can tell a red CI run from a rejected push without parsing output.
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes for CLI commands.

    - 0: Success
    - 1: User error (protected branch, bad config, bad arguments)
    - 2: Environment error (gh/git missing, unreadable repository state)
    - 3: Verification error (tests, lint, style, dirty tree)
    - 4: CI error (CI reported failure or could not be queried)
    - 5: Git error (push rejected, rebase conflict)
    - 6: Publish error (changelog, tag, registry)
    - 130: Cancelled (SIGINT or external timeout)
    """

    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    VERIFY_ERROR = 3
    CI_ERROR = 4
    GIT_ERROR = 5
    PUBLISH_ERROR = 6
    CANCELLED = 130

