from __future__ import annotations

from ship.core.result import Err, Ok, Result
from ship.release.errors import ReleaseError


def guard_push(branch: str, trunk: str) -> Result[None, ReleaseError]:
    """Refuse push-like operations whose source is the trunk branch.

    Runs immediately before every push to the canonical remote.
    """
    if not branch:
        return Err(
            ReleaseError(
                kind="no_branch",
                message="no branch checked out (detached HEAD)",
                stage="guard",
                hint="Check out a feature branch first.",
            )
        )
    if branch == trunk:
        return Err(
            ReleaseError(
                kind="protected_branch",
                message=f"refusing to push from trunk branch '{trunk}'",
                stage="guard",
                hint="Create a feature branch: git switch -c <name>",
            )
        )
    return Ok(None)
