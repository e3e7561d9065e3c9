"""Git porcelain used by the release pipeline.

Usage:
    from ship.git import Repository

    repo = Repository(Path("/path/to/repo"))
    match repo.current_branch():
        case Ok(branch):
            print(branch)
        case Err(e):
            print(e.message)
"""

from ship.git.repository import GitError, Repository

__all__ = ["GitError", "Repository"]
