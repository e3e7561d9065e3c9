"""Git repository abstraction.

This module provides the Repository class with the porcelain operations the
release pipeline needs: branch and tag queries, annotated tag creation,
refspec pushes, rebase, and branch deletion. All operations return Result
types; nothing here decides policy (which branch may be pushed, when a tag
may be created). That lives in ``ship.release``.

Usage:
    repo = Repository(Path("/path/to/repo"))

    match repo.push("github", "feature:master"):
        case Ok(_):
            print("pushed")
        case Err(e):
            print(f"push failed: {e.message}")
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from ship.core.result import Err, Ok, Result
from ship.platform.process import ProcessError
from ship.platform.process import run as run_process

_GIT_TIMEOUT_SECONDS = 30.0
_GIT_NETWORK_TIMEOUT_SECONDS = 3 * 60.0
_NETWORK_COMMANDS = frozenset({"fetch", "pull", "push", "ls-remote"})

__all__ = ["GitError", "Repository"]


@dataclass(frozen=True, slots=True)
class GitError:
    """Error from a git operation.

    Attributes:
        command: The git subcommand that failed (e.g. "push github a:master")
        message: Error message
        returncode: Process return code
    """

    command: str
    message: str
    returncode: int = 1


class Repository:
    """Git repository abstraction.

    Attributes:
        path: Path to the repository root
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def exists(self) -> bool:
        """Check if this is a valid git repository."""
        return (self.path / ".git").exists()

    def current_branch(self) -> Result[str, GitError]:
        """Get current branch name.

        Returns Ok("") on a detached HEAD so that callers can apply their
        own policy to it.
        """
        result = self._run(["rev-parse", "--abbrev-ref", "HEAD"])
        if isinstance(result, Err):
            return Err(_git_error("rev-parse --abbrev-ref HEAD", result.error))
        branch = result.value.strip()
        return Ok("" if branch == "HEAD" else branch)

    def rev_parse(self, ref: str) -> Result[str, GitError]:
        """Resolve a ref to a full commit sha."""
        result = self._run(["rev-parse", "--verify", f"{ref}^{{commit}}"])
        if isinstance(result, Err):
            return Err(_git_error(f"rev-parse {ref}", result.error))
        return Ok(result.value.strip())

    def branch_exists(self, branch: str) -> bool:
        """Check for a local branch ref."""
        result = self._run(["show-ref", "--verify", "--quiet", f"refs/heads/{branch}"])
        return isinstance(result, Ok)

    def diff_is_clean(self) -> Result[bool, GitError]:
        """Check for unstaged changes to tracked files.

        Runs ``git diff --no-ext-diff --quiet --exit-code``: exit 0 is clean,
        exit 1 is dirty, anything else is an error.
        """
        result = self._run(["diff", "--no-ext-diff", "--quiet", "--exit-code"])
        match result:
            case Ok(_):
                return Ok(True)
            case Err(e) if e.returncode == 1:
                return Ok(False)
            case Err(e):
                return Err(_git_error("diff --quiet", e))

    def tag_exists(self, tag: str) -> Result[bool, GitError]:
        """Check whether a tag exists locally."""
        result = self._run(["rev-parse", "--quiet", "--verify", f"refs/tags/{tag}"])
        match result:
            case Ok(_):
                return Ok(True)
            case Err(e) if e.returncode == 1:
                return Ok(False)
            case Err(e):
                return Err(_git_error(f"rev-parse refs/tags/{tag}", e))

    def remote_tag_exists(self, remote: str, tag: str) -> Result[bool, GitError]:
        """Check whether a tag exists on the remote."""
        result = self._run(["ls-remote", "--tags", remote, f"refs/tags/{tag}"])
        if isinstance(result, Err):
            return Err(_git_error(f"ls-remote --tags {remote}", result.error))
        return Ok(bool(result.value.strip()))

    def create_annotated_tag(self, tag: str, message: str) -> Result[None, GitError]:
        """Create an annotated tag at HEAD.

        git refuses to overwrite an existing tag without ``--force``, which
        is never passed here.
        """
        result = self._run(["tag", "-a", tag, "-m", message])
        if isinstance(result, Err):
            return Err(_git_error(f"tag -a {tag}", result.error))
        return Ok(None)

    def push(self, remote: str, refspec: str) -> Result[str, GitError]:
        """Push a single refspec to a remote. Never forces."""
        result = self._run(["push", remote, refspec])
        if isinstance(result, Err):
            return Err(_git_error(f"push {remote} {refspec}", result.error))
        return Ok(result.value.strip())

    def rebase(self, upstream: str, branch: str) -> Result[None, GitError]:
        """Check out ``branch`` and rebase it onto ``upstream``."""
        result = self._run(["rebase", upstream, branch])
        if isinstance(result, Err):
            return Err(_git_error(f"rebase {upstream} {branch}", result.error))
        return Ok(None)

    def delete_branch(self, branch: str) -> Result[None, GitError]:
        """Delete a fully merged local branch (``git branch -d``)."""
        result = self._run(["branch", "-d", branch])
        if isinstance(result, Err):
            return Err(_git_error(f"branch -d {branch}", result.error))
        return Ok(None)

    def _run(self, args: list[str]) -> Result[str, ProcessError]:
        """Run a git command in this repository."""
        command = args[0] if args else ""
        timeout = (
            _GIT_NETWORK_TIMEOUT_SECONDS if command in _NETWORK_COMMANDS else _GIT_TIMEOUT_SECONDS
        )
        return run_process(["git", "-C", str(self.path), *args], cwd=self.path, timeout=timeout)


def _git_error(command: str, error: ProcessError) -> GitError:
    return GitError(
        command=command,
        message=error.detail or f"git {command} failed",
        returncode=error.returncode,
    )
