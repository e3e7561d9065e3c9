"""Error taxonomy for the release pipeline."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Literal

from ship.core.errors import ErrorCode

ReleaseErrorKind = Literal[
    # GuardError
    "protected_branch",
    "no_branch",
    # ResolveError
    "metadata_parse",
    # CIError
    "ci_failed",
    "cancelled",
    "ci_query_failed",
    "gh_missing",
    # MergeError
    "push_rejected",
    "rebase_conflict",
    "branch_delete_failed",
    "pr_failed",
    # VerificationError
    "verification_failed",
    "dirty_tree",
    # PublishError
    "missing_changelog_entry",
    "duplicate_tag",
    "tag_failed",
    "git_failed",
    # RegistryError
    "registry_failed",
    # ConfigError
    "config_invalid",
]

ErrorFamily = Literal[
    "GuardError",
    "ResolveError",
    "CIError",
    "MergeError",
    "VerificationError",
    "PublishError",
    "RegistryError",
    "ConfigError",
]

_FAMILIES: dict[str, ErrorFamily] = {
    "protected_branch": "GuardError",
    "no_branch": "GuardError",
    "metadata_parse": "ResolveError",
    "ci_failed": "CIError",
    "cancelled": "CIError",
    "ci_query_failed": "CIError",
    "gh_missing": "CIError",
    "push_rejected": "MergeError",
    "rebase_conflict": "MergeError",
    "branch_delete_failed": "MergeError",
    "pr_failed": "MergeError",
    "verification_failed": "VerificationError",
    "dirty_tree": "VerificationError",
    "missing_changelog_entry": "PublishError",
    "duplicate_tag": "PublishError",
    "tag_failed": "PublishError",
    "git_failed": "PublishError",
    "registry_failed": "RegistryError",
    "config_invalid": "ConfigError",
}

_EXIT_CODES: dict[ErrorFamily, ErrorCode] = {
    "GuardError": ErrorCode.USER_ERROR,
    "ConfigError": ErrorCode.USER_ERROR,
    "ResolveError": ErrorCode.USER_ERROR,
    "VerificationError": ErrorCode.VERIFY_ERROR,
    "CIError": ErrorCode.CI_ERROR,
    "MergeError": ErrorCode.GIT_ERROR,
    "PublishError": ErrorCode.PUBLISH_ERROR,
    "RegistryError": ErrorCode.PUBLISH_ERROR,
}


@dataclass(frozen=True, slots=True)
class ReleaseError:
    """Canonical pipeline error payload.

    Attributes:
        kind: Specific failure (e.g. "duplicate_tag").
        message: One-line description for the operator.
        stage: Pipeline stage that failed (e.g. "tag", "ci", "push").
        hint: Optional follow-up: tool output or a suggested command.
    """

    kind: ReleaseErrorKind
    message: str
    stage: str = ""
    hint: str | None = None

    @property
    def family(self) -> ErrorFamily:
        return _FAMILIES[self.kind]

    @property
    def exit_code(self) -> ErrorCode:
        if self.kind == "cancelled":
            return ErrorCode.CANCELLED
        if self.kind in ("gh_missing", "git_failed"):
            return ErrorCode.ENV_ERROR
        return _EXIT_CODES[self.family]

    def at(self, stage: str) -> ReleaseError:
        """Return a copy attributed to ``stage`` unless one is already set."""
        if self.stage:
            return self
        return replace(self, stage=stage)
