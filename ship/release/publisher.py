"""Release pipeline.

Promotes the current feature branch to a tagged, published release:

    IDLE -> PREFLIGHT_PASSED -> CI_CONFIRMED -> TAGGED -> MERGED -> PACKAGE_PUBLISHED

Each transition is one handler returning a Result. A failure leaves
``ReleasePublisher.state`` at the last state fully reached. Nothing is
resumed: a new ``publish()`` starts again from IDLE, and an already created
tag makes it fail with ``duplicate_tag`` rather than publish twice.
"""

from __future__ import annotations

from collections.abc import Callable
from contextlib import AbstractContextManager
from enum import Enum
from pathlib import Path

from ship.core.config import Config
from ship.core.result import Err, Ok, Result
from ship.git.repository import Repository
from ship.output.console import ConsoleProtocol, Style
from ship.release.ci import CancelToken, CiStatusSource, await_ci_success
from ship.release.errors import ReleaseError
from ship.release.fsm import FINISH, StepOutcome, advance, run_state_machine
from ship.release.guard import guard_push
from ship.release.merge import BranchMerger
from ship.release.preflight import PreflightGate
from ship.release.registry import RegistryPublisher
from ship.release.version import Version, check_changelog, load_version


class PublishState(Enum):
    IDLE = "idle"
    PREFLIGHT_PASSED = "preflight-passed"
    CI_CONFIRMED = "ci-confirmed"
    TAGGED = "tagged"
    MERGED = "merged"
    PACKAGE_PUBLISHED = "package-published"

    def __str__(self) -> str:
        return self.value


type _Step = Result[StepOutcome[PublishState], ReleaseError]


class ReleasePublisher:
    """Run the release pipeline for the checked-out branch.

    Attributes:
        state: Last state fully reached.
        version: Version resolved for this attempt (None before CI_CONFIRMED).
        branch: Branch being released (None before CI_CONFIRMED).

    ``cancel_scope`` is entered around the CI wait only; the token it yields
    stops that wait on Ctrl-C or timeout.
    """

    def __init__(
        self,
        *,
        repo: Repository,
        config: Config,
        console: ConsoleProtocol,
        preflight: PreflightGate,
        ci: CiStatusSource,
        registry: RegistryPublisher,
        cancel_scope: Callable[[], AbstractContextManager[CancelToken]],
    ) -> None:
        self._repo = repo
        self._config = config
        self._console = console
        self._preflight = preflight
        self._ci = ci
        self._registry = registry
        self._cancel_scope = cancel_scope
        self.state = PublishState.IDLE
        self.version: Version | None = None
        self.branch: str | None = None

    @property
    def metadata_path(self) -> Path:
        return self._repo.path / self._config.release.metadata

    @property
    def changelog_path(self) -> Path:
        return self._repo.path / self._config.release.changelog

    def publish(self) -> Result[PublishState, ReleaseError]:
        self.state = PublishState.IDLE
        self.version = None
        self.branch = None

        return run_state_machine(
            initial_state=PublishState.IDLE,
            handlers={
                PublishState.IDLE: self._verify,
                PublishState.PREFLIGHT_PASSED: self._confirm_ci,
                PublishState.CI_CONFIRMED: self._tag,
                PublishState.TAGGED: self._merge,
                PublishState.MERGED: self._publish_package,
                PublishState.PACKAGE_PUBLISHED: lambda: Ok(FINISH),
            },
            on_advance=self._enter,
        )

    def _enter(self, state: PublishState) -> None:
        self.state = state
        self._console.print(f"state: {state}", Style.DIM)

    def _verify(self) -> _Step:
        result = self._preflight.run()
        if isinstance(result, Err):
            return Err(result.error.at("preflight"))
        return Ok(advance(PublishState.PREFLIGHT_PASSED))

    def _confirm_ci(self) -> _Step:
        self._console.header("CI")
        version = load_version(self.metadata_path)
        if isinstance(version, Err):
            return version
        # Resolved once; later stages never re-read metadata.
        self.version = version.value
        self._console.print(f"version: {self.version.raw} (tag {self.version.tag})", Style.DIM)

        branch = self._repo.current_branch()
        if isinstance(branch, Err):
            return Err(
                ReleaseError(
                    kind="git_failed",
                    message="cannot determine current branch",
                    stage="ci",
                    hint=branch.error.message,
                )
            )
        self.branch = branch.value

        # Only the CI wait is cancellable; later stages run to completion.
        with self._cancel_scope() as cancel:
            waited = await_ci_success(
                self.branch,
                source=self._ci,
                poll_interval=self._config.ci.poll_interval,
                cancel=cancel,
                console=self._console,
            )
        if isinstance(waited, Err):
            return Err(waited.error.at("ci"))
        return Ok(advance(PublishState.CI_CONFIRMED))

    def _tag(self) -> _Step:
        assert self.version is not None and self.branch is not None
        self._console.header("Tag")
        version = self.version
        remote = self._config.git.remote

        changelog = check_changelog(self.changelog_path, version)
        if isinstance(changelog, Err):
            return changelog

        duplicate = self._check_tag_absent(version.tag)
        if isinstance(duplicate, Err):
            return duplicate

        guard = guard_push(self.branch, self._config.git.trunk)
        if isinstance(guard, Err):
            return guard

        self._console.print(f"git tag -a {version.tag} -m 'Release {version.tag}'", Style.DIM)
        created = self._repo.create_annotated_tag(version.tag, f"Release {version.tag}")
        if isinstance(created, Err):
            # Lost a race with another publisher between check and create.
            raced = self._repo.tag_exists(version.tag)
            if isinstance(raced, Ok) and raced.value:
                return Err(_duplicate_tag(version.tag, "locally"))
            return Err(
                ReleaseError(
                    kind="tag_failed",
                    message=f"could not create tag {version.tag}",
                    stage="tag",
                    hint=created.error.message,
                )
            )

        self._console.print(f"git push {remote} {version.tag}", Style.DIM)
        pushed = self._repo.push(remote, f"refs/tags/{version.tag}")
        if isinstance(pushed, Err):
            if "already exists" in pushed.error.message:
                self._console.warning(f"local tag {version.tag} was created and is left in place")
                return Err(_duplicate_tag(version.tag, f"on {remote}", created_locally=True))
            return Err(
                ReleaseError(
                    kind="push_rejected",
                    message=f"push of tag {version.tag} to {remote} rejected",
                    stage="tag",
                    hint=(
                        f"{pushed.error.message}\n"
                        f"The local tag remains; delete it with: git tag -d {version.tag}"
                    ),
                )
            )

        self._console.success(f"tagged {version.tag}")
        return Ok(advance(PublishState.TAGGED))

    def _check_tag_absent(self, tag: str) -> Result[None, ReleaseError]:
        local = self._repo.tag_exists(tag)
        if isinstance(local, Err):
            return Err(_tag_query_failed(tag, local.error.message))
        if local.value:
            return Err(_duplicate_tag(tag, "locally"))

        remote = self._config.git.remote
        remote_exists = self._repo.remote_tag_exists(remote, tag)
        if isinstance(remote_exists, Err):
            return Err(_tag_query_failed(tag, remote_exists.error.message))
        if remote_exists.value:
            return Err(_duplicate_tag(tag, f"on {remote}"))
        return Ok(None)

    def _merge(self) -> _Step:
        assert self.branch is not None
        self._console.header("Merge")
        merger = BranchMerger(repo=self._repo, git=self._config.git, console=self._console)
        merged = merger.merge(self.branch)
        if isinstance(merged, Err):
            return Err(merged.error.at("merge"))
        return Ok(advance(PublishState.MERGED))

    def _publish_package(self) -> _Step:
        self._console.header("Publish")
        published = self._registry.publish()
        if isinstance(published, Err):
            return Err(published.error.at("registry"))
        self._console.success(f"published {self.version}")
        return Ok(advance(PublishState.PACKAGE_PUBLISHED))


def _duplicate_tag(tag: str, where: str, *, created_locally: bool = False) -> ReleaseError:
    hint = "Bump the version, or inspect the earlier release before retrying."
    if created_locally:
        hint += f"\nThe local tag remains; delete it with: git tag -d {tag}"
    return ReleaseError(
        kind="duplicate_tag",
        message=f"tag {tag} already exists {where}",
        stage="tag",
        hint=hint,
    )


def _tag_query_failed(tag: str, detail: str) -> ReleaseError:
    return ReleaseError(
        kind="git_failed",
        message=f"cannot check whether tag {tag} exists",
        stage="tag",
        hint=detail,
    )
