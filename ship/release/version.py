from __future__ import annotations

import re
import tomllib
from dataclasses import dataclass
from pathlib import Path

from ship.core.result import Err, Ok, Result
from ship.core.structured import as_str_dict, get_str, get_table
from ship.release.errors import ReleaseError

# Tables searched for a version field, in order: Cargo, Cargo workspace,
# PEP 621, Poetry.
_VERSION_TABLES: tuple[tuple[str, ...], ...] = (
    ("package",),
    ("workspace", "package"),
    ("project",),
    ("tool", "poetry"),
)


@dataclass(frozen=True, slots=True)
class Version:
    """Release version as written in project metadata (e.g. "3.1.0")."""

    raw: str

    @property
    def tag(self) -> str:
        return f"v{self.raw}"

    def __str__(self) -> str:
        return self.tag


def resolve_version(metadata_text: str) -> Result[Version, ReleaseError]:
    """Extract the release version from project metadata text."""
    try:
        data: object = tomllib.loads(metadata_text)
    except tomllib.TOMLDecodeError as e:
        return Err(
            ReleaseError(
                kind="metadata_parse",
                message=f"invalid project metadata: {e}",
                stage="version",
            )
        )

    root = as_str_dict(data) or {}
    for path in _VERSION_TABLES:
        table = root
        for key in path:
            table = get_table(table, key) or {}
        raw = get_str(table, "version")
        if raw is not None:
            return Ok(Version(raw=raw.removeprefix("v")))

    return Err(
        ReleaseError(
            kind="metadata_parse",
            message="no version field found in project metadata",
            stage="version",
            hint="Expected [package].version or [project].version",
        )
    )


def load_version(path: Path) -> Result[Version, ReleaseError]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        return Err(
            ReleaseError(
                kind="metadata_parse",
                message=f"cannot read project metadata: {path}",
                stage="version",
                hint=str(e),
            )
        )
    return resolve_version(text)


def has_changelog_entry(changelog_text: str, version: Version) -> bool:
    """True if a line opens with a ``[X.Y.Z]`` heading for ``version``.

    Markdown heading markers before the bracket are allowed; a leading "v"
    inside the bracket is optional.
    """
    pattern = re.compile(rf"^(?:#+[ \t]*)?\[v?{re.escape(version.raw)}\]", re.MULTILINE)
    return pattern.search(changelog_text) is not None


def check_changelog(path: Path, version: Version) -> Result[None, ReleaseError]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        return Err(
            ReleaseError(
                kind="missing_changelog_entry",
                message=f"cannot read changelog: {path}",
                stage="changelog",
                hint=str(e),
            )
        )

    if not has_changelog_entry(text, version):
        return Err(
            ReleaseError(
                kind="missing_changelog_entry",
                message=f"changelog has no entry for {version.raw}",
                stage="changelog",
                hint=f"Add a '[{version.raw}]' heading to {path.name}",
            )
        )
    return Ok(None)
