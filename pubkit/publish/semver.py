from __future__ import annotations

import re
from dataclasses import dataclass

from pubkit.publish.model import ReleaseType

_SEMVER_RE = re.compile(
    r"^(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)"
    r"(?:-((?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*)(?:\.(?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*))*))?"
    r"(?:\+([0-9a-zA-Z-]+(?:\.[0-9a-zA-Z-]+)*))?$"
)

PrereleasePart = int | str


@dataclass(frozen=True, slots=True)
class SemVer:
    major: int
    minor: int
    patch: int
    prerelease: tuple[PrereleasePart, ...] = ()

    @property
    def is_prerelease(self) -> bool:
        return bool(self.prerelease)

    def __str__(self) -> str:
        base = f"{self.major}.{self.minor}.{self.patch}"
        if not self.prerelease:
            return base
        return base + "-" + ".".join(str(p) for p in self.prerelease)

    def bump(self, kind: ReleaseType, identifier: str | None = None) -> SemVer:
        """Increment the way npm's `semver.inc` does.

        Finalizing bumps (major/minor/patch) of a prerelease that already
        sits on the target version only drop the prerelease part.
        """
        match kind:
            case ReleaseType.MAJOR:
                if self.minor == 0 and self.patch == 0 and self.prerelease:
                    return SemVer(self.major, 0, 0)
                return SemVer(self.major + 1, 0, 0)
            case ReleaseType.MINOR:
                if self.patch == 0 and self.prerelease:
                    return SemVer(self.major, self.minor, 0)
                return SemVer(self.major, self.minor + 1, 0)
            case ReleaseType.PATCH:
                if self.prerelease:
                    return SemVer(self.major, self.minor, self.patch)
                return SemVer(self.major, self.minor, self.patch + 1)
            case ReleaseType.PREMAJOR:
                return SemVer(self.major + 1, 0, 0).pre(identifier)
            case ReleaseType.PREMINOR:
                return SemVer(self.major, self.minor + 1, 0).pre(identifier)
            case ReleaseType.PREPATCH:
                return SemVer(self.major, self.minor, self.patch + 1).pre(identifier)
            case ReleaseType.PRERELEASE:
                if not self.prerelease:
                    return SemVer(self.major, self.minor, self.patch + 1).pre(identifier)
                return self.pre(identifier)
            case _:
                raise AssertionError(f"unexpected release type: {kind}")

    def pre(self, identifier: str | None = None) -> SemVer:
        """Start or advance the prerelease counter, keeping major.minor.patch.

        1.0.1 -> 1.0.1-rc.0, 1.0.1-rc.0 -> 1.0.1-rc.1, and switching the
        identifier (1.0.1-rc.3 with "beta") restarts at 1.0.1-beta.0.
        """
        parts: list[PrereleasePart] = list(self.prerelease)
        if not parts:
            parts = [0]
        else:
            for i in range(len(parts) - 1, -1, -1):
                value = parts[i]
                if isinstance(value, int):
                    parts[i] = value + 1
                    break
            else:
                parts.append(0)

        if identifier:
            if parts[0] != identifier or not (len(parts) > 1 and isinstance(parts[1], int)):
                parts = [identifier, 0]

        return SemVer(self.major, self.minor, self.patch, tuple(parts))


def parse(version: str) -> SemVer | None:
    """Parse a strict semantic version; build metadata is discarded."""
    m = _SEMVER_RE.match(version.strip())
    if m is None:
        return None
    prerelease: tuple[PrereleasePart, ...] = ()
    if m.group(4):
        prerelease = tuple(int(p) if p.isdigit() else p for p in m.group(4).split("."))
    return SemVer(int(m.group(1)), int(m.group(2)), int(m.group(3)), prerelease)


def is_prerelease(version: str) -> bool:
    parsed = parse(version)
    return parsed is not None and parsed.is_prerelease


def increment(version: str, kind: ReleaseType, identifier: str | None = None) -> str | None:
    """Bump version by kind; None when version is not valid semver."""
    parsed = parse(version)
    if parsed is None:
        return None
    return str(parsed.bump(kind, identifier))


def start_prerelease(version: str, identifier: str) -> str | None:
    """Turn an already-bumped version into the first prerelease of it."""
    parsed = parse(version)
    if parsed is None:
        return None
    return str(parsed.pre(identifier))
