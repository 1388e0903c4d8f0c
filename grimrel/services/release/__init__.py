"""Version resolution: compute the next release version, edit, commit and tag."""

from grimrel.services.release.resolver import ResolvedRelease, push_release, resolve_and_tag
from grimrel.services.release.semver import BASELINE, SemVer, latest_version, next_version

__all__ = [
    "BASELINE",
    "ResolvedRelease",
    "SemVer",
    "latest_version",
    "next_version",
    "push_release",
    "resolve_and_tag",
]
