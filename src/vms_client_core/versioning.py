"""Cluster version parsing and the minimum-version gate.

VMS reports versions such as ``5.3.0.12`` or ``5.3.0-beta.1+build7``. Only the
first three dot-segments and the pre-release suffix matter for compatibility;
build metadata is dropped.
"""

import functools
import re
from dataclasses import dataclass

from vms_client_core.errors.exceptions import VersionUnsupportedError

_CORE_RE = re.compile(r"^v?(\d+)(?:\.(\d+))?(?:\.(\d+))?")


def sanitize_version(version: str) -> tuple[str, bool]:
    """Keep the first three dot-segments plus any pre-release suffix.

    Returns:
        ``(sanitized, truncated)`` where ``truncated`` is True when extra
        segments or build metadata were removed.

    Example:
        >>> sanitize_version("5.3.0-beta.1")
        ('5.3.0-beta.1', False)
        >>> sanitize_version("5.3.0.1+buildxyz")
        ('5.3.0', True)
    """
    main_and_prerelease, plus, _build = version.partition("+")
    main, dash, prerelease = main_and_prerelease.partition("-")
    segments = main.split(".")
    truncated = len(segments) > 3 or bool(plus)
    core = ".".join(segments[:3])
    return core + (dash + prerelease if dash else ""), truncated


@functools.total_ordering
@dataclass(frozen=True)
class ClusterVersion:
    """Core ``major.minor.patch`` version with an optional pre-release tag.

    Ordering follows semver precedence: a release is higher than any of its
    pre-releases, and pre-release identifiers compare dot by dot (numeric
    identifiers numerically and below alphanumeric ones).
    """

    major: int
    minor: int = 0
    patch: int = 0
    prerelease: str = ""

    @classmethod
    def parse(cls, version: "str | ClusterVersion") -> "ClusterVersion":
        """Parse a version string; segments past the third and build metadata are ignored.

        Raises:
            ValueError: If ``version`` does not start with a number.
        """
        if isinstance(version, ClusterVersion):
            return version
        main, _, prerelease = version.strip().partition("+")[0].partition("-")
        match = _CORE_RE.match(main)
        if match is None:
            raise ValueError(f"invalid version string: {version!r}")
        major, minor, patch = match.groups()
        return cls(int(major), int(minor or 0), int(patch or 0), prerelease)

    def _key(self) -> tuple:
        if not self.prerelease:
            # Releases sort after every pre-release of the same core
            return (self.major, self.minor, self.patch, 1, ())
        identifiers = tuple(
            (0, int(part), "") if part.isdigit() else (1, 0, part) for part in self.prerelease.split(".")
        )
        return (self.major, self.minor, self.patch, 0, identifiers)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, ClusterVersion):
            return NotImplemented
        return self._key() < other._key()

    def compare(self, other: "str | ClusterVersion") -> int:
        """-1, 0 or 1 as this version is lower than, equal to or higher than ``other``."""
        other = ClusterVersion.parse(other)
        return (self._key() > other._key()) - (self._key() < other._key())

    def __str__(self) -> str:
        core = f"{self.major}.{self.minor}.{self.patch}"
        return f"{core}-{self.prerelease}" if self.prerelease else core


def check_version_compat(
    resource_type: str,
    cluster_version: ClusterVersion,
    min_version: "str | ClusterVersion | None",
) -> None:
    """Fail fast when ``cluster_version`` is strictly lower than ``min_version``.

    Raises:
        VersionUnsupportedError: If the cluster is too old for the resource.
    """
    if not min_version:
        return
    required = ClusterVersion.parse(min_version)
    if cluster_version < required:
        raise VersionUnsupportedError(resource_type, str(cluster_version), str(required))
