"""Classify dependency upgrades described by pull request titles.

Dependabot titles follow the convention ``Bump <package> from <old> to <new>``,
optionally with a conventional-commit prefix (``chore(deps): ``) or a
directory suffix (`` in /frontend``). This module turns such a title into a
:class:`VersionUpgrade`, derives its severity and checks it against the
``allowed-update`` policy.

Examples
--------
>>> upgrade = parse_version_upgrade("Bump requests from 2.31.0 to 2.32.3")
>>> upgrade.upgrade_type
<UpgradeType.MINOR: 2>
>>> is_allowed(parse_allowed_upgrade("patch"), upgrade.upgrade_type)
False
"""

from __future__ import annotations

import dataclasses
import enum
import re

from packaging import version as pkg_version

from .errors import ConfigurationError, UpgradeParseError

__all__ = [
    "UpgradeType",
    "VersionUpgrade",
    "is_allowed",
    "parse_allowed_upgrade",
    "parse_version_upgrade",
]

_TITLE_PATTERN = re.compile(
    r"\bbump\s+(?P<package>\S+)\s+from\s+(?P<previous>\S+)\s+to\s+(?P<new>\S+)",
    re.IGNORECASE,
)


class UpgradeType(enum.IntEnum):
    """Severity of a version change, ordered ``PATCH < MINOR < MAJOR``."""

    PATCH = 1
    MINOR = 2
    MAJOR = 3

    def __str__(self) -> str:
        return self.name.lower()


# ``None`` is the "nothing allowed" policy.
_ALLOWED_UPGRADES: dict[str, UpgradeType | None] = {
    "none": None,
    "patch": UpgradeType.PATCH,
    "minor": UpgradeType.MINOR,
    "major": UpgradeType.MAJOR,
    "all": UpgradeType.MAJOR,
}


@dataclasses.dataclass(frozen=True, slots=True)
class VersionUpgrade:
    """A dependency moving from ``previous`` to ``new``."""

    package: str
    previous: pkg_version.Version
    new: pkg_version.Version

    @property
    def upgrade_type(self) -> UpgradeType:
        """Return the most significant version component that increased."""
        if self.new.major > self.previous.major:
            return UpgradeType.MAJOR
        same_major = self.new.major == self.previous.major
        if same_major and self.new.minor > self.previous.minor:
            return UpgradeType.MINOR
        return UpgradeType.PATCH

    def __str__(self) -> str:
        name = f"{self.package} " if self.package else ""
        return f"{name}{self.previous} -> {self.new} ({self.upgrade_type})"


def _parse_version(text: str, title: str) -> pkg_version.Version:
    try:
        return pkg_version.Version(text)
    except pkg_version.InvalidVersion as exc:
        msg = f"'{text}' in title {title!r} is not a valid version"
        raise UpgradeParseError(msg) from exc


def parse_version_upgrade(title: str) -> VersionUpgrade:
    """Parse ``title`` into a :class:`VersionUpgrade`.

    Parameters
    ----------
    title
        The pull request title.

    Returns
    -------
    VersionUpgrade
        The parsed upgrade.

    Raises
    ------
    UpgradeParseError
        If the title does not follow the ``Bump <package> from <old> to <new>``
        convention, either side is not a version, or the new version is not
        greater than the previous one.
    """
    match = _TITLE_PATTERN.search(title)
    if match is None:
        msg = f"Title {title!r} does not describe a version upgrade."
        raise UpgradeParseError(msg)

    previous = _parse_version(match.group("previous"), title)
    new = _parse_version(match.group("new"), title)
    # Local build labels carry no precedence.
    if pkg_version.Version(new.public) <= pkg_version.Version(previous.public):
        msg = f"Title {title!r} does not increase the version ({previous} -> {new})."
        raise UpgradeParseError(msg)
    return VersionUpgrade(package=match.group("package"), previous=previous, new=new)


def parse_allowed_upgrade(value: str) -> UpgradeType | None:
    """Parse the ``allowed-update`` policy.

    Returns the highest permitted :class:`UpgradeType`, or ``None`` when the
    policy is ``none``. ``all`` is equivalent to ``major``.

    Raises
    ------
    ConfigurationError
        If ``value`` is empty or not a recognised policy.
    """
    normalized = value.strip().lower()
    if normalized not in _ALLOWED_UPGRADES:
        allowed = ", ".join(_ALLOWED_UPGRADES)
        msg = f"Invalid allowed-update '{value}'. Allowed: {allowed}."
        raise ConfigurationError(msg)
    return _ALLOWED_UPGRADES[normalized]


def is_allowed(allowed: UpgradeType | None, actual: UpgradeType) -> bool:
    """Return True when ``actual`` is at or below the ``allowed`` ceiling."""
    if allowed is None:
        return False
    return actual <= allowed
