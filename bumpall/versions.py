"""Semantic version helpers and update classification.

Parsing and precedence come from the ``semver`` package. This module adds
the npm flavour on top: loose ``v``/``=`` prefixes, pulling a version out of
a range, and the single-comparator ranges bumpall knows how to rewrite.
"""

import re

import semver

from .errors import InvalidVersion

_LOOSE_NUMBERS_RE = re.compile(r"(\d+)(?:\.(\d+))?(?:\.(\d+))?")
_SIMPLE_RANGE_RE = re.compile(r"^(?P<op>\^|~|>=|<=|>|<|=)?\s*(?P<version>v?\d+\.\d+\.\d+\S*)$")

DELTA_RANK = {
    "prerelease": 0,
    "patch": 1,
    "minor": 2,
    "major": 3,
}

MODE_LIMIT = {
    "patch": DELTA_RANK["patch"],
    "minor": DELTA_RANK["minor"],
    "latest": DELTA_RANK["major"],
}

MODES = tuple(MODE_LIMIT)


def parse(text: str) -> semver.Version:
    """Parse a version string such as ``1.2.3``, ``v1.2.3`` or ``=1.0.0-rc.1``.

    Raises:
        InvalidVersion: if the text is not a semantic version.
    """
    if not isinstance(text, str):
        raise InvalidVersion(f"Invalid version: {text!r}")

    cleaned = text.strip()
    if cleaned.startswith("="):
        cleaned = cleaned[1:].lstrip()
    if cleaned[:1] in ("v", "V"):
        cleaned = cleaned[1:]

    try:
        return semver.Version.parse(cleaned)
    except ValueError as e:
        raise InvalidVersion(f"Invalid version: {text!r}") from e


def try_parse(text: str | None) -> semver.Version | None:
    """Parse a version string, returning None on failure."""
    if text is None:
        return None
    try:
        return parse(text)
    except InvalidVersion:
        return None


def coerce(text: str | None) -> semver.Version | None:
    """Pull the first ``X[.Y[.Z]]`` group out of a range, e.g. ``^1.2`` -> ``1.2.0``."""
    if not text:
        return None
    exact = try_parse(text)
    if exact is not None:
        return exact
    match = _LOOSE_NUMBERS_RE.search(text)
    if not match:
        return None
    return semver.Version(
        major=int(match.group(1)),
        minor=int(match.group(2) or 0),
        patch=int(match.group(3) or 0),
    )


def split_range(spec: str | None) -> tuple[str, str] | None:
    """Split a simple range into ``(operator, version)``.

    Only a single comparator in front of a full version is considered simple:
    ``^1.2.3``, ``~1.2.3``, ``>=1.2.3``, ``1.2.3``. Compound ranges, wildcards,
    partial versions and tags return None.
    """
    if not spec:
        return None
    stripped = spec.strip()
    if "||" in stripped or " - " in stripped:
        return None

    match = _SIMPLE_RANGE_RE.match(stripped)
    if not match:
        return None

    version = match.group("version")
    if try_parse(version) is None:
        return None
    return match.group("op") or "", version


def classify(current, target) -> str:
    """Classify the update from ``current`` to ``target``.

    Returns:
        "major", "minor", "patch" or "prerelease" when target is newer,
        "none" when it is not, "unknown" when either side does not parse.
    """
    cur = current if isinstance(current, semver.Version) else try_parse(current)
    tgt = target if isinstance(target, semver.Version) else try_parse(target)

    if cur is None or tgt is None:
        return "unknown"
    if tgt <= cur:
        return "none"
    if tgt.major != cur.major:
        return "major"
    if tgt.minor != cur.minor:
        return "minor"
    if tgt.patch != cur.patch:
        return "patch"
    return "prerelease"


def within_mode(delta: str, mode: str) -> bool:
    """Check whether an update of kind ``delta`` is allowed in ``mode``."""
    if mode not in MODE_LIMIT:
        raise ValueError(f"Unknown mode: {mode}")
    if delta == "unknown":
        return mode == "latest"
    if delta not in DELTA_RANK:
        return False
    return DELTA_RANK[delta] <= MODE_LIMIT[mode]
