"""npm lockfile parsing."""

import json
import logging
from pathlib import Path

from .errors import LockfileError

logger = logging.getLogger(__name__)

# npm prefers the shrinkwrap when both are present
LOCKFILE_NAMES = ("npm-shrinkwrap.json", "package-lock.json")


def parse_package_lock(content: str) -> dict[str, str]:
    """Return ``{name: installed_version}`` for top-level packages.

    Supports lockfile v1 (``dependencies`` tree) and v2/v3 (``packages`` map).
    Nested ``node_modules`` copies are ignored.
    """
    try:
        data = json.loads(content.lstrip("\ufeff"))
    except json.JSONDecodeError as e:
        raise LockfileError(f"Lockfile is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise LockfileError("Lockfile must contain a JSON object")

    versions: dict[str, str] = {}

    # lockfile v1 fallback
    deps = data.get("dependencies")
    if isinstance(deps, dict):
        for name, meta in deps.items():
            if isinstance(meta, dict) and meta.get("version"):
                versions[name] = str(meta["version"])

    # lockfile v2+
    packages = data.get("packages")
    if isinstance(packages, dict):
        for key, meta in packages.items():
            if not isinstance(meta, dict) or not key.startswith("node_modules/"):
                continue
            name = key[len("node_modules/"):]
            if "/node_modules/" in name:
                continue
            version = meta.get("version")
            if version:
                versions[name] = str(version)

    return versions


def find_lockfile(project_dir: Path) -> Path | None:
    """Return the lockfile npm would use for a project, if any."""
    for name in LOCKFILE_NAMES:
        path = Path(project_dir) / name
        if path.is_file():
            return path
    return None


def read_lockfile(project_dir: Path) -> dict[str, str]:
    """Read installed versions from the project's lockfile ({} if there is none)."""
    path = find_lockfile(project_dir)
    if path is None:
        logger.debug("No lockfile found in %s", project_dir)
        return {}

    logger.debug("Reading installed versions from %s", path)
    return parse_package_lock(path.read_text(encoding="utf-8"))
