"""Target version selection for npm dependencies."""

import logging
from fnmatch import fnmatchcase

from . import versions
from .models import Manifest, ManifestEntry, OutdatedEntry, ResolutionResult
from .rewrite import new_spec_for

logger = logging.getLogger(__name__)

MODE_DESCRIPTIONS = {
    "patch": "patch",
    "minor": "minor or patch",
    "latest": "newer",
}


class NodeResolver:
    """Resolver for npm package versions."""

    def __init__(
        self,
        mode: str = "minor",
        include: str | None = None,
        project_name: str | None = None,
    ):
        """Initialize Node resolver.

        Args:
            mode: Largest update allowed: "patch", "minor" or "latest"
            include: Glob a package name must match to be bumped
            project_name: Directory name npm reports as dependent of the
                project's own dependencies; rows for other dependents are
                workspace dependencies and are left alone
        """
        if mode not in versions.MODES:
            raise ValueError(f"Unknown mode: {mode}")
        self.mode = mode
        self.include = include
        self.project_name = project_name

    def _skip(self, entry, reason, current=None, delta="unknown") -> ResolutionResult:
        return ResolutionResult(
            entry=entry,
            chosen_version=None,
            reason=reason,
            semver_delta=delta,
            current_version=current,
            skipped=True,
        )

    def _current_version(self, entry: ManifestEntry, outdated: OutdatedEntry, installed: str | None):
        if outdated.current:
            return outdated.current
        if installed:
            return installed
        coerced = versions.coerce(entry.spec)
        return str(coerced) if coerced else None

    def resolve_entry(
        self,
        entry: ManifestEntry,
        outdated: OutdatedEntry,
        installed: str | None = None,
    ) -> ResolutionResult:
        """Choose the version a dependency should be bumped to.

        Args:
            entry: Manifest entry for the dependency
            outdated: The dependency's row from npm outdated
            installed: Version recorded in the lockfile, if any

        Returns:
            Resolution result; ``skipped`` is set when nothing should change
        """
        current = self._current_version(entry, outdated, installed)

        if self.include and not fnmatchcase(entry.name, self.include):
            return self._skip(entry, f"does not match --include {self.include}", current)

        if self.project_name and outdated.dependent and outdated.dependent != self.project_name:
            return self._skip(entry, f"belongs to workspace {outdated.dependent}", current)

        if entry.source_type != "registry":
            return self._skip(entry, f"{entry.source_type} dependency", current)

        current_version = versions.try_parse(current)
        candidates = []
        for candidate in (outdated.wanted, outdated.latest):
            version = versions.try_parse(candidate)
            if version is None:
                continue
            delta = versions.classify(current_version, version) if current_version else "unknown"
            if delta == "none" or not versions.within_mode(delta, self.mode):
                continue
            candidates.append((version, delta))

        if not candidates:
            latest_delta = versions.classify(current, outdated.latest)
            return self._skip(
                entry,
                f"no {MODE_DESCRIPTIONS[self.mode]} update available",
                current,
                latest_delta,
            )

        chosen, delta = max(candidates, key=lambda pair: pair[0])
        new_spec = new_spec_for(entry.spec, str(chosen))
        if new_spec is None:
            return self._skip(entry, f"range {entry.spec!r} cannot be rewritten", current, delta)
        if new_spec == entry.spec:
            return self._skip(entry, "already up to date", current, delta)

        source = "latest" if str(chosen) == outdated.latest else "wanted"
        return ResolutionResult(
            entry=entry,
            chosen_version=str(chosen),
            reason=f"{delta} update ({source} version)",
            semver_delta=delta,
            current_version=current,
            new_spec=new_spec,
        )

    def resolve_entries(
        self,
        manifest: Manifest,
        outdated: list[OutdatedEntry],
        installed: dict[str, str] | None = None,
    ) -> list[ResolutionResult]:
        """Resolve every row of an npm outdated report against a manifest.

        Args:
            manifest: Parsed package.json
            outdated: Rows from npm outdated
            installed: Lockfile versions by package name

        Returns:
            Resolution results sorted by package name
        """
        installed = installed or {}
        results = []

        for row in outdated:
            entry = manifest.find(row.name, row.section)
            if entry is None:
                logger.debug("%s is not declared in package.json", row.name)
                results.append(
                    self._skip(
                        ManifestEntry(name=row.name, section=row.section or "dependencies"),
                        "not declared in package.json",
                        row.current,
                    )
                )
                continue
            results.append(self.resolve_entry(entry, row, installed.get(row.name)))

        results.sort(key=lambda result: (result.entry.name, result.entry.section))
        return results
