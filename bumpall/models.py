"""Core data models for bumpall."""

from dataclasses import dataclass, field


@dataclass
class ManifestEntry:
    """A single dependency entry in package.json."""

    name: str
    spec: str | None = None
    section: str = "dependencies"  # dependencies, devDependencies, optionalDependencies
    source_type: str = "registry"  # registry, alias, workspace, path, git, url, tag


@dataclass
class Manifest:
    """A parsed package.json."""

    raw: str
    entries: list[ManifestEntry]
    name: str | None = None

    def find(self, name: str, section: str | None = None) -> ManifestEntry | None:
        """Return the entry for a package, preferring the given section."""
        matches = [entry for entry in self.entries if entry.name == name]
        if section:
            for entry in matches:
                if entry.section == section:
                    return entry
        return matches[0] if matches else None


@dataclass
class OutdatedEntry:
    """One row of `npm outdated` output."""

    name: str
    current: str | None
    wanted: str
    latest: str
    dependent: str | None = None
    location: str | None = None
    section: str | None = None


@dataclass
class ResolutionResult:
    """Target version chosen for one dependency."""

    entry: ManifestEntry
    chosen_version: str | None
    reason: str
    semver_delta: str = "unknown"  # prerelease, patch, minor, major, none, unknown
    current_version: str | None = None
    new_spec: str | None = None
    skipped: bool = False

    @property
    def has_change(self) -> bool:
        return not self.skipped and self.new_spec is not None and self.new_spec != self.entry.spec


@dataclass
class UpdateReport:
    """Report of changes made to a manifest."""

    filename: str
    updated_content: str
    diff: str
    changes: list[ResolutionResult]
    notes: list[str] = field(default_factory=list)
