"""Node.js package.json parsing."""

import json
import re

from .errors import ManifestError
from .models import Manifest, ManifestEntry
from .versions import split_range

DEPENDENCY_SECTIONS = ("dependencies", "devDependencies", "optionalDependencies")


class PackageJsonParser:
    """Parser for package.json manifests."""

    def __init__(self, sections: tuple[str, ...] = DEPENDENCY_SECTIONS):
        self.sections = sections
        # Checked in order; the first match wins
        self.source_patterns = [
            ("alias", r"^npm:"),
            ("workspace", r"^workspace:"),
            ("path", r"^(?:file:|link:|\.{1,2}/|~/|/)"),
            ("git", r"^(?:git\+|git://|github:|gitlab:|bitbucket:|gist:)"),
            ("url", r"^https?://"),
            ("git", r"^[\w.-]+/[\w.-]+(?:#.*)?$"),  # user/repo shorthand
            ("tag", r"^[a-zA-Z][\w.-]*$"),  # latest, next, beta
        ]

    def _source_type(self, spec: str) -> str:
        stripped = spec.strip()
        # x.x.x style wildcards and v-prefixed versions are ranges, not tags
        if re.fullmatch(r"[xX*](?:\.[\dxX*]+)*", stripped) or split_range(stripped):
            return "registry"
        for source_type, pattern in self.source_patterns:
            if re.match(pattern, stripped):
                return source_type
        return "registry"

    def _parse_section(self, data: dict, section: str) -> list[ManifestEntry]:
        deps = data.get(section)
        if not isinstance(deps, dict):
            return []

        entries = []
        for name, spec in deps.items():
            if not isinstance(spec, str):
                continue
            entries.append(
                ManifestEntry(
                    name=name,
                    spec=spec,
                    section=section,
                    source_type=self._source_type(spec),
                )
            )
        return entries

    def parse(self, content: str) -> Manifest:
        """Parse package.json content into Manifest."""
        try:
            data = json.loads(content.lstrip("\ufeff"))
        except json.JSONDecodeError as e:
            raise ManifestError(f"package.json is not valid JSON: {e}") from e

        if not isinstance(data, dict):
            raise ManifestError("package.json must contain a JSON object")

        entries: list[ManifestEntry] = []
        for section in self.sections:
            entries.extend(self._parse_section(data, section))

        name = data.get("name")
        return Manifest(
            raw=content,
            entries=entries,
            name=name if isinstance(name, str) else None,
        )


def parse_package_json(content: str) -> Manifest:
    """Parse package.json content into Manifest.

    Args:
        content: The package.json file content

    Returns:
        Parsed Manifest object

    Raises:
        ManifestError: if the content is not a JSON object
    """
    parser = PackageJsonParser()
    return parser.parse(content)
