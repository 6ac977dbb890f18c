"""In-place package.json rewriting.

Dependency ranges are replaced directly in the original text so that key
order, indentation, line endings and everything outside the touched values
survive a bump byte for byte.
"""

import difflib
import json
import logging
import shutil
from contextlib import contextmanager
from pathlib import Path

from .errors import ManifestError
from .models import ResolutionResult, UpdateReport
from .parse_node import DEPENDENCY_SECTIONS, parse_package_json
from .versions import split_range

logger = logging.getLogger(__name__)

_WHITESPACE = " \t\r\n"

# operators whose meaning survives swapping in a newer version
REWRITABLE_OPERATORS = ("^", "~", ">=", ">", "=", "")

BACKUP_SUFFIX = ".bkup"


def new_spec_for(spec: str | None, version: str) -> str | None:
    """Build the range for ``version`` using the operator of ``spec``.

    ``^1.2.3`` -> ``^1.4.0``, ``1.2.3`` -> ``1.4.0``. Returns None when the
    range cannot be rewritten (``<2.0.0``, ``1.x``, ``>=1 <2``, tags).
    """
    parts = split_range(spec)
    if parts is None:
        return None
    operator, _ = parts
    if operator not in REWRITABLE_OPERATORS:
        return None
    return f"{operator}{version}"


def tilde_spec(spec: str) -> str:
    """Narrow a caret or exact range to a tilde range; leave anything else alone."""
    parts = split_range(spec)
    if parts is None:
        return spec
    operator, version = parts
    if operator in ("^", "=", ""):
        return f"~{version}"
    return spec


def _skip_ws(text: str, i: int) -> int:
    while i < len(text) and text[i] in _WHITESPACE:
        i += 1
    return i


def _scan_string(text: str, i: int) -> int:
    """Return the index just past the JSON string starting at ``i``."""
    i += 1
    while i < len(text):
        char = text[i]
        if char == "\\":
            i += 2
            continue
        if char == '"':
            return i + 1
        i += 1
    raise ManifestError("Unterminated string in package.json")


def _scan_value(text: str, i: int) -> int:
    """Return the index just past the JSON value starting at ``i``."""
    if text[i] == '"':
        return _scan_string(text, i)

    if text[i] in "{[":
        depth = 0
        while i < len(text):
            char = text[i]
            if char == '"':
                i = _scan_string(text, i)
                continue
            if char in "{[":
                depth += 1
            elif char in "}]":
                depth -= 1
                if depth == 0:
                    return i + 1
            i += 1
        raise ManifestError("Unbalanced brackets in package.json")

    while i < len(text) and text[i] not in ",}]" + _WHITESPACE:
        i += 1
    return i


def _members(text: str, start: int):
    """Yield ``(key, value_start, value_end)`` for the object opening at ``start``."""
    i = _skip_ws(text, start + 1)
    if i >= len(text) or text[i] == "}":
        return

    while i < len(text):
        key_end = _scan_string(text, i)
        key = json.loads(text[i:key_end])
        i = _skip_ws(text, key_end)
        if i >= len(text) or text[i] != ":":
            raise ManifestError(f"Expected ':' after key {key!r} in package.json")
        value_start = _skip_ws(text, i + 1)
        value_end = _scan_value(text, value_start)
        yield key, value_start, value_end

        i = _skip_ws(text, value_end)
        if i < len(text) and text[i] == ",":
            i = _skip_ws(text, i + 1)
            continue
        return


def replace_specs(content: str, updates: dict[tuple[str, str], str]) -> str:
    """Replace dependency ranges in package.json text.

    Args:
        content: Original package.json content
        updates: ``{(section, package_name): new_range}``

    Returns:
        The content with only the targeted range strings changed

    Raises:
        ManifestError: if the content is not a JSON object or the edit
            did not produce the expected document
    """
    if not updates:
        return content

    try:
        expected = json.loads(content.lstrip("\ufeff"))
    except json.JSONDecodeError as e:
        raise ManifestError(f"package.json is not valid JSON: {e}") from e

    root = _skip_ws(content, 1 if content.startswith("\ufeff") else 0)
    if root >= len(content) or content[root] != "{":
        raise ManifestError("package.json must contain a JSON object")

    edits: list[tuple[int, int, str]] = []
    for section, section_start, _ in _members(content, root):
        if content[section_start] != "{":
            continue
        for name, value_start, value_end in _members(content, section_start):
            new_spec = updates.get((section, name))
            if new_spec is None or content[value_start] != '"':
                continue
            edits.append((value_start, value_end, json.dumps(new_spec, ensure_ascii=False)))
            expected[section][name] = new_spec

    if len(edits) < len(updates):
        logger.debug("%d range update(s) did not match any manifest entry", len(updates) - len(edits))

    updated = content
    for value_start, value_end, literal in sorted(edits, reverse=True):
        updated = updated[:value_start] + literal + updated[value_end:]

    if json.loads(updated.lstrip("\ufeff")) != expected:
        raise ManifestError("Rewriting package.json produced an unexpected document")

    return updated


def update_manifest_content(content: str, results: list[ResolutionResult]) -> str:
    """Update package.json content with resolved versions."""
    updates = {
        (result.entry.section, result.entry.name): result.new_spec
        for result in results
        if result.has_change
    }
    return replace_specs(content, updates)


def format_diff(original: str, updated: str, filename: str) -> str:
    """Unified diff between two versions of a manifest."""
    diff = difflib.unified_diff(
        original.splitlines(keepends=True),
        updated.splitlines(keepends=True),
        fromfile=f"a/{filename}",
        tofile=f"b/{filename}",
    )
    return "".join(diff)


def build_report(filename: str, content: str, results: list[ResolutionResult]) -> UpdateReport:
    """Rewrite a manifest and describe what changed.

    Args:
        filename: Name used in the diff header
        content: Original package.json content
        results: Resolution results for the manifest

    Returns:
        UpdateReport with the new content, a unified diff, the applied
        changes and a note per skipped dependency
    """
    changes = [result for result in results if result.has_change]
    updated = update_manifest_content(content, changes)
    notes = [f"{result.entry.name}: {result.reason}" for result in results if result.skipped]

    return UpdateReport(
        filename=filename,
        updated_content=updated,
        diff=format_diff(content, updated, filename),
        changes=changes,
        notes=notes,
    )


def read_manifest(path: Path) -> str:
    """Read package.json content without translating line endings."""
    with open(path, encoding="utf-8", newline="") as f:
        return f.read()


def write_manifest(path: Path, content: str) -> None:
    """Write package.json content without translating line endings."""
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(content)


@contextmanager
def tilde_pinned(manifest_path: Path):
    """Temporarily narrow caret/exact ranges in package.json to tilde ranges.

    npm's ``wanted`` version honours the manifest range, so running
    ``npm outdated`` inside this block reports the newest patch release of
    every dependency. The original file is restored on exit, also on error.
    """
    manifest_path = Path(manifest_path)
    backup_path = manifest_path.with_name(manifest_path.name + BACKUP_SUFFIX)

    content = read_manifest(manifest_path)
    manifest = parse_package_json(content)
    updates = {
        (entry.section, entry.name): tilde_spec(entry.spec)
        for entry in manifest.entries
        if entry.source_type == "registry"
        and entry.section in DEPENDENCY_SECTIONS
        and tilde_spec(entry.spec) != entry.spec
    }

    shutil.copyfile(manifest_path, backup_path)
    try:
        write_manifest(manifest_path, replace_specs(content, updates))
        logger.debug("Pinned %d range(s) to tilde in %s", len(updates), manifest_path)
        yield manifest_path
    finally:
        shutil.copyfile(backup_path, manifest_path)
        backup_path.unlink()
        logger.debug("Restored %s", manifest_path)
