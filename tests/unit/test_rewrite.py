"""Tests for package.json rewriting."""

import json

import pytest

from bumpall.errors import ManifestError
from bumpall.models import ManifestEntry, ResolutionResult
from bumpall.rewrite import (
    build_report,
    new_spec_for,
    read_manifest,
    replace_specs,
    tilde_pinned,
    tilde_spec,
    update_manifest_content,
)


def _result(name, spec, version, new_spec, section="dependencies", skipped=False, reason="minor update"):
    return ResolutionResult(
        entry=ManifestEntry(name=name, spec=spec, section=section),
        chosen_version=version,
        reason=reason,
        semver_delta="minor",
        new_spec=new_spec,
        skipped=skipped,
    )


class TestRangeHelpers:
    """Test range construction helpers."""

    @pytest.mark.parametrize(
        "spec, expected",
        [
            ("^1.2.3", "^1.4.0"),
            ("~1.2.3", "~1.4.0"),
            (">=1.2.3", ">=1.4.0"),
            ("=1.2.3", "=1.4.0"),
            ("1.2.3", "1.4.0"),
            ("<2.0.0", None),
            ("<=1.2.3", None),
            ("1.x", None),
            (">=1.0.0 <2.0.0", None),
            ("latest", None),
            (None, None),
        ],
    )
    def test_new_spec_for(self, spec, expected):
        """Should keep the operator of the original range."""
        assert new_spec_for(spec, "1.4.0") == expected

    @pytest.mark.parametrize(
        "spec, expected",
        [
            ("^1.2.3", "~1.2.3"),
            ("1.2.3", "~1.2.3"),
            ("=1.2.3", "~1.2.3"),
            ("~1.2.3", "~1.2.3"),
            (">=1.2.3", ">=1.2.3"),
            ("1.x", "1.x"),
            ("", ""),
        ],
    )
    def test_tilde_spec(self, spec, expected):
        """Should narrow caret and exact ranges to tilde ranges only."""
        assert tilde_spec(spec) == expected


class TestReplaceSpecs:
    """Test in-place range replacement."""

    def test_only_targeted_values_change(self, sample_package_json):
        """Should leave every other byte of the document untouched."""
        updated = replace_specs(sample_package_json, {
            ("dependencies", "express"): "^4.19.2",
            ("devDependencies", "jest"): "^29.7.0",
        })

        expected = sample_package_json.replace('"^4.18.0"', '"^4.19.2"').replace('"^29.0.0"', '"^29.7.0"')
        assert updated == expected

    def test_section_aware(self):
        """Should only touch the named section when a package appears twice."""
        content = '{\n  "dependencies": {"a": "^1.0.0"},\n  "peerDependencies": {"a": "^1.0.0"}\n}\n'
        updated = replace_specs(content, {("dependencies", "a"): "^1.5.0"})

        data = json.loads(updated)
        assert data["dependencies"]["a"] == "^1.5.0"
        assert data["peerDependencies"]["a"] == "^1.0.0"

    def test_preserves_crlf_and_tabs(self):
        """Should keep Windows line endings and tab indentation."""
        content = '{\r\n\t"dependencies": {\r\n\t\t"a": "~1.0.0"\r\n\t}\r\n}\r\n'
        updated = replace_specs(content, {("dependencies", "a"): "~1.0.5"})

        assert updated == content.replace("~1.0.0", "~1.0.5")

    def test_ignores_keys_in_nested_values(self):
        """Should not match dependency names inside unrelated nested objects."""
        content = json.dumps({
            "config": {"dependencies": {"a": "^1.0.0"}},
            "dependencies": {"a": "^1.0.0"},
        }, indent=2)
        updated = replace_specs(content, {("dependencies", "a"): "^2.0.0"})

        data = json.loads(updated)
        assert data["config"]["dependencies"]["a"] == "^1.0.0"
        assert data["dependencies"]["a"] == "^2.0.0"

    def test_handles_escapes_and_scoped_names(self):
        """Should scan past escaped quotes and braces inside strings."""
        content = '{"description": "a \\"{tricky}\\" one", "dependencies": {"@types/node": "18.11.0"}}'
        updated = replace_specs(content, {("dependencies", "@types/node"): "20.1.0"})

        assert updated == content.replace("18.11.0", "20.1.0")

    def test_unknown_entries_ignored(self, sample_package_json):
        """Should ignore updates for packages the manifest does not declare."""
        updated = replace_specs(sample_package_json, {("dependencies", "react"): "^18.0.0"})
        assert updated == sample_package_json

    def test_no_updates_returns_content(self):
        """Should return the content unchanged when there is nothing to do."""
        assert replace_specs("not even json", {}) == "not even json"

    def test_invalid_json(self):
        """Should raise ManifestError for malformed content."""
        with pytest.raises(ManifestError):
            replace_specs('{"dependencies": {"a": "1.0.0"', {("dependencies", "a"): "2.0.0"})

    def test_non_object_root(self):
        """Should raise ManifestError when the root is not an object."""
        with pytest.raises(ManifestError):
            replace_specs('["a"]', {("dependencies", "a"): "2.0.0"})


class TestReport:
    """Test manifest update reports."""

    def test_update_manifest_content(self, sample_package_json):
        """Should apply only results that change a range."""
        results = [
            _result("express", "^4.18.0", "4.19.2", "^4.19.2"),
            _result("lodash", "~4.17.20", None, None, skipped=True),
        ]
        updated = update_manifest_content(sample_package_json, results)

        data = json.loads(updated)
        assert data["dependencies"]["express"] == "^4.19.2"
        assert data["dependencies"]["lodash"] == "~4.17.20"

    def test_build_report(self, sample_package_json):
        """Should produce updated content, a unified diff and notes."""
        results = [
            _result("express", "^4.18.0", "4.19.2", "^4.19.2"),
            _result("@types/node", "18.11.0", None, None, skipped=True, reason="no minor or patch update available"),
        ]
        report = build_report("package.json", sample_package_json, results)

        assert report.filename == "package.json"
        assert [change.entry.name for change in report.changes] == ["express"]
        assert '"express": "^4.19.2"' in report.updated_content
        assert '-    "express": "^4.18.0",' in report.diff
        assert '+    "express": "^4.19.2",' in report.diff
        assert report.diff.startswith("--- a/package.json")
        assert report.notes == ["@types/node: no minor or patch update available"]

    def test_build_report_without_changes(self, sample_package_json):
        """Should return the original content and an empty diff."""
        report = build_report("package.json", sample_package_json, [])

        assert report.updated_content == sample_package_json
        assert report.diff == ""
        assert report.changes == []


class TestTildePinned:
    """Test the patch-mode manifest swap."""

    def test_pins_and_restores(self, project_dir, sample_package_json):
        """Should tilde-pin caret and exact ranges, then restore the original."""
        manifest_path = project_dir / "package.json"

        with tilde_pinned(manifest_path):
            pinned = json.loads(manifest_path.read_text())
            assert pinned["dependencies"]["express"] == "~4.18.0"
            assert pinned["dependencies"]["lodash"] == "~4.17.20"
            assert pinned["dependencies"]["@types/node"] == "~18.11.0"
            assert pinned["devDependencies"]["local-lib"] == "file:../local-lib"
            assert (project_dir / "package.json.bkup").exists()

        assert read_manifest(manifest_path) == sample_package_json
        assert not (project_dir / "package.json.bkup").exists()

    def test_restores_on_error(self, project_dir, sample_package_json):
        """Should restore the original manifest when the block raises."""
        manifest_path = project_dir / "package.json"

        with pytest.raises(RuntimeError):
            with tilde_pinned(manifest_path):
                raise RuntimeError("npm blew up")

        assert read_manifest(manifest_path) == sample_package_json
        assert not (project_dir / "package.json.bkup").exists()
