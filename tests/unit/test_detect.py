"""Tests for npm file detection."""


from bumpall.detect import identify


class TestIdentify:
    """Test content detection from filenames and content."""

    def test_detect_by_filename(self):
        """Should detect the file kind from its name."""
        assert identify("", "package.json") == "manifest"
        assert identify("", "frontend/package.json") == "manifest"
        assert identify("", "package-lock.json") == "lockfile"
        assert identify("", "npm-shrinkwrap.json") == "lockfile"

    def test_detect_manifest_by_content(self, sample_package_json):
        """Should detect package.json content."""
        assert identify(sample_package_json) == "manifest"
        assert identify('{"devDependencies": {"jest": "^29.0.0"}}') == "manifest"
        assert identify('{"optionalDependencies": {"fsevents": "^2.3.0"}}') == "manifest"

    def test_detect_lockfile_by_content(self, sample_lockfile):
        """Should detect lockfiles even though they list dependencies."""
        assert identify(sample_lockfile) == "lockfile"
        assert identify('{"lockfileVersion": 1, "dependencies": {}}') == "lockfile"

    def test_detect_outdated_json(self, sample_outdated_json):
        """Should detect npm outdated JSON output."""
        assert identify(sample_outdated_json) == "outdated"

    def test_detect_outdated_parseable(self):
        """Should detect npm outdated parseable output."""
        content = "/app/node_modules/express:express@4.19.2:express@4.18.0:express@5.0.1:app\n"
        assert identify(content) == "outdated"
        assert identify("loc:pkg@1.0.0:MISSING:pkg@1.2.0:app") == "outdated"

    def test_detect_unknown(self):
        """Should return unknown for unclear content."""
        assert identify("", "requirements.txt") == "unknown"
        assert identify("some random text") == "unknown"
        assert identify("") == "unknown"

    def test_filename_takes_precedence(self, sample_lockfile):
        """Filename should take precedence over content when both present."""
        assert identify(sample_lockfile, "package.json") == "manifest"
        assert identify('{"dependencies": {}}', "package-lock.json") == "lockfile"
