"""Pytest configuration and fixtures."""

import json

import pytest

from bumpall.models import OutdatedEntry

SAMPLE_PACKAGE_JSON = """{
  "name": "my-app",
  "version": "1.0.0",
  "description": "uses {braces} and \\"quotes\\"",
  "scripts": {
    "test": "jest"
  },
  "dependencies": {
    "express": "^4.18.0",
    "lodash": "~4.17.20",
    "@types/node": "18.11.0"
  },
  "devDependencies": {
    "jest": "^29.0.0",
    "local-lib": "file:../local-lib"
  }
}
"""

SAMPLE_OUTDATED = {
    "express": {
        "current": "4.18.0",
        "wanted": "4.19.2",
        "latest": "5.0.1",
        "dependent": "my-app",
        "location": "node_modules/express",
        "type": "dependencies",
    },
    "lodash": {
        "current": "4.17.20",
        "wanted": "4.17.21",
        "latest": "4.17.21",
        "dependent": "my-app",
        "location": "node_modules/lodash",
        "type": "dependencies",
    },
    "@types/node": {
        "current": "18.11.0",
        "wanted": "18.11.0",
        "latest": "20.1.0",
        "dependent": "my-app",
        "location": "node_modules/@types/node",
        "type": "dependencies",
    },
    "jest": {
        "current": "29.0.0",
        "wanted": "29.7.0",
        "latest": "29.7.0",
        "dependent": "my-app",
        "location": "node_modules/jest",
        "type": "devDependencies",
    },
}


@pytest.fixture
def sample_package_json():
    """Sample package.json content for testing."""
    return SAMPLE_PACKAGE_JSON


@pytest.fixture
def sample_outdated_json():
    """Sample `npm outdated --json --long` output for the sample manifest."""
    return json.dumps(SAMPLE_OUTDATED, indent=2)


@pytest.fixture
def sample_outdated_entries():
    """Sample outdated rows without a dependent, as seen from any directory."""
    return [
        OutdatedEntry(
            name=name,
            current=meta["current"],
            wanted=meta["wanted"],
            latest=meta["latest"],
            section=meta["type"],
        )
        for name, meta in SAMPLE_OUTDATED.items()
    ]


@pytest.fixture
def sample_lockfile():
    """Sample package-lock.json (v3) content for testing."""
    return json.dumps({
        "name": "my-app",
        "version": "1.0.0",
        "lockfileVersion": 3,
        "requires": True,
        "packages": {
            "": {"name": "my-app", "version": "1.0.0"},
            "node_modules/express": {"version": "4.18.0"},
            "node_modules/lodash": {"version": "4.17.20"},
            "node_modules/@types/node": {"version": "18.11.0"},
            "node_modules/jest": {"version": "29.0.0", "dev": True},
            "node_modules/jest/node_modules/semver": {"version": "6.3.1"},
        },
    }, indent=2)


@pytest.fixture
def project_dir(tmp_path, sample_package_json, sample_lockfile):
    """Create a temporary npm project for testing."""
    (tmp_path / "package.json").write_text(sample_package_json)
    (tmp_path / "package-lock.json").write_text(sample_lockfile)
    return tmp_path
