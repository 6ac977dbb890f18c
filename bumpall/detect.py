"""Content detection for npm project files."""

import re

LOCKFILE_NAMES = ("package-lock.json", "npm-shrinkwrap.json")

# location:name@wanted:name@current:name@latest[:dependent]
PARSEABLE_LINE = r"^[^\n]*:@?[^@\s:]+@[^:\s]+:(?:@?[^@\s:]+@[^:\s]+|MISSING):@?[^@\s:]+@[^:\s]+"


def identify(content: str, filename: str | None = None) -> str:
    """Detect what kind of npm file some content is.

    Args:
        content: The file content
        filename: Optional filename for additional context

    Returns:
        'manifest', 'lockfile', 'outdated' or 'unknown'
    """
    # Filename-based detection (takes precedence)
    if filename:
        if filename.endswith(LOCKFILE_NAMES):
            return "lockfile"
        if filename.endswith("package.json"):
            return "manifest"

    # Content-based detection
    if re.search(r'"lockfileVersion"\s*:', content):
        return "lockfile"

    if re.search(r'"wanted"\s*:', content) and re.search(r'"latest"\s*:', content):
        return "outdated"

    if re.search(PARSEABLE_LINE, content, re.MULTILINE):
        return "outdated"

    manifest_patterns = [
        r'"dependencies"\s*:',
        r'"devDependencies"\s*:',
        r'"optionalDependencies"\s*:',
    ]

    for pattern in manifest_patterns:
        if re.search(pattern, content):
            return "manifest"

    return "unknown"
