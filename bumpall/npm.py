"""npm command invocation and output parsing."""

import asyncio
import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path

from .errors import NpmCommandError
from .models import OutdatedEntry
from .rewrite import tilde_pinned

logger = logging.getLogger(__name__)

MISSING = "MISSING"


def default_npm_executable() -> str:
    """npm executable for this platform, overridable with BUMPALL_NPM."""
    override = os.environ.get("BUMPALL_NPM")
    if override:
        return override
    return "npm.cmd" if os.name == "nt" else "npm"


def _version_or_none(value) -> str | None:
    if not value or value == MISSING:
        return None
    return str(value)


def _entry_from_json(name: str, meta: dict) -> OutdatedEntry:
    return OutdatedEntry(
        name=name,
        current=_version_or_none(meta.get("current")),
        wanted=str(meta.get("wanted") or ""),
        latest=str(meta.get("latest") or ""),
        dependent=meta.get("dependent"),
        location=meta.get("location"),
        section=meta.get("type"),
    )


def parse_outdated_json(text: str) -> list[OutdatedEntry]:
    """Parse the output of ``npm outdated --json [--long]``.

    Raises:
        NpmCommandError: if the output is not JSON or is an npm error payload
    """
    if not text.strip():
        return []

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise NpmCommandError(f"Could not parse npm outdated output: {e}") from e

    if not isinstance(data, dict):
        raise NpmCommandError("npm outdated output must be a JSON object")

    error = data.get("error")
    if isinstance(error, dict) and ("summary" in error or "code" in error):
        raise NpmCommandError(f"npm outdated failed: {error.get('summary') or error.get('code')}")

    entries = []
    for name, meta in data.items():
        # workspaces report one row per dependent
        rows = meta if isinstance(meta, list) else [meta]
        for row in rows:
            if isinstance(row, dict):
                entries.append(_entry_from_json(name, row))
    return entries


def _split_name_and_version(segment: str) -> tuple[str, str | None]:
    if segment == MISSING:
        return "", None

    is_scoped = segment.startswith("@")
    body = segment[1:] if is_scoped else segment
    name, sep, version = body.partition("@")

    if not sep or not name.strip() or not version.strip():
        raise ValueError(f"Invalid name@version segment: {segment!r}")

    prefix = "@" if is_scoped else ""
    return f"{prefix}{name}", version


def _parse_parseable_line(line: str) -> OutdatedEntry:
    """Parse ``location:name@wanted:name@current:name@latest[:dependent]``."""
    line = line.rstrip("\r")
    segments = line.split(":")

    # Windows locations start with a drive letter, e.g. D:\projects\app
    if len(line) > 4 and line[1:3] == ":\\":
        location = ":".join(segments[:2])
        rest = segments[2:]
    else:
        location = segments[0]
        rest = segments[1:]

    if len(rest) < 3:
        raise ValueError(f"Expected at least 4 fields: {line!r}")

    name, wanted = _split_name_and_version(rest[0])
    _, current = _split_name_and_version(rest[1])
    _, latest = _split_name_and_version(rest[2])
    if not name:
        raise ValueError(f"Missing package name: {line!r}")

    dependent = ":".join(rest[3:]).strip()
    return OutdatedEntry(
        name=name,
        current=current,
        wanted=wanted,
        latest=latest,
        dependent=dependent or None,
        location=location or None,
    )


def parse_outdated_parseable(text: str) -> list[OutdatedEntry]:
    """Parse the output of ``npm outdated --parseable``; malformed lines are skipped."""
    entries = []
    for line in text.splitlines():
        if not line.strip():
            continue
        try:
            entries.append(_parse_parseable_line(line))
        except ValueError as e:
            logger.debug("Skipping npm outdated line: %s", e)
    return entries


def parse_outdated(text: str) -> list[OutdatedEntry]:
    """Parse either the JSON or the parseable form of ``npm outdated``.

    Raises:
        NpmCommandError: if the text is neither form
    """
    if text.lstrip().startswith(("{", "[")):
        return parse_outdated_json(text)

    entries = parse_outdated_parseable(text)
    if text.strip() and not entries:
        raise NpmCommandError("Could not parse npm outdated output: no outdated rows found")
    return entries


@dataclass
class CommandResult:
    """Exit status and captured output of an npm command."""

    returncode: int
    stdout: str = ""
    stderr: str = ""


class NpmClient:
    """Runs npm in a project directory."""

    def __init__(
        self,
        cwd: str | Path = ".",
        executable: str | None = None,
        verbose: bool = False,
        timeout: float = 300.0,
    ):
        """Initialize npm client.

        Args:
            cwd: Project directory to run npm in
            executable: npm executable (platform default when omitted)
            verbose: Let npm write to the terminal during install
            timeout: Seconds before a command is killed
        """
        self.cwd = Path(cwd)
        self.executable = executable or default_npm_executable()
        self.verbose = verbose
        self.timeout = timeout

    async def outdated(self, patch_mode: bool = False) -> list[OutdatedEntry]:
        """Run ``npm outdated`` and parse its report.

        Args:
            patch_mode: Narrow manifest ranges to tilde while npm runs so that
                ``wanted`` is the newest patch release

        Returns:
            One entry per outdated dependency row
        """
        args = ["outdated", "--json", "--long"]
        if patch_mode:
            with tilde_pinned(self.cwd / "package.json"):
                result = await self._run(args)
        else:
            result = await self._run(args)

        # npm exits 1 when anything is outdated
        if not result.stdout.strip():
            if result.returncode == 0:
                return []
            raise NpmCommandError(
                f"npm outdated failed with exit code {result.returncode}",
                returncode=result.returncode,
                stderr=result.stderr,
            )

        return parse_outdated_json(result.stdout)

    async def install(self, extra_args: list[str] | None = None) -> bool:
        """Run ``npm install``; returns True on success."""
        result = await self._run(["install", *(extra_args or [])], capture=not self.verbose)
        if result.returncode != 0:
            logger.warning("npm install exited with code %s", result.returncode)
            if result.stderr:
                logger.debug("npm install stderr:\n%s", result.stderr)
        return result.returncode == 0

    async def _run(self, args: list[str], capture: bool = True) -> CommandResult:
        """Run npm with the given arguments.

        Raises:
            NpmCommandError: if npm cannot be started or times out
        """
        cmd = [self.executable, *args]
        logger.debug("Running %s in %s", " ".join(cmd), self.cwd)
        stream = asyncio.subprocess.PIPE if capture else None

        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                cwd=str(self.cwd),
                stdout=stream,
                stderr=stream,
            )
        except FileNotFoundError as e:
            raise NpmCommandError(f"{self.executable} not found - is npm installed?") from e
        except OSError as e:
            raise NpmCommandError(f"Could not run {self.executable}: {e}") from e

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError:
            proc.kill()
            await proc.wait()
            raise NpmCommandError(f"'{' '.join(cmd)}' timed out after {self.timeout}s")

        return CommandResult(
            returncode=proc.returncode,
            stdout=(stdout or b"").decode("utf-8", errors="replace"),
            stderr=(stderr or b"").decode("utf-8", errors="replace"),
        )
