"""Exception types raised by bumpall."""


class BumpallError(RuntimeError):
    """Base class for bumpall failures."""


class ManifestError(BumpallError):
    """package.json is missing, malformed, or could not be rewritten."""


class LockfileError(BumpallError):
    """package-lock.json could not be read."""


class InvalidVersion(BumpallError, ValueError):
    """A string is not a valid semantic version."""


class NpmCommandError(BumpallError):
    """npm could not be run or produced unusable output."""

    def __init__(self, message: str, returncode: int | None = None, stderr: str = ""):
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr
