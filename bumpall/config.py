"""Run configuration for bumpall."""

from dataclasses import dataclass, field
from pathlib import Path

from .npm import default_npm_executable
from .versions import MODES


@dataclass
class Config:
    """Settings for a single bumpall run."""

    project_dir: Path
    mode: str = "minor"  # patch, minor, latest
    include: str | None = None
    dry_run: bool = False
    verbose: bool = False
    install: bool = True
    additional_install_args: list[str] = field(default_factory=list)
    npm_executable: str = field(default_factory=default_npm_executable)

    def __post_init__(self):
        self.project_dir = Path(self.project_dir)
        if self.mode not in MODES:
            raise ValueError(f"Unknown mode: {self.mode}")

    @property
    def manifest_path(self) -> Path:
        return self.project_dir / "package.json"

    @property
    def current_dir_name(self) -> str:
        """Directory name npm reports as the dependent of direct dependencies."""
        return self.project_dir.resolve().name

    @classmethod
    def from_options(
        cls,
        project: str | Path = ".",
        latest: bool = False,
        patch: bool = False,
        legacy_peer_deps: bool = False,
        verbose: bool = False,
        dry_run: bool = False,
        include: str | None = None,
        install: bool = True,
        npm: str | None = None,
    ) -> "Config":
        """Build a Config from CLI flags.

        Args:
            project: Project directory or path to its package.json
            latest: Allow major updates
            patch: Only allow patch updates
            legacy_peer_deps: Forward --legacy-peer-deps to npm install
            verbose: Show npm output and debug logs
            dry_run: Report without writing anything
            include: Glob restricting which packages are bumped
            install: Run npm install after rewriting package.json
            npm: npm executable to use

        Raises:
            ValueError: if both latest and patch are requested
        """
        if latest and patch:
            raise ValueError("--latest and --patch cannot be used together")

        mode = "minor"
        if latest:
            mode = "latest"
        elif patch:
            mode = "patch"

        project_dir = Path(project)
        if project_dir.name == "package.json":
            project_dir = project_dir.parent

        additional_install_args = []
        if legacy_peer_deps:
            additional_install_args.append("--legacy-peer-deps")

        return cls(
            project_dir=project_dir,
            mode=mode,
            include=include or None,
            dry_run=dry_run,
            verbose=verbose,
            install=install,
            additional_install_args=additional_install_args,
            npm_executable=npm or default_npm_executable(),
        )
