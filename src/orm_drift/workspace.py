"""File/workspace reader used by the detector and the parsers.

Defines the ``WorkspaceReader`` Protocol and ``LocalWorkspace``, a
``pathlib``-backed implementation.  Absence and read errors are reported
distinctly: ``read_file`` raises ``FileNotFoundError`` when the file does not
exist and ``WorkspaceReadError`` for anything else, so callers can treat
absence as "not present" rather than as a failure.

Usage:
    from orm_drift.workspace import LocalWorkspace

    workspace = LocalWorkspace()
    for path in workspace.list_files(root, "models.py"):
        source = workspace.read_file(path)
"""

from collections.abc import Iterable
from pathlib import Path
from typing import Protocol

from orm_drift.errors import WorkspaceReadError

# Directories never walked when searching for declarations
DEFAULT_EXCLUDED_DIRS: frozenset[str] = frozenset(
    {
        "node_modules",
        "venv",
        ".venv",
        "env",
        ".env",
        "virtualenv",
        ".virtualenv",
        "dist",
        "build",
        "__pycache__",
        ".git",
        ".tox",
        ".mypy_cache",
        ".pytest_cache",
    }
)


class WorkspaceReader(Protocol):
    """Read-only view of the files under one or more project roots."""

    def list_files(self, root: Path, pattern: str) -> list[Path]:
        """Return files under *root* matching the glob *pattern*, sorted."""
        ...

    def read_file(self, path: Path) -> str:
        """Return the text of *path*.

        Raises:
            FileNotFoundError: If *path* does not exist.
            WorkspaceReadError: If *path* exists but cannot be read.
        """
        ...

    def exists(self, path: Path) -> bool:
        """Return True if *path* exists (file or directory)."""
        ...

    def list_dirs(self, root: Path) -> list[Path]:
        """Return the immediate subdirectories of *root*, sorted by name."""
        ...


class LocalWorkspace:
    """``WorkspaceReader`` over the local file system.

    Args:
        excluded_dirs: Directory names pruned from ``list_files`` results.
            Defaults to ``DEFAULT_EXCLUDED_DIRS``.
        encoding: Text encoding used by ``read_file``.

    Example:
        >>> workspace = LocalWorkspace(excluded_dirs={"node_modules"})
        >>> workspace.list_files(Path("."), "schema.prisma")
        [PosixPath('prisma/schema.prisma')]
    """

    def __init__(
        self,
        excluded_dirs: Iterable[str] | None = None,
        encoding: str = "utf-8",
    ) -> None:
        self._excluded_dirs: frozenset[str] = (
            DEFAULT_EXCLUDED_DIRS if excluded_dirs is None else frozenset(excluded_dirs)
        )
        self._encoding = encoding

    def list_files(self, root: Path, pattern: str) -> list[Path]:
        root = Path(root)
        if not root.is_dir():
            return []

        matches: list[Path] = []
        for path in root.rglob(pattern):
            if not path.is_file():
                continue
            relative_parts = path.relative_to(root).parts[:-1]
            if any(part in self._excluded_dirs for part in relative_parts):
                continue
            matches.append(path)

        return sorted(matches)

    def read_file(self, path: Path) -> str:
        path = Path(path)
        try:
            return path.read_text(encoding=self._encoding)
        except FileNotFoundError:
            raise
        except (OSError, UnicodeDecodeError) as e:
            raise WorkspaceReadError(f"Failed to read {path}: {e}") from e

    def exists(self, path: Path) -> bool:
        return Path(path).exists()

    def list_dirs(self, root: Path) -> list[Path]:
        root = Path(root)
        if not root.is_dir():
            return []
        return sorted((p for p in root.iterdir() if p.is_dir()), key=lambda p: p.name)
