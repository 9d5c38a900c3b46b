"""ORM detection over workspace roots.

A root uses Django if it contains a ``manage.py`` and Prisma if it contains
a ``schema.prisma``.  The marker is looked up directly in the root first and
then searched recursively (excluded directories pruned); the first match in
sorted path order wins.

Detection never raises.  A failure while probing one ecosystem is logged and
treated as "not detected" so the other ecosystems are still reported.

Usage:
    from orm_drift.orm.detector import detect_orms

    for config in detect_orms([Path(".")]):
        print(config.display_name, config.project_root)
"""

import logging
from collections.abc import Iterable
from pathlib import Path

from orm_drift.orm.models import ORMConfig, ORMKind
from orm_drift.workspace import LocalWorkspace, WorkspaceReader

logger = logging.getLogger(__name__)

# kind -> (marker file, display name, icon)
_MARKERS: dict[ORMKind, tuple[str, str, str]] = {
    ORMKind.DJANGO: ("manage.py", "Django", "symbol-class"),
    ORMKind.PRISMA: ("schema.prisma", "Prisma", "symbol-interface"),
}


def find_marker(root: Path, file_name: str, workspace: WorkspaceReader) -> Path | None:
    """Return ``root/file_name`` if it exists, else the first nested match."""
    direct = Path(root) / file_name
    if workspace.exists(direct):
        return direct
    matches = workspace.list_files(Path(root), file_name)
    return matches[0] if matches else None


def _detect(root: Path, kind: ORMKind, workspace: WorkspaceReader) -> ORMConfig | None:
    file_name, display_name, icon = _MARKERS[kind]
    marker = find_marker(root, file_name, workspace)
    if marker is None:
        return None
    return ORMConfig(
        kind=kind,
        display_name=display_name,
        icon=icon,
        project_root=marker.parent,
        config_path=marker,
    )


def detect_orms(
    roots: Iterable[Path],
    workspace: WorkspaceReader | None = None,
) -> list[ORMConfig]:
    """Detect the ORM installations under every root.

    Args:
        roots: Workspace roots, scanned in the given order.
        workspace: File reader; defaults to ``LocalWorkspace()``.

    Returns:
        One ``ORMConfig`` per detected installation (Django before Prisma
        within a root).  An empty workspace yields an empty list.
    """
    workspace = workspace or LocalWorkspace()
    detected: list[ORMConfig] = []
    seen: set[tuple[ORMKind, Path | None]] = set()

    for root in roots:
        for kind in (ORMKind.DJANGO, ORMKind.PRISMA):
            try:
                config = _detect(Path(root), kind, workspace)
            except Exception as e:
                logger.warning("%s detection failed under %s: %s", kind.value, root, e)
                continue
            if config is None:
                continue
            key = (config.kind, config.config_path)
            if key in seen:
                continue
            seen.add(key)
            logger.debug("Detected %s at %s", config.display_name, config.config_path)
            detected.append(config)

    return detected
