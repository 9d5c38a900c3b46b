"""Parser selection for a detected ORM.

Usage:
    from orm_drift.orm.parsers import get_parser

    parser = get_parser(config)
    models = parser.find_models()
    migrations = parser.find_migrations()
"""

from pathlib import Path
from typing import Protocol

from orm_drift.orm.django import DjangoParser
from orm_drift.orm.models import Migration, Model, ORMConfig, ORMKind
from orm_drift.orm.prisma import PrismaParser
from orm_drift.workspace import WorkspaceReader


class OrmParser(Protocol):
    """What the reconciler needs from an ecosystem parser."""

    def find_models(self) -> list[Model]:
        ...

    def find_migrations(self) -> list[Migration]:
        ...


def get_parser(config: ORMConfig, workspace: WorkspaceReader | None = None) -> OrmParser:
    """Build the parser for *config*.

    Raises:
        ValueError: If the config lacks the path its ecosystem needs.
    """
    if config.kind is ORMKind.DJANGO:
        root = config.project_root or (config.config_path.parent if config.config_path else None)
        if root is None:
            raise ValueError("Django config has no project root")
        return DjangoParser(Path(root), workspace)

    if config.config_path is None:
        raise ValueError("Prisma config has no schema path")
    return PrismaParser(Path(config.config_path), workspace)
