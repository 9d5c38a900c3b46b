"""Prisma schema and migration parser.

Reads one ``schema.prisma`` file and the ``migrations/`` directory next to
it and converts them into the canonical ``Model``/``Migration`` shapes.

The schema is scanned line by line: ``model`` and ``enum`` blocks are
collected, ``view``, ``type``, ``datasource`` and ``generator`` blocks are
skipped.  Field attributes are tokenized with a small scanner that respects
nested parentheses and quoted strings, so ``@default(dbgenerated("gen()"))``
does not confuse the attribute list.

Naming rules reproduced from Prisma:
- table name: ``@@map("...")`` or the model name unmodified
- column name: ``@map("...")`` or the field name
- migration id: the directory name (``20240101120000_init``)

Usage:
    from orm_drift.orm.prisma import PrismaParser

    parser = PrismaParser(Path("prisma/schema.prisma"))
    models = parser.find_models()
    migrations = parser.find_migrations()
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path

from orm_drift.errors import ParseError, WorkspaceReadError
from orm_drift.orm.models import Migration, Model, ModelField, dedupe_tables
from orm_drift.orm.ordering import SequenceOrdering
from orm_drift.orm.types import CanonicalType, prisma_canonical_type
from orm_drift.schema.migrations import check_migration_status
from orm_drift.workspace import LocalWorkspace, WorkspaceReader

logger = logging.getLogger(__name__)

_BLOCK_START = re.compile(r"^(model|enum|view|type|datasource|generator)\s+(\w+)\s*\{\s*$")
_FIELD_LINE = re.compile(
    r'^(?P<name>\w+)\s+(?P<type>Unsupported\("[^"]*"\)|\w+)(?P<list>\[\])?(?P<optional>\?)?\s*(?P<rest>.*)$'
)
_QUOTED = re.compile(r'"((?:[^"\\]|\\.)*)"')
_MIGRATION_PREFIX = re.compile(r"^\d+_(.+)$")


# ============================================================================
# Tokenizing
# ============================================================================


def strip_comment(line: str) -> str:
    """Remove a trailing ``//`` comment that is not inside a string.

    Example:
        >>> strip_comment('email String @unique // login')
        'email String @unique '
    """
    in_string = False
    escaped = False
    for i, char in enumerate(line):
        if escaped:
            escaped = False
        elif char == "\\":
            escaped = True
        elif char == '"':
            in_string = not in_string
        elif not in_string and line.startswith("//", i):
            return line[:i]
    return line


def split_attributes(text: str) -> list[tuple[str, str | None]]:
    """Split an attribute list into ``(name, arguments)`` pairs.

    ``name`` keeps its ``@``/``@@`` prefix; ``arguments`` is the raw text
    between the outer parentheses, or ``None`` when the attribute has none.

    Example:
        >>> split_attributes('@id @default(dbgenerated("uuid()")) @db.Uuid')
        [('@id', None), ('@default', 'dbgenerated("uuid()")'), ('@db.Uuid', None)]
    """
    attributes: list[tuple[str, str | None]] = []
    i = 0
    length = len(text)
    while i < length:
        if text[i] != "@":
            i += 1
            continue

        start = i
        i += 1
        while i < length and (text[i].isalnum() or text[i] in "_.@"):
            i += 1
        name = text[start:i]

        args: str | None = None
        if i < length and text[i] == "(":
            depth = 0
            in_string = False
            args_start = i + 1
            while i < length:
                char = text[i]
                if in_string:
                    if char == "\\":
                        i += 1
                    elif char == '"':
                        in_string = False
                elif char == '"':
                    in_string = True
                elif char == "(":
                    depth += 1
                elif char == ")":
                    depth -= 1
                    if depth == 0:
                        break
                i += 1
            args = text[args_start:i]
            i += 1

        attributes.append((name, args))
    return attributes


def _first_string(args: str | None) -> str | None:
    if not args:
        return None
    match = _QUOTED.search(args)
    return match.group(1) if match else None


def _named_list(args: str | None, key: str) -> list[str]:
    """Values of ``key: [a, b]`` inside attribute arguments."""
    if not args:
        return []
    match = re.search(rf"\b{key}\s*:\s*\[([^\]]*)\]", args)
    if match is None:
        return []
    return [part.strip() for part in match.group(1).split(",") if part.strip()]


def _positional_list(args: str | None) -> list[str]:
    """Values of a leading ``[a, b]`` argument (``@@id([a, b])``)."""
    if not args:
        return []
    match = re.match(r"\s*(?:fields\s*:\s*)?\[([^\]]*)\]", args)
    if match is None:
        return []
    # Field references may carry sort arguments: id(sort: Desc)
    return [part.split("(")[0].strip() for part in match.group(1).split(",") if part.strip()]


# ============================================================================
# Schema parsing
# ============================================================================


@dataclass
class _Block:
    kind: str
    name: str
    start_line: int
    lines: list[str] = field(default_factory=list)


def _scan_blocks(source: str, path: str) -> list[_Block]:
    blocks: list[_Block] = []
    current: _Block | None = None

    for number, raw in enumerate(source.splitlines(), start=1):
        line = strip_comment(raw).strip()
        if not line:
            continue

        if current is None:
            match = _BLOCK_START.match(line)
            if match:
                current = _Block(kind=match.group(1), name=match.group(2), start_line=number)
            continue

        if line == "}":
            blocks.append(current)
            current = None
        else:
            current.lines.append(line)

    if current is not None:
        raise ParseError(
            path, f"{current.kind} {current.name} opened on line {current.start_line} is never closed"
        )
    return blocks


def _parse_model_block(
    block: _Block,
    relation_targets: set[str],
    enum_names: set[str],
    file_path: Path,
) -> Model:
    fields: list[ModelField] = []
    table_name = block.name
    compound_pk: list[str] = []
    foreign_keys: dict[str, str] = {}

    for line in block.lines:
        if line.startswith("@@"):
            for name, args in split_attributes(line):
                if name == "@@map":
                    mapped = _first_string(args)
                    if mapped:
                        table_name = mapped
                elif name == "@@id":
                    compound_pk = _positional_list(args)
            continue

        match = _FIELD_LINE.match(line)
        if match is None:
            logger.debug("Skipping unrecognised line in model %s: %s", block.name, line)
            continue

        field_type = match.group("type")
        is_list = match.group("list") is not None
        is_optional = match.group("optional") is not None
        attributes = split_attributes(match.group("rest"))

        column_name = None
        native_type = None
        max_length = None
        is_primary_key = False
        is_unique = False

        for name, args in attributes:
            if name == "@map":
                column_name = _first_string(args)
            elif name == "@id":
                is_primary_key = True
            elif name == "@unique":
                is_unique = True
            elif name.startswith("@db."):
                native_type = name[len("@db."):]
                if native_type in {"VarChar", "Char"} and args and args.strip().isdigit():
                    max_length = int(args.strip())
            elif name == "@relation":
                for local in _named_list(args, "fields"):
                    foreign_keys[local] = field_type

        is_relation = field_type in relation_targets
        if is_relation:
            canonical = CanonicalType.UNKNOWN
        elif field_type.startswith("Unsupported("):
            canonical = CanonicalType.UNKNOWN
        else:
            canonical = prisma_canonical_type(field_type, native_type, is_list, enum_names)

        fields.append(
            ModelField(
                name=match.group("name"),
                declared_type=field_type + ("[]" if is_list else "") + ("?" if is_optional else ""),
                canonical_type=canonical,
                nullable=(is_optional or is_list) and not is_primary_key,
                is_primary_key=is_primary_key,
                referenced_model=field_type if is_relation else None,
                max_length=max_length,
                column_name=column_name or match.group("name"),
                is_relation=is_relation,
                is_unique=is_unique or is_primary_key,
            )
        )

    resolved: list[ModelField] = []
    for f in fields:
        update: dict = {}
        if f.name in compound_pk:
            update.update(is_primary_key=True, nullable=False)
        if f.name in foreign_keys and not f.is_relation:
            update.update(is_foreign_key=True, referenced_model=foreign_keys[f.name])
        resolved.append(f.model_copy(update=update) if update else f)

    return Model(name=block.name, table_name=table_name, fields=resolved, file_path=file_path)


def parse_prisma_schema(source: str, file_path: Path) -> list[Model]:
    """Parse the ``model`` blocks of a Prisma schema, in declaration order.

    Raises:
        ParseError: If a block is opened and never closed.
    """
    blocks = _scan_blocks(source, str(file_path))
    # Fields typed with a model or view name are relations, not columns
    relation_targets = {b.name for b in blocks if b.kind in ("model", "view")}
    enum_names = {b.name for b in blocks if b.kind == "enum"}

    models: list[Model] = []
    seen: set[str] = set()
    for block in blocks:
        if block.kind != "model":
            continue
        if block.name in seen:
            logger.warning("Duplicate model %s in %s; keeping the first", block.name, file_path)
            continue
        seen.add(block.name)
        models.append(_parse_model_block(block, relation_targets, enum_names, file_path))
    return models


def migration_display_name(directory_name: str) -> str:
    """Human part of a migration directory name.

    Example:
        >>> migration_display_name("20240101120000_add_orders")
        'add_orders'
    """
    match = _MIGRATION_PREFIX.match(directory_name)
    return match.group(1) if match else directory_name


# ============================================================================
# Parser
# ============================================================================


class PrismaParser:
    """Parses one Prisma schema file and its migrations directory.

    Args:
        schema_path: Path of ``schema.prisma``.
        workspace: File reader; defaults to ``LocalWorkspace()``.
    """

    def __init__(self, schema_path: Path, workspace: WorkspaceReader | None = None) -> None:
        self._schema_path = Path(schema_path)
        self._workspace = workspace or LocalWorkspace()

    @property
    def migrations_dir(self) -> Path:
        return self._schema_path.parent / "migrations"

    def find_models(self) -> list[Model]:
        """All models declared in the schema; an unreadable schema yields none."""
        try:
            source = self._workspace.read_file(self._schema_path)
        except FileNotFoundError:
            logger.debug("Prisma schema not found: %s", self._schema_path)
            return []
        except WorkspaceReadError as e:
            logger.warning("Skipping %s: %s", self._schema_path, e)
            return []

        try:
            models = parse_prisma_schema(source, self._schema_path)
        except ParseError as e:
            logger.warning("Skipping Prisma schema: %s", e)
            return []
        return dedupe_tables(models, logger)

    def find_migrations(self) -> list[Migration]:
        """Migration directories in lexical (timestamp) order."""
        if not self._workspace.exists(self.migrations_dir):
            return []

        migrations = [
            Migration(
                id=directory.name,
                name=migration_display_name(directory.name),
                sequence_key=directory.name,
                file_path=directory / "migration.sql",
            )
            for directory in self._workspace.list_dirs(self.migrations_dir)
            if not directory.name.startswith(".")
        ]
        return SequenceOrdering().order(migrations)

    def check_migration_status(
        self, migrations: list[Migration], applied: set[str]
    ) -> list[Migration]:
        """Pure merge of on-disk migrations with applied directory names."""
        return check_migration_status(migrations, applied)
