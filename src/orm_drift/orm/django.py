"""Django model and migration parser.

Reads ``models.py`` files (or ``models/`` packages) and ``migrations/*.py``
modules of every app under a Django project root and converts them into the
canonical ``Model``/``Migration`` shapes.  Python sources are parsed with
``ast``; nothing is imported or executed.

Naming rules reproduced from Django:
- table name: ``Meta.db_table`` or ``f"{app}_{classname.lower()}"``
- foreign key / one-to-one column: ``db_column`` or ``f"{name}_id"``
- concrete models without an explicit primary key get an ``id`` AutoField
- multi-table inheritance adds a ``<parent>_ptr`` one-to-one primary key

Usage:
    from orm_drift.orm.django import DjangoParser

    parser = DjangoParser(project_root)
    apps = parser.find_apps()
    migrations = parser.find_migrations()
"""

import ast
import logging
from dataclasses import dataclass, field
from pathlib import Path

from orm_drift.errors import ParseError, WorkspaceReadError
from orm_drift.orm.models import App, Migration, Model, ModelField, dedupe_tables
from orm_drift.orm.ordering import DependencyOrdering
from orm_drift.orm.types import CanonicalType, django_canonical_type
from orm_drift.schema.migrations import check_migration_status
from orm_drift.workspace import LocalWorkspace, WorkspaceReader

logger = logging.getLogger(__name__)

_FK_TYPES = frozenset({"ForeignKey", "OneToOneField"})
_RELATION_TYPES = _FK_TYPES | {"ManyToManyField"}
_MODEL_BASES = frozenset(
    {
        "models.Model",
        "Model",
        "django.db.models.Model",
        # Abstract bases shipped by django.contrib.auth
        "AbstractUser",
        "AbstractBaseUser",
        "PermissionsMixin",
        "auth_models.AbstractUser",
        "auth_models.AbstractBaseUser",
        "auth_models.PermissionsMixin",
        "django.contrib.auth.models.AbstractUser",
        "django.contrib.auth.models.AbstractBaseUser",
        "django.contrib.auth.models.PermissionsMixin",
        "django.contrib.auth.base_user.AbstractBaseUser",
    }
)


# ============================================================================
# Naming rules
# ============================================================================


def default_table_name(app_name: str, class_name: str) -> str:
    """Django's default table name.

    Example:
        >>> default_table_name("shop", "OrderItem")
        'shop_orderitem'
    """
    return f"{app_name}_{class_name.lower()}"


def django_column_name(name: str, field_type: str, db_column: str | None = None) -> str:
    """Expected column of a field: ``db_column``, ``<name>_id`` for FKs, else ``name``.

    Example:
        >>> django_column_name("owner", "ForeignKey")
        'owner_id'
        >>> django_column_name("total", "DecimalField")
        'total'
    """
    if db_column:
        return db_column
    if field_type in _FK_TYPES:
        return f"{name}_id"
    return name


# ============================================================================
# AST helpers
# ============================================================================


def _literal(node: ast.AST | None, default=None):
    if node is None:
        return default
    try:
        return ast.literal_eval(node)
    except (ValueError, TypeError, SyntaxError):
        return default


def _call_name(func: ast.AST) -> str | None:
    if isinstance(func, ast.Attribute):
        return func.attr
    if isinstance(func, ast.Name):
        return func.id
    return None


def _is_field_type(type_name: str) -> bool:
    return type_name in _RELATION_TYPES or type_name.endswith("Field")


def _reference_name(node: ast.AST | None) -> str | None:
    if node is None:
        return None
    if isinstance(node, ast.Constant) and isinstance(node.value, str):
        return node.value
    if isinstance(node, ast.Name):
        return node.id
    if isinstance(node, ast.Attribute):
        return ast.unparse(node)
    return None


def _parse_field(name: str, call: ast.Call) -> ModelField | None:
    field_type = _call_name(call.func)
    if field_type is None or not _is_field_type(field_type):
        return None

    kwargs = {kw.arg: kw.value for kw in call.keywords if kw.arg}
    is_primary_key = _literal(kwargs.get("primary_key"), False) is True
    nullable = _literal(kwargs.get("null"), False) is True and not is_primary_key
    max_length = _literal(kwargs.get("max_length"))
    db_column = _literal(kwargs.get("db_column"))
    is_unique = _literal(kwargs.get("unique"), False) is True

    referenced_model = None
    if field_type in _RELATION_TYPES:
        target = call.args[0] if call.args else kwargs.get("to")
        referenced_model = _reference_name(target)

    return ModelField(
        name=name,
        declared_type=field_type,
        canonical_type=django_canonical_type(field_type),
        nullable=nullable,
        is_primary_key=is_primary_key,
        is_foreign_key=field_type in _FK_TYPES,
        referenced_model=referenced_model,
        max_length=max_length if isinstance(max_length, int) else None,
        column_name=django_column_name(
            name, field_type, db_column if isinstance(db_column, str) else None
        ),
        is_relation=field_type == "ManyToManyField",
        is_unique=is_unique or is_primary_key,
    )


# ============================================================================
# Model parsing
# ============================================================================


@dataclass
class _ClassInfo:
    """A class statement found in a models module, before model resolution."""

    name: str
    app_name: str
    file_path: Path
    bases: list[str]
    fields: list[ModelField] = field(default_factory=list)
    abstract: bool = False
    proxy: bool = False
    db_table: str | None = None


def parse_model_classes(source: str, app_name: str, file_path: Path) -> list[_ClassInfo]:
    """Collect class declarations (fields and ``Meta`` options) from a models module.

    Raises:
        ParseError: If *source* is not valid Python.
    """
    try:
        tree = ast.parse(source, filename=str(file_path))
    except (SyntaxError, ValueError) as e:
        raise ParseError(str(file_path), f"invalid Python: {e}") from e

    classes: list[_ClassInfo] = []
    for node in tree.body:
        if not isinstance(node, ast.ClassDef):
            continue

        info = _ClassInfo(
            name=node.name,
            app_name=app_name,
            file_path=file_path,
            bases=[ast.unparse(base) for base in node.bases],
        )

        for stmt in node.body:
            if isinstance(stmt, ast.ClassDef) and stmt.name == "Meta":
                for meta_stmt in stmt.body:
                    if not isinstance(meta_stmt, ast.Assign):
                        continue
                    for target in meta_stmt.targets:
                        if not isinstance(target, ast.Name):
                            continue
                        value = _literal(meta_stmt.value)
                        if target.id == "db_table" and isinstance(value, str):
                            info.db_table = value
                        elif target.id == "abstract":
                            info.abstract = value is True
                        elif target.id == "proxy":
                            info.proxy = value is True
            elif (
                isinstance(stmt, ast.Assign)
                and len(stmt.targets) == 1
                and isinstance(stmt.targets[0], ast.Name)
                and isinstance(stmt.value, ast.Call)
            ):
                parsed = _parse_field(stmt.targets[0].id, stmt.value)
                if parsed is not None:
                    info.fields.append(parsed)

        classes.append(info)

    return classes


class _ModelResolver:
    """Turns collected class declarations into concrete ``Model`` values."""

    def __init__(self, classes: list[_ClassInfo]) -> None:
        self._classes = classes
        self._model_names: set[tuple[str, str]] = set()
        self._resolve_model_classes()

    def _lookup(self, base: str, app_name: str) -> _ClassInfo | None:
        name = base.rsplit(".", 1)[-1]
        same_app = [c for c in self._classes if c.name == name and c.app_name == app_name]
        candidates = same_app or [c for c in self._classes if c.name == name]
        for candidate in candidates:
            if (candidate.app_name, candidate.name) in self._model_names:
                return candidate
        return None

    def _resolve_model_classes(self) -> None:
        # Fixpoint: a class is a model if it derives from Model or from a model
        changed = True
        while changed:
            changed = False
            for info in self._classes:
                key = (info.app_name, info.name)
                if key in self._model_names:
                    continue
                if any(
                    base in _MODEL_BASES or self._lookup(base, info.app_name) is not None
                    for base in info.bases
                ):
                    self._model_names.add(key)
                    changed = True

    def _all_fields(self, info: _ClassInfo, seen: frozenset[str] = frozenset()) -> list[ModelField]:
        fields: dict[str, ModelField] = {}
        for base in info.bases:
            parent = self._lookup(base, info.app_name)
            if parent is None or parent.name in seen:
                continue
            if parent.abstract:
                for inherited in self._all_fields(parent, seen | {info.name}):
                    fields[inherited.name] = inherited
            elif not parent.proxy:
                ptr_name = f"{parent.name.lower()}_ptr"
                parent_pk = self._pk_type(parent, seen | {info.name})
                fields[ptr_name] = ModelField(
                    name=ptr_name,
                    declared_type="OneToOneField",
                    canonical_type=parent_pk,
                    is_primary_key=True,
                    is_foreign_key=True,
                    referenced_model=parent.name,
                    column_name=f"{ptr_name}_id",
                    is_unique=True,
                )
        for own in info.fields:
            fields[own.name] = own
        return list(fields.values())

    def _pk_type(self, info: _ClassInfo, seen: frozenset[str] = frozenset()) -> CanonicalType:
        for f in self._all_fields(info, seen):
            if f.is_primary_key:
                return f.canonical_type
        return CanonicalType.INTEGER

    def models(self) -> list[Model]:
        result: list[Model] = []
        for info in self._classes:
            if (info.app_name, info.name) not in self._model_names:
                continue
            if info.abstract or info.proxy:
                continue

            fields = self._all_fields(info)
            if not any(f.is_primary_key for f in fields):
                fields.insert(
                    0,
                    ModelField(
                        name="id",
                        declared_type="AutoField",
                        canonical_type=CanonicalType.INTEGER,
                        is_primary_key=True,
                        is_unique=True,
                    ),
                )

            result.append(
                Model(
                    name=info.name,
                    table_name=info.db_table or default_table_name(info.app_name, info.name),
                    app_name=info.app_name,
                    fields=fields,
                    file_path=info.file_path,
                )
            )
        return _resolve_foreign_key_types(result)


def _resolve_foreign_key_types(models: list[Model]) -> list[Model]:
    """Give FK fields the canonical type of the referenced model's primary key."""
    by_name: dict[str, Model] = {}
    by_label: dict[str, Model] = {}
    for model in models:
        by_name.setdefault(model.name, model)
        by_label[f"{model.app_name}.{model.name}"] = model

    resolved: list[Model] = []
    for model in models:
        fields: list[ModelField] = []
        for f in model.fields:
            if f.is_foreign_key and f.referenced_model:
                ref = f.referenced_model
                if ref == "self":
                    target = model
                else:
                    target = by_label.get(ref) or by_name.get(ref.rsplit(".", 1)[-1])
                pk = target.primary_key if target is not None else None
                if pk is not None and pk.canonical_type is not CanonicalType.UNKNOWN:
                    f = f.model_copy(update={"canonical_type": pk.canonical_type})
            fields.append(f)
        resolved.append(model.model_copy(update={"fields": fields}))
    return resolved


# ============================================================================
# Migration parsing
# ============================================================================


def _dependency_pairs(node: ast.AST | None, file_path: Path) -> list[tuple[str, str]]:
    if not isinstance(node, (ast.List, ast.Tuple)):
        return []
    pairs: list[tuple[str, str]] = []
    for element in node.elts:
        value = _literal(element)
        if (
            isinstance(value, tuple)
            and len(value) == 2
            and all(isinstance(part, str) for part in value)
        ):
            pairs.append(value)
        else:
            # swappable_dependency(settings.AUTH_USER_MODEL) and friends
            logger.debug("Skipping unresolvable dependency in %s: %s", file_path, ast.unparse(element))
    return pairs


def parse_migration_source(source: str, app_name: str, name: str, file_path: Path) -> Migration:
    """Parse one migration module into a ``Migration``.

    Raises:
        ParseError: If *source* is not valid Python or has no ``Migration`` class.
    """
    try:
        tree = ast.parse(source, filename=str(file_path))
    except (SyntaxError, ValueError) as e:
        raise ParseError(str(file_path), f"invalid Python: {e}") from e

    migration_class = next(
        (n for n in tree.body if isinstance(n, ast.ClassDef) and n.name == "Migration"),
        None,
    )
    if migration_class is None:
        raise ParseError(str(file_path), "no Migration class")

    attributes: dict[str, ast.AST] = {}
    for stmt in migration_class.body:
        if isinstance(stmt, ast.Assign):
            for target in stmt.targets:
                if isinstance(target, ast.Name):
                    attributes[target.id] = stmt.value

    dependencies = _dependency_pairs(attributes.get("dependencies"), file_path)
    run_before = _dependency_pairs(attributes.get("run_before"), file_path)

    return Migration(
        id=f"{app_name}.{name}",
        name=name,
        app_name=app_name,
        depends_on=[f"{app}.{dep}" for app, dep in dependencies],
        run_before=[f"{app}.{target}" for app, target in run_before],
        sequence_key=name,
        file_path=file_path,
    )


def _resolve_special_dependencies(migrations: list[Migration]) -> list[Migration]:
    """Replace ``app.__first__`` / ``app.__latest__`` with concrete migration ids."""
    per_app: dict[str, list[str]] = {}
    for m in migrations:
        per_app.setdefault(m.app_name or "", []).append(m.name)

    def resolve(dep_id: str) -> str:
        app, _, name = dep_id.partition(".")
        names = sorted(per_app.get(app, []))
        if not names:
            return dep_id
        if name == "__first__":
            return f"{app}.{names[0]}"
        if name == "__latest__":
            return f"{app}.{names[-1]}"
        return dep_id

    return [
        m.model_copy(update={"depends_on": [resolve(d) for d in m.depends_on]})
        for m in migrations
    ]


# ============================================================================
# Parser
# ============================================================================


class DjangoParser:
    """Parses one Django project (the directory holding ``manage.py``).

    Args:
        project_root: Django project root.
        workspace: File reader; defaults to ``LocalWorkspace()``.
    """

    def __init__(self, project_root: Path, workspace: WorkspaceReader | None = None) -> None:
        self._root = Path(project_root)
        self._workspace = workspace or LocalWorkspace()

    def _read(self, path: Path) -> str | None:
        try:
            return self._workspace.read_file(path)
        except FileNotFoundError:
            logger.debug("File disappeared before it could be read: %s", path)
        except WorkspaceReadError as e:
            logger.warning("Skipping %s: %s", path, e)
        return None

    def _model_files(self) -> list[tuple[str, Path, Path]]:
        """(app_name, app_path, file) for every models module outside migrations."""
        found: list[tuple[str, Path, Path]] = []
        for path in self._workspace.list_files(self._root, "models.py"):
            if "migrations" in path.relative_to(self._root).parts:
                continue
            found.append((path.parent.name, path.parent, path))
        for path in self._workspace.list_files(self._root, "models/*.py"):
            if "migrations" in path.relative_to(self._root).parts:
                continue
            app_path = path.parent.parent
            found.append((app_path.name, app_path, path))
        return sorted(found, key=lambda item: (item[0], str(item[2])))

    def find_apps(self) -> list[App]:
        """Find every app with at least one concrete model, sorted by name."""
        classes: list[_ClassInfo] = []
        app_paths: dict[str, Path] = {}

        for app_name, app_path, path in self._model_files():
            source = self._read(path)
            if source is None:
                continue
            try:
                classes.extend(parse_model_classes(source, app_name, path))
            except ParseError as e:
                logger.warning("Skipping models file: %s", e)
                continue
            app_paths.setdefault(app_name, app_path)

        models = dedupe_tables(_ModelResolver(classes).models(), logger)

        apps: list[App] = []
        for app_name in sorted(app_paths):
            app_models = [m for m in models if m.app_name == app_name]
            if app_models:
                apps.append(App(name=app_name, path=app_paths[app_name], models=app_models))
        return apps

    def find_models(self) -> list[Model]:
        """All concrete models of the project, grouped by app order."""
        return [model for app in self.find_apps() for model in app.models]

    def find_migrations(self) -> list[Migration]:
        """All migrations of the project in dependency (apply) order."""
        migrations: dict[str, Migration] = {}

        for path in self._workspace.list_files(self._root, "migrations/*.py"):
            if path.name.startswith(("_", "~")):
                continue
            app_name = path.parent.parent.name
            source = self._read(path)
            if source is None:
                continue
            try:
                migration = parse_migration_source(source, app_name, path.stem, path)
            except ParseError as e:
                logger.warning("Skipping migration: %s", e)
                continue
            if migration.id in migrations:
                logger.warning(
                    "Duplicate migration %s in %s; keeping %s",
                    migration.id,
                    path,
                    migrations[migration.id].file_path,
                )
                continue
            migrations[migration.id] = migration

        resolved = _resolve_special_dependencies(list(migrations.values()))
        return DependencyOrdering().order(resolved)

    def check_migration_status(
        self, migrations: list[Migration], applied: set[str]
    ) -> list[Migration]:
        """Pure merge of on-disk migrations with applied ``"app.name"`` keys."""
        return check_migration_status(migrations, applied)
